"""Command execution utilities."""

import os
import shlex
import subprocess
from typing import Dict, List, Optional, Sequence

import structlog

from sftp_provisioner.exceptions import CommandExecutionError
from sftp_provisioner.types import CommandResult

logger = structlog.get_logger(__name__)


class CommandExecutor:
    """Execute system commands with proper error handling."""

    def __init__(self, use_sudo: bool = False) -> None:
        """Initialize command executor.

        Args:
            use_sudo: Whether to prepend sudo to commands requiring root
        """
        self.use_sudo = use_sudo

    def execute(
        self,
        cmd: Sequence[str],
        needs_root: bool = False,
        check: bool = True,
        timeout: Optional[int] = 30,
        input: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        interactive: bool = False,
    ) -> CommandResult:
        """Execute command with optional sudo.

        Commands are passed as argument lists and never through a shell.
        Anything sensitive must travel through ``input``, which is written
        to the child's stdin and never logged.

        Args:
            cmd: Command and arguments
            needs_root: Whether command requires root privileges
            check: Whether to raise exception on failure
            timeout: Command timeout in seconds, None to wait forever
            input: Text fed to the command's stdin
            env: Extra environment variables for the command
            interactive: Attach the command to the terminal instead of
                capturing its output

        Returns:
            CommandResult with execution details

        Raises:
            CommandExecutionError: If command fails and check=True
        """
        argv: List[str] = list(cmd)
        if needs_root and self.use_sudo:
            argv = ["sudo", *argv]
            if env:
                # sudo resets the environment unless told otherwise
                argv[1:1] = [f"{key}={value}" for key, value in env.items()]

        command_line = shlex.join(argv)
        logger.debug("Running command", command=command_line)

        run_env = None
        if env:
            run_env = {**os.environ, **env}

        try:
            if interactive:
                result = subprocess.run(argv, env=run_env, timeout=timeout, check=False)
                stdout, stderr = "", ""
            else:
                result = subprocess.run(
                    argv,
                    capture_output=True,
                    text=True,
                    input=input,
                    env=run_env,
                    timeout=timeout,
                    check=False,
                )
                stdout, stderr = result.stdout, result.stderr

            cmd_result = CommandResult(
                success=result.returncode == 0,
                stdout=stdout,
                stderr=stderr,
                return_code=result.returncode,
            )

            if check and not cmd_result.success:
                raise CommandExecutionError(
                    f"Command failed: {command_line}\nError: {stderr.strip()}"
                )

            return cmd_result

        except subprocess.TimeoutExpired as e:
            error_msg = f"Command timed out after {timeout}s: {command_line}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)

        except OSError as e:
            error_msg = f"Command execution failed: {command_line}\nError: {e}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)

    def check_command_available(self, command: str) -> bool:
        """Check if command is available on system."""
        result = self.execute(["which", command], check=False)
        return result.success
