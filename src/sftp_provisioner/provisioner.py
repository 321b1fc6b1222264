"""Main SFTP provisioning implementation."""

import os
from typing import Callable, List, Optional, Tuple

import structlog

from sftp_provisioner.backends import Backends, build_backends, traits_for
from sftp_provisioner.config import ProvisionerConfig
from sftp_provisioner.directories import DirectoryProvisioner
from sftp_provisioner.exceptions import (
    ConfigurationError,
    ProvisionerError,
    ServiceControlError,
    ServiceRestartError,
    SystemRequirementError,
)
from sftp_provisioner.firewall import FirewallReconciler
from sftp_provisioner.identity import IdentityProvisioner, require_secret
from sftp_provisioner.packages import PackageInstaller
from sftp_provisioner.sshd_config import SshdConfigReconciler
from sftp_provisioner.system_info import SystemInfo
from sftp_provisioner.types import (
    IdentitySpec,
    PasswordSource,
    PortSpec,
    ProvisionReport,
    RunConfig,
    RunStatus,
)
from sftp_provisioner.utils.command import CommandExecutor
from sftp_provisioner.utils.file import FileManager
from sftp_provisioner.utils.validation import Validator

logger = structlog.get_logger(__name__)

Step = Tuple[str, Callable[[], None]]


class SftpProvisioner:
    """Main SFTP provisioning orchestrator."""

    def __init__(
        self,
        config: ProvisionerConfig,
        system: Optional[SystemInfo] = None,
        backends: Optional[Backends] = None,
        executor: Optional[CommandExecutor] = None,
        input_func: Callable[[str], str] = input,
    ) -> None:
        """Initialize SFTP provisioner.

        Args:
            config: Configuration object
            system: Host detection, probed from this machine by default
            backends: Collaborators, built from the detected family by default
            executor: Command executor shared by all collaborators
            input_func: Reads the operator's confirmation
        """
        self.config = config
        self.executor = executor or CommandExecutor(use_sudo=os.geteuid() != 0)
        self.system = system or SystemInfo(executor=self.executor)
        self.backends = backends
        self.input_func = input_func
        self.file_manager = FileManager(config.backup.directory, self.executor)

    def resolve(self) -> RunConfig:
        """Detect the host and validate all inputs.

        Nothing on the host is changed here.

        Raises:
            ProvisionerError: If the host or any input is unusable
        """
        sftp = self.config.sftp

        host = self.system.host_profile()
        traits_for(host.family)

        directory = Validator.split_directory(sftp.directory)
        logger.info(f"Parent directory: {directory.parent_path}")
        logger.info(f"Shared directory: {directory.leaf_name}")

        Validator.ensure_outside_home(directory.full_path, sftp.user)

        issues = self.config.validate_config()
        if issues:
            raise ConfigurationError("; ".join(issues))

        identity = IdentitySpec(
            username=sftp.user,
            groupname=sftp.group,
            password_source=(
                PasswordSource.PROVIDED if sftp.silent else PasswordSource.INTERACTIVE
            ),
            secret=sftp.password,
        )
        if sftp.silent:
            require_secret(identity)

        issues = self.system.check_requirements()
        if issues:
            raise SystemRequirementError("; ".join(issues))

        return RunConfig(
            host=host,
            directory=directory,
            identity=identity,
            port=PortSpec(sftp.port),
            silent=sftp.silent,
        )

    def confirm(self, run_config: RunConfig) -> bool:
        """Show the resolved settings and ask the operator to proceed.

        Empty input (or end of input), ``yes`` or ``y`` (any case) proceed.
        """
        host = run_config.host
        traits = traits_for(host.family)
        print("/*****************************************")
        print("THE FOLLOWING SETTINGS WILL BE USED:")
        print(f"Operating System: {host.distro} {host.version}")
        print(f"SFTP User Group: {run_config.identity.groupname}")
        print(f"SFTP User: {run_config.identity.username}")
        print(f"SFTP Directory: {run_config.directory.full_path}")
        print(f"Parent Directory: {run_config.directory.parent_path}")
        print(f"Shared Directory: /{run_config.directory.leaf_name}")
        print(f"SFTP Port: {run_config.port.port}")
        print("")
        print("This will also install and enable:")
        print(", ".join(traits.packages))
        print(f"Firewall: {traits.firewall_label}")
        print("*****************************************/")

        try:
            response = self.input_func("Do you want to continue? [yes] ").strip().lower()
        except EOFError:
            # Closed stdin counts as pressing Enter
            response = ""
        return response in ("", "y", "yes")

    def run(self) -> ProvisionReport:
        """Execute the provisioning pipeline.

        Stops at the first failing step; steps already applied stay applied.

        Returns:
            ProvisionReport describing how far the run got
        """
        logger.info("Starting SFTP setup.")
        completed: List[str] = []
        step_name = "resolve"

        try:
            run_config = self.resolve()

            if not run_config.silent:
                step_name = "confirm"
                if not self.confirm(run_config):
                    logger.info("User canceled the setup.")
                    return ProvisionReport(RunStatus.CANCELLED, completed)
                logger.info("User confirmed the setup.")

            backends = self.backends or build_backends(
                run_config.host.family, self.executor
            )
            for step_name, step in self._pipeline(run_config, backends):
                step()
                completed.append(step_name)

        except KeyboardInterrupt:
            logger.warning("Interrupted by user", step=step_name)
            raise

        except (ProvisionerError, OSError) as e:
            error = e if isinstance(e, ProvisionerError) else ProvisionerError(str(e))
            logger.error(str(error), step=step_name)
            if completed:
                logger.error(
                    "Setup stopped partway; earlier steps were not undone",
                    completed=",".join(completed),
                )
            return ProvisionReport(RunStatus.FAILED, completed, error)

        sftp = self.config.sftp
        logger.info(
            "SFTP setup complete. You can now connect using: "
            f"sftp -P {sftp.port} {sftp.user}@<your-server>"
        )
        return ProvisionReport(RunStatus.COMPLETED, completed)

    def _pipeline(self, run_config: RunConfig, backends: Backends) -> List[Step]:
        """Ordered provisioning steps.

        The account is created before the directories because the shared
        directory is chowned to it.
        """
        installer = PackageInstaller(backends.packages, backends.services, backends.traits)
        identity = IdentityProvisioner(backends.identity, self.config.sftp.shell)
        directories = DirectoryProvisioner(backends.filesystem)
        sshd = SshdConfigReconciler(self.config.sftp.sshd_config, self.file_manager)
        firewall = FirewallReconciler(backends.firewall)

        def reconcile_sshd() -> None:
            sshd.ensure_listen_port(run_config.port)
            sshd.ensure_chroot_stanza(run_config.identity.groupname, run_config.directory)

        return [
            ("install_packages", lambda: installer.ensure_installed(run_config.host)),
            ("provision_identity", lambda: identity.provision(run_config.identity)),
            (
                "provision_directories",
                lambda: directories.provision(run_config.directory, run_config.identity),
            ),
            ("reconcile_sshd_config", reconcile_sshd),
            ("reconcile_firewall", lambda: firewall.reconcile(run_config.port)),
            ("restart_ssh", lambda: self._restart_ssh_service(backends)),
        ]

    def _restart_ssh_service(self, backends: Backends) -> None:
        """Restart SSH service.

        Raises:
            ServiceRestartError: If the restart fails
        """
        service = backends.traits.ssh_service
        try:
            backends.services.control(service, "restart")
        except ServiceControlError as e:
            self._log_sshd_diagnostics()
            hint = f"Inspect {self.config.sftp.sshd_config} manually"
            if self.file_manager.last_backup:
                hint += f"; the previous version is {self.file_manager.last_backup}"
            raise ServiceRestartError(
                f"Error restarting SSH service {service}: {e}. {hint}."
            ) from e
        logger.info("SSH service restarted successfully.")

    def _log_sshd_diagnostics(self) -> None:
        """Log ``sshd -t`` output so config errors show up in the log."""
        for sshd_cmd in ["sshd", "/usr/sbin/sshd"]:
            if self.executor.check_command_available(sshd_cmd):
                result = self.executor.execute(
                    [sshd_cmd, "-t"], needs_root=True, check=False
                )
                if not result.success:
                    logger.error("sshd config test failed", output=result.stderr.strip())
                return

        logger.warning("Cannot test SSH config - sshd not found")
