"""Debian and Ubuntu collaborators: apt and ufw."""

from typing import List, Sequence

from sftp_provisioner.backends.base import Firewall, PackageManager
from sftp_provisioner.exceptions import PackageInstallError
from sftp_provisioner.utils.command import CommandExecutor

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}

# Application profile shipped with openssh-server
OPENSSH_PROFILE = "OpenSSH"


class AptPackageManager(PackageManager):
    """Package installation through apt-get."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def install(self, packages: Sequence[str]) -> None:
        update = self.executor.execute(
            ["apt-get", "update"], needs_root=True, check=False, timeout=600
        )
        if not update.success:
            raise PackageInstallError(
                f"apt-get update failed: {update.stderr.strip()}"
            )

        result = self.executor.execute(
            ["apt-get", "install", "-y", *packages],
            needs_root=True,
            check=False,
            timeout=600,
            env=NONINTERACTIVE,
        )
        if not result.success:
            raise PackageInstallError(
                f"apt-get install {' '.join(packages)} failed: {result.stderr.strip()}"
            )


class UfwFirewall(Firewall):
    """Uncomplicated Firewall rules."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def _added_rules(self) -> List[List[str]]:
        """Persistent rules, as listed by ``ufw show added``.

        Lines look like ``ufw allow 2222/tcp comment ...``; the result holds
        the words after ``ufw``.
        """
        result = self.executor.execute(["ufw", "show", "added"], needs_root=True)
        rules = []
        for line in result.stdout.splitlines():
            words = line.split()
            if len(words) >= 3 and words[0] == "ufw":
                rules.append(words[1:])
        return rules

    def _status_targets(self) -> List[str]:
        """Allowed targets in ``ufw status``, empty while ufw is inactive."""
        result = self.executor.execute(["ufw", "status"], needs_root=True)
        targets = []
        for line in result.stdout.splitlines():
            words = line.split()
            if len(words) >= 2 and words[1] in ("ALLOW", "LIMIT"):
                targets.append(words[0])
        return targets

    def is_port_allowed(self, port: int) -> bool:
        rule = f"{port}/tcp"
        return any(
            words[0] in ("allow", "limit") and words[1] == rule
            for words in self._added_rules()
        )

    def is_port_active(self, port: int) -> bool:
        return f"{port}/tcp" in self._status_targets()

    def allow_port(self, port: int) -> None:
        self.executor.execute(["ufw", "allow", f"{port}/tcp"], needs_root=True)

    def reload(self) -> None:
        status = self.executor.execute(["ufw", "status"], needs_root=True)
        if "inactive" in status.stdout.lower():
            self.executor.execute(["ufw", "--force", "enable"], needs_root=True)
        else:
            self.executor.execute(["ufw", "reload"], needs_root=True)

    def is_default_ssh_allowed(self) -> bool:
        return any(
            words[0] == "allow" and words[1] == OPENSSH_PROFILE
            for words in self._added_rules()
        )

    def remove_default_ssh(self) -> None:
        self.executor.execute(
            ["ufw", "delete", "allow", OPENSSH_PROFILE], needs_root=True
        )
