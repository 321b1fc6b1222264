"""CentOS, AlmaLinux and friends: dnf and firewalld."""

from typing import Sequence

from sftp_provisioner.backends.base import Firewall, PackageManager
from sftp_provisioner.exceptions import PackageInstallError
from sftp_provisioner.utils.command import CommandExecutor


class DnfPackageManager(PackageManager):
    """Package installation through dnf."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def install(self, packages: Sequence[str]) -> None:
        result = self.executor.execute(
            ["dnf", "install", "-y", *packages],
            needs_root=True,
            check=False,
            timeout=600,
        )
        if not result.success:
            raise PackageInstallError(
                f"dnf install {' '.join(packages)} failed: {result.stderr.strip()}"
            )


class FirewalldFirewall(Firewall):
    """firewalld rules in a single zone."""

    def __init__(self, executor: CommandExecutor, zone: str = "public") -> None:
        self.executor = executor
        self.zone = zone

    def _cmd(self, *args: str, permanent: bool = True) -> list:
        cmd = ["firewall-cmd", f"--zone={self.zone}"]
        if permanent:
            cmd.append("--permanent")
        return cmd + list(args)

    def _query(self, *args: str, permanent: bool = True) -> bool:
        # firewall-cmd --query-* exits 0 for yes and 1 for no
        result = self.executor.execute(
            self._cmd(*args, permanent=permanent), needs_root=True, check=False
        )
        return result.success

    def is_port_allowed(self, port: int) -> bool:
        return self._query(f"--query-port={port}/tcp")

    def is_port_active(self, port: int) -> bool:
        return self._query(f"--query-port={port}/tcp", permanent=False)

    def allow_port(self, port: int) -> None:
        self.executor.execute(self._cmd(f"--add-port={port}/tcp"), needs_root=True)

    def reload(self) -> None:
        self.executor.execute(["firewall-cmd", "--reload"], needs_root=True)

    def is_default_ssh_allowed(self) -> bool:
        return self._query("--query-service=ssh")

    def remove_default_ssh(self) -> None:
        self.executor.execute(self._cmd("--remove-service=ssh"), needs_root=True)
