"""Collaborators shared by every supported family: systemd, shadow-utils
and the local filesystem."""

import grp
import pwd
from pathlib import Path

from sftp_provisioner.backends.base import Filesystem, IdentityStore, ServiceManager
from sftp_provisioner.exceptions import ServiceControlError
from sftp_provisioner.utils.command import CommandExecutor


class SystemdServiceManager(ServiceManager):
    """Service control through systemctl."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def control(self, service: str, action: str) -> None:
        """Control system service.

        Raises:
            ServiceControlError: If service control fails
        """
        result = self.executor.execute(
            ["systemctl", action, service], needs_root=True, check=False, timeout=120
        )
        if not result.success:
            raise ServiceControlError(
                f"Service {action} {service} failed: {result.stderr.strip()}"
            )


class ShadowIdentityStore(IdentityStore):
    """Users and groups through groupadd, useradd, usermod and chpasswd."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def ensure_group(self, group: str) -> None:
        self.executor.execute(["groupadd", "-f", group], needs_root=True)

    def user_exists(self, username: str) -> bool:
        try:
            pwd.getpwnam(username)
            return True
        except KeyError:
            return False

    def create_user(self, username: str, group: str, shell: str) -> None:
        self.executor.execute(
            ["useradd", "-M", "-G", group, "-s", shell, username], needs_root=True
        )

    def is_member(self, username: str, group: str) -> bool:
        try:
            entry = grp.getgrnam(group)
            user = pwd.getpwnam(username)
        except KeyError:
            return False
        return username in entry.gr_mem or user.pw_gid == entry.gr_gid

    def add_to_group(self, username: str, group: str) -> None:
        self.executor.execute(["usermod", "-aG", group, username], needs_root=True)

    def set_password(self, username: str, secret: str) -> None:
        # chpasswd reads the secret from stdin, keeping it out of argv
        self.executor.execute(
            ["chpasswd"], needs_root=True, input=f"{username}:{secret}\n"
        )

    def prompt_password(self, username: str) -> None:
        self.executor.execute(
            ["passwd", username], needs_root=True, interactive=True, timeout=None
        )


class LocalFilesystem(Filesystem):
    """Directories on this host, changed with root privileges."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def make_dirs(self, path: str) -> None:
        self.executor.execute(["mkdir", "-p", path], needs_root=True)

    def chown(self, path: str, owner: str, group: str) -> None:
        self.executor.execute(["chown", f"{owner}:{group}", path], needs_root=True)

    def chmod(self, path: str, mode: int) -> None:
        self.executor.execute(["chmod", format(mode, "o"), path], needs_root=True)
