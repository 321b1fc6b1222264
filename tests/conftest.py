"""Pytest configuration and fixtures.

The fakes below keep host state in memory so that whole provisioning runs
can be replayed and compared.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest
import structlog

from sftp_provisioner.backends import TRAITS, Backends
from sftp_provisioner.backends.base import (
    Filesystem,
    Firewall,
    IdentityStore,
    PackageManager,
    ServiceManager,
)
from sftp_provisioner.config import (
    BackupConfig,
    LoggingConfig,
    ProvisionerConfig,
    SftpConfig,
)
from sftp_provisioner.exceptions import (
    CommandExecutionError,
    PackageInstallError,
    ServiceControlError,
    UnsupportedOSError,
)
from sftp_provisioner.types import CommandResult, HostProfile, OSFamily

OK = CommandResult(True, "", "", 0)


class FakeExecutor:
    """Records commands and answers them from canned results."""

    def __init__(self, responses: Optional[Dict[Tuple[str, ...], object]] = None):
        self.responses = responses or {}
        self.calls: List[Tuple[str, ...]] = []
        self.inputs: List[Optional[str]] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.missing: Set[str] = set()

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
        key = tuple(cmd)
        self.calls.append(key)
        self.inputs.append(input)
        self.envs.append(env)

        result = self.responses.get(key, OK)
        if isinstance(result, list):
            result = result.pop(0) if len(result) > 1 else result[0]
        if check and not result.success:
            raise CommandExecutionError(f"Command failed: {' '.join(key)}")
        return result

    def check_command_available(self, command: str) -> bool:
        return command not in self.missing


class FakePackageManager(PackageManager):
    def __init__(self, fail: bool = False) -> None:
        self.installed: Set[str] = set()
        self.fail = fail

    def install(self, packages: Sequence[str]) -> None:
        if self.fail:
            raise PackageInstallError("dnf install openssh-server firewalld failed")
        self.installed.update(packages)


class FakeServiceManager(ServiceManager):
    def __init__(self, fail: Optional[Set[Tuple[str, str]]] = None) -> None:
        self.active: Set[str] = set()
        self.enabled: Set[str] = set()
        self.actions: List[Tuple[str, str]] = []
        self.fail = fail or set()

    def control(self, service: str, action: str) -> None:
        self.actions.append((service, action))
        if (service, action) in self.fail:
            raise ServiceControlError(f"Service {action} {service} failed: boom")
        if action in ("start", "restart"):
            self.active.add(service)
        elif action == "enable":
            self.enabled.add(service)


class FakeFirewall(Firewall):
    def __init__(self, activates: bool = True) -> None:
        self.persistent: Set[str] = {"OpenSSH"}
        self.live: Set[str] = set(self.persistent)
        self.activates = activates
        self.mutations: List[str] = []

    def is_port_allowed(self, port: int) -> bool:
        return f"{port}/tcp" in self.persistent

    def is_port_active(self, port: int) -> bool:
        return f"{port}/tcp" in self.live

    def allow_port(self, port: int) -> None:
        self.mutations.append(f"allow {port}/tcp")
        self.persistent.add(f"{port}/tcp")

    def reload(self) -> None:
        if self.activates:
            self.live = set(self.persistent)

    def is_default_ssh_allowed(self) -> bool:
        return "OpenSSH" in self.persistent

    def remove_default_ssh(self) -> None:
        self.mutations.append("delete OpenSSH")
        self.persistent.discard("OpenSSH")


class FakeIdentityStore(IdentityStore):
    def __init__(self) -> None:
        self.groups: Dict[str, Set[str]] = {"root": set()}
        self.users: Dict[str, str] = {"root": "/bin/bash"}
        self.passwords: Dict[str, str] = {}
        self.prompted: List[str] = []
        self.mutations: List[str] = []

    def ensure_group(self, group: str) -> None:
        if group not in self.groups:
            self.mutations.append(f"groupadd {group}")
            self.groups[group] = set()

    def user_exists(self, username: str) -> bool:
        return username in self.users

    def create_user(self, username: str, group: str, shell: str) -> None:
        if group not in self.groups:
            raise CommandExecutionError(f"useradd: group '{group}' does not exist")
        self.mutations.append(f"useradd {username}")
        self.users[username] = shell
        self.groups[group].add(username)

    def is_member(self, username: str, group: str) -> bool:
        return username in self.groups.get(group, set())

    def add_to_group(self, username: str, group: str) -> None:
        self.mutations.append(f"usermod {username} {group}")
        self.groups[group].add(username)

    def set_password(self, username: str, secret: str) -> None:
        self.passwords[username] = secret

    def prompt_password(self, username: str) -> None:
        self.prompted.append(username)


class FakeFilesystem(Filesystem):
    def __init__(self, identity: Optional[FakeIdentityStore] = None) -> None:
        self.dirs: Dict[str, Tuple[str, str, int]] = {"/": ("root", "root", 0o755)}
        self.identity = identity

    def is_dir(self, path: str) -> bool:
        return path in self.dirs

    def make_dirs(self, path: str) -> None:
        current = ""
        for part in path.strip("/").split("/"):
            current += "/" + part
            self.dirs.setdefault(current, ("root", "root", 0o755))

    def chown(self, path: str, owner: str, group: str) -> None:
        if path not in self.dirs:
            raise CommandExecutionError(f"chown: cannot access '{path}'")
        if self.identity is not None and (
            owner not in self.identity.users or group not in self.identity.groups
        ):
            raise CommandExecutionError(f"chown: invalid user: '{owner}:{group}'")
        self.dirs[path] = (owner, group, self.dirs[path][2])

    def chmod(self, path: str, mode: int) -> None:
        owner, group, _ = self.dirs[path]
        self.dirs[path] = (owner, group, mode)


class FakeSystem:
    """Stands in for SystemInfo."""

    def __init__(self, profile: Optional[HostProfile], issues: Optional[List[str]] = None):
        self.profile = profile
        self.issues = issues or []

    def host_profile(self) -> HostProfile:
        if self.profile is None or self.profile.family == OSFamily.UNSUPPORTED:
            raise UnsupportedOSError("Unable to detect the operating system")
        return self.profile

    def check_requirements(self) -> List[str]:
        return list(self.issues)


DEBIAN = HostProfile(OSFamily.DEBIAN_LIKE, "12", "debian")
RHEL = HostProfile(OSFamily.RHEL_LIKE, "9.3", "almalinux")


def make_backends(family: OSFamily = OSFamily.DEBIAN_LIKE) -> Backends:
    identity = FakeIdentityStore()
    return Backends(
        traits=TRAITS[family],
        packages=FakePackageManager(),
        services=FakeServiceManager(),
        firewall=FakeFirewall(),
        identity=identity,
        filesystem=FakeFilesystem(identity),
    )


def make_config(tmp_path: Path, **sftp: object) -> ProvisionerConfig:
    sftp.setdefault("sshd_config", tmp_path / "sshd_config")
    return ProvisionerConfig(
        sftp=SftpConfig(**sftp),
        logging=LoggingConfig(file=None),
        backup=BackupConfig(directory=tmp_path / "backups"),
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's SFTP_*/LOG_*/BACKUP_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith(("SFTP_", "LOG_", "BACKUP_")):
            monkeypatch.delenv(key)


@pytest.fixture
def sshd_config_file(tmp_path: Path) -> Path:
    """Minimal stock sshd_config."""
    path = tmp_path / "sshd_config"
    path.write_text(
        "# stock config\n"
        "PermitRootLogin prohibit-password\n"
        "Subsystem sftp /usr/lib/openssh/sftp-server\n"
    )
    return path


@pytest.fixture
def backends() -> Backends:
    return make_backends()


@pytest.fixture
def reset_logging():
    """Undo configure_logging() after a test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
