"""Type definitions for SFTP Provisioner."""

from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import SecretStr

DEFAULT_SSH_PORT = 22


class OSFamily(str, Enum):
    """Supported distribution families."""

    DEBIAN_LIKE = "debian_like"
    RHEL_LIKE = "rhel_like"
    UNSUPPORTED = "unsupported"


class PasswordSource(str, Enum):
    """Where the SFTP user's password comes from."""

    INTERACTIVE = "interactive"
    PROVIDED = "provided"


class RunStatus(str, Enum):
    """Final state of a provisioning run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CommandResult(NamedTuple):
    """Result of command execution."""

    success: bool
    stdout: str
    stderr: str
    return_code: int = 0


class HostProfile(NamedTuple):
    """Distribution family and version of the target host."""

    family: OSFamily
    version: str
    distro: str = ""


class SftpDirectorySpec(NamedTuple):
    """Shared directory split into chroot parent and leaf."""

    full_path: str
    parent_path: str
    leaf_name: str


class IdentitySpec(NamedTuple):
    """SFTP account and how its password is set."""

    username: str
    groupname: str
    password_source: PasswordSource = PasswordSource.INTERACTIVE
    secret: Optional[SecretStr] = None


class PortSpec(NamedTuple):
    """SSH port exposed through the firewall."""

    port: int = DEFAULT_SSH_PORT

    @property
    def is_default(self) -> bool:
        return self.port == DEFAULT_SSH_PORT


class RunConfig(NamedTuple):
    """Fully resolved settings for one provisioning run."""

    host: HostProfile
    directory: SftpDirectorySpec
    identity: IdentitySpec
    port: PortSpec
    silent: bool = False


class ProvisionReport(NamedTuple):
    """Outcome of a provisioning run."""

    status: RunStatus
    steps: List[str]
    error: Optional[Exception] = None

    @property
    def exit_code(self) -> int:
        return 1 if self.status == RunStatus.FAILED else 0
