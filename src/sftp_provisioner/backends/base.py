"""Capability interfaces for the host collaborators.

Each reconciler talks to the host only through these interfaces, so the
per-family implementations can be swapped for in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Sequence


class PackageManager(ABC):
    """Installs distribution packages."""

    @abstractmethod
    def install(self, packages: Sequence[str]) -> None:
        """Install packages, a no-op for those already present."""


class ServiceManager(ABC):
    """Controls system services."""

    @abstractmethod
    def control(self, service: str, action: str) -> None:
        """Run ``action`` (start, enable, restart) on ``service``."""


class Firewall(ABC):
    """Persistent firewall rule store for SSH ports."""

    @abstractmethod
    def is_port_allowed(self, port: int) -> bool:
        """Whether ``port/tcp`` is in the persistent rule set."""

    @abstractmethod
    def is_port_active(self, port: int) -> bool:
        """Whether ``port/tcp`` is allowed by the rules currently in force."""

    @abstractmethod
    def allow_port(self, port: int) -> None:
        """Add a persistent allow rule for ``port/tcp``."""

    @abstractmethod
    def reload(self) -> None:
        """Apply the persistent rules."""

    @abstractmethod
    def is_default_ssh_allowed(self) -> bool:
        """Whether the stock SSH allow rule is present."""

    @abstractmethod
    def remove_default_ssh(self) -> None:
        """Remove the stock SSH allow rule."""


class IdentityStore(ABC):
    """User and group database."""

    @abstractmethod
    def ensure_group(self, group: str) -> None:
        """Create the group unless it exists."""

    @abstractmethod
    def user_exists(self, username: str) -> bool:
        """Whether the user exists."""

    @abstractmethod
    def create_user(self, username: str, group: str, shell: str) -> None:
        """Create a user without a home directory in ``group``."""

    @abstractmethod
    def is_member(self, username: str, group: str) -> bool:
        """Whether the user belongs to the group."""

    @abstractmethod
    def add_to_group(self, username: str, group: str) -> None:
        """Add a supplementary group to an existing user."""

    @abstractmethod
    def set_password(self, username: str, secret: str) -> None:
        """Set the password without interaction."""

    @abstractmethod
    def prompt_password(self, username: str) -> None:
        """Let the operator type the password on the terminal."""


class Filesystem(ABC):
    """Directory creation, ownership and modes."""

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Whether ``path`` is an existing directory."""

    @abstractmethod
    def make_dirs(self, path: str) -> None:
        """Create ``path`` including missing parents."""

    @abstractmethod
    def chown(self, path: str, owner: str, group: str) -> None:
        """Set owner and group of ``path``."""

    @abstractmethod
    def chmod(self, path: str, mode: int) -> None:
        """Set permission bits of ``path``."""
