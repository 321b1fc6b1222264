"""Per-family implementations of the host collaborators."""

from typing import NamedTuple, Tuple

from sftp_provisioner.backends.base import (
    Filesystem,
    Firewall,
    IdentityStore,
    PackageManager,
    ServiceManager,
)
from sftp_provisioner.backends.common import (
    LocalFilesystem,
    ShadowIdentityStore,
    SystemdServiceManager,
)
from sftp_provisioner.backends.debian import AptPackageManager, UfwFirewall
from sftp_provisioner.backends.rhel import DnfPackageManager, FirewalldFirewall
from sftp_provisioner.exceptions import UnsupportedOSError
from sftp_provisioner.types import OSFamily
from sftp_provisioner.utils.command import CommandExecutor


class FamilyTraits(NamedTuple):
    """Package and service names that differ between families."""

    packages: Tuple[str, ...]
    services: Tuple[str, ...]
    ssh_service: str
    firewall_label: str


TRAITS = {
    OSFamily.DEBIAN_LIKE: FamilyTraits(
        packages=("openssh-server", "ufw"),
        services=("ssh", "ufw"),
        ssh_service="ssh",
        firewall_label="ufw",
    ),
    OSFamily.RHEL_LIKE: FamilyTraits(
        packages=("openssh-server", "firewalld"),
        services=("sshd", "firewalld"),
        ssh_service="sshd",
        firewall_label="firewalld",
    ),
}


class Backends(NamedTuple):
    """Collaborators for one host."""

    traits: FamilyTraits
    packages: PackageManager
    services: ServiceManager
    firewall: Firewall
    identity: IdentityStore
    filesystem: Filesystem


def traits_for(family: OSFamily) -> FamilyTraits:
    """Return the package and service names for a family.

    Raises:
        UnsupportedOSError: If the family has no known tooling
    """
    try:
        return TRAITS[family]
    except KeyError:
        raise UnsupportedOSError(f"No tooling known for family {family.value}") from None


def build_backends(family: OSFamily, executor: CommandExecutor) -> Backends:
    """Wire the collaborators matching the host family."""
    traits = traits_for(family)
    if family == OSFamily.DEBIAN_LIKE:
        packages: PackageManager = AptPackageManager(executor)
        firewall: Firewall = UfwFirewall(executor)
    else:
        packages = DnfPackageManager(executor)
        firewall = FirewalldFirewall(executor)

    return Backends(
        traits=traits,
        packages=packages,
        services=SystemdServiceManager(executor),
        firewall=firewall,
        identity=ShadowIdentityStore(executor),
        filesystem=LocalFilesystem(executor),
    )


__all__ = [
    "Backends",
    "FamilyTraits",
    "Filesystem",
    "Firewall",
    "IdentityStore",
    "PackageManager",
    "ServiceManager",
    "build_backends",
    "traits_for",
]
