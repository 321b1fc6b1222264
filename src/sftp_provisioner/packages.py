"""Installation of the SSH server and firewall daemon."""

import structlog

from sftp_provisioner.backends import FamilyTraits, PackageManager, ServiceManager
from sftp_provisioner.types import HostProfile

logger = structlog.get_logger(__name__)


class PackageInstaller:
    """Ensure the SSH server and firewall are installed, running and enabled."""

    def __init__(
        self,
        packages: PackageManager,
        services: ServiceManager,
        traits: FamilyTraits,
    ) -> None:
        self.packages = packages
        self.services = services
        self.traits = traits

    def ensure_installed(self, host: HostProfile) -> None:
        """Install packages and start services.

        Raises:
            PackageInstallError: If the package manager fails
            ServiceControlError: If a service cannot be started or enabled
        """
        logger.info("Installing packages", packages=" ".join(self.traits.packages))
        self.packages.install(self.traits.packages)

        for service in self.traits.services:
            self.services.control(service, "start")
            self.services.control(service, "enable")
            logger.info("Service started and enabled", service=service)

        logger.info(f"Packages installed on {host.distro} {host.version}")
