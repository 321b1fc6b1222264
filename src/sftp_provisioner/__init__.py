"""SFTP Provisioner - chroot-jailed SFTP setup for Debian and RHEL hosts."""

__version__ = "1.0.0"
__author__ = "DevOps Team"
__license__ = "MIT"

from sftp_provisioner.exceptions import (
    ConfigurationError,
    ProvisionerError,
    SystemRequirementError,
    ValidationError,
)
from sftp_provisioner.provisioner import SftpProvisioner
from sftp_provisioner.system_info import SystemInfo

__all__ = [
    "SftpProvisioner",
    "SystemInfo",
    "ProvisionerError",
    "ConfigurationError",
    "SystemRequirementError",
    "ValidationError",
]
