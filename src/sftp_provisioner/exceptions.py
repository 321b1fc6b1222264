"""Custom exceptions for SFTP Provisioner."""


class ProvisionerError(Exception):
    """Base exception for all provisioner errors."""

    pass


class ConfigurationError(ProvisionerError):
    """Raised when configuration is invalid."""

    pass


class MissingSilentPasswordError(ConfigurationError):
    """Raised when silent mode is requested without a password."""

    pass


class ValidationError(ProvisionerError):
    """Raised when validation fails."""

    pass


class InvalidDirectoryDepthError(ValidationError):
    """Raised when the shared directory is less than two levels deep."""

    pass


class DirectoryWithinHomeError(ValidationError):
    """Raised when the shared directory lies inside the user's home."""

    pass


class SystemRequirementError(ProvisionerError):
    """Raised when system requirements are not met."""

    pass


class UnsupportedOSError(SystemRequirementError):
    """Raised when the host distribution family is not supported."""

    pass


class CommandExecutionError(ProvisionerError):
    """Raised when command execution fails."""

    pass


class PackageInstallError(ProvisionerError):
    """Raised when required packages cannot be installed."""

    pass


class ServiceControlError(ProvisionerError):
    """Raised when service control operation fails."""

    pass


class ServiceRestartError(ServiceControlError):
    """Raised when the SSH service fails to restart."""

    pass


class DirectoryProvisionError(ProvisionerError):
    """Raised when the SFTP directories cannot be created or secured."""

    pass


class IdentityProvisionError(ProvisionerError):
    """Raised when the SFTP user, group or password cannot be set."""

    pass


class FirewallError(ProvisionerError):
    """Raised when firewall rules cannot be applied or confirmed."""

    pass
