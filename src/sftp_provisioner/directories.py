"""Creation and ownership of the chroot parent and shared directory."""

import structlog

from sftp_provisioner.backends import Filesystem
from sftp_provisioner.exceptions import CommandExecutionError, DirectoryProvisionError
from sftp_provisioner.types import IdentitySpec, SftpDirectorySpec

logger = structlog.get_logger(__name__)

PARENT_MODE = 0o755
SHARED_MODE = 0o775


class DirectoryProvisioner:
    """Reconcile the chroot directory tree.

    sshd refuses a chroot whose root is not owned by root or is writable by
    anyone else, so the parent is always reset to root:root 755. The shared
    directory below it is where the SFTP group can write.

    Ownership and modes are reasserted on every run, not just on creation.
    """

    def __init__(self, filesystem: Filesystem) -> None:
        self.fs = filesystem

    def provision(self, directory: SftpDirectorySpec, identity: IdentitySpec) -> None:
        """Create and secure both directories.

        Raises:
            DirectoryProvisionError: If any filesystem change fails
        """
        try:
            self._ensure_dir(directory.parent_path, "Parent directory")
            self.fs.chown(directory.parent_path, "root", "root")
            self.fs.chmod(directory.parent_path, PARENT_MODE)
            logger.info(
                f"Using {directory.parent_path} owned by root:root for security."
            )

            self._ensure_dir(directory.full_path, "SFTP directory")
            self.fs.chown(directory.full_path, identity.username, identity.groupname)
            self.fs.chmod(directory.full_path, SHARED_MODE)
            logger.info(
                f"Using {directory.full_path} owned by "
                f"{identity.username}:{identity.groupname} for security."
            )
        except CommandExecutionError as e:
            raise DirectoryProvisionError(str(e)) from e

    def _ensure_dir(self, path: str, label: str) -> None:
        if self.fs.is_dir(path):
            logger.info(f"{label} {path} already exists.")
            return
        self.fs.make_dirs(path)
        logger.info(f"Created {label.lower()} {path}.")
