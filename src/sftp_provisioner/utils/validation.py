"""Input validation utilities."""

import posixpath
import re
from typing import List

from sftp_provisioner.exceptions import (
    DirectoryWithinHomeError,
    InvalidDirectoryDepthError,
    ValidationError,
)
from sftp_provisioner.types import SftpDirectorySpec

_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_-]*\$?$")


class Validator:
    """Validate inputs before any host state is touched."""

    @staticmethod
    def split_directory(path: str) -> SftpDirectorySpec:
        """Split the shared directory into chroot parent and leaf.

        The chroot root must itself be below ``/``, so the shared directory
        needs at least two levels, e.g. ``/srv/sftp/shared``.

        Args:
            path: Absolute shared directory path

        Returns:
            SftpDirectorySpec with normalised full, parent and leaf parts

        Raises:
            ValidationError: If the path is not absolute
            InvalidDirectoryDepthError: If the path has fewer than two levels
        """
        if not path.startswith("/"):
            raise ValidationError(f"SFTP directory must be an absolute path: {path}")

        full_path = "/" + posixpath.normpath(path).lstrip("/")
        if full_path.count("/") < 2:
            raise InvalidDirectoryDepthError(
                "The SFTP directory must have at least two directory levels "
                f"(e.g., /srv/sftp/shared), got {path}"
            )

        return SftpDirectorySpec(
            full_path=full_path,
            parent_path=posixpath.dirname(full_path),
            leaf_name=posixpath.basename(full_path),
        )

    @staticmethod
    def ensure_outside_home(path: str, username: str) -> None:
        """Refuse shared directories under the SFTP user's home.

        Raises:
            DirectoryWithinHomeError: If path starts with /home/<username>
        """
        if path.startswith(f"/home/{username}"):
            raise DirectoryWithinHomeError(
                f"The specified directory ({path}) is within the user's home directory"
            )

    @staticmethod
    def validate_name(name: str) -> List[str]:
        """Validate a user or group name.

        Args:
            name: Account name to validate

        Returns:
            List of validation error messages
        """
        errors: List[str] = []

        if not name or not name.strip():
            errors.append("Empty name found")
            return errors

        if len(name) > 32:
            errors.append(f"Name too long: {name}")

        if not _NAME_PATTERN.match(name):
            errors.append(f"Invalid name format: {name}")

        return errors
