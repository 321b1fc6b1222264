"""System information detection for SFTP Provisioner."""

import os
import shlex
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from sftp_provisioner.exceptions import UnsupportedOSError
from sftp_provisioner.types import HostProfile, OSFamily
from sftp_provisioner.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)

OS_RELEASE = Path("/etc/os-release")

DEBIAN_IDS = {"debian", "ubuntu"}
RHEL_IDS = {"centos", "almalinux", "rhel", "rocky", "fedora"}


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release ``KEY=value`` lines into a dictionary."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parts = shlex.split(raw)
        except ValueError:
            parts = [raw.strip().strip("\"'")]
        values[key.strip()] = parts[0] if parts else ""
    return values


def family_for(distro: str, id_like: str = "") -> OSFamily:
    """Map os-release ``ID``/``ID_LIKE`` to a distribution family."""
    distro = distro.lower()
    if distro in DEBIAN_IDS:
        return OSFamily.DEBIAN_LIKE
    if distro in RHEL_IDS:
        return OSFamily.RHEL_LIKE

    likes = set(id_like.lower().split())
    if likes & DEBIAN_IDS:
        return OSFamily.DEBIAN_LIKE
    if likes & RHEL_IDS:
        return OSFamily.RHEL_LIKE
    return OSFamily.UNSUPPORTED


class SystemInfo:
    """Detect and store system capabilities."""

    def __init__(
        self,
        os_release: Path = OS_RELEASE,
        executor: Optional[CommandExecutor] = None,
    ) -> None:
        """Initialize system information detection.

        Args:
            os_release: Release metadata file to read
            executor: Used for capability probes (sudo, systemctl)
        """
        self.os_release = os_release
        self.executor = executor or CommandExecutor()
        self.release = self._read_release()
        self.distro = self.release.get("ID", "unknown").lower()
        self.version = self.release.get("VERSION_ID", "")
        self.family = family_for(self.distro, self.release.get("ID_LIKE", ""))
        self.is_root = os.geteuid() == 0

    def _read_release(self) -> Dict[str, str]:
        if not self.os_release.exists():
            return {}
        with open(self.os_release) as f:
            return parse_os_release(f.read())

    def host_profile(self) -> HostProfile:
        """Return the host profile.

        Raises:
            UnsupportedOSError: If release metadata is missing or the
                distribution family is not supported
        """
        if not self.release:
            raise UnsupportedOSError(
                f"Unable to detect the operating system: {self.os_release} not found"
            )
        if self.family == OSFamily.UNSUPPORTED:
            raise UnsupportedOSError(
                f"Unsupported operating system: {self.distro} {self.version}".strip()
            )

        logger.info(
            "Detected operating system",
            distro=self.distro,
            version=self.version,
            family=self.family.value,
        )
        return HostProfile(family=self.family, version=self.version, distro=self.distro)

    def _check_sudo(self) -> bool:
        """Check if current user can use sudo."""
        if self.is_root:
            return True

        if not self.executor.check_command_available("sudo"):
            return False

        result = self.executor.execute(["sudo", "-n", "true"], check=False)
        return result.success

    def check_requirements(self) -> List[str]:
        """Check if system meets minimum requirements."""
        issues: List[str] = []

        if not self._check_sudo():
            issues.append("No root access available (need root or sudo)")

        if not self.executor.check_command_available("systemctl"):
            issues.append("systemctl not found; systemd is required")

        return issues
