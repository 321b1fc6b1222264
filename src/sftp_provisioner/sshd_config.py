"""Chroot stanza and listen port in the SSH daemon configuration."""

import re
from pathlib import Path
from typing import List

import structlog

from sftp_provisioner.types import PortSpec, SftpDirectorySpec
from sftp_provisioner.utils.file import FileManager

logger = structlog.get_logger(__name__)

_MATCH_GROUP = re.compile(r"^\s*match\s+group\s+(\S+)", re.IGNORECASE)
_PORT = re.compile(r"^\s*port\s+(\d+)\s*$", re.IGNORECASE)

STANZA_TEMPLATE = """Match Group {group}
    ChrootDirectory {parent}
    ForceCommand internal-sftp -d /{leaf}
    AllowTcpForwarding no
    AllowAgentForwarding no
    X11Forwarding no
    PermitTunnel no
    PermitTTY no
"""


def render_stanza(group: str, directory: SftpDirectorySpec) -> str:
    """Build the Match block that jails ``group`` into the parent directory."""
    return STANZA_TEMPLATE.format(
        group=group, parent=directory.parent_path, leaf=directory.leaf_name
    )


def match_group_lines(text: str, group: str) -> List[int]:
    """Line numbers of uncommented ``Match Group`` lines naming ``group``.

    The pattern list is comma separated; only an exact name counts.
    """
    found = []
    for number, line in enumerate(text.splitlines()):
        match = _MATCH_GROUP.match(line)
        if match and group in match.group(1).split(","):
            found.append(number)
    return found


def listen_ports(text: str) -> List[int]:
    """Ports from uncommented ``Port`` lines before the first Match block."""
    ports = []
    for line in text.splitlines():
        if re.match(r"^\s*match\s", line, re.IGNORECASE):
            break
        match = _PORT.match(line)
        if match:
            ports.append(int(match.group(1)))
    return ports


class SshdConfigReconciler:
    """Append-only reconciliation of sshd_config.

    Existing stanzas are never edited, so hand-made changes to the block
    survive re-runs. The file is not syntax checked here; sshd reports
    problems when it is restarted.
    """

    def __init__(self, config_path: Path, file_manager: FileManager) -> None:
        self.config_path = config_path
        self.file_manager = file_manager
        self._backed_up = False

    def ensure_chroot_stanza(self, group: str, directory: SftpDirectorySpec) -> bool:
        """Append the chroot stanza unless one exists for ``group``.

        Returns:
            True if the file was changed
        """
        text = self.file_manager.read_file(self.config_path)
        if match_group_lines(text, group):
            logger.info(f"SFTP configuration for {group} already exists in sshd_config.")
            return False

        self._backup()
        separator = "\n" if text and not text.endswith("\n") else ""
        self.file_manager.append_file(
            self.config_path, separator + "\n" + render_stanza(group, directory)
        )
        logger.info(
            f"Added SFTP configuration for {group} to sshd_config.",
            path=str(self.config_path),
        )
        return True

    def ensure_listen_port(self, port: PortSpec) -> bool:
        """Make sshd listen on a non-default port.

        Port 22 is sshd's built-in default and needs no directive.

        Returns:
            True if the file was changed
        """
        if port.is_default:
            return False

        text = self.file_manager.read_file(self.config_path)
        if port.port in listen_ports(text):
            logger.info(f"sshd_config already listens on port {port.port}.")
            return False

        self._backup()
        self.file_manager.prepend_line(self.config_path, f"Port {port.port}")
        logger.info(f"Set sshd listen port {port.port} in sshd_config.")
        return True

    def _backup(self) -> None:
        # Only the untouched original is worth keeping
        if self._backed_up:
            return
        self._backed_up = True
        backup = self.file_manager.backup_file(self.config_path)
        if backup:
            logger.info("Backed up sshd_config", backup=str(backup))
