"""File management utilities."""

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from sftp_provisioner.utils.command import CommandExecutor


class FileManager:
    """Read, back up and append to system files."""

    def __init__(
        self, backup_dir: Path, executor: Optional[CommandExecutor] = None
    ) -> None:
        """Initialize file manager.

        Args:
            backup_dir: Directory for storing backups
            executor: Used to write root-owned files through sudo
        """
        self.backup_dir = backup_dir
        self.executor = executor or CommandExecutor()
        self.last_backup: Optional[Path] = None

    def backup_file(self, filepath: Path) -> Optional[Path]:
        """Create timestamped backup of file.

        Args:
            filepath: Path to file to backup

        Returns:
            Path to backup file or None if source doesn't exist
        """
        if not filepath.exists():
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.backup_dir / f"{filepath.name}.{timestamp}"

        shutil.copy2(filepath, backup_path)
        self.last_backup = backup_path

        return backup_path

    def read_file(self, filepath: Path) -> str:
        """Read file content, empty if the file does not exist."""
        if not filepath.exists():
            return ""
        with open(filepath) as f:
            return f.read()

    def append_file(self, filepath: Path, content: str) -> None:
        """Append content to file.

        Falls back to ``sudo tee -a`` when the file is not writable by the
        current user.

        Args:
            filepath: Path to file
            content: Content to append
        """
        if self._writable(filepath):
            with open(filepath, "a") as f:
                f.write(content)
            return

        self.executor.execute(
            ["tee", "-a", str(filepath)], needs_root=True, input=content
        )

    def prepend_line(self, filepath: Path, line: str) -> None:
        """Insert a line at the top of a file, keeping the rest intact."""
        content = line.rstrip("\n") + "\n" + self.read_file(filepath)
        if self._writable(filepath):
            with open(filepath, "w") as f:
                f.write(content)
            return

        self.executor.execute(["tee", str(filepath)], needs_root=True, input=content)

    @staticmethod
    def _writable(filepath: Path) -> bool:
        if filepath.exists():
            return os.access(filepath, os.W_OK)
        return os.access(filepath.parent, os.W_OK)
