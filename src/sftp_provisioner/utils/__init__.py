"""Utility modules for SFTP Provisioner."""

from sftp_provisioner.utils.command import CommandExecutor
from sftp_provisioner.utils.file import FileManager
from sftp_provisioner.utils.validation import Validator

__all__ = ["CommandExecutor", "FileManager", "Validator"]
