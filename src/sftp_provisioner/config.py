"""Configuration management for SFTP Provisioner."""

import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sftp_provisioner.utils.validation import Validator


class SftpConfig(BaseSettings):
    """SFTP account, directory and port settings."""

    user: str = Field(default="sftpuser", description="SFTP username")
    group: str = Field(default="sftpusers", description="SFTP user group")
    directory: str = Field(
        default="/srv/sftp/shared", description="Shared directory inside the chroot"
    )
    port: int = Field(default=22, ge=1, le=65535, description="SSH port number")
    password: Optional[SecretStr] = Field(
        default=None, description="Password for silent mode"
    )
    shell: str = Field(default="/usr/sbin/nologin")
    sshd_config: Path = Field(default=Path("/etc/ssh/sshd_config"))

    model_config = SettingsConfigDict(
        env_prefix="SFTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("user", "group")
    @classmethod
    def check_account_name(cls, v: str) -> str:
        """Reject names useradd/groupadd would refuse."""
        errors = Validator.validate_name(v)
        if errors:
            raise ValueError("; ".join(errors))
        return v

    @property
    def silent(self) -> bool:
        """Silent mode is implied by a supplied password."""
        return self.password is not None


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file: Optional[Path] = Field(default=Path("sftp-provisioner.log"))

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class BackupConfig(BaseSettings):
    """Where sshd_config is copied before it is modified."""

    directory: Path = Field(default=Path("/var/backups/sftp-provisioner"))

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: object) -> None:
        """Initialize backup configuration."""
        super().__init__(**data)
        # Use user home if not root
        explicit = "directory" in data or "BACKUP_DIRECTORY" in os.environ
        if os.geteuid() != 0 and not explicit:
            self.directory = Path.home() / "sftp_backups"


class ProvisionerConfig(BaseSettings):
    """Main configuration container."""

    sftp: SftpConfig = Field(default_factory=SftpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_env(cls, **sftp_overrides: object) -> "ProvisionerConfig":
        """Create configuration from environment variables.

        Keyword arguments override the matching ``SFTP_*`` values.
        """
        return cls(
            sftp=SftpConfig(**sftp_overrides),
            logging=LoggingConfig(),
            backup=BackupConfig(),
        )

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues: List[str] = []

        if not self.sftp.shell.startswith("/"):
            issues.append(f"Shell must be an absolute path: {self.sftp.shell}")

        return issues
