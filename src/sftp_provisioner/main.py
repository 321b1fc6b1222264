"""CLI entry point for SFTP Provisioner."""

import argparse
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from sftp_provisioner import __version__
from sftp_provisioner.config import LoggingConfig, ProvisionerConfig
from sftp_provisioner.exceptions import ConfigurationError, ProvisionerError
from sftp_provisioner.log import configure_logging
from sftp_provisioner.provisioner import SftpProvisioner

logger = structlog.get_logger(__name__)

DESCRIPTION = """\
Sets up a chroot-jailed SFTP server:
  - Detects the operating system (Ubuntu/Debian or CentOS/AlmaLinux) and
    installs openssh-server plus ufw or firewalld.
  - Creates the SFTP user and group.
  - Jails the group into the parent of the shared directory.
  - Opens the SSH port in the firewall and closes port 22 for a custom port.
  - Logs every action with a timestamp.
"""

EPILOG = """\
Examples:
  # Defaults, with confirmation and an interactive password prompt
  sudo sftp-provisioner

  # Custom user, group and directory
  sudo sftp-provisioner -u myuser -g mygroup -d /srv/sftp/myshare

  # Custom SSH port, silent mode
  sudo sftp-provisioner -u sftpuser -g sftpgroup -d /srv/sftp/shared -p 2222 -s mypassword

Environment variables:
  SFTP_USER, SFTP_GROUP, SFTP_DIRECTORY, SFTP_PORT
  SFTP_PASSWORD          - Enables silent mode without putting the password in argv
  LOG_FILE, LOG_LEVEL
  BACKUP_DIRECTORY       - Where sshd_config is copied before changes

In case of any issues, check the log file for details.
"""


class UsageParser(argparse.ArgumentParser):
    """Argument parser that prints usage and exits 1 on bad input."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = UsageParser(
        prog="sftp-provisioner",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
        add_help=False,
    )

    parser.add_argument(
        "-h", "-help", "--help", action="store_true", help="Display this help message"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "-u", "--user", help="SFTP username (default: sftpuser)"
    )
    parser.add_argument(
        "-g", "--group", help="SFTP user group (default: sftpusers)"
    )
    parser.add_argument(
        "-d",
        "--directory",
        help="SFTP shared directory, at least two levels deep (default: /srv/sftp/shared)",
    )
    parser.add_argument("-p", "--port", type=int, help="SSH port (default: 22)")
    parser.add_argument(
        "-s",
        "--password",
        help="Silent mode: set this password without prompting",
    )
    parser.add_argument("--log-file", type=Path, help="Log file path")
    parser.add_argument("--sshd-config", type=Path, help="sshd_config path")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Help is printed with exit code 1, like any usage error.

    Returns:
        Parsed arguments namespace
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help:
        parser.print_help()
        sys.exit(1)
    return args


def load_logging_config(args: argparse.Namespace) -> LoggingConfig:
    """Load logging settings so that later failures can be logged.

    Raises:
        ConfigurationError: If a logging value is malformed
    """
    try:
        config = LoggingConfig()
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid logging configuration: {e}") from e

    if args.log_file:
        config.file = args.log_file

    return config


def load_config(
    args: argparse.Namespace, logging_config: Optional[LoggingConfig] = None
) -> ProvisionerConfig:
    """Load configuration from the environment with CLI overrides.

    Raises:
        ConfigurationError: If a value is out of range or malformed
    """
    overrides = {
        key: value
        for key, value in {
            "user": args.user,
            "group": args.group,
            "directory": args.directory,
            "port": args.port,
            "password": args.password,
            "sshd_config": args.sshd_config,
        }.items()
        if value is not None
    }

    try:
        config = ProvisionerConfig.from_env(**overrides)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    config.logging = logging_config or load_logging_config(args)
    return config


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """Main entry point for CLI.

    Logging is configured before the remaining settings are validated, so
    configuration errors reach the log file too.

    Raises:
        SystemExit: Always exits with appropriate code
    """
    args = parse_args(argv)

    if not sys.platform.startswith("linux"):
        print("Error: This tool only supports Linux systems", file=sys.stderr)
        sys.exit(1)

    try:
        logging_config = load_logging_config(args)
        configure_logging(logging_config)
    except ProvisionerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args, logging_config)

        report = SftpProvisioner(config).run()
        sys.exit(report.exit_code)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        sys.exit(130)

    except ProvisionerError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
