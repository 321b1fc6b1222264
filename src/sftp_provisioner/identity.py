"""SFTP group, user and password."""

import structlog

from sftp_provisioner.backends import IdentityStore
from sftp_provisioner.exceptions import (
    CommandExecutionError,
    ConfigurationError,
    IdentityProvisionError,
    MissingSilentPasswordError,
)
from sftp_provisioner.types import IdentitySpec, PasswordSource

logger = structlog.get_logger(__name__)


def require_secret(identity: IdentitySpec) -> str:
    """Return the provided password.

    Raises:
        MissingSilentPasswordError: If the password is missing or empty
        ConfigurationError: If the password spans more than one line
    """
    secret = identity.secret.get_secret_value() if identity.secret else ""
    if not secret:
        raise MissingSilentPasswordError("Silent mode requires a non-empty password.")
    # chpasswd reads one user:password record per line
    if "\n" in secret or "\r" in secret:
        raise ConfigurationError("The password must not contain line breaks.")
    return secret


class IdentityProvisioner:
    """Ensure the SFTP account exists and has a password."""

    def __init__(self, store: IdentityStore, shell: str = "/usr/sbin/nologin") -> None:
        self.store = store
        self.shell = shell

    def provision(self, identity: IdentitySpec) -> None:
        """Create group and user, then set the password.

        Raises:
            MissingSilentPasswordError: If a provided password is empty
            IdentityProvisionError: If an account tool fails
        """
        secret = None
        if identity.password_source == PasswordSource.PROVIDED:
            secret = require_secret(identity)

        user = identity.username
        group = identity.groupname
        try:
            self.store.ensure_group(group)
            logger.info(f"Group {group} is present.")

            if self.store.user_exists(user):
                logger.info(f"User {user} already exists.")
                if not self.store.is_member(user, group):
                    self.store.add_to_group(user, group)
                    logger.info(f"Added existing user {user} to group {group}.")
            else:
                self.store.create_user(user, group, self.shell)
                logger.info(f"User {user} created and added to group {group}.")

            if secret is None:
                print(f"What password should be used for {user}?")
                self.store.prompt_password(user)
                logger.info(f"Password for {user} was set interactively.")
            else:
                self.store.set_password(user, secret)
                logger.info(f"Password for {user} was set in silent mode.")
        except CommandExecutionError as e:
            raise IdentityProvisionError(str(e)) from e
