"""Firewall rules for the SSH port."""

import structlog

from sftp_provisioner.backends import Firewall
from sftp_provisioner.exceptions import CommandExecutionError, FirewallError
from sftp_provisioner.types import PortSpec

logger = structlog.get_logger(__name__)


class FirewallReconciler:
    """Open the SSH port and, for a custom port, close the default one.

    The default SSH rule is only removed once the new port is confirmed in
    the rules in force, so the host never loses both.
    """

    def __init__(self, firewall: Firewall) -> None:
        self.firewall = firewall

    def reconcile(self, port: PortSpec) -> None:
        """Bring the firewall to the target state for ``port``.

        Raises:
            FirewallError: If a rule cannot be applied, or the new port is
                not active before the default rule would be removed
        """
        try:
            self._open(port.port)
            if port.is_default:
                return
            self._confirm_open(port.port)
            self._close_default()
        except CommandExecutionError as e:
            raise FirewallError(str(e)) from e

    def _open(self, port: int) -> None:
        if self.firewall.is_port_allowed(port):
            logger.info(f"Port {port} is already open in the firewall.")
        else:
            self.firewall.allow_port(port)
            logger.info(f"Opened port {port}/tcp in the firewall.")
        self.firewall.reload()

    def _confirm_open(self, port: int) -> None:
        if not self.firewall.is_port_active(port):
            raise FirewallError(
                f"Port {port}/tcp is not active after reload; "
                "leaving the default SSH rule in place."
            )
        logger.info(f"Confirmed port {port}/tcp is active.")

    def _close_default(self) -> None:
        if not self.firewall.is_default_ssh_allowed():
            logger.info("Default SSH rule is already closed.")
            return
        self.firewall.remove_default_ssh()
        self.firewall.reload()
        logger.info("Closed default port 22.")
