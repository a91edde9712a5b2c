"""Provisioning API boundary.

The action executor depends only on this protocol; the HTTP implementation
lives in bandwidth_scheduler.provisioning.client. Every method is a single
request/response pair. Implementations must not retry: a failed call ends
the action.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from bandwidth_scheduler.core.domain.types import InventoryRecord, ServiceStatus


class ProvisioningPort(Protocol):
    """Remote provisioning operations used by one action executor."""

    def authenticate(self) -> str:
        """Return a bearer token. Raises AuthError."""

    def fetch_inventory(self, token: str, service_id: str) -> InventoryRecord:
        """Return the inventory record for a service. Raises NotFoundError / ProtocolError."""

    def create_quote(self, token: str, body: dict[str, Any]) -> str:
        """Create a price quote and return its id (may be blank). Raises ProtocolError."""

    def submit_order(self, token: str, body: dict[str, Any]) -> None:
        """Submit the bandwidth change order. Raises ProtocolError."""

    def check_status(self, token: str, service_id: str) -> ServiceStatus:
        """Return the current product status and bandwidth. Raises NotFoundError / ProtocolError."""
