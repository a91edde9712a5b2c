"""HTTP client for the remote provisioning API.

Each method is one request/response pair. The client never retries and keeps
no token of its own: the caller passes the token returned by authenticate()
into every later call, so concurrent executors never share credentials.
Response bodies are checked against the JSON Schemas in ./schemas before any
field is read.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

import requests
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import ValidationError as PydanticValidationError

from bandwidth_scheduler.core.domain.errors import AuthError, NotFoundError, ProtocolError
from bandwidth_scheduler.core.domain.types import InventoryRecord, ServiceStatus

if TYPE_CHECKING:
    from bandwidth_scheduler.config.settings import ProvisioningSettings

LOGGER = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schemas"

TENANT_HEADER = "x-customer-number"
BANDWIDTH_CHARACTERISTIC = "Bandwidth"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load a response schema shipped with the package."""
    with (SCHEMA_DIR / name).open("r", encoding="utf-8") as f:
        return json.load(f)


class ProvisioningClient:
    """Provisioning API operations over a requests session."""

    def __init__(
        self,
        settings: ProvisioningSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session if session is not None else requests.Session()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _headers(self, token: str) -> dict[str, str]:
        return {
            TENANT_HEADER: self._settings.customer_number,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self._session.request(
                method,
                url,
                timeout=self._settings.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise ProtocolError(f"{method} {url} failed: {exc}") from exc

    @staticmethod
    def _decode(
        response: requests.Response,
        schema_name: str,
        *,
        service_id: str | None = None,
    ) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise ProtocolError(
                f"response from {response.url} is not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        # An empty inventory list means the service is unknown, not malformed.
        if service_id is not None and isinstance(data, dict) and data.get("serviceInventory") == []:
            raise NotFoundError(f"service {service_id!r} not found in inventory")

        try:
            jsonschema_validate(instance=data, schema=load_schema(schema_name))
        except JsonSchemaValidationError as exc:
            raise ProtocolError(
                f"unexpected response shape from {response.url}: {exc.message}",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        return data

    @staticmethod
    def _check_ok(response: requests.Response, what: str) -> None:
        if response.ok:
            return
        raise ProtocolError(
            f"{what} failed with HTTP {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )

    def _get_inventory(self, token: str, service_id: str) -> requests.Response:
        response = self._send(
            "GET",
            self._settings.url(self._settings.inventory_path),
            params={"serviceId": service_id},
            headers=self._headers(token),
        )
        if response.status_code == 404:
            raise NotFoundError(f"service {service_id!r} not found in inventory")
        self._check_ok(response, "inventory lookup")
        return response

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def authenticate(self) -> str:
        """Request a client-credentials token."""
        try:
            response = self._send(
                "POST",
                self._settings.url(self._settings.auth_path),
                headers={"Authorization": f"Basic {self._settings.secret}"},
                data={"grant_type": "client_credentials"},
            )
            self._check_ok(response, "token request")
            data = self._decode(response, "token_response.schema.json")
        except ProtocolError as exc:
            raise AuthError(f"failed to get token: {exc} {exc.body}".rstrip()) from exc
        return str(data["access_token"])

    def fetch_inventory(self, token: str, service_id: str) -> InventoryRecord:
        """Look up billing account, site and data-center details for a service."""
        response = self._get_inventory(token, service_id)
        data = self._decode(response, "inventory_response.schema.json", service_id=service_id)
        entry = data["serviceInventory"][0]
        location_profile = entry["locationProfile"]
        is_data_center = bool(location_profile["dataCenter"])

        partner_id = None
        if is_data_center:
            partner_id = (location_profile.get("relatedParty") or {}).get("id")

        try:
            return InventoryRecord(
                status=entry["product"]["status"],
                account_number=entry["billingAccount"]["id"],
                account_name=entry["billingAccount"]["name"],
                site_id=entry["location"]["masterSiteid"],
                is_data_center=is_data_center,
                partner_id=partner_id,
            )
        except PydanticValidationError as exc:
            raise ProtocolError(
                f"inventory entry for {service_id!r} is inconsistent: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def create_quote(self, token: str, body: dict[str, Any]) -> str:
        """Create a price quote. Returns the quote id, which may be blank."""
        response = self._send(
            "POST",
            self._settings.url(self._settings.quote_path),
            json=body,
            headers=self._headers(token),
        )
        self._check_ok(response, "quote request")
        data = self._decode(response, "quote_response.schema.json")
        return str(data["id"] or "")

    def submit_order(self, token: str, body: dict[str, Any]) -> None:
        """Submit the bandwidth update order. Only success/failure is reported."""
        response = self._send(
            "POST",
            self._settings.url(self._settings.order_path),
            json=body,
            headers=self._headers(token),
        )
        self._check_ok(response, "order update")

    def check_status(self, token: str, service_id: str) -> ServiceStatus:
        """Re-read the inventory to observe product status and current bandwidth."""
        response = self._get_inventory(token, service_id)
        data = self._decode(response, "service_status_response.schema.json", service_id=service_id)
        product = data["serviceInventory"][0]["product"]

        bandwidth = None
        for characteristic in product.get("productCharacteristic") or []:
            if characteristic.get("name") == BANDWIDTH_CHARACTERISTIC:
                value = characteristic.get("value")
                bandwidth = None if value is None else str(value)
                break

        return ServiceStatus(status=product["status"], current_bandwidth=bandwidth)

    def close(self) -> None:
        self._session.close()
