"""Quote and order payload templates.

Request bodies are not built in code: they are JSON documents supplied next
to the configuration, with placeholder tokens that are substituted per
action. Supported tokens:

    {Customer Number}  {MasterSiteId}  {Bandwidth}      (quote)
    {QuoteId}  {ServiceId}  {AccountName}  {AccountNumber}
    {CalendarItemId}  {ExternalId}                      (order)

Values are JSON-escaped before substitution, so tokens belong inside JSON
string literals. For data-center connections the partner id is added to the
top level of the quote body under a configurable key.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from bandwidth_scheduler.core.domain.errors import ConfigError

if TYPE_CHECKING:
    from bandwidth_scheduler.config.settings import ProvisioningSettings
    from bandwidth_scheduler.core.domain.types import BandwidthAction

QUOTE_TOKENS: tuple[str, ...] = ("Customer Number", "MasterSiteId", "Bandwidth")
ORDER_TOKENS: tuple[str, ...] = (
    "QuoteId",
    "ServiceId",
    "AccountName",
    "AccountNumber",
    "CalendarItemId",
    "ExternalId",
)


def _json_escape(value: str) -> str:
    # json.dumps quotes the string; keep only the escaped body
    return json.dumps(value)[1:-1]


class PayloadTemplate:
    """A JSON request body with ``{Token}`` placeholders."""

    def __init__(self, text: str, *, name: str, tokens: tuple[str, ...]) -> None:
        self._text = text
        self.name = name
        self.tokens = tokens
        self._check_renders()

    @classmethod
    def from_path(cls, path: str | Path, *, tokens: tuple[str, ...]) -> PayloadTemplate:
        template_path = Path(path)
        try:
            text = template_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigError(f"payload template not found: {template_path}") from exc
        return cls(text, name=str(template_path), tokens=tokens)

    def _check_renders(self) -> None:
        """Fail at load time, not at the scheduled instant, on a broken template."""
        try:
            self.render({token: "0" for token in self.tokens})
        except ValueError as exc:
            raise ConfigError(f"payload template {self.name} is not valid JSON: {exc}") from exc

    def render(self, values: Mapping[str, str | None]) -> dict[str, Any]:
        """Substitute placeholder tokens and parse the result.

        Missing values render as empty strings. Raises ValueError if the
        substituted text is not a JSON object.
        """
        text = self._text
        for token, value in values.items():
            text = text.replace("{" + token + "}", _json_escape(value or ""))

        body = json.loads(text)
        if not isinstance(body, dict):
            raise ValueError("template must be a JSON object")
        return body


class PayloadTemplates:
    """Builds the quote and order bodies for one action."""

    def __init__(
        self,
        *,
        quote: PayloadTemplate,
        order: PayloadTemplate,
        customer_number: str,
        partner_id_key: str = "PartnerId",
    ) -> None:
        self._quote = quote
        self._order = order
        self._customer_number = customer_number
        self._partner_id_key = partner_id_key

    @classmethod
    def from_settings(cls, settings: ProvisioningSettings) -> PayloadTemplates:
        return cls(
            quote=PayloadTemplate.from_path(settings.quote_template_path, tokens=QUOTE_TOKENS),
            order=PayloadTemplate.from_path(settings.order_template_path, tokens=ORDER_TOKENS),
            customer_number=settings.customer_number,
            partner_id_key=settings.partner_id_key,
        )

    def build_quote(self, action: BandwidthAction) -> dict[str, Any]:
        body = self._quote.render(
            {
                "Customer Number": self._customer_number,
                "MasterSiteId": action.site_id,
                "Bandwidth": action.bandwidth,
            }
        )
        if action.partner_id and action.partner_id.strip():
            body[self._partner_id_key] = action.partner_id
        return body

    def build_order(self, action: BandwidthAction, *, quote_id: str, external_id: str) -> dict[str, Any]:
        return self._order.render(
            {
                "QuoteId": quote_id,
                "ServiceId": action.resource_key,
                "AccountName": action.account_name,
                "AccountNumber": action.account_number,
                "CalendarItemId": action.source_interval_id,
                "ExternalId": external_id,
            }
        )
