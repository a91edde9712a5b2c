"""Scheduler configuration models.

Settings are read from a JSON document, optionally overlaid with a second
document for local development, and validated with Pydantic. Secrets may be
supplied through environment variables instead of the document.

JSON example:
    {
      "time_window_minutes": 60,
      "subject_regex": "^BW\\\\s+(?P<startVal>\\\\w+)-(?P<endVal>\\\\w+)$",
      "log_location": "/var/log/bandwidth-scheduler",
      "calendar": {
        "tenant_id": "...", "client_id": "...", "secret": "...",
        "user_account": "ops@example.com", "calendar_id": "AAMk..."
      },
      "provisioning": {
        "base_url": "https://api.example.net", "secret": "...",
        "customer_number": "123456", "wait_for_updates_minutes": 5
      }
    }
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from bandwidth_scheduler.core.domain.errors import ConfigError
from bandwidth_scheduler.core.resolution.label_validator import compile_label_pattern

PROVISIONING_SECRET_ENV = "BANDWIDTH_SCHEDULER_PROVISIONING_SECRET"
CALENDAR_SECRET_ENV = "BANDWIDTH_SCHEDULER_CALENDAR_SECRET"


class CalendarSettings(BaseModel):
    """Where reservations are read from."""

    source: Literal["graph", "file"] = "graph"

    tenant_id: str = ""
    client_id: str = ""
    secret: str | None = None
    user_account: str = ""
    calendar_id: str = ""

    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    authority_url: str = "https://login.microsoftonline.com"

    # Only used by the file source.
    events_path: Path | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_source(self) -> CalendarSettings:
        """Each source kind has its own required fields."""
        if self.source == "file":
            if self.events_path is None:
                raise ValueError("calendar.events_path is required for the file source")
            return self

        missing = [
            name
            for name in ("tenant_id", "client_id", "user_account", "calendar_id")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"calendar settings missing: {', '.join(missing)}")
        return self


class ProvisioningSettings(BaseModel):
    """Remote provisioning API endpoints, credentials and payload templates."""

    base_url: str = Field(..., min_length=1)
    secret: str = Field(..., min_length=1)
    customer_number: str = Field(..., min_length=1)

    auth_path: str = "/oauth/v2/token"
    inventory_path: str = "/ProductInventory/v1/inventory"
    quote_path: str = "/Product/v1/priceRequest"
    order_path: str = "/Customer/v3/Ordering/orderRequest"

    quote_template_path: Path = Path("IoD-Json/createQuote.json")
    order_template_path: Path = Path("IoD-Json/bandwidthUpdate.json")
    partner_id_key: str = Field(default="PartnerId", min_length=1)

    timeout_seconds: float = Field(default=30.0, gt=0)
    wait_for_updates_minutes: float = Field(default=5.0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"


class SchedulerSettings(BaseModel):
    """Top-level scheduler configuration."""

    time_window_minutes: float = Field(..., gt=0)
    subject_regex: str = Field(..., min_length=1)
    log_location: Path = Path(".")
    event_log_path: Path | None = None

    calendar: CalendarSettings
    provisioning: ProvisioningSettings

    model_config = ConfigDict(extra="forbid")

    @field_validator("subject_regex")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            compile_label_pattern(value)
        except ConfigError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> SchedulerSettings:
        """Create a SchedulerSettings instance from a JSON-compatible object."""
        return cls.model_validate(obj)


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"settings file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"settings file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"settings file {path} must contain a JSON object")
    return data


def _apply_env_secrets(data: dict[str, Any]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    provisioning_secret = os.environ.get(PROVISIONING_SECRET_ENV)
    if provisioning_secret:
        overrides["provisioning"] = {"secret": provisioning_secret}

    calendar_secret = os.environ.get(CALENDAR_SECRET_ENV)
    if calendar_secret:
        overrides["calendar"] = {"secret": calendar_secret}

    return _deep_merge(data, overrides) if overrides else data


def load_settings(path: str | Path, overlay_path: str | Path | None = None) -> SchedulerSettings:
    """Load and validate settings.

    The overlay document (if any) is deep-merged over the base document, then
    secrets from the environment win over both.

    Raises:
        ConfigError: missing file, invalid JSON, or failed validation.
    """
    data = _load_json(Path(path))

    if overlay_path is not None:
        overlay = Path(overlay_path)
        if overlay.exists():
            data = _deep_merge(data, _load_json(overlay))

    data = _apply_env_secrets(data)

    try:
        return SchedulerSettings.from_json_obj(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid settings: {exc}") from exc
