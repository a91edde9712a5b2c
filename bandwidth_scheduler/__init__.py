"""Public API for the bandwidth_scheduler package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from bandwidth_scheduler.config.settings import (
    CalendarSettings,
    ProvisioningSettings,
    SchedulerSettings,
    load_settings,
)

# ----------------------------------------------------------------------
# Domain Types
# ----------------------------------------------------------------------
from bandwidth_scheduler.core.domain.errors import (
    ActionError,
    AuthError,
    ConfigError,
    LabelValidationError,
    NotFoundError,
    ProtocolError,
    SchedulerError,
    VerificationMismatch,
)
from bandwidth_scheduler.core.domain.types import (
    BandwidthAction,
    BandwidthLabel,
    Interval,
    MonitoringWindow,
)

# ----------------------------------------------------------------------
# Resolution Engine API
# ----------------------------------------------------------------------
from bandwidth_scheduler.core.resolution.label_validator import LabelValidator
from bandwidth_scheduler.core.resolution.resolver import (
    ResolvedSchedule,
    resolve_actions,
    resolve_schedule,
)

# ----------------------------------------------------------------------
# Execution API
# ----------------------------------------------------------------------
from bandwidth_scheduler.runtime.action_executor import ActionExecutor, ExecutionOutcome
from bandwidth_scheduler.runtime.dispatcher import Dispatcher

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Config
    "CalendarSettings",
    "ProvisioningSettings",
    "SchedulerSettings",
    "load_settings",

    # Domain
    "Interval",
    "BandwidthLabel",
    "BandwidthAction",
    "MonitoringWindow",

    # Errors
    "SchedulerError",
    "ConfigError",
    "LabelValidationError",
    "ActionError",
    "AuthError",
    "NotFoundError",
    "ProtocolError",
    "VerificationMismatch",

    # Resolution
    "LabelValidator",
    "ResolvedSchedule",
    "resolve_actions",
    "resolve_schedule",

    # Execution
    "ActionExecutor",
    "ExecutionOutcome",
    "Dispatcher",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("bandwidth-scheduler")
except PackageNotFoundError:
    __version__ = "0.0.0"
