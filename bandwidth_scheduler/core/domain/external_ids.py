"""Utilities for order external reference identifiers."""

from __future__ import annotations

import random
from datetime import datetime

# The ordering API rejects external ids longer than this.
EXTERNAL_ID_MAX_LENGTH = 20

_DISAMBIGUATOR_MAX = 9999


def build_external_id(
    resource_key: str,
    when: datetime,
    rng: random.Random | None = None,
) -> str:
    """Return an external reference id for an order.

    The id is the concatenation of the service id, the change date as
    ``yyMMdd`` and a random disambiguator in ``[0, 9999]``. When the result
    would exceed EXTERNAL_ID_MAX_LENGTH the service id is truncated from the
    left, so the date and disambiguator always survive.
    """
    if not resource_key:
        raise ValueError("resource_key must be non-empty")

    generator = rng if rng is not None else random.Random()
    suffix = f"{when.strftime('%y%m%d')}{generator.randint(0, _DISAMBIGUATOR_MAX)}"

    budget = EXTERNAL_ID_MAX_LENGTH - len(suffix)
    prefix = resource_key[-budget:] if len(resource_key) > budget else resource_key
    return f"{prefix}{suffix}"
