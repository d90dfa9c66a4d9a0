# Overview: Human-readable reference numbers for events, orders and batches.

"""
Reference formats (displays group and color-code by prefix):

- REST-dddd   single restock event number
- PRC-XXXXX   price change event number (5 uppercase base-36 chars)
- CAT-ddd     catalog create/update event number
- ORD-ddd     order id
- BATCH-dddd  bulk update batch number when the caller supplies none
- log-<hex>   log entry id (unique)

Event numbers are references, not keys: collisions are tolerated. Order ids
are primary keys, so order_service retries on collision.
"""

from __future__ import annotations

import random
import string
import uuid


_BASE36 = string.digits + string.ascii_uppercase

_rng = random.Random()


def seed_references(seed) -> None:
    """Make generated references deterministic (tests, demos)."""
    _rng.seed(seed)


def _digits(low: int, high: int) -> int:
    return _rng.randint(low, high)


def new_restock_number() -> str:
    return f"REST-{_digits(1000, 9999)}"


def new_price_change_number() -> str:
    return "PRC-" + "".join(_rng.choice(_BASE36) for _ in range(5))


def new_catalog_number() -> str:
    return f"CAT-{_digits(100, 999)}"


def new_order_id() -> str:
    return f"ORD-{_digits(100, 999)}"


def new_batch_number() -> str:
    return f"BATCH-{_digits(1000, 9999)}"


def new_log_entry_id() -> str:
    return f"log-{uuid.uuid4().hex}"
