"""
SelfID — Shared Primitives

Identifiers, timestamps, address helpers, the pydantic base model, and the
dispatch contract shared by the identity and ledger systems.
"""

from selfid.primitives.common import (
    SelfIDBaseModel,
    Timestamped,
    derive_address,
    is_address,
    new_id,
    normalise_address,
    utc_now,
)
from selfid.primitives.dispatch import DispatchResult, Dispatcher

__all__ = [
    "DispatchResult",
    "Dispatcher",
    "SelfIDBaseModel",
    "Timestamped",
    "derive_address",
    "is_address",
    "new_id",
    "normalise_address",
    "utc_now",
]
