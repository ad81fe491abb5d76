"""
SelfID — Common Primitives

Shared base classes, identifiers, and address helpers used across all systems.
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from ulid import ULID

# 20-byte account address, hex encoded with a 0x prefix
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def new_id() -> str:
    """Generate a new ULID string. Time-sortable, globally unique."""
    return str(ULID())


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


# ─── Addresses ────────────────────────────────────────────────────


def is_address(value: object) -> bool:
    """True if value is a 0x-prefixed 40-hex-char address string."""
    return isinstance(value, str) and _ADDRESS_RE.match(value) is not None


def normalise_address(address: str) -> str:
    """
    Canonical lowercase form of an address.

    Raises ValueError for anything that is not a well-formed address.
    """
    if not is_address(address):
        raise ValueError(f"Not a valid address: {address!r}")
    return address.lower()


def derive_address(label: str) -> str:
    """Deterministic address from an arbitrary label."""
    raw = hashlib.sha256(f"selfid-address-{label}".encode()).hexdigest()[:40]
    return f"0x{raw}"


# ─── Base Models ──────────────────────────────────────────────────


class SelfIDBaseModel(BaseModel):
    """Base model for all SelfID primitives."""

    model_config = {"populate_by_name": True, "from_attributes": True}


class Timestamped(SelfIDBaseModel):
    """Mixin for models with creation timestamps."""

    created_at: datetime = Field(default_factory=utc_now)
