"""
SelfID — Identity Types

Key records, execution requests, and the token protocol the identity
depends on.
"""

from __future__ import annotations

import enum
from typing import Protocol, runtime_checkable

from pydantic import Field

from selfid.primitives.common import SelfIDBaseModel, Timestamped

# ─── Enums ────────────────────────────────────────────────────────


class PurposeKind(int, enum.Enum):
    """Authorization role a key grants."""

    MANAGEMENT = 1     # Manage keys, services, assets and the threshold
    ACTION = 2         # Vote on execution requests
    CLAIM_SIGNER = 3
    ENCRYPTION = 4


class KeyAlgorithm(int, enum.Enum):
    ADDRESS_DERIVED = 1
    RSA = 2
    ECDSA = 3
    OTHER = 4


class RequestState(str, enum.Enum):
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestState.PENDING


# ─── Keys ─────────────────────────────────────────────────────────


class Key(SelfIDBaseModel):
    """
    A stored key record.

    `address` is set only for keys registered from an account address; it is
    the representative value returned by lookups.
    """

    key_id: str
    purposes: set[PurposeKind] = Field(default_factory=set)
    algorithm: KeyAlgorithm = KeyAlgorithm.OTHER
    address: str | None = None

    def has_purpose(self, purpose: PurposeKind) -> bool:
        return purpose in self.purposes


class KeyInfo(SelfIDBaseModel):
    """Read-only view of a key returned by lookups."""

    key_id: str
    address: str | None = None
    purposes: frozenset[PurposeKind] = frozenset()
    algorithm: KeyAlgorithm

    @classmethod
    def from_key(cls, key: Key) -> KeyInfo:
        return cls(
            key_id=key.key_id,
            address=key.address,
            purposes=frozenset(key.purposes),
            algorithm=key.algorithm,
        )


# ─── Execution ────────────────────────────────────────────────────


class ExecutionRequest(Timestamped):
    """
    An external call awaiting approval.

    `votes` maps voter address to decision. Only affirmative votes count
    toward the approval threshold.
    """

    id: int
    target: str
    value: int = 0
    payload: bytes = b""
    requester: str
    votes: dict[str, bool] = Field(default_factory=dict)
    state: RequestState = RequestState.PENDING
    error: str = ""

    @property
    def approvals(self) -> int:
        return sum(1 for decision in self.votes.values() if decision)

    @property
    def rejections(self) -> int:
        return sum(1 for decision in self.votes.values() if not decision)


# ─── Collaborator Protocols ───────────────────────────────────────


@runtime_checkable
class TokenLike(Protocol):
    """The fungible-token surface the identity relies on."""

    def balance_of(self, holder: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> bool: ...
