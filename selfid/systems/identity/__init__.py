"""
SelfID — Identity (Keys, Services, Assets, Execution Approval)

A self-sovereign identity instance stores keys with role-scoped authority,
publishes service endpoints, holds native and token assets, and gates
arbitrary external calls behind a multi-party approval threshold.

Public interface:
  Identity          — one instance, registered on a Ledger
  IdentityFactory   — creates instances owned by the caller
  PurposeKind       — MANAGEMENT / ACTION / CLAIM_SIGNER / ENCRYPTION
  KeyAlgorithm      — ADDRESS_DERIVED / RSA / ECDSA / OTHER
  RequestState      — PENDING / EXECUTED / FAILED
  IdentityEventType — everything an instance announces on its EventBus
"""

from selfid.systems.identity.errors import (
    DuplicateKey,
    IdentityError,
    InsufficientBalance,
    InvalidThreshold,
    TokenTransferRejected,
    Unauthorized,
    UnknownKey,
    UnknownRequest,
    UnknownService,
)
from selfid.systems.identity.events import EventBus, IdentityEvent, IdentityEventType
from selfid.systems.identity.factory import IdentityFactory
from selfid.systems.identity.identity import Identity
from selfid.systems.identity.keystore import key_id_for_address
from selfid.systems.identity.types import (
    ExecutionRequest,
    KeyAlgorithm,
    KeyInfo,
    PurposeKind,
    RequestState,
    TokenLike,
)

__all__ = [
    "DuplicateKey",
    "EventBus",
    "ExecutionRequest",
    "Identity",
    "IdentityError",
    "IdentityEvent",
    "IdentityEventType",
    "IdentityFactory",
    "InsufficientBalance",
    "InvalidThreshold",
    "KeyAlgorithm",
    "KeyInfo",
    "PurposeKind",
    "RequestState",
    "TokenLike",
    "TokenTransferRejected",
    "Unauthorized",
    "UnknownKey",
    "UnknownRequest",
    "UnknownService",
    "key_id_for_address",
]
