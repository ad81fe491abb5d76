"""
SelfID — Identity

One self-sovereign identity instance: a ledger-resident contract that owns
a key store, a service registry, asset custody, and an execution engine.

The owner passed at construction is seeded as an address-derived
Management key. That is the only bootstrap special case; from then on
every privilege is read from the key store through AccessPolicy.

All mutating operations take the caller's address as the keyword-only
`sender` argument, the equivalent of the transaction sender on a ledger.
Preconditions are checked before anything changes, so a raised error
always leaves the instance exactly as it was.

Thread-safety: NOT thread-safe. Operations are serialised by the ledger.
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from selfid.config import IdentityConfig
from selfid.primitives.common import normalise_address
from selfid.primitives.dispatch import Dispatcher
from selfid.systems.identity.access import AccessPolicy
from selfid.systems.identity.custody import AssetCustody, TokenRef
from selfid.systems.identity.events import EventBus, IdentityEventType
from selfid.systems.identity.execution import ExecutionEngine
from selfid.systems.identity.keystore import KeyStore, key_id_for_address
from selfid.systems.identity.services import ServiceRegistry
from selfid.systems.identity.types import (
    ExecutionRequest,
    KeyAlgorithm,
    KeyInfo,
    PurposeKind,
    RequestState,
)
from selfid.systems.ledger.dispatcher import LedgerDispatcher
from selfid.systems.ledger.ledger import Ledger

logger = structlog.get_logger("selfid.identity")


class Identity:
    """
    Facade over the identity's components, registered on a Ledger.

    Lifecycle: construct (registers on the ledger and seeds the owner key)
    → operate. There is no teardown; an instance lives as long as its ledger.
    """

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        config: IdentityConfig | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        self._config = config or IdentityConfig()
        self._ledger = ledger
        owner = normalise_address(owner)

        self._address = ledger.register(self, label="identity")
        self._logger = logger.bind(component="identity", identity=self._address)

        self.events = EventBus(source=self._address, buffer_size=self._config.event_buffer_size)
        self._keys = KeyStore()
        self.policy = AccessPolicy(self._keys)
        self.services = ServiceRegistry(self.policy, self.events)
        self.custody = AssetCustody(self._address, ledger, self.policy, self.events)
        self.engine = ExecutionEngine(
            origin=self._address,
            policy=self.policy,
            dispatcher=dispatcher or LedgerDispatcher(ledger),
            events=self.events,
            approval_threshold=self._config.approval_threshold,
        )

        self._keys.add(
            key_id_for_address(owner),
            PurposeKind.MANAGEMENT,
            KeyAlgorithm.ADDRESS_DERIVED,
            address=owner,
        )
        self._logger.info(
            "identity_initialized",
            owner=owner,
            approval_threshold=self.engine.approval_threshold,
        )

    @property
    def address(self) -> str:
        return self._address

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    # ─── Ledger Contract Interface ───────────────────────────────────

    def handle_call(self, sender: str, value: int, payload: bytes) -> bytes:
        """Entry point for calls routed through the ledger."""
        if payload:
            raise ValueError("Identity accepts plain value transfers only; call its methods directly")
        self.custody.receive(sender, value)
        return b""

    # ─── Keys ────────────────────────────────────────────────────────

    def add_key(
        self,
        key_id: str,
        purpose: PurposeKind,
        algorithm: KeyAlgorithm,
        *,
        sender: str,
    ) -> KeyInfo:
        self.policy.require_manager(sender)
        key = self._keys.add(key_id, purpose, algorithm)
        return self._announce_key(key_id, PurposeKind(purpose), key.algorithm, sender)

    def add_address_as_key(
        self,
        address: str,
        purpose: PurposeKind,
        algorithm: KeyAlgorithm,
        *,
        sender: str,
    ) -> KeyInfo:
        self.policy.require_manager(sender)
        address = normalise_address(address)
        key_id = key_id_for_address(address)
        key = self._keys.add(key_id, purpose, algorithm, address=address)
        return self._announce_key(key_id, PurposeKind(purpose), key.algorithm, sender)

    def remove_key(self, key_id: str, *, sender: str) -> None:
        self.policy.require_manager(sender)
        key = self._keys.remove(key_id)
        self.events.emit(
            IdentityEventType.KEY_REMOVED,
            key_id=key_id,
            purposes=sorted(p.value for p in key.purposes),
            algorithm=key.algorithm.value,
        )
        self._logger.info("key_removed", key_id=key_id, sender=sender, keys_count=self.keys_count)

    def get_key(self, key_id: str) -> KeyInfo:
        return self._keys.get(key_id)

    def get_key_by_address(self, address: str) -> KeyInfo:
        return self._keys.get_by_address(address)

    def has_purpose(self, id_or_address: str, purpose: PurposeKind) -> bool:
        return self._keys.has_purpose(id_or_address, purpose)

    def key_has_purpose(self, key_id: str, purpose: PurposeKind) -> bool:
        return self._keys.key_has_purpose(key_id, purpose)

    def address_has_purpose(self, address: str, purpose: PurposeKind) -> bool:
        return self._keys.address_has_purpose(address, purpose)

    @property
    def keys_count(self) -> int:
        return self._keys.keys_count

    def key_indexes(self, position: int) -> str:
        return self._keys.key_indexes(position)

    def iter_keys(self) -> Iterator[KeyInfo]:
        """Every stored key, in current enumeration order."""
        for key_id in self._keys:
            yield self._keys.get(key_id)

    # ─── Services ────────────────────────────────────────────────────

    def add_service(self, service_type: str, endpoint: str, *, sender: str) -> None:
        self.services.add_service(service_type, endpoint, sender=sender)

    def remove_service(self, service_type: str, *, sender: str) -> None:
        self.services.remove_service(service_type, sender=sender)

    def get_service_by_type(self, service_type: str) -> str:
        return self.services.get_service_by_type(service_type)

    @property
    def services_count(self) -> int:
        return self.services.services_count

    # ─── Assets ──────────────────────────────────────────────────────

    @property
    def native_balance(self) -> int:
        return self.custody.native_balance

    def token_balance(self, token_ref: TokenRef) -> int:
        return self.custody.token_balance(token_ref)

    def withdraw_native(self, amount: int, *, sender: str) -> None:
        self.custody.withdraw_native(amount, sender=sender)

    def withdraw_token(self, amount: int, token_ref: TokenRef, *, sender: str) -> None:
        self.custody.withdraw_token(amount, token_ref, sender=sender)

    # ─── Execution ───────────────────────────────────────────────────

    def execute(self, target: str, value: int, payload: bytes, *, sender: str) -> int:
        return self.engine.execute(target, value, payload, sender=sender)

    def approve(self, execution_id: int, decision: bool, *, sender: str) -> RequestState:
        return self.engine.approve(execution_id, decision, sender=sender)

    def set_approval_threshold(self, threshold: int, *, sender: str) -> None:
        self.engine.set_approval_threshold(threshold, sender=sender)

    def get_request(self, execution_id: int) -> ExecutionRequest:
        return self.engine.get_request(execution_id)

    @property
    def approval_threshold(self) -> int:
        return self.engine.approval_threshold

    @property
    def tasks_count(self) -> int:
        return self.engine.tasks_count

    # ─── Internal ────────────────────────────────────────────────────

    def _announce_key(
        self,
        key_id: str,
        purpose: PurposeKind,
        algorithm: KeyAlgorithm,
        sender: str,
    ) -> KeyInfo:
        self.events.emit(
            IdentityEventType.KEY_ADDED,
            key_id=key_id,
            purpose=purpose.value,
            algorithm=algorithm.value,
        )
        self._logger.info(
            "key_added",
            key_id=key_id,
            purpose=purpose.name,
            algorithm=algorithm.name,
            sender=sender,
            keys_count=self.keys_count,
        )
        return self._keys.get(key_id)

    def __repr__(self) -> str:
        return (
            f"<Identity address={self._address} keys={self.keys_count} "
            f"services={self.services_count} tasks={self.tasks_count}>"
        )
