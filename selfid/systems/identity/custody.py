"""
SelfID — Asset Custody

Native currency and fungible tokens held by an identity.

Native balance is the identity's own ledger balance. Token balances are
always read from the token contract; nothing is cached here, so the token
remains the sole source of truth.
"""

from __future__ import annotations

import structlog

from selfid.primitives.common import normalise_address
from selfid.systems.identity.access import AccessPolicy
from selfid.systems.identity.errors import InsufficientBalance, TokenTransferRejected
from selfid.systems.identity.events import EventBus, IdentityEventType
from selfid.systems.identity.types import TokenLike
from selfid.systems.ledger.ledger import Ledger

logger = structlog.get_logger("selfid.identity.custody")

TokenRef = TokenLike | str


class AssetCustody:
    def __init__(
        self,
        address: str,
        ledger: Ledger,
        policy: AccessPolicy,
        events: EventBus,
    ) -> None:
        self._address = address
        self._ledger = ledger
        self._policy = policy
        self._events = events
        self._logger = logger.bind(component="asset_custody", identity=address)

    # ─── Views ───────────────────────────────────────────────────────

    @property
    def native_balance(self) -> int:
        return self._ledger.balance_of(self._address)

    def token_balance(self, token_ref: TokenRef) -> int:
        return self._resolve_token(token_ref).balance_of(self._address)

    # ─── Receiving ───────────────────────────────────────────────────

    def receive(self, sender: str, amount: int) -> None:
        """
        Accept native value unconditionally. Zero-value transfers are silent.

        The announcement waits for the enclosing ledger call to commit, so a
        transfer that is later reverted is never reported.
        """
        if amount > 0:
            self._ledger.defer(lambda: self._announce_received(sender, amount))

    def _announce_received(self, sender: str, amount: int) -> None:
        self._events.emit(IdentityEventType.RECEIVED_NATIVE, sender=sender, amount=amount)
        self._logger.info("native_received", sender=sender, amount=amount)

    # ─── Withdrawal ──────────────────────────────────────────────────

    def withdraw_native(self, amount: int, *, sender: str) -> None:
        """Send `amount` native units to the calling manager."""
        self._policy.require_manager(sender)
        _require_non_negative(amount)

        available = self.native_balance
        if amount > available:
            raise InsufficientBalance("native", amount, available)

        self._ledger.transfer(self._address, sender, amount)
        self._events.emit(IdentityEventType.WITHDRAWN_NATIVE, recipient=sender, amount=amount)
        self._logger.info("native_withdrawn", recipient=sender, amount=amount)

    def withdraw_token(self, amount: int, token_ref: TokenRef, *, sender: str) -> None:
        """Send `amount` token units to the calling manager."""
        self._policy.require_manager(sender)
        _require_non_negative(amount)
        token = self._resolve_token(token_ref)

        available = token.balance_of(self._address)
        if amount > available:
            raise InsufficientBalance("token", amount, available)

        if not token.transfer(self._address, sender, amount):
            raise TokenTransferRejected(f"Token refused transfer of {amount} to {sender}")

        token_label = token_ref if isinstance(token_ref, str) else type(token).__name__
        self._events.emit(
            IdentityEventType.WITHDRAWN_TOKEN,
            token=token_label,
            recipient=sender,
            amount=amount,
        )
        self._logger.info("token_withdrawn", token=token_label, recipient=sender, amount=amount)

    # ─── Internal ────────────────────────────────────────────────────

    def _resolve_token(self, token_ref: TokenRef) -> TokenLike:
        """Accept a token object or the ledger address of a token contract."""
        if isinstance(token_ref, str):
            token = self._ledger.contract_at(normalise_address(token_ref))
        else:
            token = token_ref
        if not isinstance(token, TokenLike):
            raise TypeError(f"{token_ref!r} does not implement balance_of()/transfer()")
        return token


def _require_non_negative(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"Amount must be non-negative: {amount}")
