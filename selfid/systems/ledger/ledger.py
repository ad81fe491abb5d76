"""
SelfID — In-Process Ledger

The hosting ledger for identity instances. It supplies what a blockchain
gives a contract for free:
  - account addresses and native balances
  - a registry of contracts reachable by address
  - value transfers and calls that carry the caller's address as `sender`

Calls are all-or-nothing with respect to native value: value is credited
to the callee before it runs, and a callee that raises has every balance
restored and surfaces as CallReverted. Contract-internal state is the
callee's own concern, so callees validate before they mutate.

Observable side effects of a call (events) are queued with defer() and run
only when the outermost call commits; a revert discards the effects queued
beneath it together with its balance changes.

Thread-safety: NOT thread-safe. Operations are serialised by the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from selfid.config import LedgerConfig
from selfid.primitives.common import derive_address, normalise_address
from selfid.systems.ledger.errors import CallReverted, InsufficientFunds, UnknownContract

logger = structlog.get_logger("selfid.ledger")


@runtime_checkable
class Contract(Protocol):
    """Anything that can be registered on the ledger and receive calls."""

    def handle_call(self, sender: str, value: int, payload: bytes) -> bytes:
        """
        Handle a call from `sender` carrying `value` native units.

        An empty payload is a plain value transfer. Raise to reject.
        """
        ...


class Ledger:
    """
    Native balances plus a contract registry.

    Lifecycle: construct → mint/register → transfer/call.
    """

    def __init__(self, config: LedgerConfig | None = None) -> None:
        self._config = config or LedgerConfig()
        self._balances: dict[str, int] = {}
        self._contracts: dict[str, Contract] = {}
        self._address_nonce: int = 0
        self._depth: int = 0
        self._deferred: list[Callable[[], None]] = []
        self._logger = logger.bind(component="ledger", chain_id=self._config.chain_id)

    @property
    def chain_id(self) -> str:
        return self._config.chain_id

    # ─── Accounts ────────────────────────────────────────────────────

    def new_address(self, label: str = "account") -> str:
        """Allocate a fresh, deterministic address."""
        self._address_nonce += 1
        return derive_address(
            f"{self._config.address_namespace}:{self._config.chain_id}:"
            f"{label}:{self._address_nonce}"
        )

    def mint(self, address: str, amount: int) -> None:
        """Credit native units out of thin air. Genesis and test funding only."""
        if amount < 0:
            raise ValueError(f"Cannot mint a negative amount: {amount}")
        address = normalise_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount
        self._logger.debug("native_minted", address=address, amount=amount)

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalise_address(address), 0)

    # ─── Contracts ───────────────────────────────────────────────────

    def register(self, contract: Contract, label: str = "contract") -> str:
        """Place a contract at a new address and return that address."""
        if not isinstance(contract, Contract):
            raise TypeError(f"{contract!r} does not implement handle_call()")
        address = self.new_address(label)
        self._contracts[address] = contract
        self._logger.info("contract_registered", address=address, label=label)
        return address

    def contract_at(self, address: str) -> Contract:
        contract = self._contracts.get(normalise_address(address))
        if contract is None:
            raise UnknownContract(f"No contract registered at {address}")
        return contract

    def is_contract(self, address: str) -> bool:
        return normalise_address(address) in self._contracts

    # ─── Value Movement ──────────────────────────────────────────────

    def transfer(self, sender: str, to: str, amount: int) -> None:
        """
        Send native value. If `to` is a contract it is notified with an
        empty payload and may reject the transfer by raising.
        """
        self.call(sender, to, amount, b"")

    def call(self, sender: str, target: str, value: int, payload: bytes) -> bytes:
        """
        Call `target` from `sender`, attaching `value` native units.

        Raises InsufficientFunds before anything runs if the sender cannot
        cover `value`, and CallReverted if the callee raises.
        """
        if value < 0:
            raise ValueError(f"Cannot send a negative amount: {value}")
        sender = normalise_address(sender)
        target = normalise_address(target)

        available = self._balances.get(sender, 0)
        if value > available:
            raise InsufficientFunds(sender, value, available)

        contract = self._contracts.get(target)
        if contract is None and payload:
            # Plain accounts have no code to run
            raise CallReverted(target, "target has no code")

        # Value is visible to the callee while it runs; any failure restores
        # every balance, including moves made by nested calls.
        checkpoint = dict(self._balances)
        self._balances[sender] = available - value
        self._balances[target] = self._balances.get(target, 0) + value

        result = b""
        if contract is not None:
            mark = len(self._deferred)
            self._depth += 1
            try:
                result = contract.handle_call(sender, value, payload) or b""
            except Exception as exc:
                self._balances = checkpoint
                dropped = len(self._deferred) - mark
                del self._deferred[mark:]
                self._logger.info(
                    "call_reverted",
                    sender=sender,
                    target=target,
                    value=value,
                    dropped_effects=dropped,
                    error=str(exc),
                )
                raise CallReverted(target, str(exc)) from exc
            finally:
                self._depth -= 1
            if self._depth == 0:
                self._run_deferred()

        self._logger.debug(
            "call_completed",
            sender=sender,
            target=target,
            value=value,
            payload_length=len(payload),
        )
        return result

    # ─── Commit Effects ──────────────────────────────────────────────

    def defer(self, effect: Callable[[], None]) -> None:
        """
        Run `effect` once the outermost call commits.

        Contracts use this for side effects that must not outlive a revert,
        such as announcing received value. Effects queued by a call that
        reverts are discarded with its balance changes. Outside any call the
        effect runs immediately.
        """
        if self._depth == 0:
            effect()
            return
        self._deferred.append(effect)

    def _run_deferred(self) -> None:
        while self._deferred:
            effect = self._deferred.pop(0)
            effect()

    def __repr__(self) -> str:
        return (
            f"<Ledger chain={self._config.chain_id} accounts={len(self._balances)} "
            f"contracts={len(self._contracts)}>"
        )
