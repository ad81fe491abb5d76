"""
Shared fixtures: a fresh ledger, funded accounts, an identity created
through the factory, and a minimal fungible token living on the ledger.
"""

from __future__ import annotations

import pytest

from selfid.config import IdentityConfig, LedgerConfig
from selfid.systems.identity import Identity, IdentityFactory
from selfid.systems.ledger import Ledger
from selfid.systems.ledger.calldata import (
    BALANCE_OF_SELECTOR,
    TRANSFER_SELECTOR,
    decode_address,
    decode_call,
    decode_transfer,
    encode_uint,
)

ONE_ETHER = 10**18


class MockToken:
    """Fungible token with an unrestricted mint, reachable through the ledger."""

    def __init__(self, ledger: Ledger) -> None:
        self._balances: dict[str, int] = {}
        self.address = ledger.register(self, label="token")

    def mint(self, holder: str, amount: int) -> None:
        self._balances[holder.lower()] = self.balance_of(holder) + amount

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder.lower(), 0)

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        available = self.balance_of(sender)
        if amount > available:
            raise ValueError(f"transfer amount {amount} exceeds balance {available}")
        self._balances[sender.lower()] = available - amount
        self._balances[to.lower()] = self.balance_of(to) + amount
        return True

    def handle_call(self, sender: str, value: int, payload: bytes) -> bytes:
        if value:
            raise ValueError("token does not accept native value")
        selector, words = decode_call(payload)
        if selector == TRANSFER_SELECTOR:
            to, amount = decode_transfer(payload)
            return encode_uint(int(self.transfer(sender, to, amount)))
        if selector == BALANCE_OF_SELECTOR:
            return encode_uint(self.balance_of(decode_address(words[0])))
        raise ValueError(f"unknown selector 0x{selector.hex()}")


class RefusingToken(MockToken):
    """Reports balances but refuses every transfer by returning False."""

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        return False


@pytest.fixture
def ledger() -> Ledger:
    return Ledger(LedgerConfig(chain_id="test-chain"))


@pytest.fixture
def owner(ledger: Ledger) -> str:
    address = ledger.new_address("owner")
    ledger.mint(address, 10 * ONE_ETHER)
    return address


@pytest.fixture
def accounts(ledger: Ledger) -> list[str]:
    """Five funded user accounts with no keys on any identity."""
    users = [ledger.new_address(f"user{i}") for i in range(1, 6)]
    for user in users:
        ledger.mint(user, 10 * ONE_ETHER)
    return users


@pytest.fixture
def factory(ledger: Ledger) -> IdentityFactory:
    return IdentityFactory(ledger, IdentityConfig())


@pytest.fixture
def identity(factory: IdentityFactory, owner: str) -> Identity:
    return factory.create_identity(sender=owner)


@pytest.fixture
def token(ledger: Ledger, owner: str) -> MockToken:
    token = MockToken(ledger)
    token.mint(owner, 10_000)
    return token


@pytest.fixture
def refusing_token(ledger: Ledger) -> RefusingToken:
    return RefusingToken(ledger)
