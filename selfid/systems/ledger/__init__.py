"""
SelfID — Ledger

The in-process hosting ledger: addresses, native balances, contract calls,
and the calldata codec for token transfers.

Public interface:
  Ledger            — balances, contract registry, transfer()/call()
  Contract          — protocol for anything callable through the ledger
  LedgerDispatcher  — Dispatcher implementation used by Identity
"""

from selfid.systems.ledger.calldata import decode_transfer, encode_transfer
from selfid.systems.ledger.dispatcher import LedgerDispatcher
from selfid.systems.ledger.errors import (
    CallReverted,
    InsufficientFunds,
    LedgerError,
    UnknownContract,
)
from selfid.systems.ledger.ledger import Contract, Ledger

__all__ = [
    "CallReverted",
    "Contract",
    "InsufficientFunds",
    "Ledger",
    "LedgerDispatcher",
    "LedgerError",
    "UnknownContract",
    "decode_transfer",
    "encode_transfer",
]
