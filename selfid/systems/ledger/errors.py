"""
SelfID -- Ledger Error Hierarchy

Failures raised by the in-process ledger while moving native value or
routing calls between contracts.

Namespace: selfid.systems.ledger.errors
Distinct from: selfid.systems.identity.errors  (identity precondition failures)

A LedgerError surfacing inside a dispatched execution is caught by the
LedgerDispatcher and reported as a failed DispatchResult; everywhere else it
propagates to the caller.
"""

from __future__ import annotations


class LedgerError(RuntimeError):
    """Base for all ledger errors."""


class InsufficientFunds(LedgerError):
    """The sending account cannot cover the native value of a transfer or call."""

    def __init__(self, account: str, requested: int, available: int) -> None:
        super().__init__(
            f"Account {account} has {available}, cannot send {requested}"
        )
        self.account = account
        self.requested = requested
        self.available = available


class CallReverted(LedgerError):
    """
    The callee raised while handling a call.

    No native value moves when a call reverts. The original exception is
    chained as __cause__.
    """

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"Call to {target} reverted: {reason}")
        self.target = target
        self.reason = reason


class UnknownContract(LedgerError):
    """No contract is registered at the requested address."""
