"""
SelfID -- Identity Error Hierarchy

Precondition failures raised by identity operations. Every one of these
aborts its operation before any state has changed.

Namespace: selfid.systems.identity.errors
Distinct from: selfid.systems.ledger.errors  (value movement and call routing)

Dispatch failures inside the ExecutionEngine are never raised; they become a
FAILED request and an ExecutionFailed event.
"""

from __future__ import annotations


class IdentityError(RuntimeError):
    """Base for all identity errors."""


class Unauthorized(IdentityError):
    """The caller lacks the purpose the operation requires."""

    def __init__(self, sender: str, required: str) -> None:
        super().__init__(f"{sender} is not authorized: requires {required}")
        self.sender = sender
        self.required = required


class DuplicateKey(IdentityError):
    """The key already holds the requested purpose."""


class UnknownKey(IdentityError):
    """No key is stored under the given id or address."""


class UnknownService(IdentityError):
    """No live endpoint is registered for the given service type."""


class UnknownRequest(IdentityError):
    """The execution id was never issued, or the request is no longer pending."""


class InsufficientBalance(IdentityError):
    """The identity holds less than the amount requested."""

    def __init__(self, asset: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient {asset} balance: requested {requested}, available {available}"
        )
        self.asset = asset
        self.requested = requested
        self.available = available


class InvalidThreshold(IdentityError):
    """Approval thresholds must be at least 1."""


class TokenTransferRejected(IdentityError):
    """The token collaborator returned False from transfer()."""
