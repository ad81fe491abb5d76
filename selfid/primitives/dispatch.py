"""
SelfID — Dispatch Primitives

The contract between the ExecutionEngine, which decides *whether* an
external call happens, and a Dispatcher, which performs it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from selfid.primitives.common import SelfIDBaseModel


class DispatchResult(SelfIDBaseModel):
    """Outcome of a single dispatched call."""

    success: bool
    return_data: bytes = b""
    error: str = ""

    @classmethod
    def ok(cls, return_data: bytes = b"") -> DispatchResult:
        return cls(success=True, return_data=return_data)

    @classmethod
    def fail(cls, error: str) -> DispatchResult:
        return cls(success=False, error=error)


@runtime_checkable
class Dispatcher(Protocol):
    """Performs an approved external call from `sender`."""

    def dispatch(
        self,
        sender: str,
        target: str,
        value: int,
        payload: bytes,
    ) -> DispatchResult: ...
