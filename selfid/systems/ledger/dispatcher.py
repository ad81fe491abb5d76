"""
SelfID — Ledger Dispatcher

Adapts Ledger.call() to the identity's Dispatcher protocol: ledger errors
become a failed DispatchResult instead of propagating.
"""

from __future__ import annotations

import structlog

from selfid.primitives.dispatch import DispatchResult
from selfid.systems.ledger.errors import LedgerError
from selfid.systems.ledger.ledger import Ledger

logger = structlog.get_logger("selfid.ledger.dispatcher")


class LedgerDispatcher:
    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger
        self._logger = logger.bind(component="ledger_dispatcher")

    def dispatch(self, sender: str, target: str, value: int, payload: bytes) -> DispatchResult:
        try:
            return_data = self._ledger.call(sender, target, value, payload)
        except LedgerError as exc:
            self._logger.info("dispatch_failed", sender=sender, target=target, error=str(exc))
            return DispatchResult.fail(str(exc))
        return DispatchResult.ok(return_data)
