"""
SelfID — Execution Engine

Multi-party approval of arbitrary external calls.

Lifecycle of a request:
  execute()   -- anyone creates a PENDING request; a creator holding
                 Management or Action immediately casts its own approval
  approve()   -- Management/Action holders vote; affirmative votes are
                 counted against the current approval threshold
  dispatch    -- once approvals >= threshold the call is made exactly once
                 through the Dispatcher; PENDING -> EXECUTED or FAILED

EXECUTED and FAILED are terminal. There is no cancel and no retry: a failed
request is dead and the action must be requested again.

Dispatch isolation:
  The request is marked in flight before the Dispatcher runs, so a callee
  that re-enters approve() sees it as no longer pending. The outcome of the
  call only selects between the two terminal states, and a Dispatcher that
  raises is treated exactly like one that reports failure. Dispatch failure
  never propagates out of execute() or approve().

The threshold is read at vote time, so changing it affects every request
that is still pending, including ones created before the change.
"""

from __future__ import annotations

import structlog

from selfid.primitives.common import normalise_address
from selfid.primitives.dispatch import DispatchResult, Dispatcher
from selfid.systems.identity.access import AccessPolicy
from selfid.systems.identity.errors import InvalidThreshold, UnknownRequest
from selfid.systems.identity.events import EventBus, IdentityEventType
from selfid.systems.identity.types import ExecutionRequest, RequestState

logger = structlog.get_logger("selfid.identity.execution")


class ExecutionEngine:
    """
    Request/vote/dispatch state machine for one identity.

    `origin` is the identity's own address; dispatched calls are made from it.
    """

    def __init__(
        self,
        origin: str,
        policy: AccessPolicy,
        dispatcher: Dispatcher,
        events: EventBus,
        approval_threshold: int = 1,
    ) -> None:
        if approval_threshold < 1:
            raise InvalidThreshold(f"Approval threshold must be at least 1, got {approval_threshold}")
        self._origin = origin
        self._policy = policy
        self._dispatcher = dispatcher
        self._events = events
        self._approval_threshold = approval_threshold
        self._requests: dict[int, ExecutionRequest] = {}
        self._tasks_count: int = 0
        self._in_flight: set[int] = set()
        self._logger = logger.bind(component="execution_engine", identity=origin)

    # ─── Properties ──────────────────────────────────────────────────

    @property
    def tasks_count(self) -> int:
        """Number of requests ever created. Also the next request id."""
        return self._tasks_count

    @property
    def approval_threshold(self) -> int:
        return self._approval_threshold

    # ─── Requests ────────────────────────────────────────────────────

    def execute(self, target: str, value: int, payload: bytes, *, sender: str) -> int:
        """
        Request an external call. Open to any caller.

        Returns the new request id. If the caller may vote, its approval is
        recorded straight away and may dispatch the call within this call.
        """
        request = self._create_request(target, value, payload, requester=sender)
        if self._policy.can_vote(sender):
            self._record_vote(request, normalise_address(sender), True)
        return request.id

    def approve(self, execution_id: int, decision: bool, *, sender: str) -> RequestState:
        """
        Vote on a pending request. Returns the request's state afterwards.

        Raises Unauthorized unless the caller holds Management or Action, and
        UnknownRequest if the id is unknown or the request is no longer pending.
        """
        self._policy.require_voter(sender)
        request = self._require_pending(execution_id)
        # One vote per account regardless of address letter case
        self._record_vote(request, normalise_address(sender), bool(decision))
        return request.state

    def set_approval_threshold(self, threshold: int, *, sender: str) -> None:
        """Change the number of approvals required. Management only."""
        self._policy.require_manager(sender)
        if threshold < 1:
            raise InvalidThreshold(f"Approval threshold must be at least 1, got {threshold}")

        previous = self._approval_threshold
        self._approval_threshold = threshold
        self._events.emit(IdentityEventType.THRESHOLD_CHANGED, previous=previous, threshold=threshold)
        self._logger.info("threshold_changed", previous=previous, threshold=threshold, sender=sender)

    def get_request(self, execution_id: int) -> ExecutionRequest:
        """A copy of the request in any state. Raises UnknownRequest if never issued."""
        request = self._requests.get(execution_id)
        if request is None:
            raise UnknownRequest(f"No execution request with id {execution_id}")
        return request.model_copy(deep=True)

    def pending_ids(self) -> list[int]:
        return [
            rid for rid, request in self._requests.items()
            if request.state is RequestState.PENDING and rid not in self._in_flight
        ]

    # ─── Internal ────────────────────────────────────────────────────

    def _create_request(
        self,
        target: str,
        value: int,
        payload: bytes,
        requester: str,
    ) -> ExecutionRequest:
        """Allocate an id and store a fresh PENDING request with no votes."""
        target = normalise_address(target)
        if value < 0:
            raise ValueError(f"Value must be non-negative: {value}")

        request = ExecutionRequest(
            id=self._tasks_count,
            target=target,
            value=value,
            payload=bytes(payload),
            requester=requester,
        )
        self._requests[request.id] = request
        self._tasks_count += 1

        self._events.emit(
            IdentityEventType.EXECUTION_REQUESTED,
            execution_id=request.id,
            target=target,
            value=value,
            payload=request.payload,
        )
        self._logger.info(
            "execution_requested",
            execution_id=request.id,
            target=target,
            value=value,
            payload_length=len(request.payload),
            requester=requester,
        )
        return request

    def _require_pending(self, execution_id: int) -> ExecutionRequest:
        request = self._requests.get(execution_id)
        if (
            request is None
            or request.state.is_terminal
            or execution_id in self._in_flight
        ):
            raise UnknownRequest(f"No pending execution request with id {execution_id}")
        return request

    def _record_vote(self, request: ExecutionRequest, voter: str, decision: bool) -> None:
        """Store a vote, announce it, and dispatch if the threshold is now met."""
        request.votes[voter] = decision
        self._events.emit(
            IdentityEventType.APPROVED,
            execution_id=request.id,
            voter=voter,
            approved=decision,
        )
        self._logger.info(
            "execution_vote_recorded",
            execution_id=request.id,
            voter=voter,
            approved=decision,
            approvals=request.approvals,
            threshold=self._approval_threshold,
        )

        if not decision:
            return
        if request.approvals >= self._approval_threshold and request.state is RequestState.PENDING:
            self._dispatch(request)

    def _dispatch(self, request: ExecutionRequest) -> None:
        self._in_flight.add(request.id)
        try:
            try:
                result = self._dispatcher.dispatch(
                    self._origin,
                    request.target,
                    request.value,
                    request.payload,
                )
            except Exception as exc:
                result = DispatchResult.fail(f"{type(exc).__name__}: {exc}")
        finally:
            self._in_flight.discard(request.id)

        if result.success:
            request.state = RequestState.EXECUTED
            self._events.emit(
                IdentityEventType.EXECUTED,
                execution_id=request.id,
                target=request.target,
                value=request.value,
                payload=request.payload,
            )
            self._logger.info("execution_dispatched", execution_id=request.id, target=request.target)
        else:
            request.state = RequestState.FAILED
            request.error = result.error
            self._events.emit(
                IdentityEventType.EXECUTION_FAILED,
                execution_id=request.id,
                target=request.target,
                value=request.value,
                payload=request.payload,
                error=result.error,
            )
            self._logger.warning(
                "execution_failed",
                execution_id=request.id,
                target=request.target,
                error=result.error,
            )
