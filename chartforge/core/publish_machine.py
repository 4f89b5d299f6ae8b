"""Deterministic publish state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Terminal states cannot be left
- Every transition recorded in order, with an optional detail string
"""

from __future__ import annotations

import logging

from chartforge.core.errors import InvalidTransitionError
from chartforge.models.publish import (
    SUCCESS_STATES,
    VALID_TRANSITIONS,
    PublishState,
    PublishTransition,
)

logger = logging.getLogger(__name__)


class PublishMachine:
    """Tracks one publish invocation through its states."""

    def __init__(self) -> None:
        self._state = PublishState.IDLE
        self._history: list[PublishTransition] = []
        self.failed_from: PublishState | None = None

    @property
    def state(self) -> PublishState:
        return self._state

    @property
    def history(self) -> list[PublishTransition]:
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self._state]

    @property
    def succeeded(self) -> bool:
        return self._state in SUCCESS_STATES

    def transition(self, target: PublishState, detail: str = "") -> PublishTransition:
        """Move to ``target``, raising ``InvalidTransitionError`` if not allowed."""
        current = self._state
        allowed = VALID_TRANSITIONS.get(current, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition publish from {current.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        record = PublishTransition(from_state=current, to_state=target, detail=detail)
        self._history.append(record)
        self._state = target
        logger.debug("Publish %s->%s %s", current.value, target.value, detail)
        return record

    def fail(self, error: BaseException) -> PublishTransition:
        """Move to FAILED from any non-terminal state, remembering where."""
        current = self._state
        record = self.transition(PublishState.FAILED, f"{type(error).__name__}: {error}")
        self.failed_from = current
        return record
