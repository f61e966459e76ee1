"""Per-action status tracking.

Each user action has exactly one status at a time, so combinations such as
"uploading and idle" cannot occur.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class ActionKind(str, Enum):
    """User actions of the reconciliation console."""

    LOAD_PERIODS = "load_periods"
    LOAD_PERIOD_DATA = "load_period_data"
    CREATE_PERIOD = "create_period"
    BATCH_UPLOAD = "batch_upload"
    ADJUSTMENT_UPLOAD = "adjustment_upload"
    PROCESS = "process"
    PROCESS_ADJUSTMENTS = "process_adjustments"
    EXPORT = "export"
    SCHEME_DETAIL = "scheme_detail"
    SCHEME_EXPORT = "scheme_export"
    RESET = "reset"
    DELETE = "delete"
    CLEAR_FILES = "clear_files"
    CLEAR_ADJUSTMENTS = "clear_adjustments"
    ROSTER_UPLOAD = "roster_upload"
    ROSTER_IMPORT = "roster_import"
    ROSTER_TEMPLATE = "roster_template"


class ActionStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    ERROR = "error"


@dataclass(frozen=True)
class ActionState:
    status: ActionStatus = ActionStatus.IDLE
    error: str | None = None


class ActionBusyError(RuntimeError):
    """The action is already running."""

    def __init__(self, kind: ActionKind):
        super().__init__(f"{kind.value} already in flight")
        self.kind = kind


class ActionTracker:
    """Holds the current state of every action."""

    def __init__(self) -> None:
        self._states: dict[ActionKind, ActionState] = {}
        self._runs: dict[ActionKind, int] = {}

    def state(self, kind: ActionKind) -> ActionState:
        return self._states.get(kind, ActionState())

    def status(self, kind: ActionKind) -> ActionStatus:
        return self.state(kind).status

    def is_in_flight(self, kind: ActionKind) -> bool:
        return self.status(kind) is ActionStatus.IN_FLIGHT

    def in_flight(self) -> list[ActionKind]:
        return [k for k, s in self._states.items() if s.status is ActionStatus.IN_FLIGHT]

    @asynccontextmanager
    async def track(self, kind: ActionKind, supersede: bool = False) -> AsyncIterator[None]:
        """Mark ``kind`` in flight for the duration of the block.

        On exception the action moves to ERROR and the exception propagates;
        otherwise it returns to IDLE. With ``supersede`` a new run may start
        while an older one is still in flight; the newest run then owns the
        state and older runs finish without touching it.

        Raises:
            ActionBusyError: if the action is already in flight and
                ``supersede`` is false.
        """
        if self.is_in_flight(kind) and not supersede:
            raise ActionBusyError(kind)

        run = self._runs.get(kind, 0) + 1
        self._runs[kind] = run
        self._states[kind] = ActionState(ActionStatus.IN_FLIGHT)
        logger.debug("action_started", action=kind.value)
        try:
            yield
        except BaseException as e:
            if self._runs[kind] == run:
                self._states[kind] = ActionState(ActionStatus.ERROR, str(e) or type(e).__name__)
            logger.debug("action_failed", action=kind.value, error=str(e))
            raise
        else:
            if self._runs[kind] == run:
                self._states[kind] = ActionState(ActionStatus.IDLE)
            logger.debug("action_finished", action=kind.value)
