"""
ADLabGen Run State Machine

Tracks the strictly sequential stages of a lab population run:
- Transition table check at each step
- Complete transition history for the run report
- JSON trace export

Design Principles:
1. All stage changes through explicit transitions
2. No stage begins before the prior stage completed
3. Any stage may fail; FAILED is terminal
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, List, Tuple
import json

import attrs
import structlog
from returns.result import Failure, Result, Success

logger = structlog.get_logger()


class RunStage(Enum):
    """Stage of a lab population run."""

    INITIAL = auto()
    VALIDATED = auto()
    GROUPS_PROVISIONED = auto()
    ROLES_WIRED = auto()
    IDENTITIES_GENERATED = auto()
    USERS_PROVISIONED = auto()
    EXPORTED = auto()
    FAILED = auto()


# Forward path of a run; FAILED is reachable from every non-terminal stage
STAGE_ORDER: Tuple[RunStage, ...] = (
    RunStage.INITIAL,
    RunStage.VALIDATED,
    RunStage.GROUPS_PROVISIONED,
    RunStage.ROLES_WIRED,
    RunStage.IDENTITIES_GENERATED,
    RunStage.USERS_PROVISIONED,
    RunStage.EXPORTED,
)

TERMINAL_STAGES = frozenset({RunStage.EXPORTED, RunStage.FAILED})


def _build_transition_table() -> Dict[RunStage, frozenset]:
    table: Dict[RunStage, frozenset] = {}
    for current, following in zip(STAGE_ORDER, STAGE_ORDER[1:]):
        table[current] = frozenset({following, RunStage.FAILED})
    return table


ALLOWED_TRANSITIONS = _build_transition_table()


@attrs.define(frozen=True, slots=True)
class Transition:
    """
    Immutable record of a stage transition.

    Used for the run report and audit logging.
    """

    from_stage: RunStage
    to_stage: RunStage
    timestamp: datetime
    data: Dict[str, Any] = attrs.Factory(dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "from_stage": self.from_stage.name,
            "to_stage": self.to_stage.name,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


@attrs.define
class RunStateMachine:
    """
    Stage tracker for one orchestrator run.

    Usage:
        machine = RunStateMachine()
        machine.advance(RunStage.VALIDATED, access_groups=2)
        ...
        machine.get_trace()
    """

    _stage: RunStage = attrs.field(default=RunStage.INITIAL, alias="_stage")
    _history: List[Transition] = attrs.field(factory=list, alias="_history")
    _logger: Any = attrs.field(factory=lambda: structlog.get_logger(), alias="_logger")

    @property
    def stage(self) -> RunStage:
        """Current stage (read-only)."""
        return self._stage

    @property
    def is_terminal(self) -> bool:
        return self._stage in TERMINAL_STAGES

    def advance(self, to_stage: RunStage, **data: Any) -> Result[RunStage, str]:
        """
        Move to the next stage.

        Returns:
            Success(new_stage) if the transition is allowed
            Failure(error_message) otherwise; the stage is left unchanged
        """
        allowed = ALLOWED_TRANSITIONS.get(self._stage, frozenset())
        if to_stage not in allowed:
            self._logger.warning(
                "invalid_stage_transition",
                current_stage=self._stage.name,
                requested_stage=to_stage.name,
            )
            return Failure(
                f"No transition from {self._stage.name} to {to_stage.name}"
            )

        transition = Transition(
            from_stage=self._stage,
            to_stage=to_stage,
            timestamp=datetime.now(timezone.utc),
            data={key: _serialize_value(value) for key, value in data.items()},
        )
        self._history.append(transition)

        self._logger.info(
            "stage_transition",
            from_stage=self._stage.name,
            to_stage=to_stage.name,
        )

        self._stage = to_stage
        return Success(to_stage)

    def get_trace(self) -> List[Transition]:
        """Return a copy of the transition history."""
        return list(self._history)

    def export_trace_json(self) -> str:
        """Export trace as JSON string."""
        return json.dumps(
            {
                "final_stage": self._stage.name,
                "transitions": [t.to_dict() for t in self._history],
            },
            indent=2,
        )


def _serialize_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_serialize_value(v) for v in value]
    return value


# =============================================================================
# VERIFICATION HELPERS
# =============================================================================


def verify_trace(trace: List[Transition]) -> List[str]:
    """
    Verify a trace against the allowed stage transitions.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    expected_from = RunStage.INITIAL

    for i, t in enumerate(trace):
        if t.from_stage is not expected_from:
            errors.append(
                f"Transition {i}: starts at {t.from_stage.name}, "
                f"previous stage was {expected_from.name}"
            )
        if t.to_stage not in ALLOWED_TRANSITIONS.get(t.from_stage, frozenset()):
            errors.append(
                f"Transition {i}: Invalid transition {t.from_stage.name} "
                f"--> {t.to_stage.name}"
            )
        expected_from = t.to_stage

    return errors
