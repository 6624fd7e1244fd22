"""
Data models for job handoff and result relay.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Dict

from session_handoff.config.types import HandoffMode


class RunStatus(str, Enum):
    """Lifecycle status of a platform run."""
    READY = "READY"
    RUNNING = "RUNNING"
    TIMING_OUT = "TIMING-OUT"
    ABORTING = "ABORTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED-OUT"
    ABORTED = "ABORTED"

    @property
    def is_terminal(self) -> bool:
        """No further transition happens from a terminal status."""
        return self in TERMINAL_STATUSES

    @property
    def is_failure(self) -> bool:
        return self in FAILURE_STATUSES


TERMINAL_STATUSES = frozenset(
    {RunStatus.SUCCEEDED, RunStatus.FAILED, RunStatus.TIMED_OUT, RunStatus.ABORTED}
)
FAILURE_STATUSES = frozenset({RunStatus.FAILED, RunStatus.TIMED_OUT, RunStatus.ABORTED})


class WorkflowState(Enum):
    """States of the handoff workflow."""
    PENDING = "pending"
    SEEDING = "seeding"
    PUBLISHING = "publishing"
    INVOKING = "invoking"
    TERMINATED = "terminated"
    SUPERVISING = "supervising"
    DONE = "done"
    FAILED = "failed"


@dataclass
class JobRun:
    """A platform run record. Immutable once the status is terminal."""
    run_id: str
    status: RunStatus
    output_dataset_ref: Optional[str] = None


@dataclass
class HandoffRequest:
    """What to hand off to, and how."""
    target_actor_id: str
    input_payload: Dict[str, Any] = field(default_factory=dict)
    mode: HandoffMode = HandoffMode.REPLACE
    env_overrides: Dict[str, str] = field(default_factory=dict)


@dataclass
class RelayOutcome:
    """Result of supervising a child run and relaying its output."""
    run_id: str
    status: RunStatus
    attempts: int
    timed_out: bool = False
    records_relayed: int = 0

    @property
    def child_failed(self) -> bool:
        return self.status.is_failure

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "timed_out": self.timed_out,
            "child_failed": self.child_failed,
            "records_relayed": self.records_relayed,
        }


@dataclass
class WorkflowOutcome:
    """Summary of a finished Delegate workflow."""
    mode: HandoffMode
    state: WorkflowState
    session_id: Optional[str] = None
    run_id: Optional[str] = None
    store: Optional[Dict[str, Any]] = None
    relay: Optional[RelayOutcome] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "state": self.state.value,
            "session_id": self.session_id,
            "run_id": self.run_id,
            "store": self.store,
            "relay": self.relay.to_dict() if self.relay else None,
        }
