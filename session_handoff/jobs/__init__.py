"""
Job handoff and result relay.

Passes control to a downstream actor, either by replacing the current run
(``handoff``) or by starting it as a child run whose output is relayed back
(``relay``). ``workflow`` ties the steps together.
"""

from .models import (
    RunStatus,
    JobRun,
    HandoffRequest,
    RelayOutcome,
    WorkflowOutcome,
    WorkflowState,
    TERMINAL_STATUSES,
    FAILURE_STATUSES,
)

__all__ = [
    "RunStatus",
    "JobRun",
    "HandoffRequest",
    "RelayOutcome",
    "WorkflowOutcome",
    "WorkflowState",
    "TERMINAL_STATUSES",
    "FAILURE_STATUSES",
]
