"""
Session Handoff

Seeds a crawler session pool with one authentication cookie and passes
control to another actor, either replacing the current run or starting the
actor as a child run and relaying its output.
"""

from session_handoff.config import HandoffSettings, HandoffMode, SettingsManager
from session_handoff.errors import (
    HandoffWorkflowError,
    InvalidInputError,
    SeedingError,
    HandoffError,
    RelayIOError,
    RelayTimeoutError,
    ProcessReplaced,
)
from session_handoff.jobs.workflow import HandoffWorkflow
from session_handoff.main import run_handoff

__all__ = [
    "HandoffSettings",
    "HandoffMode",
    "SettingsManager",
    "HandoffWorkflowError",
    "InvalidInputError",
    "SeedingError",
    "HandoffError",
    "RelayIOError",
    "RelayTimeoutError",
    "ProcessReplaced",
    "HandoffWorkflow",
    "run_handoff",
]
