"""
Configuration package for the session handoff workflow.
"""

from session_handoff.config.manager import SettingsManager, resolve_run_id
from session_handoff.config.types import (
    HandoffSettings,
    HandoffMode,
    StoreScope,
    InputShape,
    TimeoutPolicy,
    DEFAULT_TARGET_ACTOR_ID,
    DEFAULT_CHILD_MEMORY_MBYTES,
    DEFAULT_POLL_INTERVAL_SECS,
    DEFAULT_MAX_POLL_ATTEMPTS,
)

__all__ = [
    "SettingsManager",
    "resolve_run_id",
    "HandoffSettings",
    "HandoffMode",
    "StoreScope",
    "InputShape",
    "TimeoutPolicy",
    "DEFAULT_TARGET_ACTOR_ID",
    "DEFAULT_CHILD_MEMORY_MBYTES",
    "DEFAULT_POLL_INTERVAL_SECS",
    "DEFAULT_MAX_POLL_ATTEMPTS",
]
