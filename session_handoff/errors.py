"""Exceptions raised by the session handoff workflow."""

from typing import Optional, Any, Dict


class HandoffWorkflowError(Exception):
    """Base exception for all handoff workflow errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInputError(HandoffWorkflowError):
    """Raised when the cookie value or domain is missing or empty."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.field = field


class SeedingError(HandoffWorkflowError):
    """Raised when the session pool or cookie attachment fails."""


class HandoffError(HandoffWorkflowError):
    """Raised when the identity transfer or the child invocation fails."""

    def __init__(self, message: str, mode: Optional[str] = None, target: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.mode = mode
        self.target = target


class RelayIOError(HandoffWorkflowError):
    """Raised when reading child output or writing to the output sink fails."""

    def __init__(self, message: str, run_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.run_id = run_id


class RelayTimeoutError(HandoffWorkflowError):
    """Raised when polling gives up and the timeout policy is 'fail'."""

    def __init__(self, run_id: str, attempts: int, details: Optional[Dict[str, Any]] = None):
        message = f"Run {run_id} did not reach a terminal status after {attempts} polls"
        super().__init__(message, details)
        self.run_id = run_id
        self.attempts = attempts


class ProcessReplaced(BaseException):
    """
    Signals that the current run has been replaced by another actor.

    Derives from BaseException like SystemExit so that ``except Exception``
    handlers cannot intercept it. Nothing may run after it is raised.
    """

    def __init__(self, target_actor_id: str):
        super().__init__(f"Process replaced by actor {target_actor_id}")
        self.target_actor_id = target_actor_id
