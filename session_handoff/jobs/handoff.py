"""
Passing control to the target actor: Replace (metamorph) or Delegate
(child run).
"""

import logging
from typing import Any, Dict, NoReturn, Optional

from session_handoff.backends.interfaces import Platform
from session_handoff.config.types import DEFAULT_CHILD_MEMORY_MBYTES, HandoffMode, InputShape
from session_handoff.errors import HandoffError
from session_handoff.jobs.models import HandoffRequest, JobRun
from session_handoff.session.models import CookieRecord, StorageRef

logger = logging.getLogger(__name__)

# Environment values a target actor may read instead of its input
ENV_COOKIE_VALUE = "PHPSESSID"
ENV_COOKIE_DOMAIN = "COOKIE_DOMAIN"
ENV_STORE_NAME = "SESSION_STORE_NAME"
ENV_STORE_ID = "SESSION_STORE_ID"

# Key holding the session fields when the input shape is nested
NESTED_SESSION_KEY = "session"


def build_child_input(
    inner_input: Dict[str, Any],
    cookie: CookieRecord,
    store: Optional[StorageRef] = None,
    shape: InputShape = InputShape.MERGED,
) -> Dict[str, Any]:
    """
    Combine the caller's inner input with the session fields.

    With ``MERGED`` the fields are added at the top level and win over
    same-named inner keys. With ``NESTED`` they live under ``"session"``
    and the inner input is left untouched.
    """
    session_fields: Dict[str, Any] = {
        "phpsessid": cookie.value,
        "domain": cookie.domain,
        "cookies": [cookie.to_dict()],
    }
    if store is not None:
        session_fields["sessionStoreName"] = store.name
        session_fields["sessionStoreId"] = store.id

    if shape == InputShape.NESTED:
        return {**inner_input, NESTED_SESSION_KEY: session_fields}
    return {**inner_input, **session_fields}


def build_child_env(
    cookie: CookieRecord,
    store: Optional[StorageRef] = None,
    overrides: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Out-of-band environment values for the child run; overrides win."""
    env = {
        ENV_COOKIE_VALUE: cookie.value,
        ENV_COOKIE_DOMAIN: cookie.domain,
    }
    if store is not None:
        if store.name:
            env[ENV_STORE_NAME] = store.name
        if store.id:
            env[ENV_STORE_ID] = store.id
    env.update(overrides or {})
    return env


class HandoffStrategy:
    """Executes a HandoffRequest against the platform."""

    def __init__(self, platform: Platform, memory_mbytes: int = DEFAULT_CHILD_MEMORY_MBYTES):
        self._platform = platform
        self._memory_mbytes = memory_mbytes
        self._logger = logger.getChild("strategy")

    async def replace(self, request: HandoffRequest) -> NoReturn:
        """
        Replace the current run with the target actor.

        This is a terminal transition: on success the call does not return
        and every storage of the current run moves to the target.

        Raises:
            HandoffError: If the platform rejects the identity transfer
        """
        self._logger.info(f"Replacing current run with actor {request.target_actor_id}")
        try:
            await self._platform.replace_identity(request.target_actor_id, request.input_payload)
        except Exception as e:
            raise HandoffError(
                f"Identity transfer to {request.target_actor_id} failed: {e}",
                mode=HandoffMode.REPLACE.value,
                target=request.target_actor_id,
            ) from e
        raise HandoffError(
            f"Identity transfer to {request.target_actor_id} returned control to the caller",
            mode=HandoffMode.REPLACE.value,
            target=request.target_actor_id,
        )

    async def delegate(self, request: HandoffRequest) -> JobRun:
        """
        Start the target actor as a child run.

        Raises:
            HandoffError: If the child run cannot be started
        """
        self._logger.info(
            f"Starting actor {request.target_actor_id} as child run ({self._memory_mbytes} MB)"
        )
        try:
            run = await self._platform.invoke_child(
                request.target_actor_id,
                request.input_payload,
                memory_mbytes=self._memory_mbytes,
                env=request.env_overrides,
            )
        except Exception as e:
            raise HandoffError(
                f"Failed to start actor {request.target_actor_id}: {e}",
                mode=HandoffMode.DELEGATE.value,
                target=request.target_actor_id,
            ) from e

        self._logger.info(f"Child run {run.run_id} started with status {run.status.value}")
        return run
