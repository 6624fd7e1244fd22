"""
The handoff workflow: seed a session, then replace the current run with the
target actor or delegate to it and relay its results.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, NoReturn, Optional

from session_handoff.backends.interfaces import Platform
from session_handoff.config.types import HandoffMode, HandoffSettings, StoreScope, TimeoutPolicy
from session_handoff.errors import RelayTimeoutError
from session_handoff.jobs.handoff import HandoffStrategy, build_child_env, build_child_input
from session_handoff.jobs.models import HandoffRequest, WorkflowOutcome, WorkflowState
from session_handoff.jobs.relay import ResultRelay, SleepFunc
from session_handoff.session.models import CookieRecord, StorageRef, build_cookie
from session_handoff.session.publisher import SessionPublisher, store_name_for_run
from session_handoff.session.seeder import SessionSeeder

logger = logging.getLogger(__name__)


def error_record(message: str, mode: HandoffMode) -> Dict[str, Any]:
    """The structured record pushed to the output when a run fails partway."""
    return {
        "error": True,
        "message": message or "Unknown error",
        "mode": mode.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class HandoffWorkflow:
    """
    Runs one handoff.

    States: SEEDING -> PUBLISHING -> INVOKING -> TERMINATED (Replace) or
    SUPERVISING -> DONE (Delegate). PUBLISHING is skipped in Replace mode
    unless ``publish_on_replace`` is set. FAILED is entered from any state.

    The run id is passed in explicitly; see ``config.resolve_run_id``.
    """

    def __init__(
        self,
        settings: HandoffSettings,
        platform: Platform,
        run_id: Optional[str] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.settings = settings
        self.state = WorkflowState.PENDING
        self._platform = platform
        self._run_id = run_id
        self._seeder = SessionSeeder(platform)
        self._publisher = SessionPublisher(platform)
        self._strategy = HandoffStrategy(platform, memory_mbytes=settings.memory_mbytes)
        self._relay = ResultRelay(
            platform,
            poll_interval=settings.poll_interval_secs,
            max_attempts=settings.max_poll_attempts,
            sleep=sleep,
        )
        self._logger = logger.getChild("workflow")

    def _transition(self, state: WorkflowState) -> None:
        self._logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    async def run(self) -> WorkflowOutcome:
        """
        Execute the configured handoff.

        In Replace mode this never returns on success. Validation and
        seeding errors propagate without writing any output.
        """
        cookie = build_cookie(self.settings.phpsessid, self.settings.domain)

        self._transition(WorkflowState.SEEDING)
        try:
            session = await self._seeder.seed(cookie)
        except Exception:
            self._transition(WorkflowState.FAILED)
            raise

        if self.settings.mode == HandoffMode.DELEGATE:
            return await self._delegate(cookie, session.id)

        # Terminal: nothing may follow the identity transfer
        await self._replace(cookie)

    async def _replace(self, cookie: CookieRecord) -> NoReturn:
        try:
            if self.settings.publish_on_replace:
                self._transition(WorkflowState.PUBLISHING)
                await self._publisher.publish(cookie)
            self._transition(WorkflowState.INVOKING)
            request = HandoffRequest(
                target_actor_id=self.settings.target_actor_id,
                input_payload=dict(self.settings.inner_input),
                mode=HandoffMode.REPLACE,
            )
            self._transition(WorkflowState.TERMINATED)
            await self._strategy.replace(request)
        except Exception:
            self._transition(WorkflowState.FAILED)
            raise

    def _store_name(self) -> Optional[str]:
        if self.settings.store_scope == StoreScope.DEFAULT:
            return None
        return store_name_for_run(self._run_id or "local")

    async def _delegate(self, cookie: CookieRecord, session_id: str) -> WorkflowOutcome:
        mode = HandoffMode.DELEGATE
        try:
            self._transition(WorkflowState.PUBLISHING)
            store: StorageRef = await self._publisher.publish(cookie, self._store_name())

            self._transition(WorkflowState.INVOKING)
            request = HandoffRequest(
                target_actor_id=self.settings.target_actor_id,
                input_payload=build_child_input(
                    self.settings.inner_input, cookie, store, self.settings.input_shape
                ),
                mode=mode,
                env_overrides=build_child_env(cookie, store, self.settings.env_overrides),
            )
            child = await self._strategy.delegate(request)

            self._transition(WorkflowState.SUPERVISING)
            relay = await self._relay.await_and_relay(child.run_id)
            if relay.timed_out and self.settings.timeout_policy == TimeoutPolicy.FAIL:
                raise RelayTimeoutError(relay.run_id, relay.attempts)
        except Exception as e:
            self._transition(WorkflowState.FAILED)
            self._logger.error(f"Delegate handoff failed: {e}")
            await self._push_error(str(e), mode)
            raise

        self._transition(WorkflowState.DONE)
        return WorkflowOutcome(
            mode=mode,
            state=self.state,
            session_id=session_id,
            run_id=child.run_id,
            store=store.to_dict(),
            relay=relay,
        )

    async def _push_error(self, message: str, mode: HandoffMode) -> None:
        try:
            await self._platform.push_data([error_record(message, mode)])
        except Exception as push_error:
            self._logger.error(f"Could not record error in output: {push_error}")
