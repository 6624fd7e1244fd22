"""
Supervises a child run until it settles and relays its output records.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Tuple

from session_handoff.backends.interfaces import Platform
from session_handoff.config.types import DEFAULT_MAX_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL_SECS
from session_handoff.errors import RelayIOError
from session_handoff.jobs.models import JobRun, RelayOutcome

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class ResultRelay:
    """
    Polls a child run at a fixed interval and copies its dataset into the
    caller's own output.

    Polling is bounded: after ``max_attempts`` reads without a terminal
    status the relay stops waiting and reads whatever output exists. The
    child run is never aborted.
    """

    def __init__(
        self,
        platform: Platform,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECS,
        max_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Args:
            platform: Platform hosting both runs
            poll_interval: Seconds between status reads
            max_attempts: Maximum number of status reads
            sleep: Awaitable sleep, replaceable in tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._platform = platform
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._logger = logger.getChild("relay")

    async def wait_for_run(self, run_id: str) -> Tuple[JobRun, int]:
        """
        Poll until the run is terminal or the attempt cap is reached.

        Returns:
            The last run record read and the number of reads performed
        """
        attempts = 0
        while True:
            run = await self._platform.get_run(run_id)
            attempts += 1
            self._logger.debug(f"Run {run_id} status {run.status.value} (poll {attempts}/{self._max_attempts})")
            if run.status.is_terminal or attempts >= self._max_attempts:
                return run, attempts
            await self._sleep(self._poll_interval)

    async def relay_output(self, run: JobRun) -> int:
        """
        Append every record of the run's output dataset to our own output.

        Returns:
            Number of records relayed

        Raises:
            RelayIOError: If reading or writing records fails
        """
        if not run.output_dataset_ref:
            self._logger.info(f"Run {run.run_id} exposes no output dataset")
            return 0

        try:
            dataset = await self._platform.open_dataset(run.output_dataset_ref)
            records = await dataset.read_all()
            if records:
                await self._platform.push_data(list(records))
        except Exception as e:
            raise RelayIOError(f"Failed to relay output of run {run.run_id}: {e}", run_id=run.run_id) from e

        self._logger.info(f"Relayed {len(records)} records from run {run.run_id}")
        return len(records)

    async def await_and_relay(self, run_id: str) -> RelayOutcome:
        """
        Wait for ``run_id`` to settle, then relay its output.

        A timeout or a failed child is reported on the outcome, not raised.
        """
        run, attempts = await self.wait_for_run(run_id)
        timed_out = not run.status.is_terminal

        if timed_out:
            self._logger.warning(
                f"Run {run_id} still {run.status.value} after {attempts} polls; "
                f"reading available output anyway"
            )
        elif run.status.is_failure:
            self._logger.error(f"Run {run_id} finished with status {run.status.value}; reading partial output")
        else:
            self._logger.info(f"Run {run_id} finished with status {run.status.value}")

        records_relayed = await self.relay_output(run)
        return RelayOutcome(
            run_id=run_id,
            status=run.status,
            attempts=attempts,
            timed_out=timed_out,
            records_relayed=records_relayed,
        )
