"""
Actor entrypoint: resolve settings, run the handoff, report the exit status.
"""

import asyncio
import logging
from pathlib import Path
from typing import Mapping, Optional

from session_handoff.backends.interfaces import Platform
from session_handoff.config.manager import SettingsManager, resolve_run_id
from session_handoff.jobs.models import WorkflowOutcome
from session_handoff.jobs.relay import SleepFunc
from session_handoff.jobs.workflow import HandoffWorkflow

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def run_handoff(
    platform: Platform,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = None,
    sleep: SleepFunc = asyncio.sleep,
) -> Optional[WorkflowOutcome]:
    """
    Run one handoff on ``platform`` and signal the outcome to it.

    Replace mode does not come back here on success. Delegate mode ends
    with ``platform.exit()``; any failure ends with ``platform.fail()``.

    Returns:
        The Delegate outcome, or None when the run failed
    """
    try:
        actor_input = await platform.get_input()
        settings = SettingsManager(environ=environ, env_file=env_file).load(actor_input)
        run_id = resolve_run_id(settings, platform.run_id)
        logger.info(
            f"Handing off to {settings.target_actor_id} in {settings.mode.value} mode (run {run_id})"
        )
        workflow = HandoffWorkflow(settings, platform, run_id=run_id, sleep=sleep)
        outcome = await workflow.run()
    except Exception as e:
        logger.error(f"Handoff failed: {e}")
        await platform.fail(str(e) or type(e).__name__)
        return None

    await platform.exit()
    return outcome


async def main() -> None:
    """Run as an Apify actor."""
    from apify import Actor

    from session_handoff.backends.apify_platform import ApifyPlatform

    configure_logging()
    await Actor.init()
    await run_handoff(ApifyPlatform())
