#!/usr/bin/env python3
"""
Command line interface for the session handoff actor.

Examples:
    # Run as an Apify actor (reads the actor input)
    session-handoff run

    # Dry run in-process against a stub target actor
    session-handoff local --phpsessid abc123 --domain .example.com --mode delegate

    # Show the resolved settings for an input file
    session-handoff show-settings --input-file input.json
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import click

from session_handoff.backends.memory import LocalPlatform
from session_handoff.config.manager import SettingsManager
from session_handoff.config.types import (
    DEFAULT_TARGET_ACTOR_ID,
    HandoffMode,
    InputShape,
    StoreScope,
)
from session_handoff.errors import HandoffWorkflowError, ProcessReplaced
from session_handoff.main import configure_logging, main as actor_main, run_handoff

logger = logging.getLogger(__name__)


def make_stub_actor(record_count: int, fail: bool = False):
    """A target actor that echoes what it received as output records."""

    async def stub_actor(platform: LocalPlatform) -> None:
        run_input = await platform.get_input()
        session = run_input.get("session", run_input)
        for index in range(record_count):
            await platform.push_data([
                {
                    "index": index,
                    "domain": session.get("domain"),
                    "receivedCookie": bool(session.get("phpsessid")),
                    "envCookie": "PHPSESSID" in platform.env,
                }
            ])
        if fail:
            await platform.fail("Stub actor failed on purpose")

    return stub_actor


async def run_local(actor_input: Dict[str, Any], record_count: int, fail: bool) -> Dict[str, Any]:
    """Run the handoff against an in-process platform and summarize it."""
    target = actor_input.get("targetActorId") or DEFAULT_TARGET_ACTOR_ID
    platform = LocalPlatform(run_input=actor_input)
    platform.register_actor(target, make_stub_actor(record_count, fail))

    summary: Dict[str, Any] = {}
    try:
        outcome = await run_handoff(platform, environ={})
        summary["outcome"] = outcome.to_dict() if outcome else None
    except ProcessReplaced as replaced:
        summary["replaced_by"] = replaced.target_actor_id
    finally:
        await platform.shutdown()

    summary["exit_code"] = platform.exit_code
    summary["status_message"] = platform.status_message
    summary["output"] = await platform.dataset.read_all()
    return summary


@click.group(help="Seed a session cookie and hand off to another actor")
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level):
    configure_logging(log_level)


@cli.command()
def run():
    """Run as an Apify actor."""
    asyncio.run(actor_main())


@cli.command()
@click.option("--phpsessid", required=True, help="Session cookie value")
@click.option("--domain", required=True, help='Cookie domain, e.g. ".example.com"')
@click.option("--mode", type=click.Choice([m.value for m in HandoffMode]), default=HandoffMode.DELEGATE.value)
@click.option("--target", default=DEFAULT_TARGET_ACTOR_ID, help="Target actor id")
@click.option("--input", "inner_input", default="{}", help="Inner input as JSON")
@click.option("--store-scope", type=click.Choice([s.value for s in StoreScope]), default=StoreScope.RUN.value)
@click.option("--input-shape", type=click.Choice([s.value for s in InputShape]), default=InputShape.MERGED.value)
@click.option("--child-records", type=int, default=3, help="Records the stub actor produces")
@click.option("--child-fail/--child-succeed", default=False, help="Make the stub actor fail")
@click.option("--poll-interval", type=float, default=0.1, help="Seconds between status polls")
@click.option("--max-polls", type=int, default=60, help="Maximum number of status polls")
def local(phpsessid, domain, mode, target, inner_input, store_scope, input_shape,
          child_records, child_fail, poll_interval, max_polls):
    """Dry run the handoff in-process against a stub target actor."""
    try:
        parsed_input = json.loads(inner_input)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Inner input is not valid JSON: {e}", param_hint="--input")

    actor_input = {
        "phpsessid": phpsessid,
        "domain": domain,
        "mode": mode,
        "targetActorId": target,
        "innerInput": parsed_input,
        "storeScope": store_scope,
        "inputShape": input_shape,
        "pollIntervalSecs": poll_interval,
        "maxPollAttempts": max_polls,
    }
    summary = asyncio.run(run_local(actor_input, child_records, child_fail))
    click.echo(json.dumps(summary, indent=2))
    if summary["exit_code"]:
        raise SystemExit(summary["exit_code"])


@cli.command("show-settings")
@click.option("--input-file", type=click.Path(exists=True, dir_okay=False), help="Actor input JSON file")
def show_settings(input_file: Optional[str]):
    """Print the resolved settings with the cookie value masked."""
    actor_input: Dict[str, Any] = {}
    if input_file:
        with open(input_file, "r") as f:
            actor_input = json.load(f)
    try:
        settings = SettingsManager().load(actor_input)
    except HandoffWorkflowError as e:
        click.echo(f"Error: {e.message}")
        raise SystemExit(2)
    click.echo(json.dumps(settings.masked_dict(), indent=2))


def main():
    cli()


if __name__ == "__main__":
    main()
