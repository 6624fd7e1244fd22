"""Tests for the actor entrypoint."""

import pytest

from session_handoff.tests.platform_double import ScriptedPlatform
from session_handoff.errors import ProcessReplaced
from session_handoff.jobs.models import RunStatus
from session_handoff.main import run_handoff


@pytest.fixture
def no_env_file(tmp_path):
    return tmp_path / "missing.env"


@pytest.mark.asyncio
async def test_delegate_success_exits_cleanly(sleep, no_env_file):
    platform = ScriptedPlatform(
        statuses=[RunStatus.RUNNING, RunStatus.SUCCEEDED],
        child_records=[{"a": 1}],
        run_input={"phpsessid": "abc", "domain": ".example.com", "mode": "delegate"},
    )

    outcome = await run_handoff(platform, environ={}, env_file=no_env_file, sleep=sleep)

    assert outcome.relay.records_relayed == 1
    assert platform.exit_code == 0
    assert platform.calls[-1] == ("exit",)
    # Run-scoped store derived from the platform run id
    assert "session-platform-run-1" in platform.stores


@pytest.mark.asyncio
async def test_explicit_run_id_beats_platform(sleep, no_env_file):
    platform = ScriptedPlatform(
        run_input={"phpsessid": "abc", "domain": "d", "mode": "delegate", "runId": "mine"},
    )

    await run_handoff(platform, environ={}, env_file=no_env_file, sleep=sleep)

    assert "session-mine" in platform.stores


@pytest.mark.asyncio
async def test_child_invocation_error_reports_failure(sleep, no_env_file):
    platform = ScriptedPlatform(run_input={"phpsessid": "abc", "domain": "d", "mode": "delegate"})
    platform.invoke_error = RuntimeError("target missing")

    outcome = await run_handoff(platform, environ={}, env_file=no_env_file, sleep=sleep)

    assert outcome is None
    assert platform.exit_code == 1
    assert "target missing" in platform.fail_message
    error_records = [r for r in platform.pushed if r.get("error") is True]
    assert len(error_records) == 1
    assert error_records[0]["message"]


@pytest.mark.asyncio
async def test_invalid_input_fails_without_output(sleep, no_env_file):
    platform = ScriptedPlatform(run_input={"phpsessid": "", "domain": "d"})

    outcome = await run_handoff(platform, environ={}, env_file=no_env_file, sleep=sleep)

    assert outcome is None
    assert platform.exit_code == 1
    assert platform.pushed == []
    assert [c[0] for c in platform.calls] == ["fail"]


@pytest.mark.asyncio
async def test_replace_never_reaches_exit(sleep, no_env_file):
    platform = ScriptedPlatform(run_input={"phpsessid": "abc", "domain": "d"})

    with pytest.raises(ProcessReplaced):
        await run_handoff(platform, environ={}, env_file=no_env_file, sleep=sleep)

    assert platform.exit_code is None
    assert platform.calls[-1][0] == "replace_identity"
