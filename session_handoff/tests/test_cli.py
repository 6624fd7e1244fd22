"""Tests for the command line interface."""

import json

import pytest
from click.testing import CliRunner

from session_handoff.cli import cli, run_local


@pytest.fixture
def runner(monkeypatch, tmp_path):
    # Keep a stray .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def test_local_delegate(runner):
    result = runner.invoke(
        cli,
        [
            "--log-level", "ERROR",
            "local",
            "--phpsessid", "abc123",
            "--domain", ".example.com",
            "--mode", "delegate",
            "--child-records", "2",
            "--poll-interval", "0.01",
        ],
    )

    assert result.exit_code == 0, result.output
    summary = json.loads(result.output)
    assert summary["exit_code"] == 0
    assert summary["outcome"]["relay"]["records_relayed"] == 2
    assert summary["output"][0]["receivedCookie"] is True
    assert summary["output"][0]["envCookie"] is True


def test_local_nested_shape(runner):
    result = runner.invoke(
        cli,
        [
            "--log-level", "ERROR",
            "local",
            "--phpsessid", "abc123",
            "--domain", ".example.com",
            "--input-shape", "nested",
            "--child-records", "1",
            "--poll-interval", "0.01",
        ],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["output"][0]["domain"] == ".example.com"


def test_local_replace(runner):
    result = runner.invoke(
        cli,
        ["--log-level", "ERROR", "local", "--phpsessid", "abc123", "--domain", ".example.com", "--mode", "replace", "--child-records", "1"],
    )

    assert result.exit_code == 0, result.output
    summary = json.loads(result.output)
    assert summary["replaced_by"] == "dCWf2xghxeZgpcrsQ"
    # Target ran against the caller's own dataset
    assert len(summary["output"]) == 1


def test_local_bad_json(runner):
    result = runner.invoke(cli, ["local", "--phpsessid", "a", "--domain", "d", "--input", "{nope"])

    assert result.exit_code != 0
    assert "not valid JSON" in result.output


@pytest.mark.asyncio
async def test_run_local_child_failure_still_relays():
    summary = await run_local(
        {
            "phpsessid": "abc",
            "domain": "d",
            "mode": "delegate",
            "pollIntervalSecs": 0.01,
        },
        record_count=1,
        fail=True,
    )

    assert summary["exit_code"] == 0
    assert summary["outcome"]["relay"]["child_failed"] is True
    assert len(summary["output"]) == 1


def test_show_settings_masks_cookie(runner, tmp_path):
    input_file = tmp_path / "input.json"
    input_file.write_text(json.dumps({"phpsessid": "supersecret", "domain": "d", "mode": "delegate"}))

    result = runner.invoke(cli, ["show-settings", "--input-file", str(input_file)])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["phpsessid"] == "supe…"
    assert data["mode"] == "delegate"


def test_show_settings_invalid(runner, tmp_path):
    input_file = tmp_path / "input.json"
    input_file.write_text(json.dumps({"mode": "teleport"}))

    result = runner.invoke(cli, ["show-settings", "--input-file", str(input_file)])

    assert result.exit_code == 2
    assert "Error" in result.output
