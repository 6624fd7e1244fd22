import shutil
import tempfile
import unittest
from pathlib import Path

from session_handoff.config.manager import SettingsManager, resolve_run_id
from session_handoff.config.types import (
    DEFAULT_TARGET_ACTOR_ID,
    HandoffMode,
    HandoffSettings,
    StoreScope,
    TimeoutPolicy,
)
from session_handoff.errors import InvalidInputError


class TestSettingsManager(unittest.TestCase):
    """Test cases for the SettingsManager class."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.missing_env_file = Path(self.temp_dir) / "missing.env"

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def create_env_file(self, content):
        env_file = Path(self.temp_dir) / ".env"
        env_file.write_text(content)
        return env_file

    def test_env_mapping(self):
        import session_handoff

        self.assertIs(session_handoff.SettingsManager, SettingsManager)
        self.assertEqual(SettingsManager.ENV_MAPPING["HANDOFF_MODE"], "mode")
        self.assertEqual(SettingsManager.ENV_MAPPING["HANDOFF_RUN_ID"], "run_id")
        self.assertEqual(len(SettingsManager.ENV_MAPPING), len(SettingsManager.DEFAULT_SETTINGS))

    def test_defaults(self):
        settings = SettingsManager(environ={}, env_file=self.missing_env_file).load(
            {"phpsessid": "abc", "domain": ".example.com"}
        )

        self.assertEqual(settings.target_actor_id, DEFAULT_TARGET_ACTOR_ID)
        self.assertEqual(settings.mode, HandoffMode.REPLACE)
        self.assertEqual(settings.store_scope, StoreScope.RUN)
        self.assertEqual(settings.timeout_policy, TimeoutPolicy.PROCEED)
        self.assertEqual(settings.inner_input, {})
        self.assertEqual(settings.memory_mbytes, 4096)
        self.assertEqual(settings.poll_interval_secs, 2.0)
        self.assertEqual(settings.max_poll_attempts, 60)

    def test_environment_values(self):
        environ = {
            "HANDOFF_MODE": "DELEGATE",
            "HANDOFF_MAX_POLL_ATTEMPTS": "5",
            "HANDOFF_PUBLISH_ON_REPLACE": "true",
            "HANDOFF_ENV_OVERRIDES": '{"A": "1"}',
            "UNRELATED": "x",
        }
        settings = SettingsManager(environ=environ, env_file=self.missing_env_file).load({})

        self.assertEqual(settings.mode, HandoffMode.DELEGATE)
        self.assertEqual(settings.max_poll_attempts, 5)
        self.assertTrue(settings.publish_on_replace)
        self.assertEqual(settings.env_overrides, {"A": "1"})

    def test_precedence_env_file_then_environ_then_input(self):
        env_file = self.create_env_file(
            '# comment\nHANDOFF_TARGET_ACTOR_ID="from-file"\nHANDOFF_MEMORY_MBYTES=1024\n'
        )
        manager = SettingsManager(environ={"HANDOFF_MEMORY_MBYTES": "2048"}, env_file=env_file)

        settings = manager.load({"memoryMbytes": 8192})

        self.assertEqual(settings.target_actor_id, "from-file")
        self.assertEqual(settings.memory_mbytes, 8192)

    def test_environ_beats_env_file(self):
        env_file = self.create_env_file("HANDOFF_MEMORY_MBYTES=1024\n")
        settings = SettingsManager(environ={"HANDOFF_MEMORY_MBYTES": "2048"}, env_file=env_file).load({})

        self.assertEqual(settings.memory_mbytes, 2048)

    def test_bad_env_value_is_ignored(self):
        settings = SettingsManager(
            environ={"HANDOFF_MAX_POLL_ATTEMPTS": "many"}, env_file=self.missing_env_file
        ).load({})

        self.assertEqual(settings.max_poll_attempts, 60)

    def test_null_input_values_do_not_override(self):
        settings = SettingsManager(environ={}, env_file=self.missing_env_file).load(
            {"innerInput": None, "targetActorId": None}
        )

        self.assertEqual(settings.inner_input, {})
        self.assertEqual(settings.target_actor_id, DEFAULT_TARGET_ACTOR_ID)

    def test_invalid_choice_raises_invalid_input(self):
        with self.assertRaises(InvalidInputError):
            SettingsManager(environ={}, env_file=self.missing_env_file).load({"mode": "teleport"})

    def test_provider(self):
        manager = SettingsManager(environ={}, env_file=self.missing_env_file)
        manager.register_provider(lambda: {"run_id": "from-provider", "ignored": 1})

        self.assertEqual(manager.load({}).run_id, "from-provider")


class TestResolveRunId(unittest.TestCase):

    def test_explicit_run_id_wins(self):
        settings = HandoffSettings(runId="explicit")
        self.assertEqual(resolve_run_id(settings, "platform"), "explicit")

    def test_platform_run_id(self):
        self.assertEqual(resolve_run_id(HandoffSettings(), "platform"), "platform")

    def test_generated_run_id(self):
        run_id = resolve_run_id(HandoffSettings(), None)
        self.assertTrue(run_id.startswith("local-"))
        self.assertNotEqual(run_id, resolve_run_id(HandoffSettings(), None))


if __name__ == "__main__":
    unittest.main()
