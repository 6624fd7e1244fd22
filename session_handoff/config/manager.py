from pathlib import Path
from typing import Dict, Any, Optional, Mapping, Callable, List
import json
import logging
import os
import uuid

from pydantic import ValidationError

from session_handoff.config.types import HandoffSettings
from session_handoff.errors import InvalidInputError

logger = logging.getLogger(__name__)


class SettingsManager:
    """
    Resolves workflow settings from defaults, a .env file, environment
    variables and the actor input, in that order of precedence (last wins).

    This is the only place that reads process environment values; the
    workflow receives the resolved settings explicitly.
    """

    # Settings that may come from the environment, with their types
    DEFAULT_SETTINGS = {
        "target_actor_id": (None, str),
        "mode": (None, str),
        "store_scope": (None, str),
        "input_shape": (None, str),
        "timeout_policy": (None, str),
        "memory_mbytes": (None, int),
        "poll_interval_secs": (None, float),
        "max_poll_attempts": (None, int),
        "publish_on_replace": (None, bool),
        "run_id": (None, str),
        "env_overrides": (None, dict),
        "phpsessid": (None, str),
        "domain": (None, str),
    }

    # Each setting can be set via its prefixed uppercase env var
    ENV_MAPPING = {"HANDOFF_" + setting.upper(): setting for setting in DEFAULT_SETTINGS}

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[Path] = None,
    ):
        """
        Args:
            environ: Environment mapping to read; defaults to os.environ
            env_file: Optional .env file; defaults to ./.env when present
        """
        self._environ = dict(os.environ if environ is None else environ)
        self._env_file = Path(env_file) if env_file else Path.cwd() / ".env"
        self.settings: Dict[str, Any] = {}
        self._providers: List[Callable[[], Dict[str, Any]]] = []
        self.logger = logger

        for key, (default_value, _) in self.DEFAULT_SETTINGS.items():
            if default_value is not None:
                self.settings[key] = default_value

    def _convert_value(self, value: str, target_type: type) -> Any:
        """Convert string value to target type"""
        if target_type == bool:
            return value.strip().lower() in ("1", "true", "yes", "on")
        if target_type == dict:
            parsed = json.loads(value)
            if not isinstance(parsed, dict):
                raise ValueError("expected a JSON object")
            return parsed
        return target_type(value)

    def _apply(self, key: str, value: str, source: str) -> None:
        setting_name = self.ENV_MAPPING.get(key)
        if setting_name is None:
            return
        _, target_type = self.DEFAULT_SETTINGS[setting_name]
        try:
            self.settings[setting_name] = self._convert_value(value, target_type)
        except ValueError as e:
            self.logger.warning(f"Ignoring {key} from {source}: {e}")

    def _parse_env_file(self, env_file_path: Path) -> None:
        """Parse a .env file and apply the handoff variables it sets"""
        with open(env_file_path, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()

                    # Remove quotes if present
                    if (value.startswith('"') and value.endswith('"')) or (
                        value.startswith("'") and value.endswith("'")
                    ):
                        value = value[1:-1]

                    self._apply(key, value, str(env_file_path))

    def register_provider(self, provider: Callable[[], Dict[str, Any]]):
        """Register a provider function that returns additional settings"""
        self._providers.append(provider)
        return self

    def load(self, actor_input: Optional[Mapping[str, Any]] = None) -> HandoffSettings:
        """
        Resolve settings.

        Args:
            actor_input: The actor input object (camelCase keys)

        Returns:
            Validated HandoffSettings

        Raises:
            InvalidInputError: If the merged values fail validation
        """
        if self._env_file.exists() and self._env_file.is_file():
            self.logger.debug(f"Loading environment from: {self._env_file}")
            self._parse_env_file(self._env_file)

        for key, value in self._environ.items():
            self._apply(key, value, "environment")

        for provider in self._providers:
            for key, value in provider().items():
                if key in self.DEFAULT_SETTINGS:
                    self.settings[key] = value

        # Actor input uses camelCase aliases; merge on field names
        field_names = {
            (info.alias or name): name for name, info in HandoffSettings.model_fields.items()
        }
        merged: Dict[str, Any] = dict(self.settings)
        for key, value in (actor_input or {}).items():
            if value is not None:
                merged[field_names.get(key, key)] = value

        try:
            return HandoffSettings.model_validate(merged)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid configuration: {e}", details={"errors": e.errors()}) from e


def resolve_run_id(settings: HandoffSettings, platform_run_id: Optional[str] = None) -> str:
    """
    Pick the run identifier used to derive run-scoped names.

    Fallback order: explicit ``runId`` input or HANDOFF_RUN_ID (both land in
    ``settings.run_id``), then the id the platform reports for this run,
    then a generated local id.
    """
    if settings.run_id:
        return settings.run_id
    if platform_run_id:
        return platform_run_id
    return f"local-{uuid.uuid4().hex}"
