from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Private actor the original deployment hands off to
DEFAULT_TARGET_ACTOR_ID = "dCWf2xghxeZgpcrsQ"
DEFAULT_CHILD_MEMORY_MBYTES = 4096
DEFAULT_POLL_INTERVAL_SECS = 2.0
DEFAULT_MAX_POLL_ATTEMPTS = 60


class HandoffMode(str, Enum):
    """How control passes to the target actor"""

    REPLACE = "replace"
    DELEGATE = "delegate"


class StoreScope(str, Enum):
    """Which key-value store receives the shared session in Delegate mode"""

    RUN = "run"
    DEFAULT = "default"


class InputShape(str, Enum):
    """How cookie fields travel inside the child input"""

    MERGED = "merged"
    NESTED = "nested"


class TimeoutPolicy(str, Enum):
    """What a poll cap without a terminal status means for the workflow"""

    PROCEED = "proceed"
    FAIL = "fail"


class HandoffSettings(BaseModel):
    """Model representing the resolved workflow configuration"""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    phpsessid: Optional[str] = None
    domain: Optional[str] = None
    inner_input: Dict[str, Any] = Field(default_factory=dict, alias="innerInput")
    target_actor_id: str = Field(DEFAULT_TARGET_ACTOR_ID, alias="targetActorId")
    mode: HandoffMode = HandoffMode.REPLACE
    store_scope: StoreScope = Field(StoreScope.RUN, alias="storeScope")
    input_shape: InputShape = Field(InputShape.MERGED, alias="inputShape")
    timeout_policy: TimeoutPolicy = Field(TimeoutPolicy.PROCEED, alias="timeoutPolicy")
    memory_mbytes: int = Field(DEFAULT_CHILD_MEMORY_MBYTES, alias="memoryMbytes", ge=128)
    poll_interval_secs: float = Field(DEFAULT_POLL_INTERVAL_SECS, alias="pollIntervalSecs", ge=0)
    max_poll_attempts: int = Field(DEFAULT_MAX_POLL_ATTEMPTS, alias="maxPollAttempts", ge=1)
    env_overrides: Dict[str, str] = Field(default_factory=dict, alias="envOverrides")
    publish_on_replace: bool = Field(False, alias="publishOnReplace")
    run_id: Optional[str] = Field(None, alias="runId")

    @field_validator("inner_input", "env_overrides", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("target_actor_id", mode="before")
    @classmethod
    def _blank_target_uses_default(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TARGET_ACTOR_ID
        return value

    @field_validator("mode", "store_scope", "input_shape", "timeout_policy", mode="before")
    @classmethod
    def _lowercase_choice(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def masked_dict(self) -> Dict[str, Any]:
        """Settings as a dictionary with the cookie value hidden"""
        from session_handoff.session.models import mask_secret

        data = self.model_dump(mode="json")
        data["phpsessid"] = mask_secret(self.phpsessid)
        return data
