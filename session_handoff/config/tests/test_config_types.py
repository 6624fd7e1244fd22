import pytest
from pydantic import ValidationError

from session_handoff.config.types import (
    DEFAULT_TARGET_ACTOR_ID,
    HandoffMode,
    HandoffSettings,
    InputShape,
)


def test_camel_case_aliases():
    settings = HandoffSettings.model_validate(
        {
            "phpsessid": "abc",
            "domain": ".example.com",
            "innerInput": {"a": 1},
            "targetActorId": "target",
            "inputShape": "nested",
            "pollIntervalSecs": 0.5,
        }
    )

    assert settings.inner_input == {"a": 1}
    assert settings.target_actor_id == "target"
    assert settings.input_shape == InputShape.NESTED
    assert settings.poll_interval_secs == 0.5


def test_field_names_accepted():
    settings = HandoffSettings(target_actor_id="t", mode="Delegate")
    assert settings.target_actor_id == "t"
    assert settings.mode == HandoffMode.DELEGATE


def test_blank_target_uses_default():
    assert HandoffSettings(targetActorId="  ").target_actor_id == DEFAULT_TARGET_ACTOR_ID


@pytest.mark.parametrize(
    "field,value",
    [
        ("maxPollAttempts", 0),
        ("memoryMbytes", 64),
        ("pollIntervalSecs", -1),
        ("mode", "teleport"),
    ],
)
def test_out_of_range_rejected(field, value):
    with pytest.raises(ValidationError):
        HandoffSettings.model_validate({field: value})


def test_masked_dict_hides_cookie():
    data = HandoffSettings(phpsessid="secretvalue", domain="d").masked_dict()

    assert data["phpsessid"] == "secr…"
    assert data["mode"] == "replace"
