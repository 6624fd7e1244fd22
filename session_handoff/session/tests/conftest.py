import pytest

from session_handoff.tests.platform_double import ScriptedPlatform, SleepRecorder


@pytest.fixture
def platform():
    return ScriptedPlatform()


@pytest.fixture
def sleep():
    return SleepRecorder()
