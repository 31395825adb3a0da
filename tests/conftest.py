import pytest

from cloner.context import RunContext
from cloner.pacing import PacingPolicy

from fakes import FakeGuild, RecordingSleep


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def ctx(sleeper):
    return RunContext(pacing=PacingPolicy(sleep=sleeper))


@pytest.fixture
def source():
    return FakeGuild(1001, "Source")


@pytest.fixture
def target():
    return FakeGuild(2002, "Target")
