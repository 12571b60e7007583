import pytest

from rtfeedback.feedback.tests.factories import ParticipantProfileFactory
from rtfeedback.feedback.tests.factories import make_pattern_set


@pytest.fixture
def profile():
    return ParticipantProfileFactory(nickname="Sam", id="participant-1")


@pytest.fixture
def pattern_set():
    return make_pattern_set()
