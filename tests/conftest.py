"""Global test configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("METRICS_TEXTFILE", None)

from slidegen.models.schema import SlideDeck, SlideRecord  # noqa: E402
from tests._helpers.fakes import FakeImageClient, RecordingSleep  # noqa: E402


@pytest.fixture
def fake_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def valid_slide_data():
    return {
        "title": "Tidal Energy",
        "text": "- Moon-driven\n- Predictable output",
        "imageDescription": "A chalkboard in a harbour classroom listing tidal facts",
    }


@pytest.fixture
def mixed_deck() -> SlideDeck:
    """5 slides, slides 2 and 4 invalid."""
    return SlideDeck(
        slides=[
            SlideRecord(slide_number=1, title="A", text="a", image_description="pa"),
            SlideRecord(slide_number=2, title="B", text="", image_description="pb"),
            SlideRecord(slide_number=3, title="C", text="c", image_description="pc"),
            SlideRecord(slide_number=4, title="D", text="d", image_description="  "),
            SlideRecord(slide_number=5, title="E", text="e", image_description="pe"),
        ]
    )
