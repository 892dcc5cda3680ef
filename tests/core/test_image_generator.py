# tests/core/test_image_generator.py

import pytest

from slidegen.domain.exceptions import ImageGenerationFailure
from slidegen.images.generator import (
    RetryingImageGenerator,
    RetryPolicy,
    image_filename,
    shorten_prompt,
)
from tests._helpers.fakes import (
    PNG_BYTES,
    FakeImageClient,
    FakeImagesAPI,
    image_response,
)


def _generator(tmp_path, images, sleep, **policy):
    return RetryingImageGenerator(
        tmp_path,
        client=FakeImageClient(images),
        policy=RetryPolicy(**{"max_retries": 3, "initial_delay_ms": 1000, **policy}),
        model="gpt-image-1",
        size="1536x1024",
        sleep=sleep,
    )


class TestRetryPolicy:
    def test_schedule_doubles_from_initial_delay(self):
        policy = RetryPolicy(max_retries=3, initial_delay_ms=1000)

        assert policy.max_attempts == 4
        assert policy.schedule() == [1000, 2000, 4000]

    def test_should_retry_until_budget_spent(self):
        policy = RetryPolicy(max_retries=2, initial_delay_ms=10)

        assert [policy.should_retry(k) for k in (1, 2, 3)] == [True, True, False]

    def test_zero_retries_means_single_attempt(self):
        assert RetryPolicy(max_retries=0).schedule() == []


@pytest.mark.asyncio
async def test_success_writes_png_and_sends_single_request(
    tmp_path, recording_sleep
):
    images = FakeImagesAPI()
    generator = _generator(tmp_path, images, recording_sleep)

    outcome = await generator.generate("A lighthouse at dusk", 3)

    assert outcome.success is True
    assert outcome.path == str(tmp_path / "slide_3_image.png")
    assert (tmp_path / "slide_3_image.png").read_bytes() == PNG_BYTES
    assert images.calls == [
        {
            "model": "gpt-image-1",
            "prompt": "A lighthouse at dusk",
            "n": 1,
            "size": "1536x1024",
        }
    ]
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_always_failing_call_exhausts_after_four_attempts(
    tmp_path, recording_sleep
):
    images = FakeImagesAPI([RuntimeError("503 Service Unavailable")])
    generator = _generator(tmp_path, images, recording_sleep)

    outcome = await generator.generate("prompt", 1)

    assert len(images.calls) == 4
    assert recording_sleep.delays == [1.0, 2.0, 4.0]
    assert outcome.success is False
    assert outcome.error == "503 Service Unavailable"
    assert outcome.attempts == 4
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_recovers_after_transient_errors(tmp_path, recording_sleep):
    images = FakeImagesAPI(
        [RuntimeError("rate limited"), RuntimeError("timeout"), image_response()]
    )
    generator = _generator(tmp_path, images, recording_sleep)

    outcome = await generator.generate("prompt", 2)

    assert outcome.success is True
    assert outcome.attempts == 3
    assert recording_sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_missing_payload_is_retried_like_an_error(tmp_path, recording_sleep):
    images = FakeImagesAPI([image_response(b64_json=None), image_response()])
    generator = _generator(tmp_path, images, recording_sleep)

    outcome = await generator.generate("prompt", 1)

    assert outcome.success is True
    assert len(images.calls) == 2
    assert recording_sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_missing_payload_message_survives_exhaustion(tmp_path, recording_sleep):
    images = FakeImagesAPI([image_response(b64_json=None)])
    generator = _generator(tmp_path, images, recording_sleep, max_retries=1)

    outcome = await generator.generate("prompt", 1)

    assert outcome.success is False
    assert "missing b64_json" in outcome.error
    assert isinstance(outcome.failure, ImageGenerationFailure)
    assert not (tmp_path / "slide_1_image.png").exists()


@pytest.mark.asyncio
async def test_undecodable_payload_leaves_no_file(tmp_path, recording_sleep):
    images = FakeImagesAPI([image_response(b64_json="***not base64***")])
    generator = _generator(tmp_path, images, recording_sleep, max_retries=0)

    outcome = await generator.generate("prompt", 1)

    assert outcome.success is False
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_empty_data_list_is_a_failure(tmp_path, recording_sleep):
    from types import SimpleNamespace

    images = FakeImagesAPI([SimpleNamespace(data=[])])
    generator = _generator(tmp_path, images, recording_sleep, max_retries=0)

    outcome = await generator.generate("prompt", 1)

    assert outcome.success is False


def test_filenames_are_keyed_by_slide_number(tmp_path):
    generator = RetryingImageGenerator(tmp_path, client=FakeImageClient())

    assert [generator.image_path(n).name for n in range(1, 11)] == [
        f"slide_{n}_image.png" for n in range(1, 11)
    ]
    assert image_filename(10) == "slide_10_image.png"


def test_shorten_prompt_for_logs():
    assert shorten_prompt("short") == "short"
    long_prompt = "x" * 200
    assert shorten_prompt(long_prompt) == "x" * 147 + "..."
    assert len(shorten_prompt(long_prompt)) == 150
