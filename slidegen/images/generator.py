"""Per-slide image generation with bounded exponential backoff.

Each call to :meth:`RetryingImageGenerator.generate` walks a small state
machine::

    Idle -> Attempting(k) -> Success
                          -> Attempting(k + 1)   (after delay_ms(k))
                          -> Exhausted           (k > max_retries)

The delay primitive is injected so the schedule can be exercised without
real time passing. Nothing is written to disk until a response carrying a
decodable image has been received.
"""

import asyncio
import base64
import binascii
import os
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field

from slidegen.core.config import settings
from slidegen.core.llm import make_image_client
from slidegen.core.logging import get_logger
from slidegen.core.observability import (
    IMAGE_ATTEMPTS,
    IMAGE_FAILURES,
    IMAGES_GENERATED,
    trace_async_operation,
)
from slidegen.domain.exceptions import InvalidImagePayloadError
from slidegen.models.schema import ImageOutcome

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

IMAGE_FILENAME = "slide_{n}_image.png"
PROMPT_LOG_LIMIT = 150


class RetryState(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


class RetryPolicy(BaseModel):
    """Retry budget: ``max_retries`` extra attempts after the first one."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=settings.MAX_IMAGE_RETRIES, ge=0)
    initial_delay_ms: int = Field(default=settings.INITIAL_IMAGE_RETRY_DELAY_MS, ge=0)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, failed_attempts: int) -> bool:
        return failed_attempts <= self.max_retries

    def delay_ms(self, failed_attempts: int) -> int:
        """Wait before the next attempt once ``failed_attempts`` (>= 1) have failed."""
        return self.initial_delay_ms * 2 ** (failed_attempts - 1)

    def schedule(self) -> List[int]:
        return [self.delay_ms(k) for k in range(1, self.max_retries + 1)]


def image_filename(slide_number: int) -> str:
    return IMAGE_FILENAME.format(n=slide_number)


def shorten_prompt(prompt: str, limit: int = PROMPT_LOG_LIMIT) -> str:
    if len(prompt) <= limit:
        return prompt
    return prompt[: limit - 3] + "..."


class RetryingImageGenerator:
    def __init__(
        self,
        output_dir: Union[str, Path],
        client: Optional[AsyncOpenAI] = None,
        policy: Optional[RetryPolicy] = None,
        model: str = settings.IMAGE_GENERATION_MODEL,
        size: str = settings.IMAGE_SIZE,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.policy = policy or RetryPolicy()
        self.model = model
        self.size = size
        self._client = client
        self._sleep = sleep or asyncio.sleep

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = make_image_client()
        return self._client

    def image_path(self, slide_number: int) -> Path:
        return self.output_dir / image_filename(slide_number)

    async def _request_image(self, prompt: str) -> bytes:
        response = await self.client.images.generate(
            model=self.model,
            prompt=prompt,
            n=1,
            size=self.size,
        )
        data = getattr(response, "data", None) or []
        b64_json = getattr(data[0], "b64_json", None) if data else None
        if not b64_json:
            raise InvalidImagePayloadError()
        try:
            return base64.b64decode(b64_json, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImagePayloadError(
                f"Invalid image data received (undecodable b64_json: {e})."
            ) from e

    @staticmethod
    def _write_image(path: Path, content: bytes) -> None:
        tmp_path = path.with_name(path.name + ".part")
        try:
            with open(tmp_path, "wb") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    async def generate(self, image_description: str, slide_number: int) -> ImageOutcome:
        """Drive one slide's image request to success or retry exhaustion."""
        path = self.image_path(slide_number)
        display_prompt = shorten_prompt(image_description)
        max_attempts = self.policy.max_attempts
        state = RetryState.IDLE
        failures = 0

        async with trace_async_operation("image.generate", slide=slide_number):
            while True:
                state = RetryState.ATTEMPTING
                attempt = failures + 1
                logger.info(
                    "Generating image",
                    slide=slide_number,
                    attempt=f"{attempt}/{max_attempts}",
                    prompt=display_prompt,
                )
                IMAGE_ATTEMPTS.inc()
                try:
                    content = await self._request_image(image_description)
                    self._write_image(path, content)
                except Exception as e:
                    failures += 1
                    logger.error(
                        "Image attempt failed",
                        slide=slide_number,
                        attempt=failures,
                        error=str(e),
                    )
                    if not self.policy.should_retry(failures):
                        state = RetryState.EXHAUSTED
                        IMAGE_FAILURES.inc()
                        logger.error(
                            "Image generation exhausted retries",
                            slide=slide_number,
                            attempts=failures,
                            state=state.value,
                        )
                        return ImageOutcome(
                            slide_number=slide_number,
                            success=False,
                            error=str(e) or type(e).__name__,
                            attempts=failures,
                        )
                    delay_ms = self.policy.delay_ms(failures)
                    logger.info(
                        "Retrying slide",
                        slide=slide_number,
                        delay_sec=delay_ms / 1000,
                    )
                    await self._sleep(delay_ms / 1000)
                    continue

                state = RetryState.SUCCESS
                IMAGES_GENERATED.inc()
                logger.info(
                    "Image saved", slide=slide_number, path=str(path), state=state.value
                )
                return ImageOutcome(
                    slide_number=slide_number,
                    success=True,
                    path=str(path),
                    attempts=attempt,
                )
