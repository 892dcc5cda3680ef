import functools
import time
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from slidegen.core.concurrency import run_concurrently
from slidegen.core.config import settings
from slidegen.core.logging import get_logger
from slidegen.core.observability import (
    DECKS_GENERATED,
    DECKS_RESUMED,
    SLIDES_INVALID,
    SLIDES_PARSED,
    observe_step,
    trace_async_operation,
)
from slidegen.domain.exceptions import ResearchInputMissingError
from slidegen.images.generator import RetryingImageGenerator
from slidegen.models.schema import ImageOutcome, RunSummary, SlideDeck, SlideRecord
from slidegen.parsing.slide_parser import validation_warnings
from slidegen.planning import planner
from slidegen.storage.slide_store import SlideStore

logger = get_logger(__name__)

Planner = Callable[[str], Awaitable[SlideDeck]]


class DeckPipeline:
    """Resume-or-generate the deck, then render every valid slide's image."""

    def __init__(
        self,
        store: SlideStore,
        research_path: Union[str, Path] = settings.RESEARCH_FILE,
        images_dir: Union[str, Path] = settings.IMAGES_DIR,
        generator: Optional[RetryingImageGenerator] = None,
        plan: Optional[Planner] = None,
        expected_count: int = settings.EXPECTED_SLIDES_COUNT,
        max_concurrency: Optional[int] = settings.IMAGE_MAX_CONCURRENCY,
    ) -> None:
        self.store = store
        self.research_path = Path(research_path)
        self.images_dir = Path(images_dir)
        self.generator = generator or RetryingImageGenerator(self.images_dir)
        self.plan = plan or functools.partial(
            planner.generate_deck, expected_count=expected_count
        )
        self.max_concurrency = max_concurrency

    async def load_or_generate(self) -> SlideDeck:
        if self.store.exists():
            logger.info(
                "Found existing checkpoint, loading slides", path=self.store.location
            )
            deck = self.store.load()
            DECKS_RESUMED.inc()
            return deck

        logger.info(
            "No checkpoint found, generating slides",
            checkpoint=self.store.location,
            research=str(self.research_path),
        )
        if not self.research_path.is_file():
            raise ResearchInputMissingError(str(self.research_path))

        research_text = self.research_path.read_text(encoding="utf-8")
        deck = await self.plan(research_text)
        # persist before any image work so a rerun never re-bills the text model
        self.store.save(deck)
        DECKS_GENERATED.inc()
        return deck

    async def generate_images(
        self, slides: Sequence[SlideRecord]
    ) -> List[ImageOutcome]:
        """Fan out one generator task per slide and join them all."""
        self.images_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Starting image generation", slides=len(slides))

        results = await run_concurrently(
            [
                self.generator.generate(slide.image_description, slide.slide_number)
                for slide in slides
            ],
            self.max_concurrency,
        )

        outcomes: List[ImageOutcome] = []
        for slide, result in zip(slides, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Image task crashed", slide=slide.slide_number, error=str(result)
                )
                result = ImageOutcome(
                    slide_number=slide.slide_number,
                    success=False,
                    error=str(result) or type(result).__name__,
                )
            outcomes.append(result)
        return outcomes

    async def run(self) -> RunSummary:
        async with trace_async_operation("pipeline.run"):
            t0 = time.monotonic()
            deck = await self.load_or_generate()
            observe_step("deck", time.monotonic() - t0)

            valid = deck.valid_slides()
            warnings = [str(w) for w in validation_warnings(deck)]
            SLIDES_PARSED.inc(len(deck.slides))
            SLIDES_INVALID.inc(len(warnings))

            summary = RunSummary(
                total_slides=len(deck.slides),
                total_valid=len(valid),
                warnings=warnings,
            )
            if not valid:
                logger.info("No valid slides to process")
                return summary
            if warnings:
                logger.warning(
                    "Invalid slides found",
                    invalid=len(warnings),
                    processing=len(valid),
                )

            t1 = time.monotonic()
            outcomes = await self.generate_images(valid)
            observe_step("images", time.monotonic() - t1)

            succeeded = sum(1 for o in outcomes if o.success)
            summary = summary.model_copy(
                update={
                    "outcomes": outcomes,
                    "succeeded": succeeded,
                    "failed": len(outcomes) - succeeded,
                }
            )
            logger.info("Image generation finished", summary=summary.headline())
            return summary
