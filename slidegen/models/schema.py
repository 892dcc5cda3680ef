from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from slidegen.domain.exceptions import ImageGenerationFailure

# --- Data Models ---


class SlideRecord(BaseModel):
    """One slide: talking points plus the prompt for its illustration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    slide_number: int = Field(alias="slideNumber", ge=1)
    title: str = ""
    text: str = ""  # speaker bullet points
    image_description: str = Field(default="", alias="imageDescription")

    @property
    def missing_fields(self) -> List[str]:
        """Required fields that are absent or blank after trimming."""
        missing = []
        if not self.title.strip():
            missing.append("title")
        if not self.text.strip():
            missing.append("text")
        if not self.image_description.strip():
            missing.append("imageDescription")
        return missing

    @computed_field(alias="isValid")  # type: ignore[misc]
    @property
    def is_valid(self) -> bool:
        return not self.missing_fields


class SlideDeck(BaseModel):
    """Ordered slides; position in ``slides`` is presentation order."""

    model_config = ConfigDict(frozen=True)

    slides: Tuple[SlideRecord, ...]

    def valid_slides(self) -> List[SlideRecord]:
        return [s for s in self.slides if s.is_valid]

    def invalid_slides(self) -> List[SlideRecord]:
        return [s for s in self.slides if not s.is_valid]

    def to_records(self) -> List[dict]:
        """JSON-ready list using the camelCase checkpoint keys."""
        return [s.model_dump(by_alias=True) for s in self.slides]


class ImageOutcome(BaseModel):
    """Terminal result of one slide's image request."""

    slide_number: int
    success: bool
    path: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 0

    @property
    def failure(self) -> Optional[ImageGenerationFailure]:
        if self.success:
            return None
        return ImageGenerationFailure(
            self.slide_number, self.attempts, self.error or "unknown error"
        )


class RunSummary(BaseModel):
    """End-of-run report."""

    total_slides: int = 0
    total_valid: int = 0
    succeeded: int = 0
    failed: int = 0
    outcomes: List[ImageOutcome] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def headline(self) -> str:
        return (
            f"{self.total_valid} valid, {self.succeeded} succeeded, "
            f"{self.failed} failed"
        )

    def report_lines(self) -> List[str]:
        lines = [
            "--- Image Generation Summary ---",
            f"Total valid slides: {self.total_valid}",
            f"Successfully generated images: {self.succeeded}",
        ]
        if self.failed:
            lines.append(f"Failed image generations: {self.failed}")
            for outcome in sorted(self.outcomes, key=lambda o: o.slide_number):
                if outcome.failure is not None:
                    lines.append(f"  - {outcome.failure}")
        for warning in self.warnings:
            lines.append(f"Skipped: {warning}")
        lines.append("------------------------------")
        return lines
