from typing import Sequence


class SlideGenError(Exception):
    pass


class PipelineError(SlideGenError):
    """Errors that abort the whole run."""


class ExtractionError(PipelineError):
    def __init__(self, message: str, response: str = "") -> None:
        super().__init__(message)
        self.response = response


class StructureError(PipelineError):
    pass


class MalformedXMLError(StructureError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Slide XML could not be parsed: {reason}")
        self.reason = reason


class CorruptStoreError(PipelineError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Error with {path}: {reason}. Fix or remove to regenerate.")
        self.path = path
        self.reason = reason


class ResearchInputMissingError(PipelineError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Research file not found at {path}")
        self.path = path


class TextGenerationError(PipelineError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Slide generation failed: {message}")


class InvalidImagePayloadError(SlideGenError):
    def __init__(
        self, message: str = "Invalid image data received (missing b64_json)."
    ) -> None:
        super().__init__(message)


class SlideValidationWarning(SlideGenError):
    def __init__(self, slide_number: int, missing: Sequence[str]) -> None:
        super().__init__(
            f"Slide {slide_number} is missing {', '.join(missing)}; "
            "it is marked invalid and will be skipped"
        )
        self.slide_number = slide_number
        self.missing = tuple(missing)


class ImageGenerationFailure(SlideGenError):
    def __init__(self, slide_number: int, attempts: int, reason: str) -> None:
        super().__init__(
            f"Image for slide {slide_number} failed after {attempts} attempts: {reason}"
        )
        self.slide_number = slide_number
        self.attempts = attempts
        self.reason = reason
