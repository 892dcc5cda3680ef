from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from opentelemetry import trace
from prometheus_client import REGISTRY, Counter, Histogram, write_to_textfile

# Metrics definitions
DECKS_GENERATED = Counter(
    "slidegen_decks_generated_total", "Decks generated from research text"
)
DECKS_RESUMED = Counter("slidegen_decks_resumed_total", "Decks loaded from checkpoint")
SLIDES_PARSED = Counter("slidegen_slides_parsed_total", "Slides parsed")
SLIDES_INVALID = Counter("slidegen_slides_invalid_total", "Slides marked invalid")
IMAGE_ATTEMPTS = Counter("slidegen_image_attempts_total", "Image generation attempts")
IMAGES_GENERATED = Counter("slidegen_images_generated_total", "Images written")
IMAGE_FAILURES = Counter(
    "slidegen_image_failures_total", "Slides whose image retry budget ran out"
)
STEP_DURATION_SECONDS = Histogram(
    "slidegen_step_duration_seconds", "Pipeline step duration seconds", ["step"]
)


def observe_step(step: str, seconds: float) -> None:
    """단계 실행 시간을 기록합니다."""
    STEP_DURATION_SECONDS.labels(step=step).observe(max(0.0, seconds))


def write_metrics(path: str) -> None:
    """Dump the default registry in node-exporter textfile format."""
    write_to_textfile(path, REGISTRY)


def get_tracer() -> trace.Tracer:
    """Get OpenTelemetry tracer."""
    return trace.get_tracer("slidegen")


@asynccontextmanager
async def trace_async_operation(
    operation_name: str, **attributes: Any
) -> AsyncGenerator[trace.Span, None]:
    """Context manager for tracing async operations."""
    tracer = get_tracer()
    with tracer.start_as_current_span(operation_name) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            raise
