"""Pull the slide XML out of free-form model output and fix stray ampersands."""

import re

from slidegen.core.logging import get_logger
from slidegen.domain.exceptions import ExtractionError

logger = get_logger(__name__)

ROOT_OPEN = "<slides>"
ROOT_CLOSE = "</slides>"

# `&` not already starting a predefined entity or a character reference
_BARE_AMPERSAND = re.compile(
    r"&(?!amp;|lt;|gt;|quot;|apos;|#[0-9]+;|#x[0-9a-fA-F]+;)"
)


def locate_xml(response: str) -> str:
    """Return the slide-collection fragment embedded in ``response``."""
    start = response.find(ROOT_OPEN)
    end = response.rfind(ROOT_CLOSE)
    if start != -1 and end != -1 and end > start:
        return response[start : end + len(ROOT_CLOSE)]

    logger.warning(
        "Could not find <slides>...</slides> tags, falling back to outermost tags"
    )
    first_tag = response.find("<")
    last_tag = response.rfind(">")
    if first_tag == -1 or last_tag == -1 or last_tag < first_tag:
        raise ExtractionError(
            "No XML structure found in model response", response=response
        )
    return response[first_tag : last_tag + 1]


def repair_ampersands(xml: str) -> str:
    """Escape every `&` that does not begin a recognized entity. Idempotent."""
    return _BARE_AMPERSAND.sub("&amp;", xml)


def extract_slides_xml(response: str) -> str:
    """Locate and sanitize the slide XML inside a text-model response."""
    content = (response or "").strip()
    if not content:
        raise ExtractionError("Received empty response from the text model")

    logger.debug("model.response.raw", content=content)
    xml = locate_xml(content)
    logger.debug("model.response.extracted", content=xml)
    cleaned = repair_ampersands(xml)
    logger.debug("model.response.cleaned", content=cleaned)
    return cleaned
