from typing import Any, Dict, List, Mapping, Optional, Sequence

from lxml import etree

from slidegen.core.config import settings
from slidegen.core.logging import get_logger
from slidegen.domain.exceptions import (
    MalformedXMLError,
    SlideValidationWarning,
    StructureError,
)
from slidegen.models.schema import SlideDeck, SlideRecord

logger = get_logger(__name__)

ROOT_TAG = "slides"
SLIDE_TAG = "slide"

# lowercase source name -> SlideRecord field
FIELD_MAP = {
    "title": "title",
    "text": "text",
    "imagedescription": "image_description",
}


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


def _normalize_names(root: etree._Element) -> None:
    """Lowercase tag and attribute names in place, dropping namespaces."""
    for el in root.iter():
        if not isinstance(el.tag, str):
            continue
        el.tag = etree.QName(el).localname.lower()
        for key in list(el.attrib):
            value = el.attrib.pop(key)
            el.set(etree.QName(key).localname.lower(), value)


def _element_text(el: etree._Element) -> str:
    return "".join(el.itertext()).strip()


def _slide_fields(slide_el: etree._Element) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for child in slide_el:
        target = FIELD_MAP.get(child.tag) if isinstance(child.tag, str) else None
        # first occurrence wins
        if target and target not in fields:
            fields[target] = _element_text(child)
    return fields


def _warn_invalid(deck: SlideDeck) -> None:
    for warning in validation_warnings(deck):
        logger.warning(str(warning), slide=warning.slide_number)


def parse_slides_xml(
    xml: str, expected_count: int = settings.EXPECTED_SLIDES_COUNT
) -> SlideDeck:
    """Parse repaired slide XML into a deck, numbering slides by position."""
    try:
        root = etree.fromstring(xml.encode("utf-8"), _make_parser())
    except etree.XMLSyntaxError as e:
        raise MalformedXMLError(str(e)) from e

    _normalize_names(root)
    if root.tag != ROOT_TAG:
        raise StructureError(
            f"Unexpected XML structure: expected <{ROOT_TAG}> root, got <{root.tag}>"
        )

    slide_elements = [el for el in root if el.tag == SLIDE_TAG]
    if not slide_elements:
        raise StructureError(f"<{ROOT_TAG}> contains no <{SLIDE_TAG}> elements")

    if len(slide_elements) != expected_count:
        logger.warning(
            "Unexpected slide count, proceeding with available slides",
            expected=expected_count,
            generated=len(slide_elements),
        )

    deck = SlideDeck(
        slides=[
            SlideRecord(slide_number=index, **_slide_fields(el))
            for index, el in enumerate(slide_elements, start=1)
        ]
    )
    _warn_invalid(deck)
    return deck


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    # nested objects/lists carry no usable slide text
    return ""


def _stored_number(item: Mapping[str, Any]) -> Optional[int]:
    number = item.get("slidenumber")
    if isinstance(number, int) and not isinstance(number, bool) and number >= 1:
        return number
    return None


def records_from_mappings(items: Sequence[Mapping[str, Any]]) -> SlideDeck:
    """Rebuild a deck from persisted slide mappings, re-checking validity.

    Keys are matched case-insensitively. Stored slide numbers are kept when
    every record carries a distinct positive one; otherwise all slides are
    renumbered by position so image filenames stay unique.
    """
    normalized = [{str(k).lower(): v for k, v in item.items()} for item in items]

    numbers = [_stored_number(item) for item in normalized]
    if None in numbers or len(set(numbers)) != len(numbers):
        numbers = list(range(1, len(normalized) + 1))

    deck = SlideDeck(
        slides=[
            SlideRecord(
                slide_number=number,
                **{
                    field: _as_text(item.get(source))
                    for source, field in FIELD_MAP.items()
                },
            )
            for number, item in zip(numbers, normalized)
        ]
    )
    _warn_invalid(deck)
    return deck


def validation_warnings(deck: SlideDeck) -> List[SlideValidationWarning]:
    return [
        SlideValidationWarning(slide.slide_number, slide.missing_fields)
        for slide in deck.invalid_slides()
    ]
