# slidegen/planning/planner.py

from langchain_core.output_parsers import StrOutputParser
from langchain_core.runnables import Runnable

from slidegen.core.config import settings
from slidegen.core.llm import make_llm
from slidegen.core.logging import get_logger
from slidegen.core.prompts import SLIDES_PROMPT
from slidegen.domain.exceptions import TextGenerationError
from slidegen.models.schema import SlideDeck
from slidegen.parsing.extraction import extract_slides_xml
from slidegen.parsing.slide_parser import parse_slides_xml

logger = get_logger(__name__)


def build_slides_chain(llm) -> Runnable:
    """연구 텍스트 -> 슬라이드 XML (원문 문자열)"""
    return SLIDES_PROMPT | llm | StrOutputParser()


async def generate_deck(
    research_text: str,
    model: str = settings.SLIDE_GENERATION_MODEL,
    expected_count: int = settings.EXPECTED_SLIDES_COUNT,
) -> SlideDeck:
    """Ask the text model for slide XML and turn it into a deck."""
    logger.info(
        "Generating slides from research text",
        model=model,
        research_chars=len(research_text),
        expected_slides=expected_count,
    )
    try:
        chain = build_slides_chain(make_llm(model=model))
        response: str = await chain.ainvoke(
            {"research_text": research_text, "slide_count": expected_count}
        )
    except Exception as e:
        logger.error("Text model call failed", error=str(e))
        raise TextGenerationError(str(e)) from e

    xml = extract_slides_xml(response)
    deck = parse_slides_xml(xml, expected_count=expected_count)
    logger.info(
        "Slide generation completed",
        slides=len(deck.slides),
        valid=len(deck.valid_slides()),
    )
    return deck
