from langchain_openai import ChatOpenAI
from openai import AsyncOpenAI

from slidegen.core.config import settings
from slidegen.core.logging import get_logger

logger = get_logger(__name__)


def make_llm(
    model: str = settings.SLIDE_GENERATION_MODEL,
    temperature: float = settings.SLIDE_GENERATION_TEMPERATURE,
) -> ChatOpenAI:
    """Chat model used to draft the slide XML."""
    logger.info("Creating LLM instance", model=model, temperature=temperature)
    return ChatOpenAI(
        model=model,
        api_key=settings.OPENAI_API_KEY or None,
        temperature=temperature,
        timeout=settings.LLM_TIMEOUT_SEC,
    )


def make_image_client() -> AsyncOpenAI:
    """Async OpenAI client for the images endpoint.

    SDK-level retries are disabled; the image generator owns the retry budget.
    """
    return AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY or None,
        timeout=settings.LLM_TIMEOUT_SEC,
        max_retries=0,
    )
