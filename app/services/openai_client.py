"""
Shared OpenAI client for the knowledge service.

Centralizes OpenAI API access for embeddings.
"""

import logging
from functools import lru_cache

from openai import AsyncOpenAI

from app.core.config import settings

logger = logging.getLogger("Converse.OpenAI")


def is_openai_configured() -> bool:
    return bool(settings.OPENAI_API_KEY)


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """
    Get the singleton OpenAI async client.

    Uses lru_cache to ensure only one client instance exists.

    Returns:
        AsyncOpenAI client instance

    Raises:
        ValueError: If OPENAI_API_KEY is not set
    """
    if not settings.OPENAI_API_KEY:
        raise ValueError("OPENAI_API_KEY environment variable not set")

    client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    logger.info("OpenAI client initialized")
    return client
