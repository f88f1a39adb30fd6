"""
Supabase client access.

The client is created lazily so the service can boot (and degrade) without
store credentials; the first store call creates it.
"""

import asyncio
import logging
from typing import Optional

from supabase import AsyncClient, acreate_client

from app.core.config import settings

logger = logging.getLogger("Converse.Database")

_client: Optional[AsyncClient] = None
_client_lock = asyncio.Lock()


def is_supabase_configured() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_KEY)


async def get_supabase() -> AsyncClient:
    """
    Get the shared Supabase async client.

    Raises:
        ValueError: If SUPABASE_URL or the Supabase key is not set
    """
    global _client
    if _client is not None:
        return _client

    async with _client_lock:
        if _client is None:
            if not is_supabase_configured():
                raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY/SUPABASE_KEY must be set")
            _client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
            logger.info("Supabase client initialized")
    return _client
