"""
Shared httpx client handling
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


@asynccontextmanager
async def open_client(
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0
) -> AsyncIterator[httpx.AsyncClient]:
    """
    Yield the injected client untouched, or a short-lived one that is
    closed on exit.
    """
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned


def truncate_body(response: httpx.Response, limit: int = 500) -> str:
    """Response text cut down for error context"""
    return response.text[:limit]
