"""
Abstract base class for ad platform sources
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
import logging

from core.exceptions import (
    AuthenticationError,
    RateLimitError,
    SourceFetchError,
)
from core.http import truncate_body
from ingestion.transformers.normalizer import RecordMapper, get_mapper
from models.base import PLATFORM_TABLES, AdPlatform
from models.date_range import DateRange

logger = logging.getLogger(__name__)


class AdSource(ABC):
    """
    Abstract base class for all ad platform sources.

    Responsibilities:
    - Fetch raw rows for one chunk's date range
    - Translate HTTP failures into SourceFetchError
    - Normalize the platform's response shape to a list of rows
    - Know its destination table, mapper and backfill lower bound
    """

    platform: AdPlatform

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout
        self._mapper: Optional[RecordMapper] = None

    @property
    def name(self) -> str:
        return self.platform.value

    @property
    def table_name(self) -> str:
        return PLATFORM_TABLES[self.platform]

    @property
    def mapper(self) -> RecordMapper:
        if self._mapper is None:
            self._mapper = get_mapper(self.platform)
        return self._mapper

    @abstractmethod
    def earliest_backfill_date(self, today: date) -> date:
        """Oldest date the platform API will still report on"""
        pass

    @abstractmethod
    async def fetch(self, chunk: DateRange) -> List[Dict[str, Any]]:
        """
        Fetch raw rows for a chunk.

        Raises:
            SourceFetchError: On non-success status or malformed payload
        """
        pass

    async def _request_json(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs
    ) -> Any:
        """Send a request and return the decoded JSON body"""
        try:
            response = await client.request(method, url, timeout=self.timeout, **kwargs)
        except httpx.HTTPError as e:
            raise SourceFetchError(
                f"Request to {self.name} failed",
                context={"platform": self.name, "url": _strip_query(url)},
                original_exception=e
            )

        context = {
            "platform": self.name,
            "url": _strip_query(url),
            "status_code": response.status_code,
        }

        if response.status_code in (401, 403):
            context["response_body"] = truncate_body(response)
            raise AuthenticationError(f"{self.name} rejected credentials", context=context)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"{self.name} rate limit exceeded",
                context=context,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if response.status_code >= 400:
            context["response_body"] = truncate_body(response)
            raise SourceFetchError(f"{self.name} returned HTTP {response.status_code}", context=context)

        try:
            payload = response.json()
        except ValueError as e:
            context["response_body"] = truncate_body(response)
            raise SourceFetchError(
                f"{self.name} returned a non-JSON body",
                context=context,
                original_exception=e
            )

        if isinstance(payload, dict) and payload.get("error"):
            context["error"] = payload["error"]
            raise SourceFetchError(f"{self.name} reported an error", context=context)

        return payload

    def unwrap_rows(self, payload: Any) -> List[Dict[str, Any]]:
        """
        Normalize the two response shapes platforms use.

        A bare list is the rows; an object carries them under "items"
        (Pinterest) or "data" (Meta Graph API).
        """
        if isinstance(payload, list):
            rows = payload
        elif isinstance(payload, dict) and isinstance(payload.get("items"), list):
            rows = payload["items"]
        elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
            rows = payload["data"]
        else:
            raise SourceFetchError(
                f"Unrecognized {self.name} response shape",
                context={"platform": self.name, "payload_type": type(payload).__name__}
            )

        return [row for row in rows if isinstance(row, dict)]


def _strip_query(url: str) -> str:
    """Drop query parameters so access tokens never reach the logs"""
    return url.split("?", 1)[0]
