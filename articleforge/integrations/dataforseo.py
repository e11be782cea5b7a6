"""DataForSEO API integration for organic SERP results."""

import base64
import logging
from typing import Any

import httpx

from articleforge.config import settings
from articleforge.core.exceptions import APIKeyMissingError, ExternalAPIError, RateLimitExceededError
from articleforge.schemas.pipeline import SerpResult

logger = logging.getLogger(__name__)

SERP_ENDPOINT = "serp/google/organic/live/regular"


class DataForSEOClient:
    """Client for the DataForSEO v3 API."""

    BASE_URL = "https://api.dataforseo.com/v3"

    def __init__(
        self,
        login: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.login = login or settings.dataforseo_login
        self.password = password or settings.dataforseo_password
        self.timeout = timeout or settings.dataforseo_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.login or not self.password:
            raise APIKeyMissingError("DataForSEO")

    @property
    def _auth_header(self) -> str:
        """Generate Basic Auth header."""
        credentials = f"{self.login}:{self.password}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return f"Basic {encoded}"

    async def __aenter__(self) -> "DataForSEOClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": self._auth_header,
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def _make_request(
        self,
        endpoint: str,
        data: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Make a POST request to DataForSEO API."""
        logger.info("DataForSEO API request", extra={"endpoint": endpoint})
        url = f"{self.BASE_URL}/{endpoint}"

        try:
            response = await self.client.post(url, json=data)

            if response.status_code == 429:
                logger.warning("DataForSEO rate limit hit", extra={"endpoint": endpoint})
                raise RateLimitExceededError("DataForSEO")

            response.raise_for_status()
            result = response.json()

            if result.get("status_code") != 20000:
                logger.warning("DataForSEO API error", extra={"endpoint": endpoint, "status": result.get("status_message")})
                raise ExternalAPIError(
                    "DataForSEO",
                    result.get("status_message", "Unknown error"),
                )

            results = []
            for task in result.get("tasks", []):
                if task.get("status_code") == 20000 and task.get("result"):
                    results.extend(task["result"])

            return results

        except httpx.HTTPError as e:
            logger.warning("DataForSEO HTTP error", extra={"endpoint": endpoint, "error": str(e)})
            raise ExternalAPIError("DataForSEO", str(e)) from e

    async def get_serp_results(
        self,
        keyword: str,
        location_name: str = "United States",
        language_code: str = "en",
        device: str = "desktop",
        depth: int = 10,
    ) -> list[dict[str, Any]]:
        """Get organic SERP results for a keyword.

        Args:
            keyword: Keyword to search
            location_name: DataForSEO location name, e.g. "United States"
            language_code: Language code
            device: "desktop" or "mobile"
            depth: Number of results to request

        Returns:
            Organic result dicts ordered as returned by the API
        """
        logger.info("Fetching SERP results", extra={"keyword": keyword, "device": device, "location": location_name})
        data = [
            {
                "keyword": keyword,
                "location_name": location_name,
                "language_code": language_code,
                "device": device,
                "depth": depth,
            }
        ]

        results = await self._make_request(SERP_ENDPOINT, data)
        if not results:
            return []

        organic_results = []
        for item in results[0].get("items") or []:
            if item.get("type") == "organic":
                organic_results.append({
                    "position": item.get("rank_absolute"),
                    "title": item.get("title"),
                    "url": item.get("url"),
                    "domain": item.get("domain"),
                    "snippet": item.get("description"),
                })

        return organic_results


def to_serp_result(item: dict[str, Any], fallback_position: int) -> SerpResult | None:
    """Convert a raw organic item, dropping entries without a URL."""
    url = item.get("url")
    if not url:
        return None
    return SerpResult(
        title=item.get("title") or url,
        url=url,
        snippet=item.get("snippet") or "",
        position=item.get("position") or fallback_position,
        domain=item.get("domain"),
    )


class DataForSEOSerpProvider:
    """SERP provider for the pipeline backed by ``DataForSEOClient``."""

    def __init__(
        self,
        login: str | None = None,
        password: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.login = login
        self.password = password
        self.transport = transport

    async def fetch_serp(
        self,
        keyword: str,
        *,
        location: str,
        device: str,
        depth: int,
    ) -> list[SerpResult]:
        async with DataForSEOClient(self.login, self.password, transport=self.transport) as client:
            items = await client.get_serp_results(
                keyword,
                location_name=location,
                device=device,
                depth=depth,
            )

        results = []
        for index, item in enumerate(items, start=1):
            converted = to_serp_result(item, index)
            if converted is not None:
                results.append(converted)
        return results
