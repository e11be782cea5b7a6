"""OpenAI-compatible image generation integration."""

import logging
from typing import Any

import httpx

from articleforge.config import settings
from articleforge.core.exceptions import APIKeyMissingError, ExternalAPIError, RateLimitExceededError
from articleforge.services.pipeline.ports import ImageRequest, ImageResult

logger = logging.getLogger(__name__)

BRAND_COLORS_SUFFIX = " Use the brand's color palette consistently."


class OpenAIImageClient:
    """Client for the ``/images/generations`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.image_model
        self.timeout = timeout or settings.image_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.api_key:
            raise APIKeyMissingError("OpenAI Images")

    async def __aenter__(self) -> "OpenAIImageClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
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

    async def generate_image(self, request: ImageRequest) -> ImageResult:
        """Generate one image for ``request``."""
        logger.info(
            "Image generation request",
            extra={"model": self.model, "size": request.size, "quality": request.quality, "style": request.style},
        )
        prompt = request.prompt
        if request.apply_brand_colors:
            prompt += BRAND_COLORS_SUFFIX
        payload = {
            "model": self.model,
            "prompt": prompt,
            "size": request.size,
            "quality": request.quality,
            "n": 1,
        }

        try:
            response = await self.client.post(f"{self.base_url}/images/generations", json=payload)

            if response.status_code == 429:
                logger.warning("Image API rate limit hit", extra={"model": self.model})
                raise RateLimitExceededError("OpenAI Images")

            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.warning("Image API HTTP error", extra={"model": self.model, "error": str(e)})
            raise ExternalAPIError("OpenAI Images", str(e)) from e

        items = body.get("data") or []
        if not items or not items[0].get("url"):
            raise ExternalAPIError("OpenAI Images", "response contained no image URL")
        return ImageResult(url=items[0]["url"], revised_prompt=items[0].get("revised_prompt"))


class OpenAIImageGenerator:
    """Image generator for the pipeline backed by ``OpenAIImageClient``."""

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.transport = transport

    async def generate_image(self, request: ImageRequest) -> ImageResult:
        async with OpenAIImageClient(self.api_key, transport=self.transport) as client:
            return await client.generate_image(request)
