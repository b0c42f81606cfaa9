"""
Replicate Image Provider

Runs text-to-image models hosted on Replicate (default: FLUX schnell).
Predictions are asynchronous: the create call returns a job with a
`urls.get` address that is polled until the status is terminal.

Pricing (as of 2025):
- flux-schnell: $0.003 per image

API Docs: https://replicate.com/docs/reference/http
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
import httpx

from ...errors import ExternalServiceError
from ...models.generation import ImageOptions
from ..base import (
    ImageGenerationClient,
    ImageProviderConfig,
    http_session,
    normalize_output,
)

logger = logging.getLogger(__name__)


class ReplicateImageClient(ImageGenerationClient):
    """Replicate predictions API client"""

    BASE_URL = "https://api.replicate.com/v1"

    # Replicate reports "canceled" as a terminal state of its own; the
    # pipeline treats it like "failed".
    STATUS_MAP = {
        "starting": "processing",
        "processing": "processing",
        "succeeded": "succeeded",
        "failed": "failed",
        "canceled": "failed",
    }

    def __init__(
        self,
        config: ImageProviderConfig,
        model: str = "black-forest-labs/flux-schnell",
        session: Optional[aiohttp.ClientSession] = None,
        download_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(config)
        self.model = model
        self._session = session
        self._download_client = download_client

        if not self.config.api_key:
            raise ValueError("Replicate API token required")

    @property
    def name(self) -> str:
        return "replicate"

    @property
    def base_url(self) -> str:
        return (self.config.base_url or self.BASE_URL).rstrip("/")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _normalize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        raw_status = str(data.get("status") or "").lower()
        urls = data.get("urls") or {}
        return {
            "id": data.get("id", ""),
            "status": self.STATUS_MAP.get(raw_status, raw_status or "processing"),
            "output": normalize_output(data.get("output")),
            "error": data.get("error"),
            "poll_url": urls.get("get"),
        }

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            async with http_session(self._session, self.config.timeout) as session:
                async with session.request(
                    method, url, headers=self._headers(), **kwargs
                ) as response:
                    if response.status not in (200, 201, 202):
                        error_text = await response.text()
                        raise ExternalServiceError(
                            f"Replicate API error ({response.status})",
                            service="image",
                            status=response.status,
                            detail=error_text,
                        )
                    data = await response.json()
        except aiohttp.ClientError as e:
            raise ExternalServiceError(
                f"Replicate request failed: {e}",
                service="image",
                detail=str(e),
            ) from e
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(
                f"Replicate request timed out after {self.config.timeout}s",
                service="image",
            ) from e

        if not isinstance(data, dict):
            raise ExternalServiceError(
                "Replicate returned an unexpected response body",
                service="image",
                detail=repr(data)[:500],
            )
        return self._normalize(data)

    async def submit(self, prompt: str, options: ImageOptions) -> Dict[str, Any]:
        """Create a prediction for `prompt`"""
        payload = {
            "input": {
                "prompt": prompt,
                "num_outputs": 1,
                "aspect_ratio": options.aspect_ratio,
                "output_format": options.output_format,
                "output_quality": options.output_quality,
            }
        }
        url = f"{self.base_url}/models/{self.model}/predictions"
        job = await self._request("POST", url, json=payload)
        logger.debug("Submitted prediction %s (%s)", job["id"], job["status"])
        return job

    async def check_status(self, poll_url: str) -> Dict[str, Any]:
        """Fetch the prediction at `poll_url`"""
        return await self._request("GET", poll_url)

    async def download(self, url: str) -> bytes:
        """Download the generated image bytes"""
        try:
            if self._download_client is not None:
                response = await self._download_client.get(url, follow_redirects=True)
                response.raise_for_status()
                return response.content
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.get(url, follow_redirects=True)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Image download failed ({e.response.status_code})",
                service="image",
                status=e.response.status_code,
                detail=e.response.text[:500],
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Image download failed: {e}",
                service="image",
                detail=str(e),
            ) from e
