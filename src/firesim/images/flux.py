"""Flux-style image provider.

Supports two endpoint shapes:

- Serverless deployments (URL containing ``/providers/``, e.g. Black Forest
  Labs models) take width, height, steps and guidance with Bearer auth.
- OpenAI-compatible deployments take a size string, ``n`` and
  ``response_format`` with an ``api-key`` header.
"""

import base64
import logging
import re
import time
from typing import Any

import httpx

from firesim.images.base import (
    REFERENCE_IMAGE_INSTRUCTION,
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenMetadata,
    ImageGenOptions,
    ImageGenResult,
    check_image_size,
    parse_size,
    prompt_hash,
)
from firesim.models.image_model import ImageModelConfig

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-12-01-preview"
REQUEST_TIMEOUT_SECONDS = 120.0

_DATA_URL_PAYLOAD = re.compile(r"base64,(.+)", re.DOTALL)


def is_serverless_endpoint(url: str | None) -> bool:
    """Return True for serverless (``/providers/``) endpoints."""
    return bool(url and "/providers/" in url)


def extract_base64(payload: Any) -> str | None:
    """Extract base64 image data from the supported response formats.

    - OpenAI: ``{"data": [{"b64_json": ...}]}``
    - Serverless: ``{"image": {"url": "data:image/png;base64,..."}}``
    - Serverless: ``{"images": [{"bytes": ...}]}``
    - Serverless: ``{"sample": ...}``
    """
    if not isinstance(payload, dict):
        return None

    data = payload.get("data")
    if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get("b64_json"):
        return str(data[0]["b64_json"])

    image = payload.get("image")
    if isinstance(image, dict) and image.get("url"):
        url = str(image["url"])
        match = _DATA_URL_PAYLOAD.search(url)
        return match.group(1) if match else url

    images = payload.get("images")
    first = images[0] if isinstance(images, list) and images else None
    if isinstance(first, dict) and first.get("bytes"):
        return str(first["bytes"])

    sample = payload.get("sample")
    if isinstance(sample, str):
        match = _DATA_URL_PAYLOAD.search(sample)
        return match.group(1) if match else sample

    return None


class FluxImageProvider(ImageGenerationProvider):
    """Image provider for Flux-style HTTP deployments."""

    max_concurrent = 2

    def __init__(
        self,
        config: ImageModelConfig,
        client: httpx.AsyncClient | None = None,
        api_version: str = DEFAULT_API_VERSION,
    ) -> None:
        self.config = config
        self.model_id = config.model or ""
        self.api_version = api_version
        self._client = client

    def is_available(self) -> bool:
        return bool(self.config.api_key and self.config.model and self.config.url)

    @property
    def endpoint(self) -> str:
        """Request URL.

        Serverless and full ``images/generations`` URLs are used as given;
        a bare resource URL gets the OpenAI deployment path appended.
        """
        url = (self.config.url or "").rstrip("/")
        if is_serverless_endpoint(url) or "/images/generations" in url:
            return url
        return (
            f"{url}/openai/deployments/{self.model_id}/images/generations"
            f"?api-version={self.api_version}"
        )

    def build_request(
        self, prompt: str, options: ImageGenOptions
    ) -> tuple[dict[str, Any], dict[str, str]]:
        """Build the request body and headers for the configured endpoint."""
        size = options.size or self.config.size
        width, height = parse_size(size)
        effective_prompt = prompt
        image_b64: str | None = None

        if options.reference_image:
            image_b64 = base64.b64encode(options.reference_image).decode("ascii")
            effective_prompt = REFERENCE_IMAGE_INSTRUCTION + prompt

        body: dict[str, Any]
        if is_serverless_endpoint(self.config.url):
            body = {
                "prompt": effective_prompt,
                "width": width,
                "height": height,
                "steps": 25,
                "guidance": 3.5,
                "safety_tolerance": 5,
                "seed": options.seed,
            }
            headers = {"Authorization": f"Bearer {self.config.api_key}"}
        else:
            body = {
                "prompt": effective_prompt,
                "size": size,
                "n": 1,
                "response_format": "b64_json",
            }
            headers = {"api-key": self.config.api_key or ""}

        if image_b64:
            body["image"] = image_b64
        return body, headers

    async def generate_image(
        self,
        prompt: str,
        options: ImageGenOptions | None = None,
    ) -> ImageGenResult:
        options = options or ImageGenOptions()
        start = time.monotonic()
        width, height = parse_size(options.size or self.config.size)
        body, headers = self.build_request(prompt, options)

        try:
            if self._client is not None:
                response = await self._client.post(self.endpoint, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
                    response = await client.post(self.endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise ImageGenerationError(f"Image model request failed: {e}") from e

        if response.is_error:
            raise ImageGenerationError(
                f"Image model API error {response.status_code}: {response.text[:500]}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ImageGenerationError(
                f"Image model API returned invalid JSON: {response.text[:300]}"
            ) from e

        b64 = extract_base64(payload)
        if not b64:
            raise ImageGenerationError(
                f"Image model API returned no image data. Response: {response.text[:300]}"
            )

        try:
            image_data = base64.b64decode(b64)
        except ValueError as e:
            raise ImageGenerationError("Image model API returned undecodable image data") from e
        check_image_size(image_data)

        return ImageGenResult(
            image_data=image_data,
            format="png",
            metadata=ImageGenMetadata(
                model=self.model_id,
                prompt_hash=prompt_hash(prompt),
                generation_time_ms=int((time.monotonic() - start) * 1000),
                width=width,
                height=height,
                seed=options.seed,
            ),
        )
