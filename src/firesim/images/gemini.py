"""Gemini image provider.

Calls ``streamGenerateContent`` with server-sent events. Gemini 3 models
stream their reasoning as "thought" parts before the image, so the stream is
read with an inactivity timeout rather than a total one: as long as the model
keeps producing data we keep listening.
"""

import asyncio
import base64
import json
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from firesim.images.base import (
    REFERENCE_IMAGE_INSTRUCTION,
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenMetadata,
    ImageGenOptions,
    ImageGenResult,
    ThinkingCallback,
    check_image_size,
    parse_size,
    prompt_hash,
)
from firesim.models.image_model import ImageModelConfig

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
INACTIVITY_TIMEOUT_SECONDS = 60.0

ASPECT_RATIOS = {
    "1792x1024": "16:9",
    "1024x1792": "9:16",
    "1024x1024": "1:1",
}

SYSTEM_INSTRUCTION = (
    "You are a photorealistic bushfire scenario renderer for Australian fire service training. "
    "Generate a single high-quality image per request. Each image is part of a multi-perspective set "
    "depicting the SAME fire event at the SAME moment in time. Maintain strict visual consistency: "
    "identical smoke plume shape and colour, identical flame intensity, identical vegetation state, "
    "identical weather conditions (cloud cover, haze, lighting), and identical terrain features across "
    "all perspectives. Use Australian flora (eucalyptus, banksia, spinifex) and realistic fire behaviour. "
    "Never include people, animals, vehicles, or text overlays in the image."
)


def size_to_aspect_ratio(size: str | None) -> str:
    """Map an image size to a Gemini aspect ratio (square by default)."""
    return ASPECT_RATIOS.get(size or "", "1:1")


def is_gemini3(model: str) -> bool:
    """Gemini 3 models support thinking output and 2K images."""
    return "gemini-3" in model.lower()


def _part_image_data(part: dict[str, Any]) -> str | None:
    for key in ("inlineData", "inline_data"):
        inline = part.get(key)
        if isinstance(inline, dict) and inline.get("data"):
            return str(inline["data"])
    return None


def extract_response(parts: list[dict[str, Any]]) -> tuple[str | None, str | None]:
    """Pick the image and the model's text out of accumulated response parts.

    The last non-thought image wins; a thought image is used only when no
    other image was returned.

    Returns:
        Tuple of (base64 image data or None, joined non-thought text or None)
    """
    text_parts = [str(p["text"]) for p in parts if p.get("text") and not p.get("thought")]
    text = "\n".join(text_parts) if text_parts else None

    for part in reversed(parts):
        data = _part_image_data(part)
        if data and not part.get("thought"):
            return data, text

    for part in parts:
        data = _part_image_data(part)
        if data:
            return data, text

    return None, text


class GeminiImageProvider(ImageGenerationProvider):
    """Image provider for Gemini image models."""

    max_concurrent = 2

    def __init__(
        self,
        config: ImageModelConfig,
        client: httpx.AsyncClient | None = None,
        inactivity_timeout: float = INACTIVITY_TIMEOUT_SECONDS,
    ) -> None:
        self.config = config
        self.model_id = config.model or ""
        self.inactivity_timeout = inactivity_timeout
        self._client = client

    def is_available(self) -> bool:
        return bool(self.config.model and self.config.api_key)

    @property
    def endpoint(self) -> str:
        base_url = (self.config.url or DEFAULT_GEMINI_BASE_URL).rstrip("/")
        return f"{base_url}/models/{self.model_id}:streamGenerateContent"

    def build_request_body(self, prompt: str, options: ImageGenOptions) -> dict[str, Any]:
        """Build the ``streamGenerateContent`` request body."""
        parts: list[dict[str, Any]] = []
        effective_prompt = prompt

        if options.reference_image:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": "image/png",
                        "data": base64.b64encode(options.reference_image).decode("ascii"),
                    }
                }
            )
            effective_prompt = REFERENCE_IMAGE_INSTRUCTION + prompt

        parts.append({"text": effective_prompt})

        gemini3 = is_gemini3(self.model_id)
        image_config = {"aspectRatio": size_to_aspect_ratio(options.size)}
        if gemini3:
            image_config["imageSize"] = "2K"

        generation_config: dict[str, Any] = {
            "responseModalities": ["TEXT", "IMAGE"],
            "imageConfig": image_config,
        }
        if gemini3:
            generation_config["thinkingConfig"] = {"includeThoughts": True}

        body: dict[str, Any] = {
            "contents": [{"parts": parts}],
            "generationConfig": generation_config,
        }
        if gemini3:
            body["systemInstruction"] = {"parts": [{"text": SYSTEM_INSTRUCTION}]}
        return body

    async def generate_image(
        self,
        prompt: str,
        options: ImageGenOptions | None = None,
    ) -> ImageGenResult:
        options = options or ImageGenOptions()
        start = time.monotonic()
        width, height = parse_size(options.size)
        body = self.build_request_body(prompt, options)

        try:
            if self._client is not None:
                parts, thinking = await self._stream(self._client, body, options.on_thinking_update)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(30.0, read=None)) as client:
                    parts, thinking = await self._stream(client, body, options.on_thinking_update)
        except httpx.HTTPError as e:
            raise ImageGenerationError(f"Image model request failed: {e}") from e

        logger.debug(
            "SSE stream complete: %d parts, thinking %s",
            len(parts),
            f"{len(thinking)} chars" if thinking else "(none)",
        )

        image_b64, text = extract_response(parts)
        if not image_b64:
            preview = f"\n\nModel thinking:\n{thinking}" if thinking else ""
            raise ImageGenerationError(
                f"Image model API returned no image data. The model may still be processing.{preview}",
                thinking_text=thinking or text,
            )

        image_data = base64.b64decode(image_b64)
        check_image_size(image_data)

        if text:
            logger.debug("Model text response: %s", text[:300])

        return ImageGenResult(
            image_data=image_data,
            format="png",
            thinking_text=thinking or text,
            model_text_response=text,
            metadata=ImageGenMetadata(
                model=self.model_id,
                prompt_hash=prompt_hash(prompt),
                generation_time_ms=int((time.monotonic() - start) * 1000),
                width=width,
                height=height,
                seed=options.seed,
            ),
        )

    async def _stream(
        self,
        client: httpx.AsyncClient,
        body: dict[str, Any],
        on_thinking_update: ThinkingCallback | None,
    ) -> tuple[list[dict[str, Any]], str | None]:
        params = {"alt": "sse", "key": self.config.api_key or ""}
        async with client.stream("POST", self.endpoint, params=params, json=body) as response:
            if response.is_error:
                text = (await response.aread()).decode("utf-8", errors="replace")
                raise ImageGenerationError(
                    f"Image model API error {response.status_code}: {text[:500]}"
                )
            return await self.read_sse_stream(response.aiter_lines(), on_thinking_update)

    async def read_sse_stream(
        self,
        lines: AsyncIterator[str],
        on_thinking_update: ThinkingCallback | None = None,
    ) -> tuple[list[dict[str, Any]], str | None]:
        """Accumulate content parts from an SSE line stream.

        Returns:
            Tuple of (all content parts, accumulated thinking text or None)

        Raises:
            ImageGenerationError: If no line arrives within the inactivity timeout
        """
        parts: list[dict[str, Any]] = []
        thoughts: list[str] = []

        while True:
            try:
                line = await asyncio.wait_for(_next_line(lines), timeout=self.inactivity_timeout)
            except asyncio.TimeoutError as e:
                raise ImageGenerationError(
                    f"Image model stream stalled: no data for {self.inactivity_timeout:g} seconds",
                    thinking_text="\n".join(thoughts) or None,
                ) from e
            if line is None:
                break

            line = line.strip()
            if not line.startswith("data:"):
                continue
            data = line[len("data:") :].strip()
            if not data or data == "[DONE]":
                continue

            try:
                chunk = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed SSE chunk: %s", data[:100])
                continue

            for part in _chunk_parts(chunk):
                if part.get("thought") and part.get("text"):
                    thoughts.append(str(part["text"]))
                    if on_thinking_update is not None:
                        on_thinking_update("\n".join(thoughts))
                parts.append(part)

        return parts, "\n".join(thoughts) or None


async def _next_line(lines: AsyncIterator[str]) -> str | None:
    try:
        return await lines.__anext__()
    except StopAsyncIteration:
        return None


def _chunk_parts(chunk: Any) -> list[dict[str, Any]]:
    if not isinstance(chunk, dict):
        return []
    candidates = chunk.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []
    content = candidates[0].get("content") or {}
    return [p for p in content.get("parts") or [] if isinstance(p, dict)]
