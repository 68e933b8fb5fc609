"""Image generator service.

Wraps a provider with default options, a per-attempt timeout and retries
with exponential backoff (1s, 4s, 16s, ...).
"""

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from firesim.images.base import (
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenOptions,
    ImageGenResult,
)

if TYPE_CHECKING:
    from firesim.models.image_model import ImageModelConfig

logger = logging.getLogger(__name__)


class ImageGeneratorService:
    """Generate images through a provider with retries."""

    def __init__(
        self,
        provider: ImageGenerationProvider,
        default_size: str = "1024x1024",
        default_quality: str = "high",
        default_style: str = "natural",
        max_retries: int = 3,
        timeout_seconds: float = 60.0,
        retry_base_delay: float = 1.0,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1. Got: {max_retries}")
        self.provider = provider
        self.default_size = default_size
        self.default_quality = default_quality
        self.default_style = default_style
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self.retry_base_delay = retry_base_delay

    @classmethod
    def from_config(
        cls,
        config: "ImageModelConfig",
        provider: ImageGenerationProvider | None = None,
    ) -> "ImageGeneratorService":
        """Build a service from image model configuration."""
        return cls(
            provider or create_provider(config),
            default_size=config.size,
            default_quality=config.quality,
            default_style=config.style,
            max_retries=config.max_retries,
            timeout_seconds=config.timeout_seconds,
        )

    @property
    def model_id(self) -> str:
        return self.provider.model_id

    @property
    def max_concurrent(self) -> int:
        return self.provider.max_concurrent

    def is_available(self) -> bool:
        return self.provider.is_available()

    def merge_options(self, options: ImageGenOptions | None) -> ImageGenOptions:
        """Fill unset size, quality and style from the service defaults."""
        options = options or ImageGenOptions()
        return replace(
            options,
            size=options.size or self.default_size,
            quality=options.quality or self.default_quality,
            style=options.style or self.default_style,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay in seconds after a failed ``attempt`` (1-based)."""
        return self.retry_base_delay * 4 ** (attempt - 1)

    async def generate_image(
        self,
        prompt: str,
        options: ImageGenOptions | None = None,
    ) -> ImageGenResult:
        """Generate an image, retrying failed attempts.

        Raises:
            ImageGenerationError: The last error once all attempts have failed
        """
        merged = self.merge_options(options)
        last_error: ImageGenerationError | None = None

        for attempt in range(1, self.max_retries + 1):
            logger.debug(
                "Generating image: attempt %d/%d model=%s size=%s prompt_length=%d",
                attempt,
                self.max_retries,
                self.model_id,
                merged.size,
                len(prompt),
            )
            try:
                result = await asyncio.wait_for(
                    self.provider.generate_image(prompt, merged),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                last_error = ImageGenerationError(
                    f"Operation timed out after {self.timeout_seconds:g} seconds"
                )
            except ImageGenerationError as e:
                last_error = e
            except Exception as e:
                last_error = ImageGenerationError(str(e) or type(e).__name__)
                last_error.__cause__ = e
            else:
                logger.debug(
                    "Image generation successful: attempt %d model=%s time=%dms hash=%s",
                    attempt,
                    result.metadata.model,
                    result.metadata.generation_time_ms,
                    result.metadata.prompt_hash,
                )
                return result

            will_retry = attempt < self.max_retries
            logger.warning(
                "Image generation failed (attempt %d/%d, retry=%s): %s",
                attempt,
                self.max_retries,
                will_retry,
                last_error,
            )
            if will_retry:
                await asyncio.sleep(self.backoff_delay(attempt))

        if last_error is None:
            last_error = ImageGenerationError("Image generation failed after retries")
        raise last_error


def create_provider(config: "ImageModelConfig") -> ImageGenerationProvider:
    """Select a provider for the configured image model.

    Gemini models get the Gemini provider, other complete configurations the
    Flux-style provider, and anything incomplete the offline placeholder.
    """
    if not config.is_complete:
        from firesim.images.placeholder import PlaceholderImageProvider

        logger.warning("No image model configured; using the placeholder provider")
        return PlaceholderImageProvider()

    if config.is_gemini:
        from firesim.images.gemini import GeminiImageProvider

        return GeminiImageProvider(config)

    from firesim.images.flux import FluxImageProvider

    return FluxImageProvider(config)
