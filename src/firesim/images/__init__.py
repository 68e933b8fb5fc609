"""Image generation providers."""

from firesim.images.base import (
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenMetadata,
    ImageGenOptions,
    ImageGenResult,
    prompt_hash,
)
from firesim.images.flux import FluxImageProvider
from firesim.images.gemini import GeminiImageProvider
from firesim.images.generator import ImageGeneratorService, create_provider
from firesim.images.placeholder import PlaceholderImageProvider

__all__ = [
    "FluxImageProvider",
    "GeminiImageProvider",
    "ImageGenMetadata",
    "ImageGenOptions",
    "ImageGenResult",
    "ImageGenerationError",
    "ImageGenerationProvider",
    "ImageGeneratorService",
    "PlaceholderImageProvider",
    "create_provider",
    "prompt_hash",
]
