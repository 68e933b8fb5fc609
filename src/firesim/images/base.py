"""Image generation provider interface.

Providers turn a text prompt into PNG bytes. Remote providers are reached
over HTTP with ``httpx``; the placeholder provider renders locally.
"""

import hashlib
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

DEFAULT_SIZE = "1024x1024"

REFERENCE_IMAGE_INSTRUCTION = (
    "The provided reference image shows the same fire event at the same moment from another "
    "viewpoint. Keep the smoke plume, flame intensity, vegetation, weather and lighting "
    "identical to the reference while rendering the scene from the perspective described "
    "below.\n\n"
)

ThinkingCallback = Callable[[str], None]


class ImageGenerationError(Exception):
    """Raised when a provider fails to produce an image.

    Attributes:
        thinking_text: Reasoning text the model emitted before failing, if any
    """

    def __init__(self, message: str, thinking_text: str | None = None) -> None:
        super().__init__(message)
        self.thinking_text = thinking_text


@dataclass
class ImageGenOptions:
    """Options for a single image generation call.

    Attributes:
        size: Image size as "WIDTHxHEIGHT"
        quality: "standard" or "high"
        style: "natural" or "vivid"
        seed: Seed for reproducibility, where the provider supports it
        reference_image: PNG bytes to keep the image consistent with
        reference_strength: How closely to follow the reference (0-1)
        on_thinking_update: Called with accumulated thinking text while streaming
    """

    size: str | None = None
    quality: str | None = None
    style: str | None = None
    seed: int | None = None
    reference_image: bytes | None = None
    reference_strength: float | None = None
    on_thinking_update: ThinkingCallback | None = field(default=None, repr=False)


@dataclass
class ImageGenMetadata:
    """Metadata about a generated image."""

    model: str
    prompt_hash: str
    generation_time_ms: int
    width: int
    height: int
    seed: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "model": self.model,
            "promptHash": self.prompt_hash,
            "generationTime": self.generation_time_ms,
            "width": self.width,
            "height": self.height,
            "seed": self.seed,
        }


@dataclass
class ImageGenResult:
    """A generated image.

    Attributes:
        image_data: Encoded image bytes
        format: Image format ("png")
        metadata: Generation metadata
        thinking_text: Model reasoning, or its text response when no thoughts were emitted
        model_text_response: Non-thought text the model returned alongside the image
    """

    image_data: bytes
    format: str
    metadata: ImageGenMetadata
    thinking_text: str | None = None
    model_text_response: str | None = None


class ImageGenerationProvider(ABC):
    """Abstract base class for image generation providers."""

    model_id: str = ""
    max_concurrent: int = 2

    @abstractmethod
    def is_available(self) -> bool:
        """Return True when the provider is configured well enough to be called."""

    @abstractmethod
    async def generate_image(
        self,
        prompt: str,
        options: ImageGenOptions | None = None,
    ) -> ImageGenResult:
        """Generate a single image.

        Raises:
            ImageGenerationError: If the provider cannot produce an image
        """


def prompt_hash(prompt: str) -> str:
    """Return the first 16 hex characters of the prompt's SHA-256."""
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:16]


def parse_size(size: str | None) -> tuple[int, int]:
    """Split a "WIDTHxHEIGHT" size into integers."""
    width, _, height = (size or DEFAULT_SIZE).partition("x")
    try:
        return int(width), int(height)
    except ValueError as e:
        raise ValueError(f"Invalid image size: {size!r}") from e


def check_image_size(image_data: bytes) -> None:
    """Reject responses too small to be a real image.

    Raises:
        ImageGenerationError: If fewer than 100 bytes were returned
    """
    if len(image_data) < 100:
        raise ImageGenerationError(
            f"Generated image is suspiciously small ({len(image_data)} bytes). "
            "This may indicate an API error or placeholder response."
        )
