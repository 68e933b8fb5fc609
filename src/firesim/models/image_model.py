"""Image model configuration.

Describes the image generation endpoint (Gemini or a Flux-style deployment)
and the default generation options.
"""

import os
from dataclasses import dataclass, field

VALID_SIZES = frozenset({"1024x1024", "1792x1024", "1024x1792"})
VALID_QUALITIES = frozenset({"standard", "high"})
VALID_STYLES = frozenset({"natural", "vivid"})


def is_gemini_model(model: str | None, url: str | None = None) -> bool:
    """Return True when the model or endpoint belongs to Gemini."""
    if model and model.lower().startswith("gemini-"):
        return True
    return bool(url and "googleapis.com" in url)


@dataclass
class ImageModelConfig:
    """Configuration for the image generation model.

    Attributes:
        model: Model or deployment name (e.g., "gemini-3-pro-image-preview")
        api_key: API key for the endpoint
        url: Endpoint URL (optional for Gemini)
        size: Default image size
        quality: Default image quality
        style: Default image style
        max_retries: Attempts per image before giving up
        timeout_seconds: Per-attempt timeout
    """

    model: str | None = None
    api_key: str | None = None
    url: str | None = None
    size: str = field(default="1024x1024")
    quality: str = field(default="high")
    style: str = field(default="natural")
    max_retries: int = field(default=3)
    timeout_seconds: float = field(default=60.0)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.model is not None:
            self.model = self.model.strip() or None

        if self.size not in VALID_SIZES:
            raise ValueError(f"Invalid image size '{self.size}'. Must be one of: {sorted(VALID_SIZES)}")
        if self.quality not in VALID_QUALITIES:
            raise ValueError(
                f"Invalid image quality '{self.quality}'. Must be one of: {sorted(VALID_QUALITIES)}"
            )
        if self.style not in VALID_STYLES:
            raise ValueError(f"Invalid image style '{self.style}'. Must be one of: {sorted(VALID_STYLES)}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1. Got: {self.max_retries}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive. Got: {self.timeout_seconds}")

    @property
    def is_gemini(self) -> bool:
        """Return True when this config targets Gemini."""
        return is_gemini_model(self.model, self.url)

    @property
    def is_complete(self) -> bool:
        """Return True when a remote provider can be built from this config.

        Gemini has a well-known endpoint, so only the model and key are
        required; other deployments also need a URL.
        """
        if not self.model or not self.api_key:
            return False
        return self.is_gemini or bool(self.url)

    def to_dict(self) -> dict[str, str | int | float | None]:
        """Convert to dictionary for serialization."""
        return {
            "model": self.model,
            "api_key": self.api_key,
            "url": self.url,
            "size": self.size,
            "quality": self.quality,
            "style": self.style,
            "max_retries": self.max_retries,
            "timeout_seconds": self.timeout_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str | int | float | None]) -> "ImageModelConfig":
        """Create ImageModelConfig from dictionary."""
        return cls(
            model=str(data["model"]) if data.get("model") else None,
            api_key=str(data["api_key"]) if data.get("api_key") else None,
            url=str(data["url"]) if data.get("url") else None,
            size=str(data.get("size", "1024x1024")),
            quality=str(data.get("quality", "high")),
            style=str(data.get("style", "natural")),
            max_retries=int(data.get("max_retries", 3)),  # type: ignore[arg-type]
            timeout_seconds=float(data.get("timeout_seconds", 60.0)),  # type: ignore[arg-type]
        )

    @classmethod
    def from_env(cls) -> "ImageModelConfig":
        """Read the image model from the environment.

        ``IMAGE_MODEL``, ``IMAGE_MODEL_KEY`` and ``IMAGE_MODEL_URL`` take
        precedence over the legacy ``FLUX_DEPLOYMENT``, ``FLUX_API_KEY`` and
        ``FLUX_ENDPOINT`` variables.
        """
        return cls(
            model=os.environ.get("IMAGE_MODEL") or os.environ.get("FLUX_DEPLOYMENT"),
            api_key=os.environ.get("IMAGE_MODEL_KEY") or os.environ.get("FLUX_API_KEY"),
            url=os.environ.get("IMAGE_MODEL_URL") or os.environ.get("FLUX_ENDPOINT"),
        )
