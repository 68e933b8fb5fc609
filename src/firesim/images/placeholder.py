"""Offline placeholder provider.

Renders a simple landscape card with Pillow so that the full pipeline can
run without an image model configured. The same prompt and seed always
produce the same image.
"""

import hashlib
import io
import logging
import time

from PIL import Image, ImageDraw

from firesim.images.base import (
    ImageGenerationProvider,
    ImageGenMetadata,
    ImageGenOptions,
    ImageGenResult,
    parse_size,
    prompt_hash,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_MODEL_ID = "placeholder"


def _palette(prompt: str, seed: int | None) -> list[tuple[int, int, int]]:
    digest = hashlib.sha256(f"{seed}:{prompt}".encode()).digest()
    sky = (150 + digest[0] % 60, 110 + digest[1] % 50, 80 + digest[2] % 40)
    ground = (60 + digest[3] % 50, 70 + digest[4] % 50, 30 + digest[5] % 30)
    flame = (220 + digest[6] % 36, 80 + digest[7] % 80, digest[8] % 40)
    smoke = (90 + digest[9] % 60,) * 3
    return [sky, ground, flame, smoke]


def render_placeholder(prompt: str, width: int, height: int, seed: int | None = None) -> bytes:
    """Render a deterministic PNG for ``prompt``."""
    sky, ground, flame, smoke = _palette(prompt, seed)
    horizon = int(height * 0.6)

    image = Image.new("RGB", (width, height), sky)
    draw = ImageDraw.Draw(image)
    draw.rectangle([0, horizon, width, height], fill=ground)
    draw.ellipse(
        [int(width * 0.3), int(height * 0.1), int(width * 0.75), int(height * 0.5)],
        fill=smoke,
    )
    draw.polygon(
        [
            (int(width * 0.35), horizon),
            (int(width * 0.5), int(height * 0.4)),
            (int(width * 0.65), horizon),
        ],
        fill=flame,
    )
    draw.text((10, 10), f"firesim placeholder {prompt_hash(prompt)}", fill=(255, 255, 255))

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class PlaceholderImageProvider(ImageGenerationProvider):
    """Local provider that needs no credentials."""

    model_id = PLACEHOLDER_MODEL_ID
    max_concurrent = 4

    def is_available(self) -> bool:
        return True

    async def generate_image(
        self,
        prompt: str,
        options: ImageGenOptions | None = None,
    ) -> ImageGenResult:
        options = options or ImageGenOptions()
        start = time.monotonic()
        width, height = parse_size(options.size)

        image_data = render_placeholder(prompt, width, height, options.seed)
        logger.debug("Rendered placeholder image %dx%d (%d bytes)", width, height, len(image_data))

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
