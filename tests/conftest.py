"""Shared pytest fixtures for firesim tests.

Fixtures are organized by category:
- Environment fixtures: isolate tests from image model and Gemini credentials
- Request fixtures: generation requests in wire and model form
- Image fixtures: small PNG payloads for provider and storage tests
"""

import base64
import io
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from firesim.models.scenario import GenerationRequest
from firesim.utils.logging import ROOT_LOGGER

ENV_VARS = (
    "IMAGE_MODEL",
    "IMAGE_MODEL_KEY",
    "IMAGE_MODEL_URL",
    "FLUX_DEPLOYMENT",
    "FLUX_API_KEY",
    "FLUX_ENDPOINT",
    "GEMINI_API_KEY",
    "GEMINI_TEXT_MODEL",
)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove credentials so defaults never reach a real endpoint."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo CLI logging setup so caplog sees firesim records."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Request Fixtures
# =============================================================================


@pytest.fixture
def sample_request_dict() -> dict[str, Any]:
    """Return a generation request as it arrives on the wire."""
    return {
        "perimeter": {
            "type": "Feature",
            "geometry": {
                "type": "Polygon",
                "coordinates": [
                    [
                        [149.40, -35.20],
                        [149.42, -35.20],
                        [149.42, -35.22],
                        [149.40, -35.22],
                        [149.40, -35.20],
                    ]
                ],
            },
            "properties": {"drawn": True, "timestamp": "2025-01-15T03:00:00+00:00"},
        },
        "inputs": {
            "fireDangerRating": "extreme",
            "windSpeed": 45,
            "windDirection": "NW",
            "temperature": 38,
            "humidity": 12,
            "timeOfDay": "afternoon",
            "intensity": "veryHigh",
            "fireStage": "established",
        },
        "geoContext": {
            "vegetationType": "Dry Sclerophyll Forest",
            "elevation": {"min": 620, "max": 780, "mean": 700},
            "slope": {"min": 2, "max": 24, "mean": 12},
            "aspect": "NE",
            "dataSource": "NVIS",
            "confidence": "high",
            "nearbyFeatures": ["road", "river"],
        },
        "requestedViews": ["aerial", "ground_north", "helicopter_east"],
    }


@pytest.fixture
def sample_request(sample_request_dict: dict[str, Any]) -> GenerationRequest:
    """Return the sample generation request as a model."""
    return GenerationRequest.from_dict(sample_request_dict)


@pytest.fixture
def request_file(tmp_path: Path, sample_request_dict: dict[str, Any]) -> Path:
    """Write the sample request to a JSON file."""
    path = tmp_path / "request.json"
    path.write_text(json.dumps(sample_request_dict), encoding="utf-8")
    return path


# =============================================================================
# Image Fixtures
# =============================================================================


@pytest.fixture
def png_bytes() -> bytes:
    """Return a small but valid PNG (well over the 100-byte sanity limit)."""
    image = Image.new("RGB", (32, 32))
    image.putdata([(x * 8, y * 8, (x * y) % 256) for y in range(32) for x in range(32)])
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    data = buffer.getvalue()
    assert len(data) >= 100
    return data


@pytest.fixture
def png_base64(png_bytes: bytes) -> str:
    """Return the sample PNG as base64 text."""
    return base64.b64encode(png_bytes).decode("ascii")
