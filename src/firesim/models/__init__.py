"""firesim data models.

This module exports the core entities used throughout the application:
- GenerationRequest: Fire perimeter, scenario inputs, geographic context and views
- GenerationProgress / GenerationResult: Live and final state of a generation
- ScenarioMetadata: Stored record of a generated scenario
- ImageModelConfig / LLMConfig: Image model and grounding LLM settings
"""

from firesim.models.image_model import ImageModelConfig
from firesim.models.llm_config import LLMConfig
from firesim.models.scenario import (
    Confidence,
    FireDangerRating,
    FirePerimeter,
    FireStage,
    GeneratedImage,
    GenerationLog,
    GenerationProgress,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    GeoContext,
    ImageMetadata,
    Intensity,
    RangeStatistic,
    ScenarioInputs,
    ScenarioMetadata,
    TimeOfDay,
    ViewPoint,
    WindDirection,
)

__all__ = [
    "Confidence",
    "FireDangerRating",
    "FirePerimeter",
    "FireStage",
    "GeneratedImage",
    "GenerationLog",
    "GenerationProgress",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    "GeoContext",
    "ImageMetadata",
    "ImageModelConfig",
    "Intensity",
    "LLMConfig",
    "RangeStatistic",
    "ScenarioInputs",
    "ScenarioMetadata",
    "TimeOfDay",
    "ViewPoint",
    "WindDirection",
]
