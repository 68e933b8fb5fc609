"""Location enrichment through a search-grounded LLM.

Asks the grounding model for a structured description of the landscape around
the fire (terrain, local features, land cover, vegetation and climate) and
parses the answer. Gemini is asked to ground its answer with Google Search;
other providers answer from model knowledge.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from firesim.llm.client import LLMClient, LLMError
from firesim.models.scenario import Confidence

logger = logging.getLogger(__name__)

FALLBACK_TERRAIN = "Remote bushland area."

GROUNDING_TOOLS: list[dict[str, Any]] = [{"googleSearch": {}}]

_TERRAIN_RE = re.compile(
    r"TERRAIN NARRATIVE:\s*\n(.+?)(?=\n\n|LOCAL FEATURES:|$)", re.IGNORECASE | re.DOTALL
)
_FEATURES_RE = re.compile(r"LOCAL FEATURES:\s*\n((?:^- .+$\n?)+)", re.IGNORECASE | re.MULTILINE)
_LAND_COVER_RE = re.compile(r"LAND COVER:\s*\n((?:^- .+$\n?)+)", re.IGNORECASE | re.MULTILINE)
_VEGETATION_RE = re.compile(
    r"VEGETATION CONTEXT:\s*\n(.+?)(?=\n\n|CLIMATE CONTEXT:|$)", re.IGNORECASE | re.DOTALL
)
_CLIMATE_RE = re.compile(r"CLIMATE CONTEXT:\s*\n(.+?)(?=\n\n|$)", re.IGNORECASE | re.DOTALL)


@dataclass
class MapsGroundingRequest:
    """A location to enrich.

    Attributes:
        locality: Locality name (e.g. "Bungendore, New South Wales")
        latitude: Latitude of the fire centroid
        longitude: Longitude of the fire centroid
        vegetation_type: Vegetation already detected
        elevation: Mean elevation in metres
        nearby_features: Features already known
    """

    locality: str
    latitude: float
    longitude: float
    vegetation_type: str | None = None
    elevation: float | None = None
    nearby_features: list[str] = field(default_factory=list)


@dataclass
class MapsGroundingResult:
    """Parsed enrichment.

    Attributes:
        terrain_narrative: Two or three sentences describing the landscape
        local_features: Features within about 5 km
        land_cover: Dominant land cover types
        vegetation_context: Regional vegetation description
        climate_context: Local climate and fire season
        confidence: Confidence in the enrichment
        success: Whether enrichment succeeded
        error: Reason for failure, if any
    """

    terrain_narrative: str
    local_features: list[str] = field(default_factory=list)
    land_cover: list[str] = field(default_factory=list)
    vegetation_context: str | None = None
    climate_context: str | None = None
    confidence: Confidence = Confidence.LOW
    success: bool = False
    error: str | None = None

    @classmethod
    def fallback(cls, error: str) -> "MapsGroundingResult":
        """Create the result returned when enrichment is not possible."""
        return cls(terrain_narrative=FALLBACK_TERRAIN, error=error)


def build_enrichment_prompt(request: MapsGroundingRequest) -> str:
    """Build the enrichment prompt for a location."""
    prompt = f"""You are a geographic analyst helping fire service trainers understand the landscape for bushfire simulation scenarios.

Location: {request.locality}
Coordinates: {request.latitude:.4f}°, {request.longitude:.4f}°

Provide a detailed geographic enrichment for this location focusing on:

1. TERRAIN NARRATIVE: Describe the landscape in 2-3 sentences. Include topography (valleys, hills, ridges, escarpments), landforms, and notable geographic features. Be specific and authoritative.

2. LOCAL FEATURES: List specific geographic features within 5km (e.g., valleys, creeks, ridges, roads, settlements). Be concrete.

3. LAND COVER: Describe the dominant land cover types (forest, grassland, agricultural, urban, etc.).

4. VEGETATION CONTEXT: Describe typical vegetation for this region. Include tree species, understory, and fuel types relevant to bushfire behavior.

5. CLIMATE CONTEXT: Describe the local climate patterns, typical fire season, and weather influences (e.g., coastal proximity, elevation effects)."""

    if request.vegetation_type:
        prompt += f"\n\nExisting vegetation type detected: {request.vegetation_type}"
    if request.elevation is not None:
        prompt += f"\nElevation: {round(request.elevation)}m"
    if request.nearby_features:
        prompt += f"\nNearby features detected: {', '.join(request.nearby_features)}"

    prompt += """

Provide your response in this exact format:

TERRAIN NARRATIVE:
[Your terrain description]

LOCAL FEATURES:
- [Feature 1]
- [Feature 2]
- [Feature 3]

LAND COVER:
- [Cover type 1]
- [Cover type 2]

VEGETATION CONTEXT:
[Vegetation description]

CLIMATE CONTEXT:
[Climate description]"""

    return prompt


def _bullets(block: str) -> list[str]:
    items = []
    for line in block.split("\n"):
        item = re.sub(r"^- ", "", line).strip()
        if item:
            items.append(item)
    return items


def parse_structured_response(text: str) -> dict[str, Any]:
    """Split a structured enrichment answer into its sections.

    Returns:
        Dictionary with any of terrain_narrative, local_features, land_cover,
        vegetation_context and climate_context
    """
    sections: dict[str, Any] = {}

    if match := _TERRAIN_RE.search(text):
        sections["terrain_narrative"] = match.group(1).strip()
    if match := _FEATURES_RE.search(text):
        sections["local_features"] = _bullets(match.group(1))
    if match := _LAND_COVER_RE.search(text):
        sections["land_cover"] = _bullets(match.group(1))
    if match := _VEGETATION_RE.search(text):
        sections["vegetation_context"] = match.group(1).strip()
    if match := _CLIMATE_RE.search(text):
        sections["climate_context"] = match.group(1).strip()

    return sections


class MapsGroundingService:
    """Geographic enrichment backed by the grounding LLM."""

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    def is_available(self) -> bool:
        """Return True when the grounding model is configured and enabled."""
        config = self.client.config
        return bool(config.enabled and config.model)

    async def enrich_location(self, request: MapsGroundingRequest) -> MapsGroundingResult:
        """Enrich a location with terrain, feature and climate context.

        Never raises; failures produce a fallback result with ``success=False``.
        """
        if not self.is_available():
            return MapsGroundingResult.fallback("Maps grounding service not configured")

        if not request.locality or not request.locality.strip():
            return MapsGroundingResult.fallback("Empty or invalid locality")

        logger.info("Requesting locality enrichment for %s", request.locality)
        tools = GROUNDING_TOOLS if self.client.config.supports_search_grounding else None

        try:
            response = await self.client.complete(build_enrichment_prompt(request), tools=tools)
        except LLMError as e:
            logger.warning("Locality enrichment failed for %s: %s", request.locality, e)
            return MapsGroundingResult.fallback(str(e))

        if not response.content.strip():
            return MapsGroundingResult.fallback("Empty response from API")

        sections = parse_structured_response(response.content)
        terrain = sections.get("terrain_narrative") or self._fallback_terrain(request)

        logger.info(
            "Locality enrichment for %s: %d features, grounded=%s",
            request.locality,
            len(sections.get("local_features", [])),
            response.grounded,
        )

        return MapsGroundingResult(
            terrain_narrative=terrain,
            local_features=sections.get("local_features", []),
            land_cover=sections.get("land_cover", []),
            vegetation_context=sections.get("vegetation_context"),
            climate_context=sections.get("climate_context"),
            confidence=Confidence.HIGH if response.grounded else Confidence.MEDIUM,
            success=True,
        )

    @staticmethod
    def _fallback_terrain(request: MapsGroundingRequest) -> str:
        if request.vegetation_type:
            return f"{request.locality} - {request.vegetation_type} landscape."
        return f"{request.locality} - bushland area."
