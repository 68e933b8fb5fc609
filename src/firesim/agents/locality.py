"""Locality agent.

Second stage of the enrichment sequence: researches the landscape around the
fire through the grounding service, or falls back to a basic description
built from the geographic context alone.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from firesim.llm.grounding import MapsGroundingRequest, MapsGroundingService
from firesim.models.scenario import Confidence, GeoContext
from firesim.prompts.generator import describe_terrain

logger = logging.getLogger(__name__)

BASIC_FEATURE_DESCRIPTIONS: dict[str, str] = {
    "road": "Road nearby",
    "escarpment": "Steep escarpment",
    "river": "River valley",
    "residential_area": "Residential areas in distance",
    "rural_residential": "Rural properties",
}


@dataclass
class LocalityEnrichment:
    """Geographic enrichment of a scenario.

    Attributes:
        terrain_narrative: Landscape description
        local_features: Local geographic features
        land_cover: Land cover types
        data_source: Where the enrichment came from
        confidence: Confidence in the enrichment
        maps_grounding_used: Whether the grounding service produced it
        vegetation_context: Regional vegetation description
        climate_context: Climate and fire season description
    """

    terrain_narrative: str
    local_features: list[str] = field(default_factory=list)
    land_cover: list[str] = field(default_factory=list)
    data_source: str = ""
    confidence: Confidence = Confidence.LOW
    maps_grounding_used: bool = False
    vegetation_context: str | None = None
    climate_context: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "terrainNarrative": self.terrain_narrative,
            "localFeatures": list(self.local_features),
            "landCover": list(self.land_cover),
            "vegetationContext": self.vegetation_context,
            "climateContext": self.climate_context,
            "dataSource": self.data_source,
            "confidence": self.confidence.value,
            "mapsGroundingUsed": self.maps_grounding_used,
        }


class LocalityAgent:
    """Enrich geographic context with locality information."""

    name = "LocalityAgent"

    def __init__(self, grounding: MapsGroundingService | None = None) -> None:
        self.grounding = grounding

    async def enrich_locality(
        self,
        geo_context: GeoContext,
        centroid: tuple[float, float],
    ) -> LocalityEnrichment:
        """Enrich the context of a fire at ``centroid`` (longitude, latitude).

        Uses the grounding service when the context names a locality and the
        service is available; otherwise returns a basic enrichment. Never
        raises.
        """
        if not geo_context.locality or self.grounding is None:
            return self.basic_enrichment(geo_context)

        if not self.grounding.is_available():
            logger.info("Locality grounding not available, using basic enrichment")
            return self.basic_enrichment(geo_context)

        longitude, latitude = centroid
        request = MapsGroundingRequest(
            locality=geo_context.locality,
            latitude=latitude,
            longitude=longitude,
            vegetation_type=geo_context.vegetation_type,
            elevation=geo_context.elevation.mean,
            nearby_features=list(geo_context.nearby_features),
        )

        try:
            result = await self.grounding.enrich_location(request)
        except Exception as e:
            logger.error("Locality enrichment error: %s", e)
            return self.basic_enrichment(geo_context)

        if not result.success:
            logger.warning("Locality grounding failed, using basic enrichment: %s", result.error)
            return self.basic_enrichment(geo_context)

        return LocalityEnrichment(
            terrain_narrative=result.terrain_narrative,
            local_features=result.local_features,
            land_cover=result.land_cover,
            vegetation_context=result.vegetation_context,
            climate_context=result.climate_context,
            data_source=f"Google Maps Grounding ({geo_context.data_source})",
            confidence=result.confidence,
            maps_grounding_used=True,
        )

    @staticmethod
    def basic_enrichment(geo_context: GeoContext) -> LocalityEnrichment:
        """Build an enrichment from the geographic context alone."""
        locality = geo_context.locality or "the area"
        vegetation = geo_context.vegetation_type or "bushland"
        terrain = describe_terrain(geo_context.slope.mean)

        features = [
            BASIC_FEATURE_DESCRIPTIONS.get(feature, feature)
            for feature in geo_context.nearby_features
            if feature
        ]

        return LocalityEnrichment(
            terrain_narrative=f"{locality} - {vegetation} on {terrain}.",
            local_features=features,
            land_cover=[],
            data_source=geo_context.data_source,
            confidence=Confidence.LOW,
            maps_grounding_used=False,
        )
