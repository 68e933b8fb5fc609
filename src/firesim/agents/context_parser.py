"""Context parser agent.

First stage of the enrichment sequence: validates a generation request,
computes the perimeter centroid for downstream agents, and merges locality
enrichment back into the request.
"""

import logging
from dataclasses import dataclass, field, replace

from firesim.agents.locality import LocalityEnrichment
from firesim.models.scenario import GenerationRequest, utc_now_iso
from firesim.prompts.generator import find_blocked_terms

logger = logging.getLogger(__name__)


class ContextValidationError(ValueError):
    """Raised when a generation request is structurally incomplete."""

    pass


@dataclass
class ParsedContext:
    """A validated request ready for prompt generation.

    Attributes:
        centroid: Perimeter centroid as (longitude, latitude)
        request: The (possibly enriched) generation request
        locality: Locality enrichment, if any
        parsed_at: ISO 8601 parse timestamp
        maps_grounding_available: Whether the enrichment was search-grounded
    """

    centroid: tuple[float, float]
    request: GenerationRequest
    locality: LocalityEnrichment | None = None
    parsed_at: str = field(default_factory=utc_now_iso)
    maps_grounding_available: bool = False


class ContextParserAgent:
    """Structure and validate generation requests."""

    name = "ContextParser"

    def parse(
        self,
        request: GenerationRequest,
        locality: LocalityEnrichment | None = None,
    ) -> ParsedContext:
        """Validate a request and compute its centroid.

        Args:
            request: Generation request
            locality: Optional locality enrichment

        Returns:
            ParsedContext for the request

        Raises:
            ContextValidationError: If the request is incomplete
        """
        self.validate_request(request)

        return ParsedContext(
            centroid=request.perimeter.centroid(),
            request=request,
            locality=locality,
            maps_grounding_available=bool(locality and locality.maps_grounding_used),
        )

    @staticmethod
    def validate_request(request: GenerationRequest) -> None:
        """Check that a request carries everything prompt generation needs.

        Raises:
            ContextValidationError: If a required part is missing
        """
        if request.perimeter is None or not request.perimeter.coordinates:
            raise ContextValidationError("Generation request missing perimeter")
        if len(request.perimeter.outer_ring) < 3:
            raise ContextValidationError("Fire perimeter ring needs at least 3 positions")
        if request.inputs is None:
            raise ContextValidationError("Generation request missing inputs")
        if request.geo_context is None:
            raise ContextValidationError("Generation request missing geoContext")
        if not request.geo_context.effective_vegetation_type:
            raise ContextValidationError("GeoContext missing vegetationType")
        if not request.requested_views:
            raise ContextValidationError("Generation request missing requestedViews")

    @staticmethod
    def merge_enrichment(
        request: GenerationRequest,
        enrichment: LocalityEnrichment,
    ) -> GenerationRequest:
        """Return a copy of the request with the enrichment's local features added.

        Existing features keep their order; duplicates are dropped. Enriched
        features containing terms that prompts may not carry are skipped.
        """
        merged: list[str] = []
        for feature in [*request.geo_context.nearby_features, *enrichment.local_features]:
            if feature in merged:
                continue
            if feature not in request.geo_context.nearby_features and find_blocked_terms(feature):
                logger.debug("Skipping enriched feature with blocked terms: %s", feature)
                continue
            merged.append(feature)

        geo_context = replace(request.geo_context, nearby_features=merged)
        return replace(request, geo_context=geo_context)
