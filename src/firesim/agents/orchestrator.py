"""Multi-agent enrichment sequence.

Runs the context parser, then the locality agent, then re-parses the request
with the enrichment merged in. Validation errors from the first stage
propagate; anything that goes wrong afterwards falls back to the basic parse
so that generation can continue without enrichment.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from firesim.agents.context_parser import ContextParserAgent, ParsedContext
from firesim.agents.locality import LocalityAgent, LocalityEnrichment
from firesim.models.scenario import GenerationRequest

if TYPE_CHECKING:
    from firesim.config import FireSimConfig

logger = logging.getLogger(__name__)


@dataclass
class MultiAgentResult:
    """Outcome of the enrichment sequence.

    Attributes:
        parsed_context: Final parsed context
        locality_enrichment: Locality enrichment, if it ran
        agents_used: Agents that ran, in order
        maps_grounding_used: Whether the grounding service produced the enrichment
        processing_time_ms: Wall-clock time of the sequence
    """

    parsed_context: ParsedContext
    locality_enrichment: LocalityEnrichment | None = None
    agents_used: list[str] = field(default_factory=list)
    maps_grounding_used: bool = False
    processing_time_ms: int = 0

    @property
    def request(self) -> GenerationRequest:
        """Return the (possibly enriched) request."""
        return self.parsed_context.request


class MultiAgentOrchestrator:
    """Coordinate the enrichment agents."""

    def __init__(
        self,
        context_parser: ContextParserAgent | None = None,
        locality_agent: LocalityAgent | None = None,
    ) -> None:
        self.context_parser = context_parser or ContextParserAgent()
        self.locality_agent = locality_agent

    async def process(self, request: GenerationRequest) -> MultiAgentResult:
        """Run a request through the enrichment sequence.

        Raises:
            ContextValidationError: If the request fails validation
        """
        start = time.monotonic()
        agents_used = [self.context_parser.name]

        logger.debug("Enrichment stage 1: %s", self.context_parser.name)
        initial = self.context_parser.parse(request)

        if self.locality_agent is None:
            return MultiAgentResult(
                parsed_context=initial,
                agents_used=agents_used,
                processing_time_ms=_elapsed_ms(start),
            )

        logger.debug("Enrichment stage 2: %s", self.locality_agent.name)
        agents_used.append(self.locality_agent.name)

        try:
            enrichment = await self.locality_agent.enrich_locality(
                request.geo_context, initial.centroid
            )
            enriched_request = self.context_parser.merge_enrichment(request, enrichment)
            final = self.context_parser.parse(enriched_request, enrichment)
        except Exception as e:
            logger.error("Enrichment failed, continuing with basic context: %s", e)
            return MultiAgentResult(
                parsed_context=self.context_parser.parse(request),
                agents_used=agents_used,
                processing_time_ms=_elapsed_ms(start),
            )

        result = MultiAgentResult(
            parsed_context=final,
            locality_enrichment=enrichment,
            agents_used=agents_used,
            maps_grounding_used=enrichment.maps_grounding_used,
            processing_time_ms=_elapsed_ms(start),
        )
        logger.info(
            "Enrichment complete: agents=%s grounding=%s (%d ms)",
            ", ".join(result.agents_used),
            result.maps_grounding_used,
            result.processing_time_ms,
        )
        return result


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def create_orchestrator(config: "FireSimConfig") -> MultiAgentOrchestrator:
    """Wire the enrichment agents from configuration.

    The locality agent is omitted when locality enrichment is switched off;
    without an enabled grounding LLM it produces basic enrichment only.
    """
    if not config.generation.enrich_locality:
        return MultiAgentOrchestrator()

    from firesim.llm.client import LLMClient
    from firesim.llm.grounding import MapsGroundingService

    grounding = None
    if config.grounding.enabled:
        grounding = MapsGroundingService(LLMClient(config.grounding))
    else:
        logger.info("Grounding LLM disabled; locality enrichment will use basic descriptions")

    return MultiAgentOrchestrator(locality_agent=LocalityAgent(grounding))
