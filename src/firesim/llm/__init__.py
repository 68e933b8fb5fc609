"""LLM integration for firesim.

The grounding LLM is reached through LiteLLM and is only used to enrich the
geographic context of a scenario; image generation uses dedicated providers
(see ``firesim.images``).
"""

from firesim.llm.client import LLMClient, LLMError, LLMResponse, create_client
from firesim.llm.grounding import (
    MapsGroundingRequest,
    MapsGroundingResult,
    MapsGroundingService,
    build_enrichment_prompt,
    parse_structured_response,
)
from firesim.models.llm_config import VALID_PROVIDERS, LLMConfig

__all__ = [
    "LLMClient",
    "LLMConfig",
    "LLMError",
    "LLMResponse",
    "MapsGroundingRequest",
    "MapsGroundingResult",
    "MapsGroundingService",
    "VALID_PROVIDERS",
    "build_enrichment_prompt",
    "create_client",
    "parse_structured_response",
]
