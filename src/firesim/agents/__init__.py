"""Enrichment agents: parse, enrich, then hand off to prompt generation."""

from firesim.agents.context_parser import (
    ContextParserAgent,
    ContextValidationError,
    ParsedContext,
)
from firesim.agents.locality import LocalityAgent, LocalityEnrichment
from firesim.agents.orchestrator import (
    MultiAgentOrchestrator,
    MultiAgentResult,
    create_orchestrator,
)

__all__ = [
    "ContextParserAgent",
    "ContextValidationError",
    "LocalityAgent",
    "LocalityEnrichment",
    "MultiAgentOrchestrator",
    "MultiAgentResult",
    "ParsedContext",
    "create_orchestrator",
]
