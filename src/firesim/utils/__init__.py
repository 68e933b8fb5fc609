"""firesim utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Image model, grounding LLM and storage checks
"""

from firesim.utils.logging import configure_from_cli, get_logger, setup_logging
from firesim.utils.preflight import PreflightChecker, PreflightResult

__all__ = [
    "configure_from_cli",
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
]
