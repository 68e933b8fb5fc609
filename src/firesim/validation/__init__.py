"""Consistency validation of generated image sets."""

from firesim.validation.consistency import (
    ConsistencyCheck,
    ConsistencyValidationResult,
    ConsistencyValidator,
)

__all__ = ["ConsistencyCheck", "ConsistencyValidationResult", "ConsistencyValidator"]
