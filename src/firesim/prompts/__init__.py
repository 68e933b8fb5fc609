"""Prompt compiler: scenario data to image model prompts."""

from firesim.prompts.generator import (
    BLOCKED_TERMS,
    GeneratedPrompt,
    PromptData,
    PromptSafetyError,
    PromptSet,
    describe_nearby_features,
    describe_terrain,
    describe_wind,
    determine_spread_direction,
    find_blocked_terms,
    generate_prompts,
    prepare_prompt_data,
)
from firesim.prompts.templates import (
    DEFAULT_PROMPT_TEMPLATE,
    PromptTemplate,
    load_prompt_template,
)

__all__ = [
    "BLOCKED_TERMS",
    "DEFAULT_PROMPT_TEMPLATE",
    "GeneratedPrompt",
    "PromptData",
    "PromptSafetyError",
    "PromptSet",
    "PromptTemplate",
    "describe_nearby_features",
    "describe_terrain",
    "describe_wind",
    "determine_spread_direction",
    "find_blocked_terms",
    "generate_prompts",
    "load_prompt_template",
    "prepare_prompt_data",
]
