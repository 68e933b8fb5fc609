"""Prompt generation for bushfire scenarios.

Converts a structured generation request into one prompt per requested
viewpoint. All prompts of a set share the same scene, fire and weather text
and differ only in the camera perspective, which keeps the generated images
consistent with each other.
"""

import logging
import re
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

from firesim.fire.vegetation import describe_vegetation, get_effective_vegetation_type
from firesim.models.scenario import (
    GenerationRequest,
    ViewPoint,
    WindDirection,
    parse_enum,
    utc_now_iso,
)
from firesim.prompts.templates import (
    DEFAULT_PROMPT_TEMPLATE,
    FIRE_STAGE_DESCRIPTIONS,
    INTENSITY_VISUALS,
    SCENARIO_SECTIONS,
    SECTION_NAMES,
    TIME_OF_DAY_LIGHTING,
    VIEWPOINT_PERSPECTIVES,
    IntensityVisuals,
    PromptTemplate,
)

logger = logging.getLogger(__name__)

# Terms that trip image model content filters or produce unsuitable images
BLOCKED_TERMS: tuple[str, ...] = (
    "explosion",
    "destruction",
    "casualties",
    "violence",
    "death",
    "people",
    "human",
    "person",
    "animal",
    "wildlife",
    "injury",
    "victim",
    "destroy",
    "devastation",
)

NEARBY_FEATURE_DESCRIPTIONS: dict[str, str] = {
    "road": "A road runs nearby",
    "escarpment": "A steep escarpment lies to one side",
    "river": "A river valley is visible in the landscape",
    "residential_area": "Residential areas are visible in the distance",
    "rural_residential": "Rural properties are scattered through the area",
}

SPREAD_DIRECTIONS: dict[WindDirection, str] = {
    WindDirection.N: "south",
    WindDirection.NE: "southwest",
    WindDirection.E: "west",
    WindDirection.SE: "northwest",
    WindDirection.S: "north",
    WindDirection.SW: "northeast",
    WindDirection.W: "east",
    WindDirection.NW: "southeast",
}

# (exclusive upper bound, description)
SLOPE_TERRAIN: tuple[tuple[float, str], ...] = (
    (5, "flat terrain"),
    (15, "gently sloping terrain"),
    (25, "moderate slopes"),
    (35, "steep slopes"),
)

WIND_STRENGTHS: tuple[tuple[float, str], ...] = (
    (10, "light"),
    (30, "moderate"),
    (50, "strong"),
    (70, "very strong"),
)

_WHITESPACE = re.compile(r"\s+")


class PromptSafetyError(ValueError):
    """Raised when a generated prompt contains blocked terms."""

    def __init__(self, blocked_terms: list[str]) -> None:
        self.blocked_terms = blocked_terms
        super().__init__(
            f"Prompt contains blocked terms: {', '.join(blocked_terms)}. "
            "This indicates a problem with the prompt template or input data."
        )


@dataclass
class PromptData:
    """Values available to prompt template sections.

    Every field is exposed to Jinja2 under its attribute name.
    """

    vegetation_descriptor: str
    terrain_description: str
    elevation: float
    nearby_features: str
    fire_stage: str
    intensity: IntensityVisuals
    flame_height: str
    smoke_description: str
    spread_direction: str
    wind_description: str
    temperature: float
    humidity: float
    wind_speed: float
    wind_direction: str
    time_of_day_lighting: str

    def to_context(self, viewpoint: ViewPoint) -> dict[str, Any]:
        """Build the template context for a viewpoint."""
        context = {f: getattr(self, f) for f in self.__dataclass_fields__}
        context["viewpoint"] = viewpoint.value
        context["perspective"] = VIEWPOINT_PERSPECTIVES[viewpoint]
        return context


@dataclass
class GeneratedPrompt:
    """A prompt for one viewpoint.

    Attributes:
        viewpoint: Camera position
        prompt_text: Full prompt text
        prompt_set_id: Identifier of the set this prompt belongs to
        template_version: Version of the template that produced it
    """

    viewpoint: ViewPoint
    prompt_text: str
    prompt_set_id: str
    template_version: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for serialization."""
        return {
            "viewpoint": self.viewpoint.value,
            "promptText": self.prompt_text,
            "promptSetId": self.prompt_set_id,
            "templateVersion": self.template_version,
        }


@dataclass
class PromptSet:
    """All prompts generated for a scenario.

    Attributes:
        id: Prompt set identifier (UUID)
        template_version: Template version used
        prompts: One prompt per requested view, in request order
        created_at: ISO 8601 creation timestamp
    """

    id: str
    template_version: str
    prompts: list[GeneratedPrompt] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)

    def get(self, viewpoint: ViewPoint) -> GeneratedPrompt | None:
        """Return the prompt for a viewpoint, if present."""
        for prompt in self.prompts:
            if prompt.viewpoint == viewpoint:
                return prompt
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "templateVersion": self.template_version,
            "prompts": [p.to_dict() for p in self.prompts],
            "createdAt": self.created_at,
        }


# =============================================================================
# Descriptions
# =============================================================================


def find_blocked_terms(text: str) -> list[str]:
    """Return the blocked terms contained in a text (case-insensitive)."""
    lower = text.lower()
    return [term for term in BLOCKED_TERMS if term in lower]


def describe_terrain(slope_mean: float) -> str:
    """Describe terrain from the mean slope in degrees."""
    for upper, description in SLOPE_TERRAIN:
        if slope_mean < upper:
            return description
    return "very steep escarpment"


def describe_nearby_features(features: list[str]) -> str:
    """Describe nearby features as sentences.

    Known feature keys are expanded; anything else is used verbatim.
    """
    descriptions = [NEARBY_FEATURE_DESCRIPTIONS.get(f, f) for f in features if f]
    if not descriptions:
        return "Remote bushland area."
    return ". ".join(descriptions) + "."


def determine_spread_direction(wind_direction: WindDirection | str) -> str:
    """Return the direction the head fire spreads, downwind of the wind."""
    try:
        direction = parse_enum(WindDirection, wind_direction, "wind direction")
    except ValueError:
        return "to the leeward direction"
    return f"to the {SPREAD_DIRECTIONS[direction]}"


def describe_wind(wind_speed: float, wind_direction: WindDirection | str) -> str:
    """Describe wind strength and direction, e.g. ``strong nw winds``."""
    strength = "extreme"
    for upper, label in WIND_STRENGTHS:
        if wind_speed < upper:
            strength = label
            break

    direction = (
        wind_direction.value if isinstance(wind_direction, WindDirection) else str(wind_direction)
    )
    return f"{strength} {direction.lower()} winds"


def prepare_prompt_data(request: GenerationRequest) -> PromptData:
    """Prepare the template values for a request."""
    inputs = request.inputs
    geo = request.geo_context

    intensity = INTENSITY_VISUALS[inputs.intensity]
    vegetation = get_effective_vegetation_type(geo)

    return PromptData(
        vegetation_descriptor=describe_vegetation(vegetation),
        terrain_description=describe_terrain(geo.slope.mean),
        elevation=geo.elevation.mean,
        nearby_features=describe_nearby_features(geo.nearby_features),
        fire_stage=FIRE_STAGE_DESCRIPTIONS[inputs.fire_stage],
        intensity=intensity,
        flame_height=intensity.flame_height,
        smoke_description=intensity.smoke,
        spread_direction=determine_spread_direction(inputs.wind_direction),
        wind_description=describe_wind(inputs.wind_speed, inputs.wind_direction),
        temperature=inputs.temperature,
        humidity=inputs.humidity,
        wind_speed=inputs.wind_speed,
        wind_direction=inputs.wind_direction.value,
        time_of_day_lighting=TIME_OF_DAY_LIGHTING[inputs.time_of_day],
    )


# =============================================================================
# Composition
# =============================================================================


def compose_prompt(template: PromptTemplate, data: PromptData, viewpoint: ViewPoint) -> str:
    """Compose the full prompt for a viewpoint.

    Raises:
        PromptSafetyError: If a scenario-derived section contains blocked terms
    """
    context = data.to_context(viewpoint)
    rendered = {name: template.render_section(name, context) for name in SECTION_NAMES}

    blocked: list[str] = []
    for name in SCENARIO_SECTIONS:
        for term in find_blocked_terms(rendered[name]):
            if term not in blocked:
                blocked.append(term)
    if blocked:
        raise PromptSafetyError(blocked)

    text = " ".join(rendered[name] for name in SECTION_NAMES)
    return _WHITESPACE.sub(" ", text).strip()


def generate_prompts(
    request: GenerationRequest,
    template: PromptTemplate = DEFAULT_PROMPT_TEMPLATE,
) -> PromptSet:
    """Generate prompts for every requested viewpoint.

    Args:
        request: Generation request
        template: Prompt template (default: bushfire-photorealistic-v1)

    Returns:
        PromptSet with one prompt per requested view, in request order

    Raises:
        PromptSafetyError: If a prompt contains blocked terms
    """
    prompt_set_id = str(uuid.uuid4())
    data = prepare_prompt_data(request)
    logger.debug("Prompt data: %s", asdict(data))

    prompts = [
        GeneratedPrompt(
            viewpoint=viewpoint,
            prompt_text=compose_prompt(template, data, viewpoint),
            prompt_set_id=prompt_set_id,
            template_version=template.version,
        )
        for viewpoint in request.requested_views
    ]

    logger.info(
        "Generated %d prompts with template %s v%s",
        len(prompts),
        template.id,
        template.version,
    )
    return PromptSet(id=prompt_set_id, template_version=template.version, prompts=prompts)
