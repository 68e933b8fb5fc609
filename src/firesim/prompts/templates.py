"""Prompt templates and mapping tables for fire scenario prompts.

Template sections are Jinja2 strings rendered against the fields of
``PromptData``. Undefined variables are an error, so a mistyped field in a
custom template fails loudly instead of producing a prompt with holes.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jinja2
import yaml

from firesim.models.scenario import FireStage, Intensity, TimeOfDay, ViewPoint

SECTION_NAMES: tuple[str, ...] = ("style", "scene", "fire", "weather", "perspective", "safety")

# Sections built from scenario data; style and safety are fixed guardrail text
SCENARIO_SECTIONS: tuple[str, ...] = ("scene", "fire", "weather", "perspective")


@dataclass(frozen=True)
class IntensityVisuals:
    """Visual characteristics of a fire intensity level."""

    flame_height: str
    smoke: str
    crown_involvement: str
    spotting: str
    descriptor: str


INTENSITY_VISUALS: dict[Intensity, IntensityVisuals] = {
    Intensity.LOW: IntensityVisuals(
        flame_height="0.5 to 1.5 metres",
        smoke="light grey smoke drifting upward",
        crown_involvement="surface fire only, no crown involvement",
        spotting="no spotting activity",
        descriptor="Low intensity surface fire",
    ),
    Intensity.MODERATE: IntensityVisuals(
        flame_height="1.5 to 3 metres",
        smoke="grey-white smoke columns rising steadily",
        crown_involvement="occasional torching of individual trees",
        spotting="minimal short-range spotting",
        descriptor="Moderate intensity with occasional tree torching",
    ),
    Intensity.HIGH: IntensityVisuals(
        flame_height="3 to 10 metres",
        smoke="dense grey-black smoke columns",
        crown_involvement="intermittent crown fire with active runs",
        spotting="short-range spotting occurring",
        descriptor="High intensity with intermittent crown fire",
    ),
    Intensity.VERY_HIGH: IntensityVisuals(
        flame_height="10 to 20 metres",
        smoke="massive dark smoke columns forming pyrocumulus cloud",
        crown_involvement="active crown fire with sustained crowning",
        spotting="medium-range spotting ahead of the head fire",
        descriptor="Very high intensity: active crown fire",
    ),
    Intensity.EXTREME: IntensityVisuals(
        flame_height="20+ metres",
        smoke="towering pyrocumulonimbus cloud with dense ember rain",
        crown_involvement="full crown fire with complete canopy involvement",
        spotting="long-range spotting creating spot fires kilometers ahead",
        descriptor="Extreme intensity: full crown fire with ember attack",
    ),
    Intensity.CATASTROPHIC: IntensityVisuals(
        flame_height="30+ metres",
        smoke="massive pyrocumulonimbus system with severe turbulence and ember storms",
        crown_involvement="total canopy consumption with explosive fire behavior",
        spotting="extensive long-range mass spotting overwhelming suppression capacity",
        descriptor="Catastrophic intensity: explosive fire behavior",
    ),
}

TIME_OF_DAY_LIGHTING: dict[TimeOfDay, str] = {
    TimeOfDay.DAWN: (
        "Soft golden light from the east, long shadows across the landscape, "
        "cool blue sky transitioning to warm tones"
    ),
    TimeOfDay.MORNING: (
        "Bright morning sun from the east, clear visibility, crisp natural lighting"
    ),
    TimeOfDay.MIDDAY: "Harsh overhead sun, short shadows, washed-out pale sky above the smoke",
    TimeOfDay.AFTERNOON: (
        "Warm afternoon light from the west, golden-orange tones, lengthening shadows"
    ),
    TimeOfDay.DUSK: (
        "Deep orange and red sunset sky, fire glow visible against fading light, "
        "dramatic contrast"
    ),
    TimeOfDay.NIGHT: (
        "Dark scene lit primarily by the fire itself, intense orange glow reflecting "
        "off smoke, stars or dark sky above"
    ),
}

VIEWPOINT_PERSPECTIVES: dict[ViewPoint, str] = {
    ViewPoint.AERIAL: (
        "Aerial photograph taken from a helicopter or drone at 300 metres altitude, "
        "looking straight down at the fire"
    ),
    ViewPoint.HELICOPTER_NORTH: (
        "Elevated wide-angle photograph from a helicopter north of the fire at 150 metres "
        "altitude, looking south at the fire front from an oblique angle"
    ),
    ViewPoint.HELICOPTER_SOUTH: (
        "Elevated wide-angle photograph from a helicopter south of the fire at 150 metres "
        "altitude, looking north across the burned area and active fire"
    ),
    ViewPoint.HELICOPTER_EAST: (
        "Elevated wide-angle photograph from a helicopter east of the fire at 150 metres "
        "altitude, looking west at the flank of the fire"
    ),
    ViewPoint.HELICOPTER_WEST: (
        "Elevated wide-angle photograph from a helicopter west of the fire at 150 metres "
        "altitude, looking east at the flank of the fire"
    ),
    ViewPoint.HELICOPTER_ABOVE: (
        "Elevated aerial photograph from directly above the fire at 200 metres altitude, "
        "capturing the full extent of the fire perimeter and smoke plume"
    ),
    ViewPoint.GROUND_NORTH: (
        "Ground-level photograph taken from the north side of the fire, approximately "
        "500 metres away, looking south towards the flame front at eye level"
    ),
    ViewPoint.GROUND_SOUTH: (
        "Ground-level photograph taken from the south side looking north, showing the "
        "burned area with fire visible in the distance"
    ),
    ViewPoint.GROUND_EAST: (
        "Ground-level photograph taken from the east looking west towards the fire, "
        "capturing the flank of the fire at eye level"
    ),
    ViewPoint.GROUND_WEST: (
        "Ground-level photograph taken from the west looking east towards the fire, "
        "capturing the flank of the fire at eye level"
    ),
    ViewPoint.GROUND_ABOVE: (
        "Ground-level photograph from slightly elevated terrain looking across the fire "
        "area, showing the full fire perimeter and smoke column"
    ),
    ViewPoint.RIDGE: (
        "Wide-angle photograph from a ridgeline or elevated position overlooking the fire "
        "area, approximately 300 metres above the fire, capturing the broader landscape "
        "context"
    ),
}

FIRE_STAGE_DESCRIPTIONS: dict[FireStage, str] = {
    FireStage.SPOT_FIRE: "spot fire",
    FireStage.DEVELOPING: "developing bushfire",
    FireStage.ESTABLISHED: "established bushfire",
    FireStage.MAJOR: "major bushfire campaign fire",
}


# =============================================================================
# Jinja2 Environment
# =============================================================================


def format_number(value: Any) -> str:
    """Format a number without a trailing ``.0`` (300.0 renders as 300)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def create_environment() -> jinja2.Environment:
    """Create the Jinja2 environment used for prompt sections."""
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        autoescape=False,
        keep_trailing_newline=False,
    )
    env.filters["number"] = format_number
    return env


_ENV = create_environment()


# =============================================================================
# Templates
# =============================================================================


@dataclass
class PromptTemplate:
    """Structured prompt template.

    Attributes:
        id: Template identifier
        version: Template version recorded with every prompt
        sections: Jinja2 source for each of SECTION_NAMES
    """

    id: str
    version: str
    sections: dict[str, str]
    _compiled: dict[str, jinja2.Template] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate and compile the sections."""
        if not self.id or not self.version:
            raise ValueError("Prompt template requires an id and a version")

        missing = [name for name in SECTION_NAMES if not self.sections.get(name)]
        if missing:
            raise ValueError(f"Prompt template '{self.id}' missing sections: {', '.join(missing)}")

        unknown = sorted(set(self.sections) - set(SECTION_NAMES))
        if unknown:
            raise ValueError(f"Prompt template '{self.id}' has unknown sections: {', '.join(unknown)}")

        for name in SECTION_NAMES:
            try:
                self._compiled[name] = _ENV.from_string(self.sections[name])
            except jinja2.TemplateSyntaxError as e:
                raise ValueError(
                    f"Invalid template syntax in section '{name}' of '{self.id}': {e}"
                ) from e

    def render_section(self, name: str, context: dict[str, Any]) -> str:
        """Render one section.

        Raises:
            ValueError: If the section references an unknown variable
        """
        try:
            return self._compiled[name].render(**context)
        except jinja2.UndefinedError as e:
            raise ValueError(f"Section '{name}' of template '{self.id}': {e.message}") from e


DEFAULT_PROMPT_TEMPLATE = PromptTemplate(
    id="bushfire-photorealistic-v1",
    version="1.0.0",
    sections={
        "style": (
            "A photorealistic photograph of an Australian bushfire. "
            "DSLR quality, natural lighting."
        ),
        "scene": (
            "{{ vegetation_descriptor }} on {{ terrain_description }} in New South Wales, "
            "Australia. Elevation approximately {{ elevation | number }} metres. "
            "{{ nearby_features }}"
        ),
        "fire": (
            "A {{ fire_stage }} burning through the vegetation. "
            "{{ intensity.descriptor }}. "
            "Flames are {{ flame_height }} high with {{ smoke_description }}. "
            "The head fire is spreading {{ spread_direction }} driven by {{ wind_description }}."
        ),
        "weather": (
            "Temperature is {{ temperature | number }}°C with {{ humidity | number }}% "
            "relative humidity. {{ wind_speed | number }} km/h {{ wind_direction }} wind. "
            "{{ time_of_day_lighting }}."
        ),
        "perspective": "{{ perspective }}.",
        "safety": "No people, no animals, no text, no watermarks. No fantasy elements.",
    },
)


def load_prompt_template(path: Path) -> PromptTemplate:
    """Load a prompt template from a YAML file.

    The file holds ``id``, ``version`` and a ``sections`` mapping.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid template
    """
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("sections"), dict):
        raise ValueError(f"Prompt template {path} must define a 'sections' mapping")

    return PromptTemplate(
        id=str(data.get("id", "")),
        version=str(data.get("version", "")),
        sections={str(k): str(v) for k, v in data["sections"].items()},
    )
