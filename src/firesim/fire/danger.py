"""Fire danger ratings and fire behaviour characteristics.

Implements the Australian Fire Danger Rating System (AFDRS) categories, typical
weather for each rating, fire behaviour by vegetation type and the McArthur
Mark 5 forest fire danger index.

References:
- Bureau of Meteorology, Australian Fire Danger Rating System
- Cheney, P. & Sullivan, A. (2008). Grassfires: Fuel, Weather and Fire Behaviour
- Noble, I.R., Bary, G.A.V. & Gill, A.M. (1980). McArthur's fire-danger meters
  expressed as equations
"""

import math
from dataclasses import dataclass, replace

from firesim.models.scenario import FireDangerRating, Intensity, parse_enum

DRY_FOREST = "Dry Sclerophyll Forest"
GRASSLAND = "Grassland"
HEATH = "Heath"


@dataclass(frozen=True)
class WeatherProfile:
    """Typical weather for a fire danger rating.

    Attributes:
        temperature: Air temperature in degrees Celsius
        humidity: Relative humidity percentage
        wind_speed: Wind speed in km/h
    """

    temperature: float
    humidity: float
    wind_speed: float

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "windSpeed": self.wind_speed,
        }


@dataclass(frozen=True)
class ValueRange:
    """Inclusive numeric range."""

    min: float
    max: float

    def __str__(self) -> str:
        return f"{self.min:g}-{self.max:g}"


@dataclass(frozen=True)
class FireBehaviour:
    """Fire behaviour expected for a rating in a vegetation type.

    Attributes:
        flame_height: Flame height range in metres
        rate_of_spread: Forward rate of spread range in km/h
        spotting_distance: Spotting distance description
        intensity: Qualitative intensity class
        descriptor: Short description used in prompts
    """

    flame_height: ValueRange
    rate_of_spread: ValueRange
    spotting_distance: str
    intensity: Intensity
    descriptor: str

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        return {
            "flameHeight": {"min": self.flame_height.min, "max": self.flame_height.max},
            "rateOfSpread": {"min": self.rate_of_spread.min, "max": self.rate_of_spread.max},
            "spottingDistance": self.spotting_distance,
            "intensity": self.intensity.value,
            "descriptor": self.descriptor,
        }


def _behaviour(
    flame: tuple[float, float],
    spread: tuple[float, float],
    spotting: str,
    intensity: Intensity,
    descriptor: str,
) -> FireBehaviour:
    return FireBehaviour(ValueRange(*flame), ValueRange(*spread), spotting, intensity, descriptor)


# =============================================================================
# Reference Tables
# =============================================================================

RATING_WEATHER_PROFILES: dict[FireDangerRating, WeatherProfile] = {
    FireDangerRating.NO_RATING: WeatherProfile(temperature=18, humidity=65, wind_speed=8),
    FireDangerRating.MODERATE: WeatherProfile(temperature=22, humidity=50, wind_speed=12),
    FireDangerRating.HIGH: WeatherProfile(temperature=30, humidity=25, wind_speed=30),
    FireDangerRating.EXTREME: WeatherProfile(temperature=40, humidity=12, wind_speed=60),
    FireDangerRating.CATASTROPHIC: WeatherProfile(temperature=46, humidity=5, wind_speed=100),
}

FIRE_BEHAVIOUR_BY_VEGETATION: dict[str, dict[FireDangerRating, FireBehaviour]] = {
    DRY_FOREST: {
        FireDangerRating.NO_RATING: _behaviour(
            (0.5, 1), (0.1, 0.5), "Minimal", Intensity.LOW,
            "Smouldering surface fire with flames under 1m, light smoke",
        ),
        FireDangerRating.MODERATE: _behaviour(
            (1, 2), (0.5, 1), "<100 m", Intensity.MODERATE,
            "Controlled fire with 1-2m flames, light smoke, minimal spotting",
        ),
        FireDangerRating.HIGH: _behaviour(
            (2, 8), (1, 4), "100-500 m", Intensity.HIGH,
            "Intense fire with 2-8m flames, large smoke plume, active spotting ahead",
        ),
        FireDangerRating.EXTREME: _behaviour(
            (8, 25), (4, 10), "500 m-2 km", Intensity.VERY_HIGH,
            "Very intense fire with 8-25m towering flames, dense black smoke column, "
            "heavy spotting",
        ),
        FireDangerRating.CATASTROPHIC: _behaviour(
            (25, 40), (10, 20), "2+ km", Intensity.EXTREME,
            "Unprecedented fire intensity with 25+ metre flames, fire-generated weather, "
            "massive fire front",
        ),
    },
    GRASSLAND: {
        FireDangerRating.NO_RATING: _behaviour(
            (0.3, 0.5), (0.5, 2), "Minimal", Intensity.LOW,
            "Patchy grass fire with low flames, wispy smoke",
        ),
        FireDangerRating.MODERATE: _behaviour(
            (0.5, 1), (2, 4), "Minimal", Intensity.MODERATE,
            "Fast-moving grass fire with low flames, light smoke",
        ),
        FireDangerRating.HIGH: _behaviour(
            (1, 3), (4, 15), "<100 m", Intensity.HIGH,
            "Rapid grass fire with 1-3m flames, moderate smoke, short-range spotting",
        ),
        FireDangerRating.EXTREME: _behaviour(
            (3, 8), (15, 40), "100-500 m", Intensity.VERY_HIGH,
            "Explosive grass fire spread with 3-8m flames, heavy ember showers",
        ),
        FireDangerRating.CATASTROPHIC: _behaviour(
            (8, 12), (40, 60), "500+ m", Intensity.EXTREME,
            "Catastrophic grass fire with 8+ metre flames, near-instantaneous spread",
        ),
    },
    HEATH: {
        FireDangerRating.NO_RATING: _behaviour(
            (0.5, 1), (0.1, 0.3), "Minimal", Intensity.LOW,
            "Creeping heath fire with flames under 1m",
        ),
        FireDangerRating.MODERATE: _behaviour(
            (1, 1.5), (0.3, 0.8), "Minimal", Intensity.MODERATE,
            "Slow-burning heath fire with 1-1.5m flames",
        ),
        FireDangerRating.HIGH: _behaviour(
            (1.5, 6), (0.8, 3), "50-300 m", Intensity.HIGH,
            "Intense heath fire with 1.5-6m flames, active ember activity",
        ),
        FireDangerRating.EXTREME: _behaviour(
            (6, 18), (3, 8), "300-1500 m", Intensity.VERY_HIGH,
            "Extreme heath fire with 6-18m flames, massive ember storms",
        ),
        FireDangerRating.CATASTROPHIC: _behaviour(
            (18, 25), (8, 12), "1500+ m", Intensity.EXTREME,
            "Catastrophic heath fire with 18+ metre flames, extreme fire behaviour",
        ),
    },
}

RATING_LABELS: dict[FireDangerRating, str] = {
    FireDangerRating.NO_RATING: "No Rating",
    FireDangerRating.MODERATE: "Moderate",
    FireDangerRating.HIGH: "High",
    FireDangerRating.EXTREME: "Extreme",
    FireDangerRating.CATASTROPHIC: "Catastrophic",
}

# AFDRS sign colours
RATING_COLORS: dict[FireDangerRating, str] = {
    FireDangerRating.NO_RATING: "#ffffff",
    FireDangerRating.MODERATE: "#22c55e",
    FireDangerRating.HIGH: "#eab308",
    FireDangerRating.EXTREME: "#f97316",
    FireDangerRating.CATASTROPHIC: "#dc2626",
}

RATING_DESCRIPTIONS: dict[FireDangerRating, str] = {
    FireDangerRating.NO_RATING: (
        "No fire danger rating issued. Fires are unlikely to spread in a way that "
        "threatens life or property."
    ),
    FireDangerRating.MODERATE: "Plan and prepare. Most fires can be controlled.",
    FireDangerRating.HIGH: "Be ready to act. Fires can be dangerous.",
    FireDangerRating.EXTREME: (
        "Take action now to protect life and property. Fires will spread quickly "
        "and be extremely dangerous."
    ),
    FireDangerRating.CATASTROPHIC: (
        "For your survival, leave bushfire risk areas. If a fire starts and takes "
        "hold, lives are likely to be lost."
    ),
}

# Upper FFDI bound (exclusive) of each rating, in ascending order
FDI_RATING_THRESHOLDS: list[tuple[float, FireDangerRating]] = [
    (12, FireDangerRating.NO_RATING),
    (24, FireDangerRating.MODERATE),
    (50, FireDangerRating.HIGH),
    (100, FireDangerRating.EXTREME),
]


# =============================================================================
# Lookups
# =============================================================================


def _rating(rating: FireDangerRating | str) -> FireDangerRating:
    return parse_enum(FireDangerRating, rating, "fire danger rating")


def get_weather_profile_for_rating(rating: FireDangerRating | str) -> WeatherProfile:
    """Return a copy of the typical weather for a rating."""
    return replace(RATING_WEATHER_PROFILES[_rating(rating)])


def resolve_behaviour_vegetation(vegetation_type: str) -> str:
    """Map a vegetation type to a key of FIRE_BEHAVIOUR_BY_VEGETATION."""
    if vegetation_type in FIRE_BEHAVIOUR_BY_VEGETATION:
        return vegetation_type
    if "Forest" in vegetation_type or "Woodland" in vegetation_type:
        return DRY_FOREST
    if "Grass" in vegetation_type:
        return GRASSLAND
    if "Heath" in vegetation_type or "Scrub" in vegetation_type:
        return HEATH
    return DRY_FOREST


def get_fire_behaviour(rating: FireDangerRating | str, vegetation_type: str) -> FireBehaviour:
    """Return fire behaviour for a rating and vegetation type.

    Unknown vegetation types fall back to the closest tabulated type by
    keyword, then to dry sclerophyll forest.
    """
    vegetation = resolve_behaviour_vegetation(vegetation_type)
    return FIRE_BEHAVIOUR_BY_VEGETATION[vegetation][_rating(rating)]


def format_rating(rating: FireDangerRating | str) -> str:
    """Return the display name of a rating."""
    return RATING_LABELS[_rating(rating)]


def get_rating_color(rating: FireDangerRating | str) -> str:
    """Return the AFDRS hex colour of a rating."""
    return RATING_COLORS[_rating(rating)]


def get_rating_description(rating: FireDangerRating | str) -> str:
    """Return the AFDRS call to action for a rating."""
    return RATING_DESCRIPTIONS[_rating(rating)]


def validate_weather_parameters(
    temperature: float,
    humidity: float,
    wind_speed: float,
) -> list[str]:
    """Check weather parameters for implausible combinations.

    Returns:
        Warning messages (empty if the combination is plausible)
    """
    warnings: list[str] = []

    if temperature < 15 and humidity < 20:
        warnings.append("Very low humidity with low temperature is uncommon")

    if temperature > 40 and humidity > 50:
        warnings.append("High humidity with extreme temperature is unusual")

    if wind_speed > 80:
        warnings.append("Wind speeds above 80 km/h represent severe storm conditions")

    return warnings


# =============================================================================
# Fire Danger Index
# =============================================================================


def calculate_fire_danger_index(
    temperature: float,
    humidity: float,
    wind_speed: float,
    drought_factor: float = 10.0,
) -> float:
    """Compute the McArthur Mark 5 forest fire danger index (FFDI).

    FFDI = 2 exp(-0.45 + 0.987 ln(DF) - 0.0345 RH + 0.0338 T + 0.0234 V)

    Args:
        temperature: Air temperature in degrees Celsius
        humidity: Relative humidity percentage
        wind_speed: 10 m wind speed in km/h
        drought_factor: Fuel availability, 0 (exclusive) to 10

    Returns:
        FFDI value

    Raises:
        ValueError: If the drought factor is outside (0, 10]
    """
    if not 0 < drought_factor <= 10:
        raise ValueError(f"drought_factor must be in (0, 10] (got {drought_factor})")

    exponent = (
        -0.45
        + 0.987 * math.log(drought_factor)
        - 0.0345 * humidity
        + 0.0338 * temperature
        + 0.0234 * wind_speed
    )
    return 2 * math.exp(exponent)


def get_fdi_rating(fdi: float) -> FireDangerRating:
    """Map an FFDI value to an AFDRS rating."""
    for upper, rating in FDI_RATING_THRESHOLDS:
        if fdi < upper:
            return rating
    return FireDangerRating.CATASTROPHIC
