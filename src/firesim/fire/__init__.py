"""Fire danger and vegetation reference data.

- danger: AFDRS ratings, fire behaviour and the forest fire danger index
- vegetation: vegetation classifications and prompt descriptors
"""

from firesim.fire.danger import (
    FireBehaviour,
    WeatherProfile,
    calculate_fire_danger_index,
    format_rating,
    get_fdi_rating,
    get_fire_behaviour,
    get_rating_color,
    get_rating_description,
    get_weather_profile_for_rating,
    validate_weather_parameters,
)
from firesim.fire.vegetation import (
    DEFAULT_VEGETATION_TYPE,
    describe_vegetation,
    get_effective_vegetation_type,
    get_nvis_descriptor,
)

__all__ = [
    "DEFAULT_VEGETATION_TYPE",
    "FireBehaviour",
    "WeatherProfile",
    "calculate_fire_danger_index",
    "describe_vegetation",
    "format_rating",
    "get_effective_vegetation_type",
    "get_fdi_rating",
    "get_fire_behaviour",
    "get_nvis_descriptor",
    "get_rating_color",
    "get_rating_description",
    "get_weather_profile_for_rating",
    "validate_weather_parameters",
]
