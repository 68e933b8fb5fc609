"""Scenario entities.

This module contains the data transfer objects exchanged with the web client
and persisted with each scenario:
- FirePerimeter, ScenarioInputs, GeoContext: what the trainer described
- GenerationRequest: a complete request for a set of viewpoint images
- GeneratedImage, GenerationResult, GenerationProgress: generation outcome
- ScenarioMetadata, GenerationLog: records saved alongside the images

The JSON wire format uses the camelCase keys of the web client.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

# =============================================================================
# Enumerations
# =============================================================================


class FireDangerRating(Enum):
    """Australian Fire Danger Rating System (AFDRS) level."""

    NO_RATING = "noRating"
    MODERATE = "moderate"  # Plan and prepare
    HIGH = "high"  # Be ready to act
    EXTREME = "extreme"  # Take action now
    CATASTROPHIC = "catastrophic"  # For your survival, leave


class WindDirection(Enum):
    """Cardinal direction the wind blows from."""

    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"


class TimeOfDay(Enum):
    """Time of day for scene lighting."""

    DAWN = "dawn"
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    DUSK = "dusk"
    NIGHT = "night"


class Intensity(Enum):
    """Qualitative fire intensity."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "veryHigh"
    EXTREME = "extreme"
    CATASTROPHIC = "catastrophic"


class FireStage(Enum):
    """Development stage of the fire."""

    SPOT_FIRE = "spotFire"
    DEVELOPING = "developing"
    ESTABLISHED = "established"
    MAJOR = "major"


class ViewPoint(Enum):
    """Camera position for a generated image."""

    AERIAL = "aerial"
    HELICOPTER_NORTH = "helicopter_north"
    HELICOPTER_SOUTH = "helicopter_south"
    HELICOPTER_EAST = "helicopter_east"
    HELICOPTER_WEST = "helicopter_west"
    HELICOPTER_ABOVE = "helicopter_above"
    GROUND_NORTH = "ground_north"
    GROUND_SOUTH = "ground_south"
    GROUND_EAST = "ground_east"
    GROUND_WEST = "ground_west"
    GROUND_ABOVE = "ground_above"
    RIDGE = "ridge"

    @property
    def view_type(self) -> str:
        """Return the viewpoint family (aerial, helicopter, ground, ridge)."""
        return self.value.split("_")[0]


class Confidence(Enum):
    """Confidence in geographic context data."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GenerationStatus(Enum):
    """Status of a scenario generation."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: type[E], value: Any, field_name: str) -> E:
    """Convert a wire value to an enum member.

    Args:
        enum_cls: Target enum class
        value: Raw value (or an existing member)
        field_name: Field name used in the error message

    Returns:
        Enum member

    Raises:
        ValueError: If the value is not a member of the enum
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        valid = [member.value for member in enum_cls]
        raise ValueError(f"Invalid {field_name}: {value!r}. Valid: {valid}") from None


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def _require(data: dict[str, Any], key: str, context: str) -> Any:
    if key not in data or data[key] is None:
        raise ValueError(f"{context} missing {key}")
    return data[key]


# =============================================================================
# Scenario Description
# =============================================================================


@dataclass
class RangeStatistic:
    """Summary statistic over the fire area.

    Attributes:
        min: Minimum value
        max: Maximum value
        mean: Mean value
    """

    min: float
    max: float
    mean: float

    def __post_init__(self) -> None:
        """Validate range ordering."""
        if self.min > self.max:
            raise ValueError(f"Range min ({self.min}) exceeds max ({self.max})")

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {"min": self.min, "max": self.max, "mean": self.mean}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RangeStatistic":
        """Create from dictionary."""
        return cls(
            min=float(data["min"]),
            max=float(data["max"]),
            mean=float(data["mean"]),
        )


@dataclass
class FirePerimeter:
    """Fire perimeter drawn on the map (GeoJSON Polygon Feature).

    Attributes:
        coordinates: Polygon rings as [[[lng, lat], ...], ...]
        drawn: Whether the perimeter was drawn by the user
        timestamp: ISO 8601 timestamp of the drawing
    """

    coordinates: list[list[list[float]]]
    drawn: bool = True
    timestamp: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        """Validate polygon geometry."""
        if not self.coordinates or not self.coordinates[0]:
            raise ValueError("Fire perimeter has no coordinates")
        if len(self.coordinates[0]) < 3:
            raise ValueError("Fire perimeter ring needs at least 3 positions")
        for position in self.coordinates[0]:
            if len(position) < 2:
                raise ValueError(f"Invalid position in fire perimeter: {position}")

    @property
    def outer_ring(self) -> list[list[float]]:
        """Return the outer ring positions."""
        return self.coordinates[0]

    def centroid(self) -> tuple[float, float]:
        """Compute the vertex centroid of the outer ring.

        The closing position of a closed ring is excluded so it is not
        counted twice.

        Returns:
            Tuple of (longitude, latitude)
        """
        ring = self.outer_ring
        if len(ring) > 1 and ring[0][:2] == ring[-1][:2]:
            ring = ring[:-1]
        lng = sum(p[0] for p in ring) / len(ring)
        lat = sum(p[1] for p in ring) / len(ring)
        return lng, lat

    def to_dict(self) -> dict[str, Any]:
        """Convert to a GeoJSON Feature."""
        return {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": self.coordinates},
            "properties": {"drawn": self.drawn, "timestamp": self.timestamp},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FirePerimeter":
        """Create from a GeoJSON Feature.

        Raises:
            ValueError: If the feature is not a Polygon
        """
        geometry = data.get("geometry") or {}
        if geometry.get("type") != "Polygon":
            raise ValueError(
                f"Fire perimeter must be a Polygon (got {geometry.get('type')!r})"
            )
        properties = data.get("properties") or {}
        return cls(
            coordinates=geometry.get("coordinates") or [],
            drawn=bool(properties.get("drawn", True)),
            timestamp=properties.get("timestamp") or utc_now_iso(),
        )


@dataclass
class ScenarioInputs:
    """Weather and fire parameters chosen by the trainer.

    Attributes:
        fire_danger_rating: AFDRS rating (primary control)
        wind_speed: Wind speed in km/h (0-120)
        wind_direction: Direction the wind blows from
        temperature: Air temperature in degrees Celsius (5-50)
        humidity: Relative humidity percentage (5-100)
        time_of_day: Time of day for lighting
        intensity: Qualitative fire intensity
        fire_stage: Development stage of the fire
    """

    fire_danger_rating: FireDangerRating
    wind_speed: float
    wind_direction: WindDirection
    temperature: float
    humidity: float
    time_of_day: TimeOfDay
    intensity: Intensity
    fire_stage: FireStage

    def __post_init__(self) -> None:
        """Validate enum members and weather ranges."""
        self.fire_danger_rating = parse_enum(
            FireDangerRating, self.fire_danger_rating, "fireDangerRating"
        )
        self.wind_direction = parse_enum(WindDirection, self.wind_direction, "windDirection")
        self.time_of_day = parse_enum(TimeOfDay, self.time_of_day, "timeOfDay")
        self.intensity = parse_enum(Intensity, self.intensity, "intensity")
        self.fire_stage = parse_enum(FireStage, self.fire_stage, "fireStage")

        if not 0 <= self.wind_speed <= 120:
            raise ValueError(f"windSpeed must be between 0 and 120 km/h (got {self.wind_speed})")
        if not 5 <= self.temperature <= 50:
            raise ValueError(f"temperature must be between 5 and 50 °C (got {self.temperature})")
        if not 5 <= self.humidity <= 100:
            raise ValueError(f"humidity must be between 5 and 100 % (got {self.humidity})")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "fireDangerRating": self.fire_danger_rating.value,
            "windSpeed": self.wind_speed,
            "windDirection": self.wind_direction.value,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "timeOfDay": self.time_of_day.value,
            "intensity": self.intensity.value,
            "fireStage": self.fire_stage.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScenarioInputs":
        """Create from dictionary."""
        context = "Scenario inputs"
        return cls(
            fire_danger_rating=_require(data, "fireDangerRating", context),
            wind_speed=float(_require(data, "windSpeed", context)),
            wind_direction=_require(data, "windDirection", context),
            temperature=float(_require(data, "temperature", context)),
            humidity=float(_require(data, "humidity", context)),
            time_of_day=_require(data, "timeOfDay", context),
            intensity=_require(data, "intensity", context),
            fire_stage=_require(data, "fireStage", context),
        )


@dataclass
class GeoContext:
    """Geographic context of the fire area.

    Attributes:
        vegetation_type: Auto-detected vegetation classification
        elevation: Elevation statistics in metres
        slope: Slope statistics in degrees
        aspect: Dominant aspect
        data_source: Where the context came from
        confidence: Confidence in the context data
        vegetation_subtype: Optional finer classification
        fuel_load: Optional fuel load category (low, moderate, high, veryHigh)
        dominant_species: Dominant species names
        nearby_features: Feature keys or free-text feature descriptions
        locality: Named locality (suburb, town) if known
        manual_vegetation_type: Trainer override for the vegetation type
    """

    vegetation_type: str
    elevation: RangeStatistic
    slope: RangeStatistic
    aspect: WindDirection
    data_source: str
    confidence: Confidence = Confidence.MEDIUM
    vegetation_subtype: str | None = None
    fuel_load: str | None = None
    dominant_species: list[str] = field(default_factory=list)
    nearby_features: list[str] = field(default_factory=list)
    locality: str | None = None
    manual_vegetation_type: str | None = None

    def __post_init__(self) -> None:
        """Normalize enum members."""
        self.aspect = parse_enum(WindDirection, self.aspect, "aspect")
        self.confidence = parse_enum(Confidence, self.confidence, "confidence")

    @property
    def effective_vegetation_type(self) -> str:
        """Return the manual override if set, otherwise the detected type."""
        return self.manual_vegetation_type or self.vegetation_type

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "vegetationType": self.vegetation_type,
            "elevation": self.elevation.to_dict(),
            "slope": self.slope.to_dict(),
            "aspect": self.aspect.value,
            "dataSource": self.data_source,
            "confidence": self.confidence.value,
            "nearbyFeatures": list(self.nearby_features),
        }
        if self.vegetation_subtype:
            data["vegetationSubtype"] = self.vegetation_subtype
        if self.fuel_load:
            data["fuelLoad"] = self.fuel_load
        if self.dominant_species:
            data["dominantSpecies"] = list(self.dominant_species)
        if self.locality:
            data["locality"] = self.locality
        if self.manual_vegetation_type:
            data["manualVegetationType"] = self.manual_vegetation_type
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeoContext":
        """Create from dictionary."""
        context = "GeoContext"
        return cls(
            vegetation_type=data.get("vegetationType") or "",
            elevation=RangeStatistic.from_dict(_require(data, "elevation", context)),
            slope=RangeStatistic.from_dict(_require(data, "slope", context)),
            aspect=data.get("aspect", "N"),
            data_source=data.get("dataSource", "unknown"),
            confidence=data.get("confidence", "medium"),
            vegetation_subtype=data.get("vegetationSubtype"),
            fuel_load=data.get("fuelLoad"),
            dominant_species=list(data.get("dominantSpecies") or []),
            nearby_features=list(data.get("nearbyFeatures") or []),
            locality=data.get("locality"),
            manual_vegetation_type=data.get("manualVegetationType"),
        )


@dataclass
class GenerationRequest:
    """A request to generate a set of viewpoint images for one scenario.

    Attributes:
        perimeter: Fire perimeter
        inputs: Weather and fire parameters
        geo_context: Geographic context
        requested_views: Viewpoints to generate, in order
        seed: Optional seed shared by every image in the set
    """

    perimeter: FirePerimeter
    inputs: ScenarioInputs
    geo_context: GeoContext
    requested_views: list[ViewPoint]
    seed: int | None = None

    def __post_init__(self) -> None:
        """Normalize viewpoints and drop repeats, keeping first-seen order."""
        views = [
            parse_enum(ViewPoint, view, "requestedViews") for view in self.requested_views
        ]
        self.requested_views = list(dict.fromkeys(views))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "perimeter": self.perimeter.to_dict(),
            "inputs": self.inputs.to_dict(),
            "geoContext": self.geo_context.to_dict(),
            "requestedViews": [view.value for view in self.requested_views],
        }
        if self.seed is not None:
            data["seed"] = self.seed
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationRequest":
        """Create from dictionary.

        Raises:
            ValueError: If a required section is missing or invalid
        """
        context = "Generation request"
        seed = data.get("seed")
        return cls(
            perimeter=FirePerimeter.from_dict(_require(data, "perimeter", context)),
            inputs=ScenarioInputs.from_dict(_require(data, "inputs", context)),
            geo_context=GeoContext.from_dict(_require(data, "geoContext", context)),
            requested_views=list(_require(data, "requestedViews", context)),
            seed=int(seed) if seed is not None else None,
        )


# =============================================================================
# Generation Outcome
# =============================================================================


@dataclass
class ImageMetadata:
    """Metadata recorded for a generated image.

    Attributes:
        width: Image width in pixels
        height: Image height in pixels
        prompt: Prompt text used for generation
        model: Image model identifier
        generated_at: ISO 8601 generation timestamp
        seed: Seed used for generation
        is_anchor: Whether this is the anchor image of the set
        used_reference_image: Whether the anchor was passed as reference
    """

    width: int
    height: int
    prompt: str
    model: str
    generated_at: str = field(default_factory=utc_now_iso)
    seed: int | None = None
    is_anchor: bool = False
    used_reference_image: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "width": self.width,
            "height": self.height,
            "prompt": self.prompt,
            "model": self.model,
            "seed": self.seed,
            "generatedAt": self.generated_at,
            "isAnchor": self.is_anchor,
            "usedReferenceImage": self.used_reference_image,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageMetadata":
        """Create from dictionary."""
        return cls(
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
            prompt=data.get("prompt", ""),
            model=data.get("model", ""),
            generated_at=data.get("generatedAt") or utc_now_iso(),
            seed=data.get("seed"),
            is_anchor=bool(data.get("isAnchor", False)),
            used_reference_image=bool(data.get("usedReferenceImage", False)),
        )


@dataclass
class GeneratedImage:
    """A stored image for one viewpoint.

    Attributes:
        view_point: Viewpoint of the image
        url: Location of the stored image
        metadata: Generation metadata
    """

    view_point: ViewPoint
    url: str
    metadata: ImageMetadata

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "viewPoint": self.view_point.value,
            "url": self.url,
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratedImage":
        """Create from dictionary."""
        return cls(
            view_point=parse_enum(ViewPoint, data["viewPoint"], "viewPoint"),
            url=data.get("url", ""),
            metadata=ImageMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass
class GenerationResult:
    """Outcome of a scenario generation.

    Attributes:
        id: Scenario identifier
        status: Generation status
        images: Generated images (anchor first)
        created_at: ISO 8601 creation timestamp
        anchor_image: Anchor image, if it was generated
        seed: Seed shared by the set
        completed_at: ISO 8601 completion timestamp
        error: Error or partial-success message
        thinking_text: Model reasoning text, if the model exposed it
    """

    id: str
    status: GenerationStatus
    images: list[GeneratedImage] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)
    anchor_image: GeneratedImage | None = None
    seed: int | None = None
    completed_at: str | None = None
    error: str | None = None
    thinking_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "status": self.status.value,
            "images": [image.to_dict() for image in self.images],
            "anchorImage": self.anchor_image.to_dict() if self.anchor_image else None,
            "seed": self.seed,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
            "error": self.error,
            "thinkingText": self.thinking_text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationResult":
        """Create from dictionary."""
        anchor = data.get("anchorImage")
        return cls(
            id=data["id"],
            status=parse_enum(GenerationStatus, data.get("status", "pending"), "status"),
            images=[GeneratedImage.from_dict(item) for item in data.get("images") or []],
            created_at=data.get("createdAt") or utc_now_iso(),
            anchor_image=GeneratedImage.from_dict(anchor) if anchor else None,
            seed=data.get("seed"),
            completed_at=data.get("completedAt"),
            error=data.get("error"),
            thinking_text=data.get("thinkingText"),
        )


@dataclass
class GenerationProgress:
    """Live progress of a scenario generation.

    Attributes:
        scenario_id: Scenario identifier
        status: Current status
        total_images: Number of images that will be attempted
        completed_images: Images generated and stored
        failed_images: Images that failed to generate or store
        images: Generated images so far
        created_at: ISO 8601 creation timestamp
        updated_at: ISO 8601 timestamp of the last change
        anchor_image: Anchor image, once generated
        seed: Seed shared by the set
        error: Error or partial-success message
        thinking_text: Latest model reasoning text
    """

    scenario_id: str
    status: GenerationStatus
    total_images: int
    completed_images: int = 0
    failed_images: int = 0
    images: list[GeneratedImage] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)
    anchor_image: GeneratedImage | None = None
    seed: int | None = None
    error: str | None = None
    thinking_text: str | None = None

    @property
    def is_finished(self) -> bool:
        """Return True once the generation completed or failed."""
        return self.status in {GenerationStatus.COMPLETED, GenerationStatus.FAILED}

    def touch(self) -> None:
        """Update the modification timestamp."""
        self.updated_at = utc_now_iso()

    def to_result(self) -> GenerationResult:
        """Build the result view of this progress record."""
        return GenerationResult(
            id=self.scenario_id,
            status=self.status,
            images=list(self.images),
            created_at=self.created_at,
            anchor_image=self.anchor_image,
            seed=self.seed,
            completed_at=self.updated_at if self.is_finished else None,
            error=self.error,
            thinking_text=self.thinking_text,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "scenarioId": self.scenario_id,
            "status": self.status.value,
            "totalImages": self.total_images,
            "completedImages": self.completed_images,
            "failedImages": self.failed_images,
            "images": [image.to_dict() for image in self.images],
            "anchorImage": self.anchor_image.to_dict() if self.anchor_image else None,
            "seed": self.seed,
            "error": self.error,
            "thinkingText": self.thinking_text,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationProgress":
        """Create from dictionary."""
        anchor = data.get("anchorImage")
        return cls(
            scenario_id=data["scenarioId"],
            status=parse_enum(GenerationStatus, data.get("status", "pending"), "status"),
            total_images=int(data.get("totalImages", 0)),
            completed_images=int(data.get("completedImages", 0)),
            failed_images=int(data.get("failedImages", 0)),
            images=[GeneratedImage.from_dict(item) for item in data.get("images") or []],
            created_at=data.get("createdAt") or utc_now_iso(),
            updated_at=data.get("updatedAt") or utc_now_iso(),
            anchor_image=GeneratedImage.from_dict(anchor) if anchor else None,
            seed=data.get("seed"),
            error=data.get("error"),
            thinking_text=data.get("thinkingText"),
        )


# =============================================================================
# Persisted Records
# =============================================================================


@dataclass
class ScenarioMetadata:
    """Everything needed to reproduce or review a stored scenario.

    Attributes:
        id: Scenario identifier
        perimeter: Fire perimeter
        inputs: Weather and fire parameters
        geo_context: Geographic context (after enrichment)
        requested_views: Requested viewpoints
        result: Generation result
        prompt_version: Prompt template version used
        locality: Locality enrichment record, if enrichment ran
        consistency: Consistency validation record, if validation ran
        cost: Cost breakdown record
    """

    id: str
    perimeter: FirePerimeter
    inputs: ScenarioInputs
    geo_context: GeoContext
    requested_views: list[ViewPoint]
    result: GenerationResult
    prompt_version: str
    locality: dict[str, Any] | None = None
    consistency: dict[str, Any] | None = None
    cost: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "perimeter": self.perimeter.to_dict(),
            "inputs": self.inputs.to_dict(),
            "geoContext": self.geo_context.to_dict(),
            "requestedViews": [view.value for view in self.requested_views],
            "result": self.result.to_dict(),
            "promptVersion": self.prompt_version,
            "locality": self.locality,
            "consistency": self.consistency,
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScenarioMetadata":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            perimeter=FirePerimeter.from_dict(data["perimeter"]),
            inputs=ScenarioInputs.from_dict(data["inputs"]),
            geo_context=GeoContext.from_dict(data["geoContext"]),
            requested_views=[
                parse_enum(ViewPoint, view, "requestedViews")
                for view in data.get("requestedViews") or []
            ],
            result=GenerationResult.from_dict(data["result"]),
            prompt_version=data.get("promptVersion", ""),
            locality=data.get("locality"),
            consistency=data.get("consistency"),
            cost=data.get("cost"),
        )


@dataclass
class GenerationLog:
    """Human-readable record of how a scenario was generated.

    Attributes:
        prompts: (viewpoint, prompt text) pairs in generation order
        seed: Seed shared by the set
        model: Image model identifier
        generation_time_ms: Wall-clock generation time
        timestamp: ISO 8601 timestamp of the log
        thinking_text: Model reasoning text, if any
        model_responses: (viewpoint, text) pairs returned alongside images
    """

    prompts: list[tuple[str, str]]
    seed: int | None = None
    model: str | None = None
    generation_time_ms: int | None = None
    timestamp: str = field(default_factory=utc_now_iso)
    thinking_text: str | None = None
    model_responses: list[tuple[str, str]] = field(default_factory=list)
