"""Cost estimation and usage tracking for scenario generation.

Prices are USD estimates based on public per-image pricing and should be
reviewed periodically; they can be overridden in the ``pricing`` config
section.
"""

import logging
from dataclasses import dataclass, field, fields
from datetime import UTC, date, datetime
from typing import Any

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024

IMAGE_PROVIDERS = frozenset({"dalle3", "stable-image-core"})
IMAGE_QUALITIES = frozenset({"standard", "hd"})


@dataclass
class PricingConfig:
    """Unit prices in USD.

    Attributes:
        dalle3_standard: DALL-E 3 standard image (1024x1024)
        dalle3_hd: DALL-E 3 HD image (1024x1792 or 1792x1024)
        stable_image_core: Stable Image Core image
        video_per_clip: Short video clip (4-10 seconds)
        storage_per_gb_month: Blob storage per GB per month
    """

    dalle3_standard: float = 0.040
    dalle3_hd: float = 0.080
    stable_image_core: float = 0.033
    video_per_clip: float = 0.50
    storage_per_gb_month: float = 0.020

    def __post_init__(self) -> None:
        """Reject negative prices."""
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"Price '{f.name}' cannot be negative")

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PricingConfig":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown pricing keys: %s", ", ".join(unknown))
        return cls(**{k: float(v) for k, v in data.items() if k in known})


@dataclass
class LineItem:
    """Cost of one category.

    Attributes:
        count: Number of units
        unit_cost: Cost per unit
        total_cost: count x unit_cost
    """

    count: int
    unit_cost: float
    total_cost: float

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {"count": self.count, "unitCost": self.unit_cost, "totalCost": self.total_cost}


@dataclass
class StorageCost:
    """Storage cost.

    Attributes:
        size_bytes: Stored bytes
        cost_per_gb: Monthly cost per GB
        total_cost: Monthly storage cost
    """

    size_bytes: int
    cost_per_gb: float
    total_cost: float

    @property
    def size_mb(self) -> float:
        """Return the size in megabytes."""
        return self.size_bytes / BYTES_PER_MB

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization."""
        return {
            "sizeBytes": self.size_bytes,
            "costPerGB": self.cost_per_gb,
            "totalCost": self.total_cost,
        }


@dataclass
class CostBreakdown:
    """Estimated cost of a scenario.

    Attributes:
        images: Image generation cost
        videos: Video generation cost
        storage: Storage cost
    """

    images: LineItem
    videos: LineItem
    storage: StorageCost

    @property
    def total_cost(self) -> float:
        """Return the sum of all categories."""
        return self.images.total_cost + self.videos.total_cost + self.storage.total_cost

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "images": self.images.to_dict(),
            "videos": self.videos.to_dict(),
            "storage": self.storage.to_dict(),
            "totalCost": self.total_cost,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CostBreakdown":
        """Create from dictionary."""
        images = data.get("images") or {}
        videos = data.get("videos") or {}
        storage = data.get("storage") or {}
        return cls(
            images=LineItem(
                count=int(images.get("count", 0)),
                unit_cost=float(images.get("unitCost", 0.0)),
                total_cost=float(images.get("totalCost", 0.0)),
            ),
            videos=LineItem(
                count=int(videos.get("count", 0)),
                unit_cost=float(videos.get("unitCost", 0.0)),
                total_cost=float(videos.get("totalCost", 0.0)),
            ),
            storage=StorageCost(
                size_bytes=int(storage.get("sizeBytes", 0)),
                cost_per_gb=float(storage.get("costPerGB", 0.0)),
                total_cost=float(storage.get("totalCost", 0.0)),
            ),
        )


class CostEstimator:
    """Estimate the cost of generating scenarios."""

    def __init__(self, pricing: PricingConfig | None = None) -> None:
        self.pricing = pricing or PricingConfig()

    def image_unit_cost(self, image_provider: str, image_quality: str) -> float:
        """Return the per-image price for a provider and quality.

        Raises:
            ValueError: If the provider or quality is unknown
        """
        if image_provider not in IMAGE_PROVIDERS:
            raise ValueError(
                f"Unknown image provider '{image_provider}'. Valid: {sorted(IMAGE_PROVIDERS)}"
            )
        if image_quality not in IMAGE_QUALITIES:
            raise ValueError(
                f"Unknown image quality '{image_quality}'. Valid: {sorted(IMAGE_QUALITIES)}"
            )
        if image_provider == "dalle3":
            return self.pricing.dalle3_hd if image_quality == "hd" else self.pricing.dalle3_standard
        return self.pricing.stable_image_core

    def estimate_scenario_cost(
        self,
        image_count: int,
        video_count: int = 0,
        image_quality: str = "standard",
        image_provider: str = "stable-image-core",
        estimated_storage_mb: float = 10,
    ) -> CostBreakdown:
        """Estimate the cost of generating one scenario.

        Args:
            image_count: Images generated
            video_count: Videos generated
            image_quality: ``standard`` or ``hd``
            image_provider: ``dalle3`` or ``stable-image-core``
            estimated_storage_mb: Stored size of the scenario

        Returns:
            CostBreakdown for the scenario
        """
        if image_count < 0 or video_count < 0 or estimated_storage_mb < 0:
            raise ValueError("Counts and storage size cannot be negative")

        cost_per_image = self.image_unit_cost(image_provider, image_quality)
        storage_cost = (estimated_storage_mb / 1024) * self.pricing.storage_per_gb_month

        return CostBreakdown(
            images=LineItem(image_count, cost_per_image, image_count * cost_per_image),
            videos=LineItem(
                video_count,
                self.pricing.video_per_clip,
                video_count * self.pricing.video_per_clip,
            ),
            storage=StorageCost(
                size_bytes=int(estimated_storage_mb * BYTES_PER_MB),
                cost_per_gb=self.pricing.storage_per_gb_month,
                total_cost=storage_cost,
            ),
        )

    @staticmethod
    def format_cost_breakdown(breakdown: CostBreakdown) -> str:
        """Format a cost breakdown as human-readable lines."""
        images = breakdown.images
        videos = breakdown.videos
        storage = breakdown.storage
        lines = [
            f"Images: {images.count} × ${images.unit_cost:.4f} = ${images.total_cost:.4f}",
            f"Videos: {videos.count} × ${videos.unit_cost:.4f} = ${videos.total_cost:.4f}",
            f"Storage: {storage.size_mb:.2f} MB × ${storage.cost_per_gb:.4f}/GB"
            f" = ${storage.total_cost:.4f}",
            f"Total: ${breakdown.total_cost:.4f}",
        ]
        return "\n".join(lines)


@dataclass
class DailyUsageSummary:
    """Aggregated usage for one day.

    Attributes:
        date: Day in ISO format (YYYY-MM-DD)
        total_scenarios: Scenarios recorded on that day
        total_images: Images across those scenarios
        total_videos: Videos across those scenarios
        cost_breakdown: Aggregated breakdown (unit costs are averages)
    """

    date: str
    total_scenarios: int
    total_images: int
    total_videos: int
    cost_breakdown: CostBreakdown

    @property
    def total_cost(self) -> float:
        """Return the total cost for the day."""
        return self.cost_breakdown.total_cost

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "date": self.date,
            "totalScenarios": self.total_scenarios,
            "totalImages": self.total_images,
            "totalVideos": self.total_videos,
            "totalCost": self.total_cost,
            "costBreakdown": self.cost_breakdown.to_dict(),
        }


@dataclass
class _UsageRecord:
    day: date
    breakdown: CostBreakdown


@dataclass
class UsageTracker:
    """Track scenario costs and aggregate them per day."""

    storage_price_per_gb: float = 0.020
    _records: dict[str, _UsageRecord] = field(default_factory=dict, repr=False)

    def record_scenario(
        self,
        scenario_id: str,
        breakdown: CostBreakdown,
        recorded_on: date | None = None,
    ) -> None:
        """Record (or replace) the cost of a scenario.

        Args:
            scenario_id: Scenario identifier
            breakdown: Scenario cost
            recorded_on: Day the scenario was generated (default: today, UTC)
        """
        day = recorded_on or datetime.now(UTC).date()
        self._records[scenario_id] = _UsageRecord(day=day, breakdown=breakdown)

    def get_daily_summary(self, day: date | None = None) -> DailyUsageSummary:
        """Aggregate the scenarios recorded on a given day.

        Args:
            day: Day to summarise (default: today, UTC)

        Returns:
            DailyUsageSummary for the day
        """
        day = day or datetime.now(UTC).date()
        breakdowns = [r.breakdown for r in self._records.values() if r.day == day]

        total_images = sum(b.images.count for b in breakdowns)
        total_videos = sum(b.videos.count for b in breakdowns)
        image_cost = sum(b.images.total_cost for b in breakdowns)
        video_cost = sum(b.videos.total_cost for b in breakdowns)

        aggregated = CostBreakdown(
            images=LineItem(
                total_images,
                image_cost / total_images if total_images else 0.0,
                image_cost,
            ),
            videos=LineItem(
                total_videos,
                video_cost / total_videos if total_videos else 0.0,
                video_cost,
            ),
            storage=StorageCost(
                size_bytes=sum(b.storage.size_bytes for b in breakdowns),
                cost_per_gb=self.storage_price_per_gb,
                total_cost=sum(b.storage.total_cost for b in breakdowns),
            ),
        )

        return DailyUsageSummary(
            date=day.isoformat(),
            total_scenarios=len(breakdowns),
            total_images=total_images,
            total_videos=total_videos,
            cost_breakdown=aggregated,
        )

    def clear(self) -> None:
        """Clear all tracked data."""
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
