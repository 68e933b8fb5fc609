"""Unit tests for cost estimation and usage tracking."""

from datetime import date

import pytest

from firesim.costs import (
    CostBreakdown,
    CostEstimator,
    PricingConfig,
    UsageTracker,
)


class TestPricingConfig:
    """Tests for PricingConfig."""

    def test_defaults(self) -> None:
        """Test the default unit prices."""
        pricing = PricingConfig()

        assert pricing.stable_image_core == 0.033
        assert pricing.storage_per_gb_month == 0.020

    def test_negative_price(self) -> None:
        """Test that prices cannot be negative."""
        with pytest.raises(ValueError, match="'dalle3_hd' cannot be negative"):
            PricingConfig(dalle3_hd=-1)

    def test_from_dict_ignores_unknown_keys(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that unknown keys are ignored with a warning."""
        pricing = PricingConfig.from_dict({"dalle3_hd": "0.1", "midjourney": 0.2})

        assert pricing.dalle3_hd == 0.1
        assert "midjourney" in caplog.text


class TestCostEstimator:
    """Tests for CostEstimator."""

    def test_estimate(self) -> None:
        """Test a default scenario estimate."""
        breakdown = CostEstimator().estimate_scenario_cost(image_count=5)

        assert breakdown.images.unit_cost == 0.033
        assert breakdown.images.total_cost == pytest.approx(0.165)
        assert breakdown.videos.total_cost == 0
        assert breakdown.storage.total_cost == pytest.approx(10 / 1024 * 0.02)
        assert breakdown.storage.size_mb == pytest.approx(10)
        assert breakdown.total_cost == pytest.approx(0.165 + 10 / 1024 * 0.02)

    @pytest.mark.parametrize(
        ("provider", "quality", "unit_cost"),
        [
            ("dalle3", "standard", 0.040),
            ("dalle3", "hd", 0.080),
            ("stable-image-core", "hd", 0.033),
        ],
    )
    def test_unit_cost(self, provider: str, quality: str, unit_cost: float) -> None:
        """Test per-image prices by provider and quality."""
        assert CostEstimator().image_unit_cost(provider, quality) == unit_cost

    def test_videos(self) -> None:
        """Test video clip pricing."""
        breakdown = CostEstimator().estimate_scenario_cost(image_count=0, video_count=2)

        assert breakdown.videos.total_cost == pytest.approx(1.0)

    def test_custom_pricing(self) -> None:
        """Test that configured prices are used."""
        estimator = CostEstimator(PricingConfig(stable_image_core=0.05))

        assert estimator.estimate_scenario_cost(image_count=2).images.total_cost == 0.1

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"image_provider": "midjourney"}, "Unknown image provider"),
            ({"image_quality": "ultra"}, "Unknown image quality"),
            ({"video_count": -1}, "cannot be negative"),
            ({"estimated_storage_mb": -5}, "cannot be negative"),
        ],
    )
    def test_invalid(self, kwargs: dict[str, object], message: str) -> None:
        """Test rejected estimate arguments."""
        with pytest.raises(ValueError, match=message):
            CostEstimator().estimate_scenario_cost(image_count=1, **kwargs)  # type: ignore[arg-type]

    def test_format_breakdown(self) -> None:
        """Test the human-readable breakdown."""
        breakdown = CostEstimator().estimate_scenario_cost(image_count=5)

        lines = CostEstimator.format_cost_breakdown(breakdown).splitlines()

        assert lines[0] == "Images: 5 × $0.0330 = $0.1650"
        assert lines[1].startswith("Videos: 0")
        assert lines[2].startswith("Storage: 10.00 MB")
        assert lines[3] == "Total: $0.1652"

    def test_breakdown_round_trip(self) -> None:
        """Test that a stored breakdown loads back unchanged."""
        breakdown = CostEstimator().estimate_scenario_cost(image_count=3, video_count=1)

        assert CostBreakdown.from_dict(breakdown.to_dict()) == breakdown


class TestUsageTracker:
    """Tests for UsageTracker."""

    def test_daily_summary(self) -> None:
        """Test aggregation of scenarios recorded on one day."""
        estimator = CostEstimator()
        tracker = UsageTracker()
        day = date(2025, 1, 15)
        tracker.record_scenario("a", estimator.estimate_scenario_cost(4), recorded_on=day)
        tracker.record_scenario("b", estimator.estimate_scenario_cost(6), recorded_on=day)
        tracker.record_scenario("c", estimator.estimate_scenario_cost(9), date(2025, 1, 16))

        summary = tracker.get_daily_summary(day)

        assert summary.date == "2025-01-15"
        assert summary.total_scenarios == 2
        assert summary.total_images == 10
        assert summary.cost_breakdown.images.unit_cost == pytest.approx(0.033)
        assert summary.total_cost == pytest.approx(0.33 + 2 * 10 / 1024 * 0.02)

    def test_rerecording_replaces(self) -> None:
        """Test that a scenario is counted once."""
        estimator = CostEstimator()
        tracker = UsageTracker()
        day = date(2025, 1, 15)
        tracker.record_scenario("a", estimator.estimate_scenario_cost(4), recorded_on=day)
        tracker.record_scenario("a", estimator.estimate_scenario_cost(2), recorded_on=day)

        assert len(tracker) == 1
        assert tracker.get_daily_summary(day).total_images == 2

    def test_empty_day(self) -> None:
        """Test a day without scenarios."""
        summary = UsageTracker().get_daily_summary(date(2025, 1, 15))

        assert summary.total_scenarios == 0
        assert summary.total_cost == 0
        assert summary.cost_breakdown.images.unit_cost == 0.0

    def test_clear(self) -> None:
        """Test clearing tracked data."""
        tracker = UsageTracker()
        tracker.record_scenario("a", CostEstimator().estimate_scenario_cost(1))

        tracker.clear()

        assert len(tracker) == 0

    def test_to_dict(self) -> None:
        """Test the wire form of a summary."""
        data = UsageTracker().get_daily_summary(date(2025, 1, 15)).to_dict()

        assert data["date"] == "2025-01-15"
        assert data["totalCost"] == 0
        assert "costBreakdown" in data
