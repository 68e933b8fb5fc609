"""Unit tests for generation log rendering."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from firesim.models.scenario import GenerationLog
from firesim.templates import LogRenderer, format_datetime, format_duration


class TestFilters:
    """Tests for template filters."""

    def test_format_datetime_none(self) -> None:
        """Test the placeholder for a missing timestamp."""
        assert format_datetime(None) == "N/A"

    def test_format_datetime_iso_string(self) -> None:
        """Test that ISO strings are converted to UTC."""
        assert format_datetime("2025-01-15T14:00:00+11:00") == "2025-01-15 03:00:00 UTC"

    def test_format_datetime_naive(self) -> None:
        """Test that naive datetimes are treated as UTC."""
        assert format_datetime(datetime(2025, 1, 15, 3, 0, 0)) == "2025-01-15 03:00:00 UTC"

    def test_format_datetime_aware(self) -> None:
        """Test an aware datetime in another zone."""
        aest = timezone(timedelta(hours=10))

        assert format_datetime(datetime(2025, 1, 15, 13, 0, tzinfo=aest)) == (
            "2025-01-15 03:00:00 UTC"
        )

    def test_format_datetime_unparseable(self) -> None:
        """Test that free text is passed through."""
        assert format_datetime("yesterday") == "yesterday"

    @pytest.mark.parametrize(
        ("milliseconds", "expected"),
        [(None, "unknown"), (0, "unknown"), (12300, "12.3s"), (1500, "1.5s")],
    )
    def test_format_duration(self, milliseconds: int | None, expected: str) -> None:
        """Test duration formatting."""
        assert format_duration(milliseconds) == expected


class TestLogRenderer:
    """Tests for LogRenderer."""

    @pytest.fixture
    def log(self) -> GenerationLog:
        """Return a generation log for two views."""
        return GenerationLog(
            prompts=[("ground_north", "Anchor prompt"), ("aerial", "Aerial prompt")],
            seed=42,
            model="gemini-3-pro-image-preview",
            generation_time_ms=12300,
            timestamp=datetime(2025, 1, 15, 3, 0, tzinfo=UTC).isoformat(),
        )

    def test_header(self, log: GenerationLog) -> None:
        """Test the log header."""
        markdown = LogRenderer().render_generation_log("abc", log)

        assert markdown.startswith("# Generation Log\n")
        assert "**Scenario ID:** abc" in markdown
        assert "**Model:** gemini-3-pro-image-preview" in markdown
        assert "**Seed:** 42" in markdown
        assert "**Generated:** 2025-01-15 03:00:00 UTC" in markdown
        assert "**Duration:** 12.3s" in markdown

    def test_prompts_in_order(self, log: GenerationLog) -> None:
        """Test that prompts appear in generation order."""
        markdown = LogRenderer().render_generation_log("abc", log)

        assert "## Prompts" in markdown
        assert markdown.index("### ground_north") < markdown.index("### aerial")
        assert "Anchor prompt" in markdown

    def test_optional_sections_omitted(self, log: GenerationLog) -> None:
        """Test a log without thinking or responses."""
        markdown = LogRenderer().render_generation_log("abc", log)

        assert "## Model Thinking" not in markdown
        assert "## Model Responses" not in markdown

    def test_thinking_and_responses(self, log: GenerationLog) -> None:
        """Test that thinking and non-empty responses are rendered."""
        log.thinking_text = "Placing the plume downwind."
        log.model_responses = [("ground_north", "Here is your image."), ("aerial", "")]

        markdown = LogRenderer().render_generation_log("abc", log)

        assert "## Model Thinking\n\nPlacing the plume downwind." in markdown
        responses = markdown.split("## Model Responses")[1]
        assert "### ground_north" in responses
        assert "### aerial" not in responses

    def test_seed_none(self, log: GenerationLog) -> None:
        """Test a log without a seed."""
        log.seed = None

        assert "**Seed:** none" in LogRenderer().render_generation_log("abc", log)

    def test_deterministic(self, log: GenerationLog) -> None:
        """Test that rendering the same log twice gives the same text."""
        renderer = LogRenderer()

        assert renderer.render_generation_log("abc", log) == renderer.render_generation_log(
            "abc", log
        )

    def test_missing_template(self, log: GenerationLog) -> None:
        """Test an unknown template name."""
        with pytest.raises(ValueError, match="Template not found"):
            LogRenderer().render_generation_log("abc", log, template_name="missing.md.j2")
