"""Unit tests for logging setup."""

import io
import json
import logging

from firesim.utils.logging import (
    FireSimLogger,
    LogMode,
    configure_from_cli,
    get_logger,
    setup_logging,
)


def _emit(mode: LogMode, level: int = logging.INFO) -> str:
    stream = io.StringIO()
    setup_logging(mode=mode, level=level, stream=stream)
    get_logger("firesim.pipeline").info("Generated %d images", 3)
    return stream.getvalue()


class TestSetupLogging:
    """Tests for output modes."""

    def test_human_mode(self) -> None:
        """Test the plain [LEVEL] message format."""
        assert _emit(LogMode.HUMAN) == "[INFO] Generated 3 images\n"

    def test_verbose_mode(self) -> None:
        """Test that verbose lines carry the logger name."""
        output = _emit(LogMode.VERBOSE)

        assert output.startswith("[INFO][")
        assert "] firesim.pipeline: Generated 3 images" in output

    def test_json_mode(self) -> None:
        """Test JSON lines output."""
        entry = json.loads(_emit(LogMode.JSON))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "firesim.pipeline"
        assert entry["msg"] == "Generated 3 images"
        assert "ts" in entry

    def test_level_filters(self) -> None:
        """Test that records below the level are dropped."""
        assert _emit(LogMode.HUMAN, level=logging.WARNING) == ""

    def test_no_colors_without_tty(self) -> None:
        """Test that a StringIO stream gets no ANSI codes."""
        assert "\033[" not in _emit(LogMode.HUMAN)

    def test_reconfigure_replaces_handler(self) -> None:
        """Test that repeated setup does not duplicate output."""
        stream = io.StringIO()
        setup_logging(stream=stream)
        setup_logging(stream=stream)

        get_logger().warning("once")

        assert stream.getvalue() == "[WARNING] once\n"


class TestStructuredLogging:
    """Tests for structured fields."""

    def test_logger_class(self) -> None:
        """Test that firesim loggers support structured fields."""
        assert isinstance(get_logger("firesim.structured"), FireSimLogger)

    def test_fields_in_json(self) -> None:
        """Test that structured fields become JSON keys."""
        stream = io.StringIO()
        setup_logging(mode=LogMode.JSON, stream=stream)

        logger = get_logger("firesim.structured")
        logger.structured(logging.INFO, "Scenario done", scenario_id="abc")

        entry = json.loads(stream.getvalue())
        assert entry["scenario_id"] == "abc"
        assert entry["msg"] == "Scenario done"


class TestConfigureFromCli:
    """Tests for CLI flag handling."""

    def test_quiet(self) -> None:
        """Test that quiet keeps warnings only."""
        configure_from_cli(quiet=True, stream=io.StringIO())

        assert logging.getLogger("firesim").level == logging.WARNING

    def test_verbose(self) -> None:
        """Test that verbose enables debug output."""
        configure_from_cli(verbose=True, stream=io.StringIO())

        assert logging.getLogger("firesim").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_ci_uses_json(self) -> None:
        """Test that CI mode emits JSON lines."""
        stream = io.StringIO()
        configure_from_cli(ci=True, stream=stream)

        get_logger().info("hello")

        assert json.loads(stream.getvalue())["msg"] == "hello"
