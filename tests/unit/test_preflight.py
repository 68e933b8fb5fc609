"""Unit tests for preflight checks."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from firesim.config import FireSimConfig, StorageConfig
from firesim.models.image_model import ImageModelConfig
from firesim.models.llm_config import LLMConfig
from firesim.utils.preflight import PreflightChecker, PreflightResult, ToolCheck


@pytest.fixture
def config(tmp_path: Path) -> FireSimConfig:
    """Return a config with no remote models and a temporary store."""
    return FireSimConfig(storage=StorageConfig(path=str(tmp_path / "data")))


class TestPackageCheck:
    """Tests for Python package checks."""

    def test_installed(self) -> None:
        """Test a package that is installed."""
        check = PreflightChecker().check_package("httpx", "httpx", "HTTP client")

        assert check.available is True
        assert check.version is not None
        assert check.message == "HTTP client"

    def test_missing(self) -> None:
        """Test a package that cannot be imported."""
        with patch("importlib.util.find_spec", return_value=None):
            check = PreflightChecker().check_package("litellm", "litellm", "LLM")

        assert check.available is False
        assert check.message == "Install with: pip install litellm"


class TestImageModelCheck:
    """Tests for the image model check."""

    def test_unconfigured(self, config: FireSimConfig) -> None:
        """Test that a missing model is an optional warning."""
        check = PreflightChecker().check_image_model(config)

        assert check.available is False
        assert check.required is False
        assert "missing model, api key" in check.message
        assert "placeholder provider" in check.message

    def test_flux_without_url(self, config: FireSimConfig) -> None:
        """Test that a Flux-style model without an endpoint is incomplete."""
        config.image_model = ImageModelConfig(model="FLUX.1-Kontext-pro", api_key="k")

        check = PreflightChecker().check_image_model(config)

        assert "missing url" in check.message

    def test_gemini(self, config: FireSimConfig) -> None:
        """Test a configured Gemini model."""
        config.image_model = ImageModelConfig(model="gemini-3-pro-image-preview", api_key="k")

        check = PreflightChecker().check_image_model(config)

        assert check.available is True
        assert check.message == "Gemini (gemini-3-pro-image-preview)"


class TestGroundingCheck:
    """Tests for the grounding LLM check."""

    def test_disabled(self, config: FireSimConfig) -> None:
        """Test the warning when no grounding key is set."""
        check = PreflightChecker().check_grounding(config)

        assert check.available is False
        assert check.required is False
        assert "GEMINI_API_KEY" in check.message

    def test_enabled(self, config: FireSimConfig) -> None:
        """Test an enabled Gemini grounding model."""
        config.grounding = LLMConfig(provider="gemini", model="gemini-2.5-flash", api_key="k")

        check = PreflightChecker().check_grounding(config)

        assert check.available is True
        assert check.message == "gemini via LiteLLM (gemini/gemini-2.5-flash)"

    def test_enabled_with_warnings(self, config: FireSimConfig) -> None:
        """Test that config warnings are appended to the message."""
        config.grounding = LLMConfig(provider="claude", model="claude-sonnet", api_key="k")

        check = PreflightChecker().check_grounding(config)

        assert check.available is True
        assert "no search grounding" in check.message

    def test_verify_unreachable(self, config: FireSimConfig) -> None:
        """Test verification with a failing provider."""
        config.grounding = LLMConfig(provider="gemini", model="gemini-2.5-flash", api_key="k")

        with patch(
            "firesim.llm.client.LLMClient.check_available", new=AsyncMock(return_value=False)
        ):
            check = PreflightChecker().check_grounding(config, verify=True)

        assert check.available is False
        assert check.message == "Grounding LLM not reachable (gemini/gemini-2.5-flash)"


class TestStorageCheck:
    """Tests for the storage check."""

    def test_created_and_writable(self, tmp_path: Path) -> None:
        """Test that a missing root is created."""
        root = tmp_path / "nested" / "data"

        check = PreflightChecker().check_storage(root)

        assert check.available is True
        assert root.is_dir()
        assert list(root.iterdir()) == []

    def test_not_writable(self, tmp_path: Path) -> None:
        """Test a root that cannot be created."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")

        check = PreflightChecker().check_storage(blocker / "data")

        assert check.available is False
        assert check.required is True
        assert "not writable" in check.message


class TestCheckAll:
    """Tests for the combined preflight result."""

    def test_offline_config(self, config: FireSimConfig) -> None:
        """Test that an offline config passes with warnings."""
        result = PreflightChecker().check_all(config)

        assert result.success is True
        assert [c.name for c in result.checks] == [
            "pillow",
            "httpx",
            "image_model",
            "grounding",
            "storage",
        ]
        assert len(result.warnings) == 2
        assert result.errors == []

    def test_litellm_checked_when_grounding_enabled(self, config: FireSimConfig) -> None:
        """Test that litellm is only required for grounding."""
        config.grounding = LLMConfig(provider="gemini", model="gemini-2.5-flash", api_key="k")

        result = PreflightChecker().check_all(config)

        assert "litellm" in [c.name for c in result.checks]

    def test_required_failure(self) -> None:
        """Test that a missing required dependency fails the run."""
        result = PreflightResult()

        result.add_check(ToolCheck(name="storage", available=False, message="read-only"))

        assert result.success is False
        assert result.errors == ["storage: read-only"]

    def test_to_dict(self, config: FireSimConfig) -> None:
        """Test the JSON form of a result."""
        data = PreflightChecker().check_all(config).to_dict()

        assert data["success"] is True
        assert {"name", "available", "required", "message"} <= set(data["checks"][0])
