"""Preflight validation.

Checks the image model, the grounding LLM and the scenario store before a
generation starts so that configuration problems surface with a clear
message instead of halfway through a run.

Only the Python packages and the storage root are required. A missing image
model falls back to the placeholder provider and a missing grounding LLM to
basic locality enrichment, so both are reported as warnings.
"""

import asyncio
import importlib.util
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from firesim.config import FireSimConfig


@dataclass
class ToolCheck:
    """Result of checking a single dependency.

    Attributes:
        name: Dependency name
        available: Whether it is usable
        version: Version if known
        required: Whether generation cannot run without it
        path: Location (module path, endpoint or directory) if known
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required dependencies are available
        checks: Individual check results
        errors: Error messages for missing required dependencies
        warnings: Warning messages for missing optional dependencies
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"{check.name}: {check.message}")
            else:
                self.warnings.append(f"{check.name}: {check.message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates dependencies before generation.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(config)
        if not result.success:
            raise typer.Exit(code=1)
    """

    def check_package(self, module: str, distribution: str, message: str) -> ToolCheck:
        """Check that a Python package can be imported."""
        spec = importlib.util.find_spec(module)
        if spec is None:
            return ToolCheck(
                name=distribution,
                available=False,
                message=f"Install with: pip install {distribution}",
            )

        from importlib.metadata import PackageNotFoundError, version

        try:
            package_version: str | None = version(distribution)
        except PackageNotFoundError:
            package_version = None

        return ToolCheck(
            name=distribution,
            available=True,
            version=package_version,
            path=spec.origin,
            message=message,
        )

    def check_image_model(self, config: "FireSimConfig") -> ToolCheck:
        """Check that a remote image model is configured."""
        image_model = config.image_model
        if not image_model.is_complete:
            missing = [
                name
                for name, value in (("model", image_model.model), ("api key", image_model.api_key))
                if not value
            ]
            if not missing and not image_model.is_gemini:
                missing.append("url")
            return ToolCheck(
                name="image_model",
                available=False,
                required=False,
                message=(
                    f"Image model not configured (missing {', '.join(missing)}); "
                    "the placeholder provider will be used. Set IMAGE_MODEL, "
                    "IMAGE_MODEL_KEY and IMAGE_MODEL_URL"
                ),
            )

        provider = "Gemini" if image_model.is_gemini else "Flux-style endpoint"
        return ToolCheck(
            name="image_model",
            available=True,
            version=image_model.model,
            required=False,
            path=image_model.url,
            message=f"{provider} ({image_model.model})",
        )

    def check_grounding(self, config: "FireSimConfig", verify: bool = False) -> ToolCheck:
        """Check the grounding LLM used for locality enrichment.

        Args:
            config: firesim configuration
            verify: Make a real completion call to verify credentials

        Returns:
            ToolCheck result
        """
        grounding = config.grounding
        if not grounding.enabled:
            return ToolCheck(
                name="grounding",
                available=False,
                required=False,
                message="Grounding LLM disabled; set GEMINI_API_KEY for locality research",
            )

        warnings = grounding.validate()
        model_name = grounding.get_litellm_model_name()

        if verify:
            from firesim.llm.client import LLMClient

            reachable = asyncio.run(LLMClient(grounding).check_available())
            if not reachable:
                return ToolCheck(
                    name="grounding",
                    available=False,
                    required=False,
                    version=model_name,
                    message=f"Grounding LLM not reachable ({model_name})",
                )

        message = f"{grounding.provider} via LiteLLM ({model_name})"
        if warnings:
            message = f"{message}; {'; '.join(warnings)}"
        return ToolCheck(
            name="grounding",
            available=True,
            version=model_name,
            required=False,
            path=grounding.api_base,
            message=message,
        )

    def check_storage(self, path: Path) -> ToolCheck:
        """Check that the storage root exists or can be created, and is writable."""
        try:
            path.mkdir(parents=True, exist_ok=True)
            marker = path / ".preflight"
            marker.write_text("ok", encoding="utf-8")
            marker.unlink()
        except OSError as e:
            return ToolCheck(
                name="storage",
                available=False,
                path=str(path),
                message=f"Storage root is not writable: {e}",
            )

        return ToolCheck(
            name="storage",
            available=True,
            path=str(path),
            message="Scenario store",
        )

    def check_all(self, config: "FireSimConfig", verify_grounding: bool = False) -> PreflightResult:
        """Run every check.

        Args:
            config: firesim configuration
            verify_grounding: Verify the grounding LLM with a real call

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()
        result.add_check(
            self.check_package("PIL", "pillow", "Image rendering (placeholder provider)")
        )
        result.add_check(self.check_package("httpx", "httpx", "HTTP client for image providers"))
        if config.grounding.enabled:
            result.add_check(self.check_package("litellm", "litellm", "Unified LLM interface"))
        result.add_check(self.check_image_model(config))
        result.add_check(self.check_grounding(config, verify=verify_grounding))
        result.add_check(self.check_storage(config.storage_path))
        return result
