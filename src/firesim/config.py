"""firesim configuration system.

Configuration is YAML-based with environment variable substitution (${VAR}).
Sections that are absent from the file fall back to the environment, so a
deployment can be configured purely through IMAGE_MODEL* / GEMINI_* variables.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.firesim/config.yaml
3. ./firesim.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from firesim.costs import PricingConfig
from firesim.models.image_model import ImageModelConfig
from firesim.models.llm_config import DEFAULT_GROUNDING_MODEL, LLMConfig

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class StorageConfig:
    """Scenario storage configuration.

    Attributes:
        path: Root directory holding generated-images/ and scenario-data/
    """

    path: str = ".firesim/data"


@dataclass
class GenerationConfig:
    """Scenario generation settings.

    Attributes:
        max_views: Maximum viewpoints generated per scenario
        enrich_locality: Run the locality agent before prompt generation
        prompt_template: Optional path to a YAML prompt template
    """

    max_views: int = 10
    enrich_locality: bool = True
    prompt_template: str | None = None

    def __post_init__(self) -> None:
        """Validate generation settings."""
        if not 1 <= self.max_views <= 10:
            raise ValueError(f"max_views must be between 1 and 10 (got {self.max_views})")


@dataclass
class CIConfig:
    """CI/CD-specific configuration.

    Attributes:
        fail_on_warning: Exit with error if the image set has consistency warnings
        json_output: Use JSON output format
    """

    fail_on_warning: bool = False
    json_output: bool = False


def grounding_config_from_env() -> LLMConfig:
    """Build the grounding LLM config from the environment.

    The Gemini key is read from ``GEMINI_API_KEY`` (falling back to
    ``IMAGE_MODEL_KEY``) and the model from ``GEMINI_TEXT_MODEL``. Grounding
    is disabled when no key is available.
    """
    api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("IMAGE_MODEL_KEY")
    return LLMConfig(
        provider="gemini",
        model=os.environ.get("GEMINI_TEXT_MODEL") or DEFAULT_GROUNDING_MODEL,
        api_key=api_key or None,
        enabled=bool(api_key),
    )


@dataclass
class FireSimConfig:
    """Top-level firesim configuration.

    Attributes:
        image_model: Image generation endpoint
        grounding: Grounding LLM used for locality enrichment
        storage: Scenario store location
        generation: Generation settings
        pricing: Unit prices for cost estimation
        ci: CI/CD settings
    """

    image_model: ImageModelConfig = field(default_factory=ImageModelConfig.from_env)
    grounding: LLMConfig = field(default_factory=grounding_config_from_env)
    storage: StorageConfig = field(default_factory=StorageConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    @property
    def storage_path(self) -> Path:
        """Resolve the storage root (relative to the config file if loaded)."""
        return self._resolve(self.storage.path)

    @property
    def prompt_template_path(self) -> Path | None:
        """Resolve the prompt template file, or None for the built-in template."""
        if not self.generation.prompt_template:
            return None
        return self._resolve(self.generation.prompt_template)

    def _resolve(self, value: str) -> Path:
        # Paths in .firesim/config.yaml are relative to the project root
        path = Path(value).expanduser()
        if not path.is_absolute() and self._config_path is not None:
            base = self._config_path.parent
            if base.name == ".firesim":
                base = base.parent
            path = base / path
        return path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Example: ``${GEMINI_API_KEY}`` becomes the value of GEMINI_API_KEY.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    start_path = (start_path or Path.cwd()).resolve()

    candidates = [
        start_path / ".firesim" / "config.yaml",
        start_path / "firesim.yaml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any] | None:
    section = data.get(name)
    if section is None:
        return None
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def load_config_from_dict(data: dict[str, Any]) -> FireSimConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        FireSimConfig instance

    Raises:
        ValueError: If a value is invalid or a referenced variable is unset
    """
    data = substitute_env_vars(data)
    config = FireSimConfig()

    image_data = _section(data, "image_model")
    if image_data is not None:
        config.image_model = ImageModelConfig.from_dict(image_data)

    grounding_data = _section(data, "grounding")
    if grounding_data is not None:
        config.grounding = LLMConfig.from_dict(grounding_data)

    storage_data = _section(data, "storage")
    if storage_data is not None:
        config.storage = StorageConfig(path=str(storage_data.get("path", config.storage.path)))

    generation_data = _section(data, "generation")
    if generation_data is not None:
        config.generation = GenerationConfig(
            max_views=int(generation_data.get("max_views", 10)),
            enrich_locality=bool(generation_data.get("enrich_locality", True)),
            prompt_template=generation_data.get("prompt_template"),
        )

    pricing_data = _section(data, "pricing")
    if pricing_data is not None:
        config.pricing = PricingConfig.from_dict(pricing_data)

    ci_data = _section(data, "ci")
    if ci_data is not None:
        config.ci = CIConfig(
            fail_on_warning=bool(ci_data.get("fail_on_warning", False)),
            json_output=bool(ci_data.get("json_output", False)),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> FireSimConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        FireSimConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path: Path | None = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is None:
        return FireSimConfig()

    with open(found_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {found_path}")

    config = load_config_from_dict(data)
    config._config_path = found_path
    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return """# firesim configuration
# Values of the form ${VAR} are read from the environment.

# Image generation model. Without this section IMAGE_MODEL, IMAGE_MODEL_KEY
# and IMAGE_MODEL_URL are used; with no model at all an offline placeholder
# renderer is used.
# image_model:
#   model: "gemini-3-pro-image-preview"
#   api_key: "${GEMINI_API_KEY}"
#   # url: "https://example.services.ai.azure.com/providers/blackforestlabs/v1/flux-pro"
#   size: "1024x1024"        # 1024x1024, 1792x1024, 1024x1792
#   quality: "high"          # standard, high
#   style: "natural"         # natural, vivid
#   max_retries: 3
#   timeout_seconds: 60

# Grounding LLM for locality enrichment (Gemini adds Google Search grounding)
# grounding:
#   provider: "gemini"
#   model: "gemini-2.5-flash"
#   api_key: "${GEMINI_API_KEY}"
#   temperature: 0.7
#   max_tokens: 1024

storage:
  path: ".firesim/data"

generation:
  max_views: 10
  enrich_locality: true
  # prompt_template: ".firesim/prompt-template.yaml"

# Unit prices in USD
pricing:
  dalle3_standard: 0.040
  dalle3_hd: 0.080
  stable_image_core: 0.033
  video_per_clip: 0.50
  storage_per_gb_month: 0.020

ci:
  fail_on_warning: false
  json_output: false
"""
