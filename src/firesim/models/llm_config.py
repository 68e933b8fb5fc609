"""Grounding LLM configuration.

Defines the text-model configuration used for locality enrichment. The model
is reached through LiteLLM; Gemini additionally supports Google Search
grounding.
"""

from dataclasses import dataclass, field

# Valid LLM providers
VALID_PROVIDERS = frozenset({"claude", "gemini", "ollama", "bedrock"})

DEFAULT_GROUNDING_MODEL = "gemini-2.5-flash"


@dataclass
class LLMConfig:
    """Configuration for the grounding LLM.

    Attributes:
        provider: LLM provider (claude, gemini, ollama, bedrock)
        model: Model identifier (e.g., "gemini-2.5-flash")
        api_key: API key (not required for Ollama or Bedrock)
        api_base: API base URL (required for Ollama)
        temperature: Sampling temperature (0-2)
        max_tokens: Maximum response tokens
        enabled: Whether locality enrichment is enabled
    """

    provider: str
    model: str
    api_key: str | None = None
    api_base: str | None = None
    temperature: float = field(default=0.7)
    max_tokens: int = field(default=1024)
    enabled: bool = field(default=True)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.provider = self.provider.lower().strip()

        if self.provider not in VALID_PROVIDERS:
            raise ValueError(
                f"Invalid provider '{self.provider}'. "
                f"Must be one of: {sorted(VALID_PROVIDERS)}"
            )

        if not self.model or not self.model.strip():
            raise ValueError("Model identifier cannot be empty")
        self.model = self.model.strip()

        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be between 0 and 2. Got: {self.temperature}")

        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive. Got: {self.max_tokens}")

        # A disabled config may be incomplete
        if not self.enabled:
            return

        if self.provider == "ollama":
            if not self.api_base:
                raise ValueError("api_base is required for Ollama provider")
        elif self.provider in {"claude", "gemini"}:
            # Bedrock reads AWS credentials from the environment
            if not self.api_key:
                raise ValueError(f"api_key is required for {self.provider} provider")

    @property
    def supports_search_grounding(self) -> bool:
        """Return True when the provider can ground answers with Google Search."""
        return self.provider == "gemini"

    def validate(self) -> list[str]:
        """Validate configuration and return warnings.

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings: list[str] = []

        if self.max_tokens < 512:
            warnings.append(
                f"max_tokens is set to {self.max_tokens}, which may truncate "
                "the locality description"
            )

        if self.enabled and not self.supports_search_grounding:
            warnings.append(
                f"Provider '{self.provider}' has no search grounding; "
                "locality descriptions will rely on model knowledge only"
            )

        if (
            self.provider == "ollama"
            and self.api_base
            and not self.api_base.startswith(("http://", "https://"))
        ):
            warnings.append(
                f"api_base '{self.api_base}' does not start with http:// or https://"
            )

        return warnings

    def to_dict(self) -> dict[str, str | int | float | bool | None]:
        """Convert to dictionary for serialization."""
        return {
            "provider": self.provider,
            "model": self.model,
            "api_key": self.api_key,
            "api_base": self.api_base,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str | int | float | bool | None]) -> "LLMConfig":
        """Create LLMConfig from dictionary.

        Args:
            data: Dictionary with configuration values

        Returns:
            LLMConfig instance
        """
        return cls(
            provider=str(data.get("provider", "gemini")),
            model=str(data.get("model", DEFAULT_GROUNDING_MODEL)),
            api_key=data.get("api_key") if data.get("api_key") else None,  # type: ignore[arg-type]
            api_base=data.get("api_base") if data.get("api_base") else None,  # type: ignore[arg-type]
            temperature=float(data.get("temperature", 0.7)),  # type: ignore[arg-type]
            max_tokens=int(data.get("max_tokens", 1024)),  # type: ignore[arg-type]
            enabled=bool(data.get("enabled", True)),
        )

    def get_litellm_model_name(self) -> str:
        """Get the model name in LiteLLM format.

        Returns:
            Model name formatted for LiteLLM
        """
        if self.provider == "ollama":
            return f"ollama/{self.model}"
        elif self.provider == "bedrock":
            return f"bedrock/{self.model}"
        elif self.provider == "gemini":
            return f"gemini/{self.model}"
        else:
            return f"anthropic/{self.model}"
