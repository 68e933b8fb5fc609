"""Visual consistency validation for multi-perspective image sets.

Heuristic checks over image metadata (prompt text, model and seed):

- Smoke direction alignment with the wind
- Fire size proportionality across viewpoint types
- Lighting consistency with the time of day
- Colour palette similarity
"""

from dataclasses import dataclass, field
from typing import Any

from firesim.models.scenario import GeneratedImage, ScenarioInputs

SMOKE_DIRECTION = "Smoke Direction Consistency"
FIRE_SIZE = "Fire Size Proportionality"
LIGHTING = "Lighting Consistency"
COLOR_PALETTE = "Color Palette Similarity"

CHECK_WEIGHTS: dict[str, float] = {
    SMOKE_DIRECTION: 0.3,
    FIRE_SIZE: 0.2,
    LIGHTING: 0.25,
    COLOR_PALETTE: 0.25,
}
DEFAULT_CHECK_WEIGHT = 0.25
PASS_THRESHOLD = 70


@dataclass
class ConsistencyCheck:
    """Result of a single consistency check (scores are 0-100)."""

    name: str
    passed: bool
    score: float
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "passed": self.passed,
            "score": self.score,
            "message": self.message,
        }


@dataclass
class ConsistencyValidationResult:
    """Overall consistency verdict for an image set.

    Attributes:
        passed: Whether the overall score reached the pass threshold
        score: Weighted overall score (0-100)
        checks: Individual check results
        warnings: Messages of failed checks
        recommendations: Suggested remedies
    """

    passed: bool
    score: int
    checks: list[ConsistencyCheck] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def get_check(self, name: str) -> ConsistencyCheck | None:
        return next((check for check in self.checks if check.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "passed": self.passed,
            "score": self.score,
            "checks": [check.to_dict() for check in self.checks],
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
        }


def _mention_ratio(images: list[GeneratedImage], terms: tuple[str, ...]) -> float:
    if not images:
        return 0.0
    mentioned = [
        image for image in images if any(term in image.metadata.prompt.lower() for term in terms)
    ]
    return len(mentioned) / len(images) * 100


class ConsistencyValidator:
    """Validate consistency across a set of generated images."""

    def validate_image_set(
        self,
        images: list[GeneratedImage],
        inputs: ScenarioInputs,
        anchor_image: GeneratedImage | None = None,
    ) -> ConsistencyValidationResult:
        """Run all checks and combine them into a weighted verdict."""
        smoke = self.validate_smoke_direction(images, inputs)
        fire_size = self.validate_fire_size_proportions(images, anchor_image)
        lighting = self.validate_lighting_consistency(images, inputs)
        color = self.validate_color_palette(images)
        checks = [smoke, fire_size, lighting, color]

        warnings = [check.message for check in checks if not check.passed]
        score = self.calculate_overall_score(checks)

        recommendations = []
        if score < PASS_THRESHOLD:
            recommendations.append(
                "Consider regenerating images with a different seed for better consistency"
            )
        if not smoke.passed:
            recommendations.append(
                "Review wind direction parameter and ensure prompts specify correct smoke direction"
            )
        if not color.passed:
            recommendations.append(
                "Apply color grading post-processing to normalize color palette across views"
            )

        return ConsistencyValidationResult(
            passed=score >= PASS_THRESHOLD,
            score=score,
            checks=checks,
            warnings=warnings,
            recommendations=recommendations,
        )

    @staticmethod
    def validate_smoke_direction(
        images: list[GeneratedImage], inputs: ScenarioInputs
    ) -> ConsistencyCheck:
        """At least 80% of prompts should mention the wind."""
        direction = inputs.wind_direction.value
        score = _mention_ratio(images, (direction.lower(), "wind"))
        passed = score >= 80
        return ConsistencyCheck(
            name=SMOKE_DIRECTION,
            passed=passed,
            score=score,
            message=(
                f"Smoke direction aligned with wind ({direction})"
                if passed
                else f"Inconsistent smoke direction - expected {direction} wind"
            ),
        )

    @staticmethod
    def validate_fire_size_proportions(
        images: list[GeneratedImage], anchor_image: GeneratedImage | None = None
    ) -> ConsistencyCheck:
        """Several viewpoint types plus an anchor make the fire scale verifiable."""
        view_types = {image.view_point.view_type for image in images}
        multiple_types = len(view_types) > 1

        if multiple_types and anchor_image is not None:
            score = 100
        elif multiple_types:
            score = 70
        else:
            score = 50

        passed = score >= 70
        return ConsistencyCheck(
            name=FIRE_SIZE,
            passed=passed,
            score=score,
            message=(
                "Fire scale appears consistent across viewpoint types"
                if passed
                else "Limited viewpoint variety - unable to verify fire size consistency"
            ),
        )

    @staticmethod
    def validate_lighting_consistency(
        images: list[GeneratedImage], inputs: ScenarioInputs
    ) -> ConsistencyCheck:
        """At least 80% of prompts should mention the time of day or lighting."""
        time_of_day = inputs.time_of_day.value
        score = _mention_ratio(images, (time_of_day.lower(), "lighting", "sun"))
        passed = score >= 80
        return ConsistencyCheck(
            name=LIGHTING,
            passed=passed,
            score=score,
            message=(
                f"Lighting consistent with {time_of_day} conditions"
                if passed
                else f"Inconsistent lighting - expected {time_of_day} conditions"
            ),
        )

    @staticmethod
    def validate_color_palette(images: list[GeneratedImage]) -> ConsistencyCheck:
        """Same model and seed across the set suggest a consistent palette."""
        models = {image.metadata.model for image in images}
        seeds = {image.metadata.seed for image in images if image.metadata.seed is not None}
        same_model = len(models) == 1
        same_seed = len(seeds) <= 1

        if same_model and same_seed:
            score = 100
        elif same_model:
            score = 80
        else:
            score = 60

        passed = score >= 70
        return ConsistencyCheck(
            name=COLOR_PALETTE,
            passed=passed,
            score=score,
            message=(
                "Color palette likely consistent (same model and seed)"
                if passed
                else "Color palette may vary (different models or seeds)"
            ),
        )

    @staticmethod
    def calculate_overall_score(checks: list[ConsistencyCheck]) -> int:
        """Weighted average of the check scores, rounded half up."""
        weighted_sum = 0.0
        total_weight = 0.0
        for check in checks:
            weight = CHECK_WEIGHTS.get(check.name, DEFAULT_CHECK_WEIGHT)
            weighted_sum += check.score * weight
            total_weight += weight

        if total_weight == 0:
            return 0
        return int(weighted_sum / total_weight + 0.5)

    @staticmethod
    def generate_report(result: ConsistencyValidationResult) -> str:
        """Render a human-readable validation report."""
        verdict = "✓ PASSED" if result.passed else "✗ FAILED"
        lines = [
            "=== Visual Consistency Validation Report ===\n",
            f"Overall Score: {result.score}/100 {verdict}\n",
            "Individual Checks:",
        ]

        for check in result.checks:
            mark = "✓" if check.passed else "✗"
            lines.append(f"  {mark} {check.name}: {check.score:g}/100 - {check.message}")

        if result.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  ⚠ {warning}" for warning in result.warnings)

        if result.recommendations:
            lines.append("\nRecommendations:")
            lines.extend(f"  → {rec}" for rec in result.recommendations)

        lines.append("\n=== End of Report ===")
        return "\n".join(lines)
