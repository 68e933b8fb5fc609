"""Unit tests for multi-view consistency validation."""

import pytest

from firesim.models.scenario import (
    GeneratedImage,
    GenerationRequest,
    ImageMetadata,
    ScenarioInputs,
    ViewPoint,
)
from firesim.validation import ConsistencyValidator
from firesim.validation.consistency import (
    COLOR_PALETTE,
    FIRE_SIZE,
    LIGHTING,
    SMOKE_DIRECTION,
    ConsistencyCheck,
)

GOOD_PROMPT = "Bushfire under strong NW winds with harsh afternoon lighting."


def _image(
    view: ViewPoint,
    prompt: str = GOOD_PROMPT,
    model: str = "gemini-3-pro-image-preview",
    seed: int | None = 42,
) -> GeneratedImage:
    return GeneratedImage(
        view_point=view,
        url=f"file:///tmp/{view.value}.png",
        metadata=ImageMetadata(width=1024, height=1024, prompt=prompt, model=model, seed=seed),
    )


@pytest.fixture
def inputs(sample_request: GenerationRequest) -> ScenarioInputs:
    """Return the inputs of the sample request (NW wind, afternoon)."""
    return sample_request.inputs


class TestIndividualChecks:
    """Tests for each consistency heuristic."""

    def test_smoke_direction_passes(self, inputs: ScenarioInputs) -> None:
        """Test that prompts naming the wind pass."""
        images = [_image(ViewPoint.AERIAL), _image(ViewPoint.GROUND_NORTH)]

        check = ConsistencyValidator.validate_smoke_direction(images, inputs)

        assert check.passed is True
        assert check.score == 100
        assert check.message == "Smoke direction aligned with wind (NW)"

    def test_smoke_direction_fails_below_80_percent(self, inputs: ScenarioInputs) -> None:
        """Test that too few wind mentions fail."""
        images = [_image(ViewPoint.AERIAL), _image(ViewPoint.RIDGE, prompt="A calm forest.")]

        check = ConsistencyValidator.validate_smoke_direction(images, inputs)

        assert check.passed is False
        assert check.score == 50
        assert "expected NW wind" in check.message

    @pytest.mark.parametrize(
        ("views", "with_anchor", "score"),
        [
            ([ViewPoint.AERIAL, ViewPoint.GROUND_NORTH], True, 100),
            ([ViewPoint.AERIAL, ViewPoint.GROUND_NORTH], False, 70),
            ([ViewPoint.GROUND_NORTH, ViewPoint.GROUND_SOUTH], True, 50),
        ],
    )
    def test_fire_size(self, views: list[ViewPoint], with_anchor: bool, score: int) -> None:
        """Test viewpoint variety scoring."""
        images = [_image(view) for view in views]
        anchor = images[0] if with_anchor else None

        check = ConsistencyValidator.validate_fire_size_proportions(images, anchor)

        assert check.score == score
        assert check.passed is (score >= 70)

    def test_lighting(self, inputs: ScenarioInputs) -> None:
        """Test that time of day or lighting mentions pass."""
        images = [_image(ViewPoint.AERIAL, prompt="Low sun over the ridge and a NW wind.")]

        check = ConsistencyValidator.validate_lighting_consistency(images, inputs)

        assert check.passed is True
        assert check.message == "Lighting consistent with afternoon conditions"

    @pytest.mark.parametrize(
        ("models", "seeds", "score"),
        [
            (["a", "a"], [1, 1], 100),
            (["a", "a"], [1, None], 100),
            (["a", "a"], [1, 2], 80),
            (["a", "b"], [1, 1], 60),
        ],
    )
    def test_color_palette(self, models: list[str], seeds: list[int | None], score: int) -> None:
        """Test model and seed agreement scoring."""
        images = [
            _image(ViewPoint.AERIAL, model=models[0], seed=seeds[0]),
            _image(ViewPoint.RIDGE, model=models[1], seed=seeds[1]),
        ]

        assert ConsistencyValidator.validate_color_palette(images).score == score

    def test_empty_set_scores_zero(self, inputs: ScenarioInputs) -> None:
        """Test that no images means nothing was mentioned."""
        assert ConsistencyValidator.validate_smoke_direction([], inputs).score == 0


class TestOverallScore:
    """Tests for weighted scoring."""

    def test_weights(self) -> None:
        """Test the weighted average of the four checks."""
        checks = [
            ConsistencyCheck(SMOKE_DIRECTION, True, 100, ""),
            ConsistencyCheck(FIRE_SIZE, False, 50, ""),
            ConsistencyCheck(LIGHTING, True, 100, ""),
            ConsistencyCheck(COLOR_PALETTE, True, 60, ""),
        ]

        # (30 + 10 + 25 + 15) / 1.0
        assert ConsistencyValidator.calculate_overall_score(checks) == 80

    def test_rounds_half_up(self) -> None:
        """Test rounding of a .5 score."""
        checks = [
            ConsistencyCheck("custom", True, 70.5, ""),
        ]

        assert ConsistencyValidator.calculate_overall_score(checks) == 71

    def test_no_checks(self) -> None:
        """Test that an empty check list scores zero."""
        assert ConsistencyValidator.calculate_overall_score([]) == 0


class TestValidateImageSet:
    """Tests for the combined verdict and report."""

    def test_consistent_set_passes(self, inputs: ScenarioInputs) -> None:
        """Test a set with matching prompts, model and seed."""
        images = [_image(ViewPoint.AERIAL), _image(ViewPoint.GROUND_NORTH)]

        result = ConsistencyValidator().validate_image_set(images, inputs, anchor_image=images[1])

        assert result.passed is True
        assert result.score == 100
        assert result.warnings == []
        assert result.recommendations == []

    def test_inconsistent_set_fails(self, inputs: ScenarioInputs) -> None:
        """Test that failing checks produce warnings and recommendations."""
        images = [
            _image(ViewPoint.GROUND_NORTH, prompt="A forest.", model="a"),
            _image(ViewPoint.GROUND_SOUTH, prompt="A forest.", model="b"),
        ]

        result = ConsistencyValidator().validate_image_set(images, inputs)

        assert result.passed is False
        assert len(result.warnings) == 4
        assert result.recommendations[0].startswith("Consider regenerating")
        assert result.get_check(COLOR_PALETTE) is not None
        assert result.get_check("unknown") is None

    def test_report(self, inputs: ScenarioInputs) -> None:
        """Test the human-readable report."""
        images = [_image(ViewPoint.GROUND_NORTH, prompt="A forest.")]
        result = ConsistencyValidator().validate_image_set(images, inputs)

        report = ConsistencyValidator.generate_report(result)

        assert report.startswith("=== Visual Consistency Validation Report ===")
        assert f"Overall Score: {result.score}/100 ✗ FAILED" in report
        assert "Warnings:" in report
        assert report.endswith("=== End of Report ===")

    def test_to_dict(self, inputs: ScenarioInputs) -> None:
        """Test the stored form of a validation result."""
        result = ConsistencyValidator().validate_image_set([_image(ViewPoint.AERIAL)], inputs)

        data = result.to_dict()

        assert data["score"] == result.score
        assert [check["name"] for check in data["checks"]] == [
            SMOKE_DIRECTION,
            FIRE_SIZE,
            LIGHTING,
            COLOR_PALETTE,
        ]
