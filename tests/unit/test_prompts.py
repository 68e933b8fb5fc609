"""Unit tests for prompt templates and prompt generation."""

from dataclasses import replace
from pathlib import Path

import pytest

from firesim.models.scenario import GenerationRequest, ViewPoint, WindDirection
from firesim.prompts import (
    DEFAULT_PROMPT_TEMPLATE,
    PromptSafetyError,
    PromptTemplate,
    describe_nearby_features,
    describe_terrain,
    describe_wind,
    determine_spread_direction,
    find_blocked_terms,
    generate_prompts,
    load_prompt_template,
    prepare_prompt_data,
)


class TestDescriptions:
    """Tests for the scenario description helpers."""

    @pytest.mark.parametrize(
        ("slope", "expected"),
        [
            (0, "flat terrain"),
            (4.9, "flat terrain"),
            (5, "gently sloping terrain"),
            (20, "moderate slopes"),
            (30, "steep slopes"),
            (35, "very steep escarpment"),
        ],
    )
    def test_describe_terrain(self, slope: float, expected: str) -> None:
        """Test terrain bands by mean slope."""
        assert describe_terrain(slope) == expected

    @pytest.mark.parametrize(
        ("speed", "expected"),
        [
            (5, "light n winds"),
            (10, "moderate n winds"),
            (45, "strong n winds"),
            (65, "very strong n winds"),
            (70, "extreme n winds"),
        ],
    )
    def test_describe_wind(self, speed: float, expected: str) -> None:
        """Test wind strength bands."""
        assert describe_wind(speed, WindDirection.N) == expected

    def test_spread_direction_is_downwind(self) -> None:
        """Test that the head fire runs away from the wind."""
        assert determine_spread_direction(WindDirection.NW) == "to the southeast"
        assert determine_spread_direction("S") == "to the north"

    def test_spread_direction_unknown(self) -> None:
        """Test the description for an unknown direction."""
        assert determine_spread_direction("up") == "to the leeward direction"

    def test_nearby_features(self) -> None:
        """Test that known keys are expanded and free text kept."""
        text = describe_nearby_features(["road", "Lake George to the north"])

        assert text == "A road runs nearby. Lake George to the north."

    def test_no_nearby_features(self) -> None:
        """Test the description of a remote area."""
        assert describe_nearby_features([]) == "Remote bushland area."

    def test_find_blocked_terms(self) -> None:
        """Test case-insensitive blocked term detection."""
        assert find_blocked_terms("Houses DESTROYED by the fire") == ["destroy"]
        assert find_blocked_terms("relative humidity") == []


class TestPrepareData:
    """Tests for template data preparation."""

    def test_sample_request(self, sample_request: GenerationRequest) -> None:
        """Test the values derived from the sample request."""
        data = prepare_prompt_data(sample_request)

        assert data.vegetation_descriptor.startswith("dry eucalyptus forest")
        assert data.terrain_description == "gently sloping terrain"
        assert data.elevation == 700
        assert data.fire_stage == "established bushfire"
        assert data.spread_direction == "to the southeast"
        assert data.wind_description == "strong nw winds"
        assert data.flame_height == "10 to 20 metres"

    def test_manual_vegetation_override(self, sample_request: GenerationRequest) -> None:
        """Test that the manual vegetation type drives the descriptor."""
        geo = replace(sample_request.geo_context, manual_vegetation_type="Grassland")
        request = replace(sample_request, geo_context=geo)

        data = prepare_prompt_data(request)

        assert data.vegetation_descriptor == "open grassland with cured dry grass"


class TestGeneratePrompts:
    """Tests for prompt set generation."""

    def test_one_prompt_per_view_in_order(self, sample_request: GenerationRequest) -> None:
        """Test that prompts follow the requested view order."""
        prompt_set = generate_prompts(sample_request)

        assert [p.viewpoint for p in prompt_set.prompts] == sample_request.requested_views
        assert all(p.prompt_set_id == prompt_set.id for p in prompt_set.prompts)
        assert prompt_set.template_version == DEFAULT_PROMPT_TEMPLATE.version

    def test_prompts_share_scene_and_differ_in_perspective(
        self, sample_request: GenerationRequest
    ) -> None:
        """Test that only the perspective varies across a set."""
        prompt_set = generate_prompts(sample_request)
        aerial = prompt_set.get(ViewPoint.AERIAL)
        ground = prompt_set.get(ViewPoint.GROUND_NORTH)

        assert aerial is not None and ground is not None
        assert aerial.prompt_text != ground.prompt_text
        assert "looking straight down" in aerial.prompt_text
        assert "north side of the fire" in ground.prompt_text
        for text in (aerial.prompt_text, ground.prompt_text):
            assert "Elevation approximately 700 metres" in text
            assert "45 km/h NW wind" in text
            assert "A road runs nearby. A river valley is visible" in text

    def test_prompt_is_single_spaced(self, sample_request: GenerationRequest) -> None:
        """Test that whitespace is normalized."""
        prompt = generate_prompts(sample_request).prompts[0].prompt_text

        assert "  " not in prompt
        assert "\n" not in prompt
        assert prompt.startswith("A photorealistic photograph of an Australian bushfire.")
        assert prompt.endswith("No fantasy elements.")

    def test_get_missing_view(self, sample_request: GenerationRequest) -> None:
        """Test looking up a view that was not requested."""
        assert generate_prompts(sample_request).get(ViewPoint.RIDGE) is None

    def test_blocked_feature_rejected(self, sample_request: GenerationRequest) -> None:
        """Test that blocked terms in scenario data stop generation."""
        geo = replace(
            sample_request.geo_context, nearby_features=["Campground with people nearby"]
        )
        request = replace(sample_request, geo_context=geo)

        with pytest.raises(PromptSafetyError, match="blocked terms: people") as exc_info:
            generate_prompts(request)

        assert exc_info.value.blocked_terms == ["people"]

    def test_guardrail_section_not_scanned(self, sample_request: GenerationRequest) -> None:
        """Test that the fixed safety text may name what it excludes."""
        prompt = generate_prompts(sample_request).prompts[0].prompt_text

        assert "No people, no animals" in prompt

    def test_to_dict(self, sample_request: GenerationRequest) -> None:
        """Test the wire form of a prompt set."""
        data = generate_prompts(sample_request).to_dict()

        assert data["templateVersion"] == "1.0.0"
        assert data["prompts"][0]["viewpoint"] == "aerial"
        assert "promptText" in data["prompts"][0]


class TestPromptTemplate:
    """Tests for prompt templates."""

    def _sections(self) -> dict[str, str]:
        return dict(DEFAULT_PROMPT_TEMPLATE.sections)

    def test_missing_section(self) -> None:
        """Test that every section is required."""
        sections = self._sections()
        del sections["weather"]

        with pytest.raises(ValueError, match="missing sections: weather"):
            PromptTemplate(id="custom", version="2", sections=sections)

    def test_unknown_section(self) -> None:
        """Test that extra sections are rejected."""
        sections = dict(self._sections(), mood="Dramatic.")

        with pytest.raises(ValueError, match="unknown sections: mood"):
            PromptTemplate(id="custom", version="2", sections=sections)

    def test_syntax_error(self) -> None:
        """Test that invalid Jinja2 is reported with its section."""
        sections = dict(self._sections(), scene="{{ vegetation_descriptor ")

        with pytest.raises(ValueError, match="section 'scene'"):
            PromptTemplate(id="custom", version="2", sections=sections)

    def test_undefined_variable(self, sample_request: GenerationRequest) -> None:
        """Test that a mistyped variable fails at render time."""
        sections = dict(self._sections(), scene="{{ vegetaton }}")
        template = PromptTemplate(id="custom", version="2", sections=sections)

        with pytest.raises(ValueError, match="Section 'scene' of template 'custom'"):
            generate_prompts(sample_request, template)

    def test_requires_id_and_version(self) -> None:
        """Test that a template must be identifiable."""
        with pytest.raises(ValueError, match="requires an id and a version"):
            PromptTemplate(id="", version="1", sections=self._sections())


class TestLoadPromptTemplate:
    """Tests for loading templates from YAML."""

    def test_load(self, tmp_path: Path, sample_request: GenerationRequest) -> None:
        """Test loading and using a custom template."""
        path = tmp_path / "template.yaml"
        path.write_text(
            """
id: night-training
version: "2.1"
sections:
  style: "A documentary photograph."
  scene: "{{ vegetation_descriptor }}."
  fire: "{{ fire_stage }}."
  weather: "{{ temperature | number }} degrees."
  perspective: "{{ perspective }}."
  safety: "No text."
""",
            encoding="utf-8",
        )

        template = load_prompt_template(path)
        prompt_set = generate_prompts(sample_request, template)

        assert template.id == "night-training"
        assert prompt_set.template_version == "2.1"
        assert "established bushfire. 38 degrees." in prompt_set.prompts[0].prompt_text

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test loading a template that does not exist."""
        with pytest.raises(FileNotFoundError, match="Prompt template not found"):
            load_prompt_template(tmp_path / "missing.yaml")

    def test_missing_sections_mapping(self, tmp_path: Path) -> None:
        """Test a file without a sections mapping."""
        path = tmp_path / "template.yaml"
        path.write_text("id: x\nversion: '1'\n", encoding="utf-8")

        with pytest.raises(ValueError, match="must define a 'sections' mapping"):
            load_prompt_template(path)
