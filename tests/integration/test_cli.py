"""Integration tests for firesim CLI commands.

These tests run the commands offline: without an image model the placeholder
provider renders the images, and without a Gemini key enrichment is basic.
"""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from firesim import __version__
from firesim.cli import app

runner = CliRunner()

CUSTOM_TEMPLATE = """
id: field-training
version: "9.9.9"
sections:
  style: "A documentary photograph."
  scene: "{{ vegetation_descriptor }}."
  fire: "{{ fire_stage }}."
  weather: "{{ temperature | number }} degrees."
  perspective: "{{ perspective }}."
  safety: "No text."
"""


@pytest.fixture(autouse=True)
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty project directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _scenario_ids(project_dir: Path) -> list[str]:
    data_dir = project_dir / ".firesim" / "data" / "scenario-data"
    if not data_dir.is_dir():
        return []
    return sorted(path.name for path in data_dir.iterdir())


def _generate(request_file: Path, project_dir: Path, *args: str) -> str:
    result = runner.invoke(app, ["--quiet", "generate", str(request_file), *args])
    assert result.exit_code == 0, f"Command failed: {result.output}"
    ids = _scenario_ids(project_dir)
    assert len(ids) == 1
    return ids[0]


class TestFireSimPrompts:
    """Integration tests for `firesim prompts`."""

    def test_prompts_json(self, request_file: Path) -> None:
        """Test that the prompt set is printed as JSON."""
        result = runner.invoke(app, ["--quiet", "prompts", str(request_file), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["templateVersion"] == "1.0.0"
        assert [p["viewpoint"] for p in data["prompts"]] == [
            "aerial",
            "ground_north",
            "helicopter_east",
        ]

    def test_prompts_text(self, request_file: Path) -> None:
        """Test the human-readable prompt listing."""
        result = runner.invoke(app, ["--quiet", "prompts", str(request_file)])

        assert result.exit_code == 0, result.output
        assert "📷 ground_north" in result.stdout
        assert "45 km/h NW wind" in result.stdout

    def test_prompts_invalid_request(self, tmp_path: Path) -> None:
        """Test that a malformed request exits with code 1."""
        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2]", encoding="utf-8")

        result = runner.invoke(app, ["--quiet", "prompts", str(bad)])

        assert result.exit_code == 1

    def test_prompts_and_generate_share_configured_template(
        self, request_file: Path, project_dir: Path
    ) -> None:
        """Test that a relative template in .firesim/config.yaml serves both commands."""
        firesim_dir = project_dir / ".firesim"
        firesim_dir.mkdir()
        (firesim_dir / "config.yaml").write_text(
            "generation:\n  prompt_template: .firesim/prompt-template.yaml\n",
            encoding="utf-8",
        )
        (firesim_dir / "prompt-template.yaml").write_text(CUSTOM_TEMPLATE, encoding="utf-8")

        prompts = runner.invoke(app, ["--quiet", "prompts", str(request_file), "--json"])
        scenario_id = _generate(request_file, project_dir)

        assert prompts.exit_code == 0, prompts.output
        assert json.loads(prompts.stdout)["templateVersion"] == "9.9.9"
        metadata = json.loads(
            (firesim_dir / "data" / "scenario-data" / scenario_id / "metadata.json").read_text(
                encoding="utf-8"
            )
        )
        assert metadata["promptVersion"] == "9.9.9"

    def test_prompts_blocked_terms(self, tmp_path: Path, sample_request_dict: dict) -> None:
        """Test that blocked scenario text exits with code 1."""
        sample_request_dict["geoContext"]["nearbyFeatures"] = ["wildlife corridor"]
        request_file = tmp_path / "blocked.json"
        request_file.write_text(json.dumps(sample_request_dict), encoding="utf-8")

        result = runner.invoke(app, ["--quiet", "prompts", str(request_file)])

        assert result.exit_code == 1


class TestFireSimGenerate:
    """Integration tests for `firesim generate` and the scenario commands."""

    def test_generate_stores_scenario(self, request_file: Path, project_dir: Path) -> None:
        """Test that generate writes images, metadata and the log."""
        scenario_id = _generate(request_file, project_dir, "--seed", "42")

        images = project_dir / ".firesim" / "data" / "generated-images" / scenario_id
        assert {path.name for path in images.iterdir()} == {
            "aerial.png",
            "ground_north.png",
            "helicopter_east.png",
            "generation-log.md",
        }
        log = (images / "generation-log.md").read_text(encoding="utf-8")
        assert "placeholder" in log
        assert "**Seed:** 42" in log

    def test_generate_max_views(self, request_file: Path, project_dir: Path) -> None:
        """Test limiting the number of generated views."""
        scenario_id = _generate(request_file, project_dir, "--max-views", "1")

        images = project_dir / ".firesim" / "data" / "generated-images" / scenario_id
        assert sorted(path.name for path in images.glob("*.png")) == ["aerial.png"]

    def test_status_and_results(self, request_file: Path, project_dir: Path) -> None:
        """Test reading a finished scenario back."""
        scenario_id = _generate(request_file, project_dir, "--seed", "7")

        status = runner.invoke(app, ["--quiet", "status", scenario_id, "--json"])
        results = runner.invoke(app, ["--quiet", "results", scenario_id, "--json"])

        assert status.exit_code == 0, status.output
        progress = json.loads(status.stdout)
        assert progress["status"] == "completed"
        assert progress["completedImages"] == 3
        assert "images" not in progress

        assert results.exit_code == 0, results.output
        data = json.loads(results.stdout)
        assert data["seed"] == 7
        assert data["anchorImage"]["viewPoint"] == "ground_north"
        assert len(data["images"]) == 3

    def test_status_unknown(self) -> None:
        """Test that an unknown scenario exits with code 1."""
        result = runner.invoke(app, ["--quiet", "status", "missing"])

        assert result.exit_code == 1

    def test_list_and_delete(self, request_file: Path, project_dir: Path) -> None:
        """Test listing and deleting a stored scenario."""
        scenario_id = _generate(request_file, project_dir)

        listed = runner.invoke(app, ["--quiet", "list"])
        declined = runner.invoke(app, ["--quiet", "delete", scenario_id], input="n\n")
        deleted = runner.invoke(app, ["--quiet", "delete", scenario_id, "--yes"])
        empty = runner.invoke(app, ["--quiet", "list"])

        assert listed.exit_code == 0
        assert scenario_id in listed.stdout
        assert "extreme" in listed.stdout
        assert declined.exit_code == 1
        assert deleted.exit_code == 0
        assert _scenario_ids(project_dir) == []
        assert "No stored scenarios" in empty.stdout

    def test_delete_missing(self) -> None:
        """Test deleting a scenario that does not exist."""
        result = runner.invoke(app, ["--quiet", "delete", "missing", "--yes"])

        assert result.exit_code == 1

    def test_usage_counts_generated_scenario(
        self, request_file: Path, project_dir: Path
    ) -> None:
        """Test that the day's usage includes a stored scenario."""
        _generate(request_file, project_dir)
        today = datetime.now(UTC).date().isoformat()

        result = runner.invoke(app, ["--quiet", "usage", "--date", today, "--json"])

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["totalScenarios"] == 1
        assert summary["totalImages"] == 3

    def test_usage_invalid_date(self) -> None:
        """Test that a malformed date exits with code 1."""
        result = runner.invoke(app, ["--quiet", "usage", "--date", "15/01/2025"])

        assert result.exit_code == 1


class TestFireSimReference:
    """Integration tests for the rating, fdi and estimate commands."""

    def test_rating_json(self) -> None:
        """Test the profile and behaviour of a rating."""
        result = runner.invoke(app, ["--quiet", "rating", "extreme", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["label"] == "Extreme"
        assert data["weather"]
        assert data["behaviour"]

    def test_rating_text(self) -> None:
        """Test the human-readable rating summary."""
        result = runner.invoke(app, ["--quiet", "rating", "catastrophic"])

        assert result.exit_code == 0, result.output
        assert "Catastrophic" in result.stdout
        assert "Flame height" in result.stdout

    def test_unknown_rating(self) -> None:
        """Test that an unknown rating exits with code 1."""
        result = runner.invoke(app, ["--quiet", "rating", "severe"])

        assert result.exit_code == 1

    def test_fdi(self) -> None:
        """Test the forest fire danger index for severe weather."""
        result = runner.invoke(
            app,
            ["--quiet", "fdi", "-t", "45", "--humidity", "5", "-w", "70", "--json"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["fdi"] >= 100
        assert data["rating"] == "catastrophic"

    def test_fdi_invalid_drought_factor(self) -> None:
        """Test that an out-of-range drought factor exits with code 1."""
        result = runner.invoke(
            app,
            ["--quiet", "fdi", "-t", "30", "--humidity", "20", "-w", "20", "-d", "0"],
        )

        assert result.exit_code == 1

    def test_estimate(self) -> None:
        """Test the default cost estimate."""
        result = runner.invoke(app, ["--quiet", "estimate", "--images", "5"])

        assert result.exit_code == 0, result.output
        assert "Images: 5 × $0.0330 = $0.1650" in result.stdout
        assert "Total: $0.1652" in result.stdout

    def test_estimate_unknown_provider(self) -> None:
        """Test that an unknown provider exits with code 1."""
        result = runner.invoke(app, ["--quiet", "estimate", "--provider", "midjourney"])

        assert result.exit_code == 1


class TestFireSimCheck:
    """Integration tests for `firesim check` and `firesim health`."""

    def test_check_offline_warns(self) -> None:
        """Test that missing image model and grounding are warnings."""
        result = runner.invoke(app, ["--quiet", "check"])

        assert result.exit_code == 2, result.output
        assert "Preflight check passed with WARNINGS" in result.stdout

    def test_check_json(self) -> None:
        """Test that --json produces the check list."""
        result = runner.invoke(app, ["--quiet", "check", "--json"])

        data = json.loads(result.stdout)
        assert data["success"] is True
        assert "storage" in [c["name"] for c in data["checks"]]

    def test_health(self) -> None:
        """Test the health document."""
        result = runner.invoke(app, ["--quiet", "health"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "healthy"
        assert data["version"] == __version__


class TestFireSimInit:
    """Integration tests for `firesim init`."""

    def test_init_creates_config(self, project_dir: Path) -> None:
        """Test that init creates the configuration file."""
        result = runner.invoke(app, ["--quiet", "init"])

        assert result.exit_code == 0, result.output
        assert (project_dir / ".firesim" / "config.yaml").is_file()

    def test_init_force_overwrites(self, project_dir: Path) -> None:
        """Test that --force overwrites existing config."""
        runner.invoke(app, ["--quiet", "init"])
        config_file = project_dir / ".firesim" / "config.yaml"
        config_file.write_text("# Modified")

        second = runner.invoke(app, ["--quiet", "init"])
        forced = runner.invoke(app, ["--quiet", "init", "--force"])

        assert second.exit_code == 1
        assert forced.exit_code == 0
        assert "Modified" not in config_file.read_text()

    def test_config_from_project(self, request_file: Path, project_dir: Path) -> None:
        """Test that a discovered config limits generated views."""
        (project_dir / "firesim.yaml").write_text(
            "generation:\n  max_views: 2\n  enrich_locality: false\n", encoding="utf-8"
        )

        scenario_id = _generate(request_file, project_dir)

        images = project_dir / ".firesim" / "data" / "generated-images" / scenario_id
        assert len(list(images.glob("*.png"))) == 2

    def test_missing_config_option(self, project_dir: Path) -> None:
        """Test that --config must point at an existing file."""
        result = runner.invoke(app, ["--config", str(project_dir / "none.yaml"), "health"])

        assert result.exit_code == 2


class TestFireSimVersion:
    """Tests for global options."""

    def test_version(self) -> None:
        """Test --version output."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.stdout.strip() == f"firesim {__version__}"
