"""Unit tests for the local scenario store."""

import json
from pathlib import Path

import pytest

from firesim.models.scenario import (
    GenerationLog,
    GenerationProgress,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    ScenarioMetadata,
)
from firesim.storage import (
    ScenarioNotFoundError,
    ScenarioStore,
    StorageError,
    validate_scenario_id,
)


def _metadata(
    request: GenerationRequest, scenario_id: str, created_at: str
) -> ScenarioMetadata:
    return ScenarioMetadata(
        id=scenario_id,
        perimeter=request.perimeter,
        inputs=request.inputs,
        geo_context=request.geo_context,
        requested_views=request.requested_views,
        result=GenerationResult(
            id=scenario_id, status=GenerationStatus.COMPLETED, created_at=created_at
        ),
        prompt_version="1.0.0",
    )


@pytest.fixture
def store(tmp_path: Path) -> ScenarioStore:
    """Return a store rooted in a temporary directory."""
    return ScenarioStore(tmp_path / "data")


class TestValidateScenarioId:
    """Tests for scenario id validation."""

    @pytest.mark.parametrize("scenario_id", ["abc-123", "A_b", "9f1c2e"])
    def test_valid(self, scenario_id: str) -> None:
        """Test simple identifiers."""
        assert validate_scenario_id(scenario_id) == scenario_id

    @pytest.mark.parametrize("scenario_id", ["", "../etc", "a/b", "a b", "a.png"])
    def test_invalid(self, scenario_id: str) -> None:
        """Test identifiers that could escape the store."""
        with pytest.raises(ValueError, match="Invalid scenario id"):
            validate_scenario_id(scenario_id)


class TestImages:
    """Tests for image and log storage."""

    def test_upload_image(self, store: ScenarioStore, png_bytes: bytes) -> None:
        """Test that images are stored under the scenario folder."""
        url = store.upload_image("abc", "aerial", png_bytes)

        path = store.root / "generated-images" / "abc" / "aerial.png"
        assert path.read_bytes() == png_bytes
        assert url == path.resolve().as_uri()
        assert url.startswith("file://")

    def test_upload_overwrites_without_temp_files(
        self, store: ScenarioStore, png_bytes: bytes
    ) -> None:
        """Test that re-uploading replaces the file atomically."""
        store.upload_image("abc", "aerial", b"first")
        store.upload_image("abc", "aerial", png_bytes)

        folder = store.root / "generated-images" / "abc"
        assert [p.name for p in folder.iterdir()] == ["aerial.png"]
        assert (folder / "aerial.png").read_bytes() == png_bytes

    def test_rejects_unsafe_viewpoint(self, store: ScenarioStore) -> None:
        """Test that the viewpoint name is validated like an id."""
        with pytest.raises(ValueError):
            store.upload_image("abc", "../aerial", b"data")

    def test_upload_generation_log(self, store: ScenarioStore) -> None:
        """Test that the log is rendered to Markdown."""
        log = GenerationLog(prompts=[("aerial", "A fire")], seed=7, model="placeholder")

        url = store.upload_generation_log("abc", log)

        content = (store.root / "generated-images" / "abc" / "generation-log.md").read_text(
            encoding="utf-8"
        )
        assert url.endswith("generation-log.md")
        assert content.startswith("# Generation Log")
        assert "A fire" in content


class TestRecords:
    """Tests for metadata and progress records."""

    def test_metadata_round_trip(
        self, store: ScenarioStore, sample_request: GenerationRequest
    ) -> None:
        """Test storing and loading metadata."""
        metadata = _metadata(sample_request, "abc", "2025-01-15T03:00:00+00:00")

        store.upload_metadata("abc", metadata)

        assert store.get_metadata("abc") == metadata
        stored = json.loads(
            (store.root / "scenario-data" / "abc" / "metadata.json").read_text(encoding="utf-8")
        )
        assert stored["promptVersion"] == "1.0.0"

    def test_missing_metadata(self, store: ScenarioStore) -> None:
        """Test loading a scenario that was never stored."""
        with pytest.raises(ScenarioNotFoundError, match="Scenario not found: nope"):
            store.get_metadata("nope")

    def test_corrupt_metadata(self, store: ScenarioStore) -> None:
        """Test that unreadable JSON is a storage error."""
        path = store.root / "scenario-data" / "abc" / "metadata.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError, match="Failed to read"):
            store.get_metadata("abc")

    def test_invalid_metadata(self, store: ScenarioStore) -> None:
        """Test that a record missing fields is a storage error."""
        path = store.root / "scenario-data" / "abc" / "metadata.json"
        path.parent.mkdir(parents=True)
        path.write_text('{"id": "abc"}', encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid metadata for scenario abc"):
            store.get_metadata("abc")

    def test_malformed_metadata_section(
        self, store: ScenarioStore, sample_request: GenerationRequest
    ) -> None:
        """Test that a section of the wrong shape is a storage error."""
        data = _metadata(sample_request, "abc", "2025-01-15T03:00:00+00:00").to_dict()
        data["perimeter"] = []
        path = store.root / "scenario-data" / "abc" / "metadata.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid metadata for scenario abc"):
            store.get_metadata("abc")

    def test_progress_round_trip(self, store: ScenarioStore) -> None:
        """Test storing and loading progress."""
        progress = GenerationProgress(
            scenario_id="abc",
            status=GenerationStatus.IN_PROGRESS,
            total_images=3,
            completed_images=1,
        )

        store.save_progress(progress)

        assert store.load_progress("abc") == progress

    def test_missing_progress(self, store: ScenarioStore) -> None:
        """Test loading progress for an unknown scenario."""
        with pytest.raises(ScenarioNotFoundError):
            store.load_progress("nope")

    def test_malformed_progress(self, store: ScenarioStore) -> None:
        """Test that a counter of the wrong type is a storage error."""
        path = store.root / "scenario-data" / "abc" / "progress.json"
        path.parent.mkdir(parents=True)
        path.write_text('{"scenarioId": "abc", "totalImages": [3]}', encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid progress record for scenario abc"):
            store.load_progress("abc")


class TestListAndDelete:
    """Tests for listing and deleting scenarios."""

    def test_list_empty(self, store: ScenarioStore) -> None:
        """Test listing before anything is stored."""
        assert store.list_scenarios() == []

    def test_list_newest_first(
        self, store: ScenarioStore, sample_request: GenerationRequest
    ) -> None:
        """Test ordering by creation time and skipping broken records."""
        store.upload_metadata("old", _metadata(sample_request, "old", "2025-01-01T00:00:00+00:00"))
        store.upload_metadata("new", _metadata(sample_request, "new", "2025-02-01T00:00:00+00:00"))
        broken = store.root / "scenario-data" / "broken" / "metadata.json"
        broken.parent.mkdir(parents=True)
        broken.write_text("[]", encoding="utf-8")

        scenarios = store.list_scenarios()

        assert [m.id for m in scenarios] == ["new", "old"]

    def test_list_skips_malformed_section(
        self, store: ScenarioStore, sample_request: GenerationRequest
    ) -> None:
        """Test that a record with a malformed perimeter is skipped."""
        created_at = "2025-01-01T00:00:00+00:00"
        store.upload_metadata("good", _metadata(sample_request, "good", created_at))
        store.upload_metadata("bad", _metadata(sample_request, "bad", created_at))
        bad = store.root / "scenario-data" / "bad" / "metadata.json"
        data = json.loads(bad.read_text(encoding="utf-8"))
        data["perimeter"] = []
        bad.write_text(json.dumps(data), encoding="utf-8")

        assert [m.id for m in store.list_scenarios()] == ["good"]

    def test_delete(
        self, store: ScenarioStore, sample_request: GenerationRequest, png_bytes: bytes
    ) -> None:
        """Test that images and records are removed."""
        store.upload_image("abc", "aerial", png_bytes)
        store.upload_metadata("abc", _metadata(sample_request, "abc", "2025-01-01T00:00:00+00:00"))

        store.delete_scenario("abc")

        assert not (store.root / "generated-images" / "abc").exists()
        assert not (store.root / "scenario-data" / "abc").exists()

    def test_delete_missing(self, store: ScenarioStore) -> None:
        """Test deleting an unknown scenario."""
        with pytest.raises(ScenarioNotFoundError):
            store.delete_scenario("nope")
