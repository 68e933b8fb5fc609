"""Local filesystem scenario store.

Layout under the storage root::

    generated-images/<scenario-id>/<viewpoint>.png
    generated-images/<scenario-id>/generation-log.md
    scenario-data/<scenario-id>/metadata.json
    scenario-data/<scenario-id>/progress.json

Image URLs are ``file://`` URIs of the stored files.
"""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any

from firesim.models.scenario import GenerationLog, GenerationProgress, ScenarioMetadata

logger = logging.getLogger(__name__)

IMAGES_CONTAINER = "generated-images"
DATA_CONTAINER = "scenario-data"
METADATA_FILE = "metadata.json"
PROGRESS_FILE = "progress.json"
GENERATION_LOG_FILE = "generation-log.md"

_SCENARIO_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class StorageError(Exception):
    """Raised when the scenario store cannot read or write."""

    pass


class ScenarioNotFoundError(StorageError):
    """Raised when a scenario has no stored record."""

    def __init__(self, scenario_id: str) -> None:
        super().__init__(f"Scenario not found: {scenario_id}")
        self.scenario_id = scenario_id


def validate_scenario_id(scenario_id: str) -> str:
    """Return the id unchanged, or raise ValueError if it is not a simple identifier."""
    if not scenario_id or not _SCENARIO_ID.match(scenario_id):
        raise ValueError(
            f"Invalid scenario id: {scenario_id!r}. Use letters, digits, '-' and '_' only"
        )
    return scenario_id


class ScenarioStore:
    """Store generated images and scenario records on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @property
    def images_dir(self) -> Path:
        return self.root / IMAGES_CONTAINER

    @property
    def data_dir(self) -> Path:
        return self.root / DATA_CONTAINER

    def _image_folder(self, scenario_id: str) -> Path:
        return self.images_dir / validate_scenario_id(scenario_id)

    def _data_folder(self, scenario_id: str) -> Path:
        return self.data_dir / validate_scenario_id(scenario_id)

    def _write(self, path: Path, content: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(path.name + ".tmp")
            tmp_path.write_bytes(content)
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        self._write(path, json.dumps(data, indent=2).encode("utf-8"))

    def _read_json(self, path: Path, scenario_id: str) -> dict[str, Any]:
        if not path.is_file():
            raise ScenarioNotFoundError(scenario_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Invalid record in {path}")
        return data

    # =========================================================================
    # Images and logs
    # =========================================================================

    def upload_image(self, scenario_id: str, viewpoint: str, image_data: bytes) -> str:
        """Store an image and return its URL."""
        path = self._image_folder(scenario_id) / f"{validate_scenario_id(viewpoint)}.png"
        self._write(path, image_data)
        logger.debug("Stored image %s (%d bytes)", path, len(image_data))
        return path.resolve().as_uri()

    def upload_generation_log(self, scenario_id: str, log: GenerationLog) -> str:
        """Render a generation log to Markdown, store it and return its URL."""
        from firesim.templates.renderer import LogRenderer

        markdown = LogRenderer().render_generation_log(scenario_id, log)
        path = self._image_folder(scenario_id) / GENERATION_LOG_FILE
        self._write(path, markdown.encode("utf-8"))
        logger.debug("Stored generation log %s", path)
        return path.resolve().as_uri()

    # =========================================================================
    # Scenario records
    # =========================================================================

    def upload_metadata(self, scenario_id: str, metadata: ScenarioMetadata) -> str:
        """Store scenario metadata and return its URL."""
        path = self._data_folder(scenario_id) / METADATA_FILE
        self._write_json(path, metadata.to_dict())
        logger.debug("Stored metadata %s", path)
        return path.resolve().as_uri()

    def get_metadata(self, scenario_id: str) -> ScenarioMetadata:
        """Load scenario metadata.

        Raises:
            ScenarioNotFoundError: If the scenario has no metadata
            StorageError: If the record cannot be read
        """
        path = self._data_folder(scenario_id) / METADATA_FILE
        data = self._read_json(path, scenario_id)
        try:
            return ScenarioMetadata.from_dict(data)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise StorageError(f"Invalid metadata for scenario {scenario_id}: {e}") from e

    def list_scenarios(self) -> list[ScenarioMetadata]:
        """Load the metadata of every stored scenario, newest first.

        Unreadable records are skipped with a warning.
        """
        if not self.data_dir.is_dir():
            return []

        scenarios = []
        for folder in sorted(self.data_dir.iterdir()):
            if not (folder / METADATA_FILE).is_file():
                continue
            try:
                scenarios.append(self.get_metadata(folder.name))
            except (StorageError, ValueError) as e:
                logger.warning("Failed to load metadata for scenario %s: %s", folder.name, e)

        scenarios.sort(key=lambda m: m.result.created_at, reverse=True)
        return scenarios

    def delete_scenario(self, scenario_id: str) -> None:
        """Delete every stored file of a scenario.

        Raises:
            ScenarioNotFoundError: If nothing is stored for the scenario
        """
        folders = [self._image_folder(scenario_id), self._data_folder(scenario_id)]
        existing = [folder for folder in folders if folder.exists()]
        if not existing:
            raise ScenarioNotFoundError(scenario_id)

        for folder in existing:
            try:
                shutil.rmtree(folder)
            except OSError as e:
                raise StorageError(f"Failed to delete {folder}: {e}") from e
        logger.info("Deleted scenario %s", scenario_id)

    def save_progress(self, progress: GenerationProgress) -> None:
        """Persist a progress record."""
        path = self._data_folder(progress.scenario_id) / PROGRESS_FILE
        self._write_json(path, progress.to_dict())

    def load_progress(self, scenario_id: str) -> GenerationProgress:
        """Load a progress record.

        Raises:
            ScenarioNotFoundError: If no progress is stored for the scenario
        """
        path = self._data_folder(scenario_id) / PROGRESS_FILE
        data = self._read_json(path, scenario_id)
        try:
            return GenerationProgress.from_dict(data)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise StorageError(f"Invalid progress record for scenario {scenario_id}: {e}") from e
