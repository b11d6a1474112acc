"""JSON storage for named worlds."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from satisfactory_accounting.errors import InvalidTreeRecord, UnsupportedSaveVersion
from satisfactory_accounting.models.tree import FactoryTree

_LOGGER = logging.getLogger(__name__)

MODEL_VERSION = "v1.2.*"
SUPPORTED_MODEL_VERSIONS = frozenset({MODEL_VERSION})


@dataclass
class World:
    """A named accounting tree."""

    id: UUID = field(default_factory=uuid4)
    name: str = ""
    tree: FactoryTree = field(default_factory=FactoryTree)

    # Metadata
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        """Serialize for JSON storage."""
        return {
            "model_version": MODEL_VERSION,
            "id": str(self.id),
            "name": self.name,
            "root": self.tree.to_dict(),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "World":
        """Deserialize from JSON, rejecting unknown model versions."""
        version = data.get("model_version")
        if version not in SUPPORTED_MODEL_VERSIONS:
            raise UnsupportedSaveVersion(version)
        try:
            return cls(
                id=UUID(data["id"]),
                name=data.get("name", ""),
                tree=FactoryTree.from_dict(data["root"]),
                created_at=data.get("created_at", ""),
                updated_at=data.get("updated_at", ""),
            )
        except (KeyError, ValueError) as e:
            raise InvalidTreeRecord(f"Malformed world record: {e}") from e


class WorldStorage:
    """Keeps one JSON file per world in a storage directory."""

    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, world: World) -> Path:
        """Default file for a world: its name made filesystem safe, then its id."""
        safe_name = "".join(c if c.isalnum() or c in "-_" else "_" for c in world.name)
        return self.storage_dir / f"{safe_name}_{world.id}.json"

    def save(self, world: World, filename: Optional[str] = None) -> Path:
        """Write a world, replacing any previous save of the same file."""
        world.updated_at = datetime.now().isoformat()
        if not world.created_at:
            world.created_at = world.updated_at
        filepath = self.storage_dir / filename if filename else self.path_for(world)

        # Readers only ever see a complete file.
        fd, tmp_name = tempfile.mkstemp(dir=self.storage_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(world.to_dict(), f, indent=2)
            os.replace(tmp_name, filepath)
        except BaseException:
            os.unlink(tmp_name)
            raise

        _LOGGER.debug("Saved world %s to %s", world.id, filepath)
        return filepath

    def load(self, filepath: Path) -> World:
        """Read a world back. Unparseable files raise InvalidTreeRecord."""
        with open(filepath, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidTreeRecord(f"{filepath} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidTreeRecord(f"{filepath} does not hold a world record")
        return World.from_dict(data)

    def list_worlds(self) -> list[tuple[Path, str, str]]:
        """Saved worlds this version can load, as (path, name, updated_at)."""
        worlds = []
        for filepath in sorted(self.storage_dir.glob("*.json")):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = json.load(f)
                version = data.get("model_version")
            except (json.JSONDecodeError, AttributeError) as e:
                _LOGGER.warning("Skipping unreadable world file %s: %s", filepath, e)
                continue
            if version not in SUPPORTED_MODEL_VERSIONS:
                _LOGGER.warning("Skipping %s with model version %r", filepath, version)
                continue
            worlds.append((filepath, data.get("name", "Unnamed"), data.get("updated_at", "")))
        return worlds

    def delete(self, filepath: Path) -> bool:
        """Remove a saved world. Returns False if it was already gone."""
        filepath = Path(filepath)
        if not filepath.is_file():
            return False
        filepath.unlink()
        _LOGGER.debug("Deleted world file %s", filepath)
        return True
