"""
JSON file persistence for the library stores.

Each store keeps its whole collection in memory and rewrites one JSON file
on every mutation. This module owns that file: it decodes the array of
records into pydantic models on load and encodes the full collection back
on save.

Failure handling:
- A missing (or blank) file is an empty collection.
- A file that cannot be parsed is moved aside to ``<name>.corrupt`` so the
  next save never destroys it, and the store starts empty.
- Save failures are logged and reported as ``False``; they never raise,
  because the in-memory mutation has already happened and the next
  successful save persists it.
"""

import logging
import os
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class JsonFileStore(Generic[ModelType]):
    """
    Reads and writes a JSON array of ``model`` records.

    Records are written with their field aliases (the persisted camelCase
    names) and enumerations by symbolic name. With ``atomic`` set the data
    goes to ``<name>.tmp`` first and is renamed over the target, so a crash
    mid-write leaves the previous file intact.
    """

    def __init__(self, path: Path, model: type[ModelType], atomic: bool = True):
        self.path = Path(path)
        self.model = model
        self.atomic = atomic
        self._adapter = TypeAdapter(list[model])
        # Set by load when the file was unusable and moved aside
        self.quarantined = False

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    def load(self) -> list[ModelType]:
        """Load all records, or an empty list if there is nothing usable."""
        self.quarantined = False

        if not self.path.exists():
            logger.info("No %s found at %s, starting empty", self.model.__name__, self.path)
            return []

        try:
            raw = self.path.read_bytes()
        except OSError:
            logger.exception("Could not read %s", self.path)
            self._quarantine()
            return []

        if not raw.strip():
            return []

        try:
            records = self._adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(
                "Invalid data in %s (%d errors), moving it aside: %s",
                self.path,
                e.error_count(),
                e,
            )
            self._quarantine()
            return []

        logger.debug("Loaded %d records from %s", len(records), self.path)
        return records

    def save(self, records: list[ModelType]) -> bool:
        """
        Rewrite the file with ``records``.

        Returns:
            True if the data reached disk, False if the write failed
        """
        try:
            payload = self._adapter.dump_json(records, by_alias=True, indent=2)
            self.path.parent.mkdir(parents=True, exist_ok=True)

            if self.atomic:
                self.temp_path.write_bytes(payload)
                os.replace(self.temp_path, self.path)
            else:
                self.path.write_bytes(payload)

        except (OSError, ValueError, TypeError):
            logger.exception("Failed to save %d records to %s", len(records), self.path)
            return False

        logger.debug("Saved %d records to %s", len(records), self.path)
        return True

    def _quarantine(self) -> None:
        """Move an unusable database file out of the way."""
        self.quarantined = True
        try:
            os.replace(self.path, self.corrupt_path)
            logger.warning("Moved unreadable %s to %s", self.path, self.corrupt_path)
        except OSError:
            logger.exception("Could not move %s aside", self.path)
