"""
Common behaviour of the file-backed library stores.

A store holds its whole collection in memory, loads it from its JSON file
when constructed, and rewrites the file after every successful mutation.
Store operations report success as a plain ``bool`` (or an optional
reference for lookups) and never raise for missing entities or refused
state changes.
"""

import logging
import threading
from pathlib import Path
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel

from .json_file import JsonFileStore

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseStore(Generic[ModelType]):
    """
    In-memory collection persisted to one JSON file.

    ``lock`` is reentrant so composite operations can hold it across
    several store calls.
    """

    model: ClassVar[type[BaseModel]]

    def __init__(self, path: Path, atomic: bool = True):
        self._file: JsonFileStore[ModelType] = JsonFileStore(path, self.model, atomic=atomic)
        self.lock = threading.RLock()
        self._records: list[ModelType] = []
        self.reload()

    @property
    def path(self) -> Path:
        return self._file.path

    @property
    def records(self) -> list[ModelType]:
        """The live collection. Hold ``lock`` while touching it."""
        return self._records

    @property
    def quarantined(self) -> bool:
        """True if the last load found an unusable file and started empty."""
        return self._file.quarantined

    def __len__(self) -> int:
        return len(self._records)

    def list_all(self) -> list[ModelType]:
        """Snapshot of every record; changing it does not affect the store."""
        with self.lock:
            return [record.model_copy(deep=True) for record in self._records]

    def save(self) -> bool:
        """Write the whole collection to disk."""
        with self.lock:
            return self._file.save(self._records)

    def reload(self) -> None:
        """Replace the in-memory collection with the file contents."""
        with self.lock:
            self._records = self._file.load()
            self._after_load()
            logger.info(
                "%s loaded %d records from %s",
                type(self).__name__,
                len(self._records),
                self.path,
            )

    def _after_load(self) -> None:
        """Hook for repairing freshly loaded records."""

    def _persist(self) -> None:
        # A failed write is logged by the file layer; the mutation stands
        if not self.save():
            logger.warning("%s change kept in memory only", type(self).__name__)
