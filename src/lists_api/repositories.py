from __future__ import annotations

import copy
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from threading import RLock
from typing import Dict, List, Optional

from .errors import ConflictError, NotFoundError, require_text
from .models import ListEntity
from .settings import Settings


# PUBLIC_INTERFACE
class ListStore(ABC):
    """
    Abstract contract for List aggregate storage backends.

    Every read returns a detached copy of the aggregate; callers mutate it
    freely and hand it back through save(), which replaces the stored
    aggregate as a whole.
    """

    backend_name: str = "abstract"

    def _now(self) -> datetime:
        return datetime.now()

    def new_id(self) -> str:
        """Mint an identifier for a new task inside an aggregate."""
        return uuid.uuid4().hex

    def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    def list_all(self) -> List[ListEntity]:
        """Return every list with its tasks, unfiltered and unsorted."""

    @abstractmethod
    def create(self, name: Optional[str]) -> ListEntity:
        """Create a list with an empty task sequence. Raises ValidationError on a blank name."""

    @abstractmethod
    def get(self, list_id: str) -> ListEntity:
        """Return the aggregate for list_id. Raises NotFoundError if it does not exist."""

    @abstractmethod
    def rename(self, list_id: str, name: Optional[str]) -> ListEntity:
        """
        Set the name of a list and return the updated aggregate. A None name
        leaves the name unchanged. Raises NotFoundError if the list does not exist.
        """

    @abstractmethod
    def delete(self, list_id: str) -> bool:
        """Delete a list and all of its tasks. Return True if deleted, False if not found."""

    @abstractmethod
    def save(self, entity: ListEntity) -> ListEntity:
        """
        Persist the whole aggregate, replacing the stored one, and return the
        stored result with its version incremented.

        Raises:
            NotFoundError: the list no longer exists.
            ConflictError: the stored version differs from entity["version"].
        """


class InMemoryListStore(ListStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, ListEntity] = {}

    def list_all(self) -> List[ListEntity]:
        with self._lock:
            return [copy.deepcopy(e) for e in self._items.values()]

    def create(self, name: Optional[str]) -> ListEntity:
        clean = require_text(name, "name")
        now = self._now()
        entity: ListEntity = {
            "id": uuid.uuid4().hex,
            "name": clean,
            "tasks": [],
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
            return copy.deepcopy(entity)

    def _require(self, list_id: str) -> ListEntity:
        existing = self._items.get(list_id)
        if existing is None:
            raise NotFoundError("List not found")
        return existing

    def get(self, list_id: str) -> ListEntity:
        with self._lock:
            return copy.deepcopy(self._require(list_id))

    def rename(self, list_id: str, name: Optional[str]) -> ListEntity:
        with self._lock:
            updated = copy.deepcopy(self._require(list_id))
            if name is not None:
                updated["name"] = name
            updated["version"] += 1
            updated["updated_at"] = self._now()
            self._items[list_id] = updated
            return copy.deepcopy(updated)

    def delete(self, list_id: str) -> bool:
        with self._lock:
            return self._items.pop(list_id, None) is not None

    def save(self, entity: ListEntity) -> ListEntity:
        with self._lock:
            current = self._require(entity["id"])
            if current["version"] != entity["version"]:
                raise ConflictError("List was modified by another request; reload and retry")
            stored = copy.deepcopy(entity)
            stored["version"] = current["version"] + 1
            stored["updated_at"] = self._now()
            self._items[stored["id"]] = stored
            return copy.deepcopy(stored)


# PUBLIC_INTERFACE
def get_store(settings: Settings) -> ListStore:
    """
    Factory to return the configured store based on settings.
    - memory: InMemoryListStore
    - sqlite: SQLiteListStore (two tables, tasks back-reference their list)
    - mongo: MongoListStore (one document per list, tasks embedded)
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteListStore

        return SQLiteListStore(settings.sqlite_db_path)
    if settings.persistence_backend == "mongo":
        from .mongo import MongoListStore

        if not settings.mongo_uri:
            raise RuntimeError("MONGO_URI not set in environment")
        return MongoListStore(settings.mongo_uri, settings.mongo_db_name)
    return InMemoryListStore()
