from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .errors import ConflictError, NotFoundError, StoreError, require_text
from .models import ListEntity, TaskEntity
from .repositories import ListStore

logger = logging.getLogger(__name__)


def _object_id(value: str) -> ObjectId:
    """Parse a list id; malformed ids cannot resolve to a list."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise NotFoundError("List not found") from e


def _sub_id(value: str) -> Any:
    # Task ids minted by new_id() are ObjectId strings; keep anything else verbatim
    return ObjectId(value) if ObjectId.is_valid(value) else value


def _stored_dt(value: datetime) -> datetime:
    # BSON dates keep milliseconds only
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _timestamp(doc: Dict[str, Any], field: str, legacy: str) -> datetime:
    # Documents written by the Mongoose app use camelCase timestamps
    value = doc.get(field, doc.get(legacy))
    return value if value is not None else _stored_dt(datetime.now())


@contextmanager
def _translate_errors() -> Generator[None, None, None]:
    try:
        yield
    except PyMongoError as e:
        logger.error("MongoDB operation failed: %s", e)
        raise StoreError(f"Database error: {e}") from e


class MongoListStore(ListStore):
    """
    MongoDB store: one document per list in the 'lists' collection with the
    task sequence embedded as sub-documents, mirroring the aggregate shape.
    """

    backend_name = "mongo"

    def __init__(self, uri: str, db_name: str, client: Optional[MongoClient] = None) -> None:
        self._client = client if client is not None else MongoClient(uri)
        self._collection = self._client[db_name]["lists"]

    def _now(self) -> datetime:
        return _stored_dt(super()._now())

    def new_id(self) -> str:
        return str(ObjectId())

    def close(self) -> None:
        self._client.close()

    def _task_from_doc(self, doc: Dict[str, Any]) -> TaskEntity:
        return {
            "id": str(doc["_id"]),
            "text": doc["text"],
            "completed": bool(doc.get("completed", False)),
            "order": int(doc.get("order", 0)),
            "created_at": _timestamp(doc, "created_at", "createdAt"),
            "updated_at": _timestamp(doc, "updated_at", "updatedAt"),
        }

    def _from_doc(self, doc: Dict[str, Any]) -> ListEntity:
        return {
            "id": str(doc["_id"]),
            "name": doc["name"],
            "tasks": [self._task_from_doc(t) for t in doc.get("tasks", [])],
            "version": int(doc.get("version", 1)),
            "created_at": _timestamp(doc, "created_at", "createdAt"),
            "updated_at": _timestamp(doc, "updated_at", "updatedAt"),
        }

    def _task_to_doc(self, task: TaskEntity) -> Dict[str, Any]:
        return {
            "_id": _sub_id(task["id"]),
            "text": task["text"],
            "completed": task["completed"],
            "order": task["order"],
            "created_at": _stored_dt(task["created_at"]),
            "updated_at": _stored_dt(task["updated_at"]),
        }

    def list_all(self) -> List[ListEntity]:
        with _translate_errors():
            return [self._from_doc(d) for d in self._collection.find()]

    def create(self, name: Optional[str]) -> ListEntity:
        clean = require_text(name, "name")
        now = self._now()
        doc = {"name": clean, "tasks": [], "version": 1, "created_at": now, "updated_at": now}
        with _translate_errors():
            result = self._collection.insert_one(doc)
            created = self._collection.find_one({"_id": result.inserted_id})
        assert created is not None
        return self._from_doc(created)

    def get(self, list_id: str) -> ListEntity:
        oid = _object_id(list_id)
        with _translate_errors():
            doc = self._collection.find_one({"_id": oid})
        if doc is None:
            raise NotFoundError("List not found")
        return self._from_doc(doc)

    def rename(self, list_id: str, name: Optional[str]) -> ListEntity:
        oid = _object_id(list_id)
        changes: Dict[str, Any] = {"updated_at": self._now()}
        if name is not None:
            changes["name"] = name
        with _translate_errors():
            doc = self._collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise NotFoundError("List not found")
        return self._from_doc(doc)

    def delete(self, list_id: str) -> bool:
        try:
            oid = _object_id(list_id)
        except NotFoundError:
            return False
        with _translate_errors():
            return self._collection.delete_one({"_id": oid}).deleted_count > 0

    def _version_filter(self, oid: ObjectId, version: int) -> Dict[str, Any]:
        if version == 1:
            # Lists created before versioning carry no version field
            return {"_id": oid, "$or": [{"version": 1}, {"version": {"$exists": False}}]}
        return {"_id": oid, "version": version}

    def save(self, entity: ListEntity) -> ListEntity:
        oid = _object_id(entity["id"])
        doc = {
            "_id": oid,
            "name": entity["name"],
            "tasks": [self._task_to_doc(t) for t in entity["tasks"]],
            "version": entity["version"] + 1,
            "created_at": _stored_dt(entity["created_at"]),
            "updated_at": self._now(),
        }
        with _translate_errors():
            result = self._collection.replace_one(self._version_filter(oid, entity["version"]), doc)
            if result.matched_count == 0:
                if self._collection.count_documents({"_id": oid}, limit=1) == 0:
                    raise NotFoundError("List not found")
                raise ConflictError("List was modified by another request; reload and retry")
        return self._from_doc(doc)
