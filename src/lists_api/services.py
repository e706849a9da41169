from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from .errors import NotFoundError, require_text
from .models import ListEntity, TaskEntity
from .repositories import ListStore

logger = logging.getLogger(__name__)


def _find_task(aggregate: ListEntity, task_id: str) -> TaskEntity:
    for task in aggregate["tasks"]:
        if task["id"] == task_id:
            return task
    raise NotFoundError("Task not found")


def _resequence(tasks: List[TaskEntity], task_ids: Sequence[str], now: datetime) -> List[TaskEntity]:
    """
    Build the task sequence requested by a reorder.

    Ids that resolve to a task are kept in request order (first occurrence
    wins) and get `order` set to their zero-based position in the result.
    Unknown ids are skipped. Tasks whose id is absent from task_ids are not
    part of the result, so replacing a list's sequence with it drops them.
    """
    lookup = {t["id"]: t for t in tasks}
    kept: List[TaskEntity] = []
    seen = set()
    for task_id in task_ids:
        task = lookup.get(task_id)
        if task is None or task_id in seen:
            continue
        seen.add(task_id)
        kept.append(task)

    for position, task in enumerate(kept):
        if task["order"] != position:
            task["order"] = position
            task["updated_at"] = now
    return kept


# PUBLIC_INTERFACE
class TaskOrderingService:
    """
    List and task operations on top of a ListStore.

    Every mutation loads the whole aggregate, changes it in memory and saves
    it back. A concurrent save between the load and the save surfaces as
    ConflictError from the store; nothing is written in that case.
    """

    def __init__(self, store: ListStore) -> None:
        self._store = store

    @property
    def store(self) -> ListStore:
        return self._store

    def _now(self) -> datetime:
        return datetime.now()

    # Lists

    def list_lists(self) -> List[ListEntity]:
        return self._store.list_all()

    def create_list(self, name: Optional[str]) -> ListEntity:
        created = self._store.create(name)
        logger.info("Created list %s (%r)", created["id"], created["name"])
        return created

    def get_list(self, list_id: str) -> ListEntity:
        return self._store.get(list_id)

    def rename_list(self, list_id: str, name: Optional[str]) -> ListEntity:
        """Rename a list. Unlike create_list, the name is not checked for emptiness."""
        return self._store.rename(list_id, name)

    def delete_list(self, list_id: str) -> None:
        if not self._store.delete(list_id):
            raise NotFoundError("List not found")
        logger.info("Deleted list %s", list_id)

    # Tasks

    def add_task(self, list_id: str, text: Optional[str]) -> TaskEntity:
        """
        Append a new task (order 0, not completed) to the end of a list.

        Raises:
            NotFoundError: the list does not exist.
            ValidationError: text is missing or blank.
        """
        aggregate = self._store.get(list_id)
        clean = require_text(text, "text")
        now = self._now()
        task: TaskEntity = {
            "id": self._store.new_id(),
            "text": clean,
            "completed": False,
            "order": 0,
            "created_at": now,
            "updated_at": now,
        }
        aggregate["tasks"].append(task)
        saved = self._store.save(aggregate)
        return _find_task(saved, task["id"])

    def toggle_task(self, list_id: str, task_id: str) -> TaskEntity:
        aggregate = self._store.get(list_id)
        task = _find_task(aggregate, task_id)
        task["completed"] = not task["completed"]
        task["updated_at"] = self._now()
        saved = self._store.save(aggregate)
        return _find_task(saved, task_id)

    def rename_task(self, list_id: str, task_id: str, text: Optional[str]) -> TaskEntity:
        clean = require_text(text, "text")
        aggregate = self._store.get(list_id)
        task = _find_task(aggregate, task_id)
        task["text"] = clean
        task["updated_at"] = self._now()
        saved = self._store.save(aggregate)
        return _find_task(saved, task_id)

    def delete_task(self, list_id: str, task_id: str) -> None:
        aggregate = self._store.get(list_id)
        task = _find_task(aggregate, task_id)
        aggregate["tasks"] = [t for t in aggregate["tasks"] if t is not task]
        self._store.save(aggregate)

    def reorder_tasks(self, list_id: str, task_ids: Sequence[str]) -> List[TaskEntity]:
        """
        Replace the task sequence of a list with the tasks named by task_ids.

        Existing tasks left out of task_ids are removed from the list, not just
        left with their previous order. Unknown ids are ignored.

        Returns:
            The new task sequence, each task's order equal to its index.
        """
        aggregate = self._store.get(list_id)
        before = len(aggregate["tasks"])
        aggregate["tasks"] = _resequence(aggregate["tasks"], task_ids, self._now())
        dropped = before - len(aggregate["tasks"])
        if dropped:
            logger.info("Reorder of list %s dropped %d task(s) omitted from the request", list_id, dropped)
        saved = self._store.save(aggregate)
        return saved["tasks"]
