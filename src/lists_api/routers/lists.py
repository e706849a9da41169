from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status

from ..schemas import (
    ErrorOut,
    ListCreate,
    ListOut,
    ListRename,
    MessageOut,
    ReorderRequest,
    TaskCreate,
    TaskOut,
    TaskRename,
)
from ..services import TaskOrderingService

router = APIRouter(
    prefix="/api/todos",
    tags=["lists"],
)

_NOT_FOUND = {404: {"model": ErrorOut, "description": "List or task not found"}}
_INVALID = {400: {"model": ErrorOut, "description": "Validation error"}}
_CONFLICT = {409: {"model": ErrorOut, "description": "List changed concurrently"}}


def get_service(request: Request) -> TaskOrderingService:
    """
    Dependency returning the service the application was built with.
    """
    return request.app.state.service


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[ListOut],
    summary="List Lists",
    description="Return every list with its tasks.",
)
def list_lists(service: TaskOrderingService = Depends(get_service)) -> List[ListOut]:
    """
    Return all lists with their embedded tasks.
    """
    return [ListOut(**item) for item in service.list_lists()]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=ListOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create List",
    description="Create a new, empty list.",
    responses={201: {"description": "List created"}, **_INVALID},
)
def create_list(payload: ListCreate, service: TaskOrderingService = Depends(get_service)) -> ListOut:
    """
    Create a new list.
    """
    created = service.create_list(payload.name)
    return ListOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{list_id}",
    response_model=ListOut,
    summary="Get List",
    description="Get a single list with its tasks.",
    responses=_NOT_FOUND,
)
def get_list(list_id: str, service: TaskOrderingService = Depends(get_service)) -> ListOut:
    """
    Retrieve a single list by its ID.
    """
    return ListOut(**service.get_list(list_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{list_id}",
    response_model=ListOut,
    summary="Rename List",
    description="Rename a list. The new name is not checked for emptiness.",
    responses=_NOT_FOUND,
)
def rename_list(
    list_id: str, payload: ListRename, service: TaskOrderingService = Depends(get_service)
) -> ListOut:
    """
    Rename a list.
    """
    renamed = service.rename_list(list_id, payload.name)
    return ListOut(**renamed)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{list_id}",
    response_model=MessageOut,
    summary="Delete List",
    description="Delete a list and all of its tasks.",
    responses=_NOT_FOUND,
)
def delete_list(list_id: str, service: TaskOrderingService = Depends(get_service)) -> MessageOut:
    """
    Delete a list together with its tasks.
    """
    service.delete_list(list_id)
    return MessageOut(message="List deleted")


# PUBLIC_INTERFACE
@router.post(
    "/{list_id}/tasks",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add Task",
    description="Append a new task to the end of a list.",
    responses={**_INVALID, **_NOT_FOUND, **_CONFLICT},
)
def add_task(
    list_id: str, payload: TaskCreate, service: TaskOrderingService = Depends(get_service)
) -> TaskOut:
    """
    Add a task to the end of a list.
    """
    task = service.add_task(list_id, payload.text)
    return TaskOut(**task)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{list_id}/tasks/{task_id}",
    response_model=TaskOut,
    summary="Toggle Task",
    description="Flip the completed flag of a task.",
    responses={**_NOT_FOUND, **_CONFLICT},
)
@router.put(
    "/{list_id}/tasks/{task_id}/toggle",
    response_model=TaskOut,
    summary="Toggle Task",
    description="Flip the completed flag of a task.",
    responses={**_NOT_FOUND, **_CONFLICT},
)
def toggle_task(
    list_id: str, task_id: str, service: TaskOrderingService = Depends(get_service)
) -> TaskOut:
    """
    Toggle the completed flag of a task. Served on both the bare task path and /toggle.
    """
    task = service.toggle_task(list_id, task_id)
    return TaskOut(**task)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{list_id}/tasks/{task_id}/rename",
    response_model=TaskOut,
    summary="Rename Task",
    description="Set the text of a task; surrounding whitespace is trimmed.",
    responses={**_INVALID, **_NOT_FOUND, **_CONFLICT},
)
def rename_task(
    list_id: str,
    task_id: str,
    payload: TaskRename,
    service: TaskOrderingService = Depends(get_service),
) -> TaskOut:
    """
    Rename a task.
    """
    task = service.rename_task(list_id, task_id, payload.text)
    return TaskOut(**task)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{list_id}/tasks/{task_id}",
    response_model=MessageOut,
    summary="Delete Task",
    description="Remove a task from a list.",
    responses={**_NOT_FOUND, **_CONFLICT},
)
def delete_task(
    list_id: str, task_id: str, service: TaskOrderingService = Depends(get_service)
) -> MessageOut:
    """
    Delete a task from a list.
    """
    service.delete_task(list_id, task_id)
    return MessageOut(message="Task deleted successfully")


# PUBLIC_INTERFACE
@router.put(
    "/{list_id}/reorder",
    response_model=List[TaskOut],
    summary="Reorder Tasks",
    description=(
        "Replace the task sequence of a list with the tasks named in taskIds, in that order.\n\n"
        "- Each task's order is set to its position in the resulting sequence\n"
        "- Unknown ids are ignored\n"
        "- Tasks of the list not named in taskIds are removed from the list"
    ),
    responses={**_NOT_FOUND, **_CONFLICT},
)
def reorder_tasks(
    list_id: str, payload: ReorderRequest, service: TaskOrderingService = Depends(get_service)
) -> List[TaskOut]:
    """
    Reorder the tasks of a list; tasks left out of the request are removed.
    """
    tasks = service.reorder_tasks(list_id, payload.task_ids)
    return [TaskOut(**t) for t in tasks]  # type: ignore[arg-type]
