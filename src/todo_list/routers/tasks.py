from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Request, status

from ..controller import ListSnapshot, TaskListController
from ..schemas import EditingIn, ListState, SearchIn, TaskOut, TitleIn

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def _get_controller(request: Request) -> TaskListController:
    """
    Dependency returning the controller created by the application lifespan.
    """
    return request.app.state.controller


def _to_state(snap: ListSnapshot) -> ListState:
    return ListState(
        items=[TaskOut(**r) for r in snap.items],  # type: ignore[arg-type]
        editing_id=snap.editing_id,
        search_text=snap.search_text,
        version=snap.version,
        pending_deletions=snap.pending_deletions,
    )


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=ListState,
    summary="List State",
    description=(
        "Return what the list screen shows: open tasks first, then completed ones, "
        "filtered by the current search text, plus the editing id and a version counter."
    ),
)
async def get_state(controller: TaskListController = Depends(_get_controller)) -> ListState:
    return _to_state(controller.snapshot())


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add Task",
    description='Append a task titled "new task N", where N is the total task count plus one.',
    responses={201: {"description": "Task created"}},
)
async def add_task(controller: TaskListController = Depends(_get_controller)) -> TaskOut:
    return TaskOut(**controller.add())  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/search",
    response_model=ListState,
    summary="Set Search Text",
    description="Replace the search text; the visible list is filtered by case-insensitive title match.",
)
async def set_search_text(
    payload: SearchIn, controller: TaskListController = Depends(_get_controller)
) -> ListState:
    controller.set_search_text(payload.text)
    return _to_state(controller.snapshot())


# PUBLIC_INTERFACE
@router.put(
    "/editing",
    response_model=ListState,
    summary="Begin Editing",
    description="Select the single task whose title is being edited.",
    responses={404: {"description": "Task not found"}},
)
async def begin_editing(
    payload: EditingIn, controller: TaskListController = Depends(_get_controller)
) -> ListState:
    controller.begin_editing(payload.task_id)
    return _to_state(controller.snapshot())


# PUBLIC_INTERFACE
@router.delete(
    "/editing",
    response_model=ListState,
    summary="End Editing",
    description="Leave editing mode without touching any task.",
)
async def end_editing(controller: TaskListController = Depends(_get_controller)) -> ListState:
    controller.end_editing()
    return _to_state(controller.snapshot())


# PUBLIC_INTERFACE
@router.delete(
    "/positions/{index}",
    response_model=TaskOut,
    summary="Delete Visible Task",
    description="Delete the task at this position of the visible (sorted and filtered) list.",
    responses={404: {"description": "No task at that position"}},
)
async def delete_at(
    index: int = Path(..., ge=0, description="Zero-based position in the visible list"),
    controller: TaskListController = Depends(_get_controller),
) -> TaskOut:
    return TaskOut(**controller.delete_at(index))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    responses={404: {"description": "Task not found"}},
)
async def get_task(task_id: str, controller: TaskListController = Depends(_get_controller)) -> TaskOut:
    """
    Retrieve a single task by its id, whether or not it is currently visible.
    """
    return TaskOut(**controller.get(task_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}/title",
    response_model=TaskOut,
    summary="Set Title",
    description="Commit a new title for the task and leave editing mode.",
    responses={404: {"description": "Task not found"}},
)
async def set_title(
    task_id: str, payload: TitleIn, controller: TaskListController = Depends(_get_controller)
) -> TaskOut:
    return TaskOut(**controller.set_title(task_id, payload.title))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/toggle",
    response_model=TaskOut,
    summary="Toggle Completion",
    description=(
        "Flip the completion flag. A task that becomes completed is removed after the "
        "configured delay unless it is reopened or deleted first."
    ),
    responses={404: {"description": "Task not found"}},
)
async def toggle_completion(
    task_id: str, controller: TaskListController = Depends(_get_controller)
) -> TaskOut:
    return TaskOut(**controller.toggle_completion(task_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    responses={204: {"description": "Task deleted"}, 404: {"description": "Task not found"}},
)
async def delete_task(task_id: str, controller: TaskListController = Depends(_get_controller)) -> None:
    controller.delete(task_id)
    return None
