from __future__ import annotations

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from fastapi import APIRouter, Depends, Query, Request, status

from ..schemas import DescriptionUpdate, ErrorOut, TodoCreate, TodoOut
from ..service import TodoService

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_NOT_FOUND = {404: {"model": ErrorOut, "description": "Todo not found"}}
_BAD_REQUEST = {400: {"model": ErrorOut, "description": "Validation error or todo is past due"}}


# PUBLIC_INTERFACE
def get_todo_service(request: Request) -> TodoService:
    """
    Dependency returning the TodoService bound to the running application.
    """
    return request.app.state.todo_service


def create_todo(payload: TodoCreate, service: TodoService = Depends(get_todo_service)) -> TodoOut:
    """
    Create a new Todo in NOT_DONE status.
    """
    created = service.create(payload.description, payload.due_datetime)
    return TodoOut(**created)  # type: ignore[arg-type]


def list_todos(
    include_all: bool = Query(
        False,
        alias="all",
        description="When true, return all todos regardless of status (default: only NOT_DONE)",
    ),
    service: TodoService = Depends(get_todo_service),
) -> List[TodoOut]:
    """
    List todos. Items that became past due are updated before being returned.
    """
    return [TodoOut(**it) for it in service.list(include_all=include_all)]  # type: ignore[arg-type]


def get_todo(todo_id: str, service: TodoService = Depends(get_todo_service)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    return TodoOut(**service.get(todo_id))  # type: ignore[arg-type]


def update_description(
    todo_id: str,
    payload: DescriptionUpdate,
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    """
    Replace the description of a Todo that is not past due.
    """
    return TodoOut(**service.update_description(todo_id, payload.description))  # type: ignore[arg-type]


def mark_done(todo_id: str, service: TodoService = Depends(get_todo_service)) -> TodoOut:
    """
    Mark a Todo as DONE and stamp its doneDatetime.
    """
    return TodoOut(**service.mark_done(todo_id))  # type: ignore[arg-type]


def mark_not_done(todo_id: str, service: TodoService = Depends(get_todo_service)) -> TodoOut:
    """
    Move a Todo back to NOT_DONE and clear its doneDatetime.
    """
    return TodoOut(**service.mark_not_done(todo_id))  # type: ignore[arg-type]


class Route(NamedTuple):
    path: str
    endpoint: Callable[..., Any]
    methods: Sequence[str]
    summary: str
    response_model: Any
    status_code: int = status.HTTP_200_OK
    responses: Optional[Dict[int, Dict[str, Any]]] = None


ROUTES: List[Route] = [
    Route("", create_todo, ["POST"], "Create Todo", TodoOut, status.HTTP_201_CREATED, _BAD_REQUEST),
    Route("", list_todos, ["GET"], "List Todos", List[TodoOut], responses=_BAD_REQUEST),
    Route("/{todo_id}", get_todo, ["GET"], "Get Todo", TodoOut, responses=_NOT_FOUND),
    Route(
        "/{todo_id}/description",
        update_description,
        ["PATCH"],
        "Update Todo description",
        TodoOut,
        responses={**_NOT_FOUND, **_BAD_REQUEST},
    ),
    Route(
        "/{todo_id}/mark-done",
        mark_done,
        ["PATCH"],
        "Mark Todo done",
        TodoOut,
        responses={**_NOT_FOUND, **_BAD_REQUEST},
    ),
    Route(
        "/{todo_id}/mark-not-done",
        mark_not_done,
        ["PATCH"],
        "Mark Todo not done",
        TodoOut,
        responses={**_NOT_FOUND, **_BAD_REQUEST},
    ),
]

for _route in ROUTES:
    router.add_api_route(
        _route.path,
        _route.endpoint,
        methods=list(_route.methods),
        summary=_route.summary,
        response_model=_route.response_model,
        status_code=_route.status_code,
        responses=_route.responses,
    )
