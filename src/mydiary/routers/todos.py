from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from ..controllers import TodoController
from ..models import CATEGORY_STYLES, TodoItem
from ..schemas import CategoryOut, DeletePositions, TodoIn, TodoListOut, TodoOut
from ..state import AppState, get_app_state

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)


def _get_todos(state: AppState = Depends(get_app_state)) -> TodoController:
    """
    Dependency returning the todo controller of the running app.
    """
    return state.todos


def _list_out(todos: TodoController) -> TodoListOut:
    return TodoListOut(
        day_key=todos.day_key,
        items=[TodoOut.model_validate(t) for t in todos.todos],
        completed_count=todos.completed_count,
        total_count=todos.total_count,
        error=todos.error_message if todos.show_error else None,
    )


def _find(todos: TodoController, todo_id: UUID) -> TodoItem:
    item = todos.get(todo_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return item


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TodoListOut,
    summary="List Todos",
    description=(
        "Todos of the selected day, uncompleted first and oldest first within each group, "
        "with completed/total counts."
    ),
)
def list_todos(todos: TodoController = Depends(_get_todos)) -> TodoListOut:
    return _list_out(todos)


# PUBLIC_INTERFACE
@router.get(
    "/categories",
    response_model=List[CategoryOut],
    summary="List Categories",
    description="Label, icon and light/dark colours of every todo category.",
)
def list_categories() -> List[CategoryOut]:
    return [
        CategoryOut(
            value=category,
            label=style.label,
            icon=style.icon,
            light_color=style.light_color,
            dark_color=style.dark_color,
        )
        for category, style in CATEGORY_STYLES.items()
    ]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a todo on the selected day.",
    responses={
        201: {"description": "Todo created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoIn, todos: TodoController = Depends(_get_todos)) -> TodoOut:
    created = todos.add(payload.title, payload.category, payload.due_date)
    return TodoOut.model_validate(created)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    responses={404: {"description": "Todo not found on the selected day"}},
)
def get_todo(todo_id: UUID, todos: TodoController = Depends(_get_todos)) -> TodoOut:
    return TodoOut.model_validate(_find(todos, todo_id))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Edit Todo",
    description="Replace the title, category and due date of a todo. Omitted due_date clears it.",
    responses={404: {"description": "Todo not found on the selected day"}},
)
def update_todo(todo_id: UUID, payload: TodoIn, todos: TodoController = Depends(_get_todos)) -> TodoOut:
    item = _find(todos, todo_id)
    updated = todos.update(item, payload.title, payload.category, payload.due_date)
    return TodoOut.model_validate(updated)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Completion",
    responses={404: {"description": "Todo not found on the selected day"}},
)
def toggle_todo(todo_id: UUID, todos: TodoController = Depends(_get_todos)) -> TodoOut:
    return TodoOut.model_validate(todos.toggle_completion(_find(todos, todo_id)))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found on the selected day"},
    },
)
def delete_todo(todo_id: UUID, todos: TodoController = Depends(_get_todos)) -> None:
    todos.delete(_find(todos, todo_id))
    return None


# PUBLIC_INTERFACE
@router.post(
    "/delete-at",
    response_model=TodoListOut,
    summary="Delete Todos By Position",
    description=(
        "Delete the todos at the given positions of the current list. Positions refer to the "
        "list before any of them is removed; out-of-range positions are ignored."
    ),
)
def delete_todos_at(payload: DeletePositions, todos: TodoController = Depends(_get_todos)) -> TodoListOut:
    todos.delete_at(payload.positions)
    return _list_out(todos)
