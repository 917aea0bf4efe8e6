from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from ..models import TodoList
from ..rendering import render_template
from ..repositories import TodoStore, get_todo_store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["todos"],
)


# PUBLIC_INTERFACE
@router.post(
    "/todos",
    response_class=HTMLResponse,
    summary="Add Todo",
    description="Append a todo and return the updated todo-list fragment.",
    responses={
        200: {"description": "Updated todo list (HTML fragment)"},
        400: {"description": "Missing `todo` form field"},
        502: {"description": "Storage failure"},
    },
)
async def add_todo(
    request: Request,
    todo: str = Form(..., description="Free-text todo content"),
    store: TodoStore = Depends(get_todo_store),
) -> Response:
    """
    Save a todo, then re-read the whole list for the fragment.
    """
    todo_id = await store.append(todo)
    logger.debug("Added todo %s", todo_id)
    view = TodoList(todos=await store.list_all())
    return render_template(request, "todo-list.html", view)


# PUBLIC_INTERFACE
@router.get(
    "/hello",
    response_class=PlainTextResponse,
    summary="Liveness Probe",
    tags=["health"],
)
async def hello_from_the_server() -> str:
    """Return a fixed greeting."""
    return "Hello!"
