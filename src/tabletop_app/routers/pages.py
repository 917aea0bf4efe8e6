from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response

from ..models import AnotherPage, TodoList
from ..rendering import render_template
from ..repositories import TodoStore, get_todo_store

router = APIRouter(tags=["pages"])


# PUBLIC_INTERFACE
@router.get("/", response_class=HTMLResponse, summary="Home")
async def show_home(request: Request, store: TodoStore = Depends(get_todo_store)) -> Response:
    """Home page with the current todo list."""
    view = TodoList(todos=await store.list_all())
    return render_template(request, "hello.html", view)


@router.get("/another-page", response_class=HTMLResponse, summary="Another Page")
async def show_another_page(request: Request) -> Response:
    return render_template(request, "another-page.html", AnotherPage())
