from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import PlainTextResponse, Response
from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


# PUBLIC_INTERFACE
def create_templates(directory: Path = TEMPLATES_DIR) -> Jinja2Templates:
    """
    Build the template environment. Undefined names fail the render instead
    of printing as empty strings.
    """
    env = Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=select_autoescape(["html"]),
        undefined=StrictUndefined,
    )
    return Jinja2Templates(env=env)


def _context(view: Any) -> Dict[str, Any]:
    return {f.name: getattr(view, f.name) for f in fields(view)}


# PUBLIC_INTERFACE
def render_template(request: Request, name: str, view: Any) -> Response:
    """
    Render `name` with the fields of the `view` dataclass.

    Returns:
        200 HTML on success. On a template error, 500 plain text with the
        error message; the view-model dump is only appended when
        TEMPLATE_DEBUG is enabled.
    """
    templates: Jinja2Templates = request.app.state.templates
    try:
        return templates.TemplateResponse(request, name, _context(view))
    except TemplateError as exc:
        logger.exception("Failed to render %s", name)
        message = f"Failed to render template. Error: {exc}"
        if request.app.state.settings.template_debug:
            message += f"; data {view!r}"
        return PlainTextResponse(message, status_code=500)
