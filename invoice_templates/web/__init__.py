"""Minimal web UI for template overview and previews."""
from __future__ import annotations

from pathlib import Path

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route
from starlette.templating import Jinja2Templates

from invoice_templates.backends.context_models import sample_render_context
from invoice_templates.backends.templates import get_resolver, get_store
from invoice_templates.rendering import (
    DocumentAssembler,
    RenderFailure,
    StoreUnavailableError,
)

_TEMPLATES = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


async def templates_overview(request: Request) -> Response:
    store = get_store()
    try:
        templates = store.list_templates()
    except StoreUnavailableError as exc:
        return HTMLResponse(f"Template store unavailable: {exc}", status_code=503)
    context = {
        "request": request,
        "templates": [template.summary() for template in templates],
        "count": len(templates),
    }
    return _TEMPLATES.TemplateResponse("templates_list.html", context)


async def template_preview(request: Request) -> Response:
    template_id = request.path_params.get("template_id")
    if not template_id:
        return HTMLResponse("Missing template id", status_code=400)

    resolver = get_resolver()
    try:
        template, source_kind = resolver.resolve(template_id)
        ctx = sample_render_context(template.company_info)
        document = DocumentAssembler(validator=resolver.validator).assemble(
            template, ctx, source_kind=source_kind
        )
    except StoreUnavailableError as exc:
        return HTMLResponse(f"Template store unavailable: {exc}", status_code=503)
    except RenderFailure as exc:
        return HTMLResponse(f"Render failed: {exc}", status_code=500)

    context = {
        "request": request,
        "requested_id": template_id,
        "document": document,
        "layout": document.layout,
    }
    return _TEMPLATES.TemplateResponse("template_preview.html", context)


def register_routes(app: Starlette) -> None:
    routes = [
        Route("/templates", templates_overview, methods=["GET"]),
        Route("/templates/{template_id}/preview", template_preview, methods=["GET"]),
    ]
    for route in routes:
        app.router.routes.append(route)


__all__ = ["register_routes"]
