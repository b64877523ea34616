"""JSON HTTP routes for templates and rendering."""
from __future__ import annotations

import json
import logging

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from invoice_templates.backends.templates import (
    RenderRequest,
    get_store,
    get_validator,
    render_document,
)
from invoice_templates.rendering import (
    ConfigurationError,
    RenderFailure,
    StoreUnavailableError,
    get_registry,
)
from invoice_templates.rendering.models import has_errors

from .envelopes import envelope_error, envelope_ok

_LOGGER = logging.getLogger("invoice_templates.api.routes")


def _error(status_code: int, *errors: object, data: object = None) -> JSONResponse:
    return JSONResponse(envelope_error(*errors, data=data), status_code=status_code)


async def list_templates(request: Request) -> JSONResponse:
    store = get_store()
    try:
        templates = store.list_templates()
        default_id = store.default_id()
    except StoreUnavailableError as exc:
        return _error(503, exc)
    return JSONResponse(
        envelope_ok(
            {
                "count": len(templates),
                "default_id": default_id,
                "templates": [template.summary() for template in templates],
            }
        )
    )


async def _load(request: Request):
    template_id = request.path_params.get("template_id")
    try:
        template = get_store().get(template_id)
    except ConfigurationError as exc:
        return None, _error(500, f"Template {template_id} is invalid: {exc}")
    except StoreUnavailableError as exc:
        return None, _error(503, exc)
    if template is None:
        return None, _error(404, f"Template {template_id} not found")
    return template, None


async def get_template(request: Request) -> JSONResponse:
    template, failure = await _load(request)
    if failure is not None:
        return failure
    return JSONResponse(envelope_ok(template.model_dump(mode="json", by_alias=True)))


async def template_issues(request: Request) -> JSONResponse:
    template, failure = await _load(request)
    if failure is not None:
        return failure
    issues = get_validator().validate(template)
    return JSONResponse(
        envelope_ok(
            {
                "template_id": template.id,
                "valid": not has_errors(issues),
                "issues": [issue.model_dump(mode="json") for issue in issues],
            }
        )
    )


async def list_variables(request: Request) -> JSONResponse:
    return JSONResponse(envelope_ok(get_registry().to_api_format()))


async def render(request: Request) -> JSONResponse:
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        return _error(400, "Request body must be JSON")

    try:
        render_request = RenderRequest.model_validate(payload)
    except ValidationError as exc:
        return _error(
            400,
            *(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()),
        )

    try:
        document = render_document(render_request)
    except RenderFailure as exc:
        _LOGGER.warning("Render failed", extra={"invariant": exc.invariant})
        return _error(
            500,
            exc,
            data={
                "invariant": exc.invariant,
                "issues": [issue.model_dump(mode="json") for issue in exc.issues],
            },
        )
    except StoreUnavailableError as exc:
        return _error(503, exc)
    return JSONResponse(envelope_ok(document.model_dump(mode="json")))


def make_routes() -> list[Route]:
    return [
        Route("/api/templates", list_templates, methods=["GET"]),
        Route("/api/templates/{template_id}", get_template, methods=["GET"]),
        Route("/api/templates/{template_id}/issues", template_issues, methods=["GET"]),
        Route("/api/variables", list_variables, methods=["GET"]),
        Route("/api/render", render, methods=["POST"]),
    ]


__all__ = ["make_routes"]
