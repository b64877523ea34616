"""MCP backend for invoice templates and document rendering."""
from __future__ import annotations

import logging
from typing import Any, Dict, Literal

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import BaseModel, ConfigDict, Field

from ..rendering import (
    ConfigurationError,
    DefaultTemplateGovernor,
    DocumentAssembler,
    RenderedDocument,
    RenderFailure,
    StoreUnavailableError,
    TemplateNotFoundError,
    TemplateResolver,
    TemplateValidator,
    builtin_template,
    get_legal_policy,
    get_registry,
)
from ..rendering.models import has_errors
from ..utils.config import ENABLE_WRITES, LEGAL_POLICY
from ..utils.logging import record_write_attempt
from .context_models import (
    Customer,
    InvoiceMeta,
    Order,
    build_render_context,
    render_request_example,
    sample_render_context,
)
from .templates_models import (
    TEMPLATE_ID_PATTERN,
    CompanyInfo,
    Template,
    is_valid_template_id,
)
from .templates_storage import FileTemplateStore

_LOGGER = logging.getLogger("invoice_templates.backends.templates")


class WritesDisabled(RuntimeError):
    """Raised when write operations are attempted while disabled."""


def _require_writes_enabled() -> None:
    if not ENABLE_WRITES:
        raise WritesDisabled(
            "Write-capable tools are disabled. Set MCP_ENABLE_WRITES=1 to allow writes."
        )


class RenderRequest(BaseModel):
    """Input for rendering one invoice document.

    ``company`` overrides the company block of the resolved template.
    """

    model_config = ConfigDict(extra="forbid")

    template_id: str | None = Field(default=None, pattern=TEMPLATE_ID_PATTERN)
    company: CompanyInfo | None = None
    customer: Customer
    order: Order
    invoice: InvoiceMeta


def get_store() -> FileTemplateStore:
    return FileTemplateStore()


def get_validator() -> TemplateValidator:
    return TemplateValidator(policy=get_legal_policy(LEGAL_POLICY))


def get_resolver(store: FileTemplateStore | None = None) -> TemplateResolver:
    return TemplateResolver(store or get_store(), get_validator())


def get_governor(store: FileTemplateStore | None = None) -> DefaultTemplateGovernor:
    return DefaultTemplateGovernor(store or get_store(), get_validator())


def _normalize_id(template_id: str | None) -> str:
    normalized_id = str(template_id).strip() if template_id is not None else ""
    if not normalized_id:
        raise ToolError("template_id is required")
    if not is_valid_template_id(normalized_id):
        raise ToolError(f"Invalid template_id: {normalized_id!r}")
    return normalized_id


def _template_payload(template: Template) -> dict[str, Any]:
    return template.model_dump(mode="json", by_alias=True)


def _issues_payload(issues) -> list[dict[str, Any]]:
    return [issue.model_dump(mode="json") for issue in issues]


def _document_payload(document: RenderedDocument) -> dict[str, Any]:
    return document.model_dump(mode="json")


def get_template(template_id: str) -> Template:
    """Load a stored template by id with consistent error handling."""

    normalized_id = _normalize_id(template_id)
    try:
        template = get_store().get(normalized_id)
    except ConfigurationError as exc:
        raise ToolError(f"Template {normalized_id} is invalid") from exc
    except StoreUnavailableError as exc:
        raise ToolError(f"Template store unavailable: {exc}") from exc
    if template is None:
        raise ToolError(f"Template {normalized_id} not found")
    return template


def list_templates_impl() -> Dict[str, Any]:
    store = get_store()
    try:
        templates = store.list_templates()
        default_id = store.default_id()
    except StoreUnavailableError as exc:
        raise ToolError(f"Template store unavailable: {exc}") from exc
    return {
        "count": len(templates),
        "default_id": default_id,
        "templates": [template.summary() for template in templates],
    }


def get_template_impl(template_id: str) -> Dict[str, Any]:
    template = get_template(template_id)
    issues = get_validator().validate(template)
    return {"template": _template_payload(template), "issues": _issues_payload(issues)}


def validate_template_impl(
    template: Template | None = None, template_id: str | None = None
) -> Dict[str, Any]:
    if template is None:
        template = get_template(template_id)
    issues = get_validator().validate(template)
    return {
        "template_id": template.id,
        "valid": not has_errors(issues),
        "issues": _issues_payload(issues),
    }


def upsert_template_impl(template: Template) -> Dict[str, Any]:
    _require_writes_enabled()
    record_write_attempt("upsert_template", template_id=template.id)

    issues = get_validator().validate(template)
    if has_errors(issues):
        messages = "; ".join(
            f"{issue.path}: {issue.message}" for issue in issues if issue.severity == "error"
        )
        raise ToolError(f"Template {template.id} has validation errors: {messages}")

    store = get_store()
    try:
        stored = get_governor(store).save(template)
    except (ConfigurationError, TemplateNotFoundError) as exc:
        raise ToolError(str(exc)) from exc
    except StoreUnavailableError as exc:
        raise ToolError(f"Failed to save template: {exc}") from exc

    return {
        "template": _template_payload(stored),
        "issues": _issues_payload(issues),
        "template_path": str(store.root / "templates" / f"{stored.id}.json"),
    }


def delete_template_impl(template_id: str) -> Dict[str, Any]:
    _require_writes_enabled()
    normalized_id = _normalize_id(template_id)
    record_write_attempt("delete_template", template_id=normalized_id)

    store = get_store()
    try:
        if store.default_id() == normalized_id:
            raise ToolError(
                f"Template {normalized_id} is the default template and cannot be deleted. "
                "Set another default first."
            )
        deleted = store.delete(normalized_id)
    except StoreUnavailableError as exc:
        raise ToolError(f"Failed to delete template: {exc}") from exc

    if not deleted:
        raise ToolError(f"Template {normalized_id} not found")
    return {"deleted": True, "template_id": normalized_id}


def set_default_template_impl(template_id: str) -> Dict[str, Any]:
    _require_writes_enabled()
    normalized_id = _normalize_id(template_id)
    record_write_attempt("set_default_template", template_id=normalized_id)

    store = get_store()
    try:
        get_governor(store).set_default(normalized_id)
    except TemplateNotFoundError as exc:
        raise ToolError(f"Template {normalized_id} not found") from exc
    except ConfigurationError as exc:
        raise ToolError(str(exc)) from exc
    except StoreUnavailableError as exc:
        raise ToolError(f"Failed to set default template: {exc}") from exc

    return {"default_id": normalized_id}


def render_document(request: RenderRequest, store: FileTemplateStore | None = None) -> RenderedDocument:
    """Resolve the template for ``request`` and assemble the document.

    Engine exceptions propagate; :func:`render_invoice_document_impl` maps them
    for MCP callers and the HTTP routes map them to status codes.
    """

    resolver = get_resolver(store)
    template, source_kind = resolver.resolve(request.template_id)
    company = request.company or template.company_info
    ctx = build_render_context(company, request.customer, request.order, request.invoice)
    assembler = DocumentAssembler(validator=resolver.validator)
    return assembler.assemble(template, ctx, source_kind=source_kind)


def render_invoice_document_impl(request: RenderRequest) -> Dict[str, Any]:
    try:
        document = render_document(request)
    except RenderFailure as exc:
        raise ToolError(f"Rendering failed ({exc.invariant}): {exc}") from exc
    except StoreUnavailableError as exc:
        raise ToolError(f"Template store unavailable: {exc}") from exc
    return _document_payload(document)


def preview_template_impl(
    template_id: str | None = None, language: Literal["de", "en"] = "de"
) -> Dict[str, Any]:
    """Render ``template_id`` (or the effective default) against sample data."""

    resolver = get_resolver()
    try:
        template, source_kind = resolver.resolve(template_id)
        ctx = sample_render_context(template.company_info, language=language)
        document = DocumentAssembler(validator=resolver.validator).assemble(
            template, ctx, source_kind=source_kind
        )
    except RenderFailure as exc:
        raise ToolError(f"Rendering failed ({exc.invariant}): {exc}") from exc
    except StoreUnavailableError as exc:
        raise ToolError(f"Template store unavailable: {exc}") from exc

    if template_id and source_kind != "explicit":
        _LOGGER.info(
            "Preview fell back from requested template",
            extra={"requested": template_id, "source": source_kind},
        )
    return _document_payload(document)


def register(server: FastMCP) -> None:
    """Register template tools."""

    @server.tool(name="list_templates")
    def list_templates_tool() -> Dict[str, Any]:
        """Read-only listing of stored invoice templates and the current default id."""

        return list_templates_impl()

    @server.tool(name="get_template")
    def get_template_tool(template_id: str) -> Dict[str, Any]:
        """Read a full template (camelCase JSON) plus its validation issues."""

        return get_template_impl(template_id)

    @server.tool()
    def upsert_template(template: Template) -> Dict[str, Any]:
        """Create or replace a template in .invoice_templates/.

        Templates with error-severity validation issues are rejected; warnings are
        returned alongside the stored template. Setting isDefault=true makes the
        template the single default (any previous default loses the flag).
        """

        return upsert_template_impl(template)

    @server.tool()
    def delete_template(template_id: str) -> Dict[str, Any]:
        """Delete a template permanently. The current default cannot be deleted."""

        return delete_template_impl(template_id)

    @server.tool()
    def set_default_template(template_id: str) -> Dict[str, Any]:
        """Make the given template the default used when no template is requested."""

        return set_default_template_impl(template_id)

    @server.tool(name="validate_template")
    def validate_template_tool(
        template: Template | None = None, template_id: str | None = None
    ) -> Dict[str, Any]:
        """Validate an inline template or a stored one (by id) without saving.

        Errors block document generation with that template; warnings never do.
        """

        return validate_template_impl(template=template, template_id=template_id)

    @server.tool()
    def render_invoice_document(request: RenderRequest) -> Dict[str, Any]:
        """Render a structured invoice document (sections, rows, warnings).

        The template is resolved as: requested template_id, then the default
        template, then the builtin template; `source_kind` in the result says
        which one was used. The result is layout data, not a PDF.
        """

        return render_invoice_document_impl(request)

    @server.tool()
    def preview_template(
        template_id: str | None = None, language: Literal["de", "en"] = "de"
    ) -> Dict[str, Any]:
        """Render a template against built-in sample order data."""

        return preview_template_impl(template_id, language)

    @server.tool()
    def list_template_variables() -> Dict[str, Any]:
        """List every {{variable}} template content may use, grouped by category."""

        return get_registry().to_api_format()

    @server.tool()
    def get_template_example() -> Dict[str, Any]:
        """Return the builtin template and an example render request.

        Field guidance for LLMs:
        - sections are keyed by type; position orders them, enabled toggles them.
        - content values may use {{category.path}} variables (see list_template_variables).
        - productTable rows come from one {{loop:order.products}}...{{/loop}} block;
          cells are separated by "|" in column order; {{@index}} is the row number.
        - column widthPercent values of enabled columns must not exceed 100 in total.
        """

        template = builtin_template()
        example = template.to_document()
        example["id"] = "standard"
        return {"template": example, "render_request": render_request_example()}


__all__ = [
    "RenderRequest",
    "delete_template_impl",
    "get_template_impl",
    "list_templates_impl",
    "preview_template_impl",
    "register",
    "render_document",
    "render_invoice_document_impl",
    "set_default_template_impl",
    "upsert_template_impl",
    "validate_template_impl",
]
