"""Render inputs, outputs and diagnostics."""
from __future__ import annotations

from typing import Any, ClassVar, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, model_validator

from ..backends.templates_models import Layout

Severity = Literal["error", "warning"]
SourceKind = Literal["explicit", "default", "builtin"]

_MISSING = object()


class Issue(BaseModel):
    """A validation finding for one template."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    rule: str
    message: str
    path: str = ""


def has_errors(issues: list[Issue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


class RenderWarning(BaseModel):
    """Non-fatal diagnostic collected while rendering."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    path: str = ""
    section: str | None = None

    default_message: ClassVar[str] = ""

    @model_validator(mode="before")
    @classmethod
    def _default_message(cls, data: Any):
        if isinstance(data, dict) and not data.get("message") and cls.default_message:
            data = {**data, "message": cls.default_message.format(path=data.get("path", ""))}
        return data


class UnresolvedVariableWarning(RenderWarning):
    code: Literal["unresolved_variable"] = "unresolved_variable"

    default_message: ClassVar[str] = "Variable '{path}' could not be resolved"


class UnsupportedSectionWarning(RenderWarning):
    code: Literal["unsupported_section"] = "unsupported_section"

    default_message: ClassVar[str] = "Section type '{path}' is not supported and was skipped"


class RenderContext(BaseModel):
    """Per-invoice data that template variables resolve against.

    Each field is one variable category: ``{{customer.name}}`` looks up
    ``name`` in :attr:`customer`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    company: dict[str, Any] = Field(default_factory=dict)
    customer: dict[str, Any] = Field(default_factory=dict)
    invoice: dict[str, Any] = Field(default_factory=dict)
    order: dict[str, Any] = Field(default_factory=dict)
    totals: dict[str, Any] = Field(default_factory=dict)
    legal: dict[str, Any] = Field(default_factory=dict)

    def lookup(self, path: str) -> Any:
        """Return the value at ``path`` or ``None`` when it does not exist."""

        category, _, rest = path.partition(".")
        if category not in type(self).model_fields:
            return None
        root = getattr(self, category)
        value = lookup_path(root, rest) if rest else root
        return None if value is _MISSING else value


def lookup_path(root: Any, path: str) -> Any:
    """Walk a dot-separated ``path`` through mappings, sequences and models.

    Returns the module sentinel ``_MISSING`` when a segment does not exist.
    """

    current = root
    for segment in path.split("."):
        if not segment:
            return _MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            if not segment.isdigit() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        elif isinstance(current, BaseModel):
            if segment.startswith("_") or segment not in type(current).model_fields:
                return _MISSING
            current = getattr(current, segment)
        else:
            return _MISSING
    return current


class RenderedColumn(BaseModel):
    key: str
    label: str | None = None
    width_percent: float


class RenderedSection(BaseModel):
    type: str
    position: int
    fields: dict[str, str] = Field(default_factory=dict)
    columns: list[RenderedColumn] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    skipped: bool = False
    warnings: list[SerializeAsAny[RenderWarning]] = Field(default_factory=list)


class RenderedDocument(BaseModel):
    template_id: str
    template_name: str
    source_kind: SourceKind | None = None
    layout: Layout
    sections: list[RenderedSection] = Field(default_factory=list)
    warnings: list[SerializeAsAny[RenderWarning]] = Field(default_factory=list)

    def section(self, section_type: str) -> RenderedSection | None:
        for section in self.sections:
            if section.type == section_type:
                return section
        return None


__all__ = [
    "Issue",
    "RenderContext",
    "RenderWarning",
    "RenderedColumn",
    "RenderedDocument",
    "RenderedSection",
    "Severity",
    "SourceKind",
    "UnresolvedVariableWarning",
    "UnsupportedSectionWarning",
    "has_errors",
    "lookup_path",
]
