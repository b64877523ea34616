"""Exceptions raised by the template engine and the template stores."""
from __future__ import annotations

from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Issue


class TemplateEngineError(RuntimeError):
    """Base class for template engine failures."""


class ConfigurationError(TemplateEngineError):
    """A template is structurally invalid or cannot be parsed."""

    def __init__(self, message: str, issues: Sequence["Issue"] = ()):
        super().__init__(message)
        self.issues = list(issues)


class TemplateNotFoundError(TemplateEngineError, LookupError):
    """Raised by write paths that require an existing template."""

    def __init__(self, template_id: str):
        super().__init__(f"Template {template_id} not found")
        self.template_id = template_id


class StoreUnavailableError(TemplateEngineError):
    """The template store could not be read or written."""


class RenderFailure(TemplateEngineError):
    """Assembly could not produce a document.

    ``invariant`` names the validation rule (or pipeline invariant) that was
    violated.
    """

    def __init__(self, message: str, *, invariant: str, issues: Sequence["Issue"] = ()):
        super().__init__(message)
        self.invariant = invariant
        self.issues = list(issues)


class EmptyDocumentError(RenderFailure):
    """No section of the resolved template could be rendered."""

    def __init__(self, template_id: str):
        super().__init__(
            f"Template {template_id} produced no renderable sections",
            invariant="renderable_sections",
        )
        self.template_id = template_id


__all__ = [
    "ConfigurationError",
    "EmptyDocumentError",
    "RenderFailure",
    "StoreUnavailableError",
    "TemplateEngineError",
    "TemplateNotFoundError",
]
