"""Invoice template rendering pipeline."""

from .assembler import DocumentAssembler, generate_document
from .builtin import BUILTIN_TEMPLATE_ID, builtin_template
from .errors import (
    ConfigurationError,
    EmptyDocumentError,
    RenderFailure,
    StoreUnavailableError,
    TemplateEngineError,
    TemplateNotFoundError,
)
from .governor import DefaultTemplateGovernor
from .interpolator import expand, interpolate
from .models import (
    Issue,
    RenderContext,
    RenderedDocument,
    RenderedSection,
    RenderWarning,
    UnresolvedVariableWarning,
    UnsupportedSectionWarning,
)
from .registry import VariableRegistry, get_registry
from .resolver import ResolvedTemplate, TemplateResolver
from .sections import SectionRenderer
from .store import InMemoryTemplateStore, TemplateStore
from .validator import (
    GermanInvoicePolicy,
    LegalPolicy,
    NoLegalPolicy,
    TemplateValidator,
    get_legal_policy,
    validate_template,
)

__all__ = [
    "BUILTIN_TEMPLATE_ID",
    "ConfigurationError",
    "DefaultTemplateGovernor",
    "DocumentAssembler",
    "EmptyDocumentError",
    "GermanInvoicePolicy",
    "InMemoryTemplateStore",
    "Issue",
    "LegalPolicy",
    "NoLegalPolicy",
    "RenderContext",
    "RenderFailure",
    "RenderWarning",
    "RenderedDocument",
    "RenderedSection",
    "ResolvedTemplate",
    "SectionRenderer",
    "StoreUnavailableError",
    "TemplateEngineError",
    "TemplateNotFoundError",
    "TemplateResolver",
    "TemplateStore",
    "TemplateValidator",
    "UnresolvedVariableWarning",
    "UnsupportedSectionWarning",
    "VariableRegistry",
    "builtin_template",
    "expand",
    "generate_document",
    "get_legal_policy",
    "get_registry",
    "interpolate",
    "validate_template",
]
