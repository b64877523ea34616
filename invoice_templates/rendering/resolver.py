"""Pick the template a document is generated from."""
from __future__ import annotations

import logging
from typing import NamedTuple

from ..backends.templates_models import Template
from .builtin import builtin_template
from .errors import ConfigurationError
from .models import SourceKind, has_errors
from .store import TemplateStore
from .validator import TemplateValidator

_LOGGER = logging.getLogger("invoice_templates.rendering.resolver")


class ResolvedTemplate(NamedTuple):
    template: Template
    source_kind: SourceKind


class TemplateResolver:
    """Explicit request, then the stored default, then the builtin template.

    Missing, unparsable and invalid templates are logged and skipped; only
    :class:`~.errors.StoreUnavailableError` reaches the caller.
    """

    def __init__(self, store: TemplateStore, validator: TemplateValidator | None = None) -> None:
        self.store = store
        self.validator = validator or TemplateValidator()

    def resolve(self, requested_id: str | None = None) -> ResolvedTemplate:
        if requested_id:
            template = self._usable(requested_id, lambda: self.store.get(requested_id))
            if template is not None:
                return ResolvedTemplate(template, "explicit")

        template = self._usable("default", self.store.get_default)
        if template is not None:
            return ResolvedTemplate(template, "default")

        _LOGGER.info("Using builtin invoice template")
        return ResolvedTemplate(builtin_template(), "builtin")

    def _usable(self, label: str, fetch) -> Template | None:
        try:
            template = fetch()
        except ConfigurationError as exc:
            _LOGGER.warning(
                "Template %s could not be loaded: %s",
                label,
                exc,
                extra={"template": label},
            )
            return None

        if template is None:
            if label != "default":
                _LOGGER.warning("Template %s not found; falling back", label)
            return None

        issues = self.validator.validate(template)
        if has_errors(issues):
            _LOGGER.warning(
                "Template %s failed validation; falling back",
                template.id,
                extra={
                    "template": template.id,
                    "rules": sorted({i.rule for i in issues if i.severity == "error"}),
                },
            )
            return None
        return template


__all__ = ["ResolvedTemplate", "TemplateResolver"]
