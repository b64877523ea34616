"""Single-default enforcement for template writes."""
from __future__ import annotations

import logging
import threading

from ..backends.templates_models import Template
from .errors import ConfigurationError, TemplateNotFoundError
from .models import has_errors
from .store import TemplateStore
from .validator import TemplateValidator

_LOGGER = logging.getLogger("invoice_templates.rendering.governor")


class DefaultTemplateGovernor:
    """Route every default change through the store's pointer record.

    The store holds exactly one pointer, so two defaults can never coexist;
    the governor only serializes the writes and refuses unusable templates.
    """

    def __init__(self, store: TemplateStore, validator: TemplateValidator | None = None) -> None:
        self.store = store
        self.validator = validator or TemplateValidator()
        self._lock = threading.Lock()

    def _check_usable(self, template: Template) -> None:
        issues = self.validator.validate(template)
        if has_errors(issues):
            raise ConfigurationError(
                f"Template {template.id} has validation errors and cannot be the default",
                issues,
            )

    def set_default(self, template_id: str) -> None:
        with self._lock:
            template = self.store.get(template_id)
            if template is None:
                raise TemplateNotFoundError(template_id)
            self._check_usable(template)
            previous = self.store.default_id()
            self.store.set_default(template_id)
        _LOGGER.info(
            "Default invoice template changed",
            extra={"previous": previous, "template": template_id},
        )

    def save(self, template: Template) -> Template:
        """Upsert ``template``; a template flagged ``is_default`` becomes the default.

        A flagged template with validation errors is refused before anything is
        written.
        """

        if template.is_default:
            self._check_usable(template)
        stored = self.store.upsert(template)
        if template.is_default:
            self.set_default(template.id)
            stored = self.store.get(template.id) or stored
        return stored


__all__ = ["DefaultTemplateGovernor"]
