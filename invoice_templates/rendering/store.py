"""Template store contract and an in-process implementation."""
from __future__ import annotations

import threading
from typing import Protocol

from ..backends.templates_models import Template
from .errors import TemplateNotFoundError


class TemplateStore(Protocol):
    """Persistence contract the resolver and governor depend on.

    ``get`` and ``get_default`` return ``None`` when nothing is stored. The
    default template is named by a single pointer record; ``is_default`` on
    returned templates reflects that pointer.
    """

    def get(self, template_id: str) -> Template | None:
        ...

    def get_default(self) -> Template | None:
        ...

    def default_id(self) -> str | None:
        ...

    def upsert(self, template: Template) -> Template:
        ...

    def set_default(self, template_id: str) -> None:
        ...

    def delete(self, template_id: str) -> bool:
        ...

    def list_templates(self) -> list[Template]:
        ...


class InMemoryTemplateStore:
    def __init__(self, templates: list[Template] | None = None) -> None:
        self._lock = threading.RLock()
        self._templates: dict[str, Template] = {}
        self._default_id: str | None = None
        for template in templates or []:
            self.upsert(template)
            if template.is_default:
                self.set_default(template.id)

    def _materialize(self, template: Template) -> Template:
        return template.model_copy(
            deep=True, update={"is_default": template.id == self._default_id}
        )

    def get(self, template_id: str) -> Template | None:
        with self._lock:
            template = self._templates.get(template_id)
            return self._materialize(template) if template is not None else None

    def get_default(self) -> Template | None:
        with self._lock:
            if self._default_id is None:
                return None
            return self.get(self._default_id)

    def default_id(self) -> str | None:
        with self._lock:
            return self._default_id

    def upsert(self, template: Template) -> Template:
        with self._lock:
            self._templates[template.id] = template.model_copy(deep=True, update={"is_default": False})
            return self._materialize(template)

    def set_default(self, template_id: str) -> None:
        with self._lock:
            if template_id not in self._templates:
                raise TemplateNotFoundError(template_id)
            self._default_id = template_id

    def delete(self, template_id: str) -> bool:
        with self._lock:
            removed = self._templates.pop(template_id, None) is not None
            if removed and self._default_id == template_id:
                self._default_id = None
            return removed

    def list_templates(self) -> list[Template]:
        with self._lock:
            return [self._materialize(t) for _, t in sorted(self._templates.items())]


__all__ = ["InMemoryTemplateStore", "TemplateStore"]
