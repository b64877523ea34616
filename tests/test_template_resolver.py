import logging
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoice_templates.backends.templates_models import Template
from invoice_templates.rendering import (
    ConfigurationError,
    InMemoryTemplateStore,
    NoLegalPolicy,
    StoreUnavailableError,
    TemplateResolver,
    TemplateValidator,
)
from invoice_templates.rendering.builtin import builtin_template


def _template(template_id: str, *, position_clash: bool = False) -> Template:
    footer_position = 1 if position_clash else 2
    return Template.model_validate(
        {
            "id": template_id,
            "name": template_id.title(),
            "companyInfo": {"name": "Glücksmomente Manufaktur"},
            "sections": {
                "header": {"position": 1},
                "footer": {"position": footer_position},
            },
        }
    )


class _BrokenStore(InMemoryTemplateStore):
    def get(self, template_id):
        raise ConfigurationError(f"Template {template_id} is not valid JSON")


class _OfflineStore(InMemoryTemplateStore):
    def get_default(self):
        raise StoreUnavailableError("disk gone")


class TemplateResolverTests(unittest.TestCase):
    def _resolver(self, store) -> TemplateResolver:
        return TemplateResolver(store, TemplateValidator(policy=NoLegalPolicy()))

    def test_empty_store_resolves_builtin(self):
        template, source_kind = self._resolver(InMemoryTemplateStore()).resolve(None)
        self.assertEqual(source_kind, "builtin")
        self.assertEqual(template.id, "builtin")

    def test_explicit_template_wins(self):
        store = InMemoryTemplateStore([_template("a"), _template("b")])
        store.set_default("b")
        template, source_kind = self._resolver(store).resolve("a")
        self.assertEqual((template.id, source_kind), ("a", "explicit"))

    def test_missing_explicit_falls_back_to_default(self):
        store = InMemoryTemplateStore([_template("b")])
        store.set_default("b")
        with self.assertLogs("invoice_templates.rendering.resolver", level=logging.WARNING):
            template, source_kind = self._resolver(store).resolve("missing")
        self.assertEqual((template.id, source_kind), ("b", "default"))
        self.assertTrue(template.is_default)

    def test_invalid_explicit_and_default_fall_back_to_builtin(self):
        store = InMemoryTemplateStore(
            [_template("a", position_clash=True), _template("b", position_clash=True)]
        )
        store.set_default("b")
        with self.assertLogs("invoice_templates.rendering.resolver", level=logging.WARNING) as logs:
            _, source_kind = self._resolver(store).resolve("a")
        self.assertEqual(source_kind, "builtin")
        self.assertEqual(len([r for r in logs.records if r.levelno == logging.WARNING]), 2)

    def test_unparsable_template_falls_through(self):
        store = _BrokenStore()
        _, source_kind = self._resolver(store).resolve("a")
        self.assertEqual(source_kind, "builtin")

    def test_store_unavailable_propagates(self):
        with self.assertRaises(StoreUnavailableError):
            self._resolver(_OfflineStore()).resolve(None)

    def test_builtin_copies_are_independent(self):
        first = builtin_template()
        first.name = "Changed"
        self.assertEqual(builtin_template().name, "Standard-Rechnung")


__all__ = ["TemplateResolverTests"]
