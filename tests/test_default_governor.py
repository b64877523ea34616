import threading
import unittest

from invoice_templates.backends.templates_models import Template
from invoice_templates.rendering import (
    ConfigurationError,
    DefaultTemplateGovernor,
    InMemoryTemplateStore,
    NoLegalPolicy,
    TemplateNotFoundError,
    TemplateValidator,
)


def _template(template_id: str, *, valid: bool = True, is_default: bool = False) -> Template:
    return Template.model_validate(
        {
            "id": template_id,
            "name": template_id,
            "isDefault": is_default,
            "companyInfo": {"name": "Glücksmomente Manufaktur"},
            "sections": {
                "header": {"position": 1},
                "footer": {"position": 2 if valid else 1},
            },
        }
    )


class DefaultTemplateGovernorTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryTemplateStore([_template("a"), _template("b"), _template("c")])
        self.governor = DefaultTemplateGovernor(
            self.store, TemplateValidator(policy=NoLegalPolicy())
        )

    def _defaults(self) -> list[str]:
        return [t.id for t in self.store.list_templates() if t.is_default]

    def test_set_default_twice_leaves_only_last(self):
        self.governor.set_default("a")
        self.governor.set_default("b")
        self.assertEqual(self._defaults(), ["b"])
        self.assertEqual(self.store.get_default().id, "b")
        self.assertFalse(self.store.get("a").is_default)

    def test_unknown_template_is_refused(self):
        self.governor.set_default("a")
        with self.assertRaises(TemplateNotFoundError):
            self.governor.set_default("missing")
        self.assertEqual(self._defaults(), ["a"])

    def test_invalid_template_is_refused(self):
        self.store.upsert(_template("broken", valid=False))
        with self.assertRaises(ConfigurationError) as ctx:
            self.governor.set_default("broken")
        self.assertTrue(ctx.exception.issues)
        self.assertIsNone(self.store.default_id())

    def test_save_with_default_flag_moves_pointer(self):
        self.governor.set_default("a")
        stored = self.governor.save(_template("d", is_default=True))
        self.assertTrue(stored.is_default)
        self.assertEqual(self._defaults(), ["d"])

    def test_save_refuses_invalid_default_without_writing(self):
        self.governor.set_default("a")
        with self.assertRaises(ConfigurationError) as ctx:
            self.governor.save(_template("bad", valid=False, is_default=True))
        self.assertTrue(ctx.exception.issues)
        self.assertIsNone(self.store.get("bad"))
        self.assertEqual(self._defaults(), ["a"])

    def test_save_without_flag_keeps_current_default(self):
        self.governor.set_default("a")
        stored = self.governor.save(_template("a"))
        self.assertTrue(stored.is_default)
        self.assertEqual(self._defaults(), ["a"])

    def test_concurrent_set_default_keeps_single_default(self):
        threads = [
            threading.Thread(target=self.governor.set_default, args=(template_id,))
            for template_id in ["a", "b", "c"] * 5
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(self._defaults()), 1)

    def test_deleting_default_leaves_zero_defaults(self):
        self.governor.set_default("a")
        self.assertTrue(self.store.delete("a"))
        self.assertIsNone(self.store.get_default())
        self.assertEqual(self._defaults(), [])


__all__ = ["DefaultTemplateGovernorTests"]
