#!/usr/bin/env python3
"""
Lightweight smoke test for invoice-templates-mcp.

Stores a template under a temp INVOICE_TEMPLATES_ROOT, makes it the default,
renders the sample order through the full resolve + assemble pipeline, and
prints the resulting sections.
"""
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoice_templates.backends.context_models import sample_render_context  # noqa: E402
from invoice_templates.backends.templates import get_governor, get_resolver  # noqa: E402
from invoice_templates.backends.templates_models import CompanyInfo, TaxInfo  # noqa: E402
from invoice_templates.backends.templates_storage import FileTemplateStore  # noqa: E402
from invoice_templates.rendering import builtin_template, generate_document  # noqa: E402


def main() -> None:
    # Isolate into a temp directory unless INVOICE_TEMPLATES_ROOT is already set
    if "INVOICE_TEMPLATES_ROOT" not in os.environ:
        os.environ["INVOICE_TEMPLATES_ROOT"] = tempfile.mkdtemp(prefix="invoice-templates-smoke-")
    store = FileTemplateStore()

    template = builtin_template().model_copy(
        update={
            "id": "smoke",
            "name": "Smoke Template",
            "company_info": CompanyInfo(
                name="Smoke Manufaktur",
                tax_info=TaxInfo(tax_number="12/345/67890", vat_id="DE123456789"),
            ),
        }
    )
    get_governor(store).save(template.model_copy(update={"is_default": True}))

    ctx = sample_render_context(template.company_info)
    document = generate_document(get_resolver(store), ctx)

    print(f"[smoke] INVOICE_TEMPLATES_ROOT={store.root}")
    print(f"[smoke] Template: {document.template_id} ({document.source_kind})")
    for section in document.sections:
        print(f"[smoke] {section.position}. {section.type}: {len(section.fields)} fields, {len(section.rows)} rows")
    for warning in document.warnings:
        print(f"[smoke] warning {warning.code}: {warning.message}")
    print("[smoke] Done.")


if __name__ == "__main__":
    main()
