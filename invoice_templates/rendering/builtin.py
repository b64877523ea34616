"""Hard-coded fallback template used when no stored template is usable."""
from __future__ import annotations

from types import MappingProxyType
from typing import Any

from ..backends.templates_models import Template

BUILTIN_TEMPLATE_ID = "builtin"

_PRODUCT_ROWS = (
    "{{loop:order.products}}"
    "{{@index}} | {{name}} | {{quantity}} {{unit}} | {{unitPrice}} | {{total}}\n"
    "{{/loop}}"
)

_BUILTIN_DOCUMENT: dict[str, Any] = {
    "id": BUILTIN_TEMPLATE_ID,
    "name": "Standard-Rechnung",
    "companyInfo": {"name": "Ihr Unternehmen"},
    "layout": {
        "pageFormat": "A4",
        "margins": {"top": 20, "right": 15, "bottom": 20, "left": 15},
        "fonts": {"family": "Arial, sans-serif", "heading": 24, "subheading": 18, "body": 12, "small": 10},
        "colors": {"primary": "#8b4a8b", "secondary": "#f5f5f5", "text": "#333333", "accent": "#4caf50"},
    },
    "sections": {
        "header": {
            "enabled": True,
            "position": 1,
            "content": {
                "title": "Rechnung",
                "companyName": "{{company.name}}",
                "companyAddress": (
                    "{{company.address.street}}\n"
                    "{{company.address.postalCode}} {{company.address.city}}"
                ),
            },
        },
        "customerInfo": {
            "enabled": True,
            "position": 2,
            "content": {
                "title": "Rechnungsempfänger",
                "name": "{{customer.name}}",
                "address": (
                    "{{customer.address.street}}\n"
                    "{{customer.address.postalCode}} {{customer.address.city}}"
                ),
            },
        },
        "invoiceInfo": {
            "enabled": True,
            "position": 3,
            "content": {
                "invoiceNumber": "Rechnungsnummer: {{invoice.number}}",
                "invoiceDate": "Rechnungsdatum: {{invoice.date}}",
                "orderNumber": "Bestellnummer: {{order.number}}",
            },
        },
        "productTable": {
            "enabled": True,
            "position": 4,
            "content": {"rows": _PRODUCT_ROWS},
            "columns": {
                "position": {"enabled": True, "widthPercent": 8, "label": "Pos."},
                "name": {"enabled": True, "widthPercent": 40, "label": "Artikel"},
                "quantity": {"enabled": True, "widthPercent": 12, "label": "Menge"},
                "unitPrice": {"enabled": True, "widthPercent": 15, "label": "Einzelpreis"},
                "total": {"enabled": True, "widthPercent": 15, "label": "Gesamt"},
            },
        },
        "totals": {
            "enabled": True,
            "position": 5,
            "content": {
                "net": "Nettobetrag: {{totals.net}}",
                "vat": "MwSt. ({{totals.vatRate}}): {{totals.vat}}",
                "shipping": "Versand: {{totals.shipping}}",
                "grand": "Gesamtbetrag: {{totals.grand}}",
                "vatExemption": "{{legal.vatExemptionNote}}",
            },
        },
        "paymentInfo": {
            "enabled": True,
            "position": 6,
            "content": {
                "terms": "{{invoice.paymentTerms}}",
                "bank": "{{company.bankDetails.bankName}}",
                "iban": "IBAN: {{company.bankDetails.iban}}",
                "bic": "BIC: {{company.bankDetails.bic}}",
            },
        },
        "footer": {
            "enabled": True,
            "position": 7,
            "content": {
                "company": "{{company.name}} · {{company.address.city}}",
                "tax": "Steuernummer: {{company.taxInfo.taxNumber}} · USt-IdNr.: {{company.taxInfo.vatId}}",
                "notices": "{{loop:legal.notices}}{{text}}\n{{/loop}}",
            },
        },
    },
}

BUILTIN_TEMPLATE = MappingProxyType(_BUILTIN_DOCUMENT)


def builtin_template() -> Template:
    """Return a fresh copy of the builtin template.

    Each call validates the constant again, so callers can mutate the result
    without affecting later fallbacks.
    """

    return Template.from_document(_BUILTIN_DOCUMENT)


__all__ = ["BUILTIN_TEMPLATE", "BUILTIN_TEMPLATE_ID", "builtin_template"]
