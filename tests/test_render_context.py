from datetime import date

import pytest
from pydantic import ValidationError

from invoice_templates.backends.context_models import (
    Customer,
    InvoiceMeta,
    LineItem,
    Order,
    build_render_context,
    format_currency,
    format_date,
    sample_company,
    sample_render_context,
)
from invoice_templates.backends.templates_models import CompanyInfo


def _order(**kwargs) -> Order:
    base = dict(
        number="ORD-7",
        order_date=date(2025, 1, 10),
        items=[
            LineItem(name="Seife", quantity=2, unit_price=8.99),
            LineItem(name="Kerze", quantity=1, unit_price=12.99),
        ],
        shipping=4.99,
    )
    base.update(kwargs)
    return Order(**base)


def _invoice(**kwargs) -> InvoiceMeta:
    base = dict(number="RE-7", invoice_date=date(2025, 1, 15))
    base.update(kwargs)
    return InvoiceMeta(**base)


def test_sample_context_matches_preview_totals():
    ctx = sample_render_context(today=date(2025, 1, 15))
    assert ctx.lookup("invoice.number") == "RE-2025-001"
    assert ctx.lookup("order.subtotal") == "30,97 EUR"
    assert ctx.lookup("order.tax") == "5,88 EUR"
    assert ctx.lookup("order.shipping") == "4,99 EUR"
    assert ctx.lookup("order.total") == "41,84 EUR"
    assert ctx.lookup("totals.vatRate") == "19%"
    assert ctx.lookup("order.products.0.name") == "Lavendel Handseife"
    assert ctx.lookup("order.products.0.total") == "17,98 EUR"


def test_vat_applies_to_items_but_not_shipping():
    ctx = build_render_context(sample_company(), Customer(name="Maria"), _order(), _invoice())
    assert ctx.totals["net"] == "30,97 EUR"
    assert ctx.totals["vat"] == "5,88 EUR"
    assert ctx.totals["grand"] == "41,84 EUR"
    assert ctx.legal == {"vatExemptionNote": "", "notices": []}


def test_small_business_charges_no_vat_and_adds_note():
    company = CompanyInfo(name="Kleinunternehmen", small_business=True)
    ctx = build_render_context(
        company, Customer(name="Maria"), _order(), _invoice(legal_notice="Leistungsdatum = Rechnungsdatum")
    )
    assert ctx.totals["vat"] == "0,00 EUR"
    assert ctx.totals["grand"] == "35,96 EUR"
    note = "Gemäß § 19 UStG wird keine Umsatzsteuer berechnet."
    assert ctx.legal["vatExemptionNote"] == note
    assert ctx.legal["notices"] == [{"text": note}, {"text": "Leistungsdatum = Rechnungsdatum"}]


def test_english_formatting_and_due_date_from_payment_terms():
    company = CompanyInfo(name="ACME", payment_terms_days=30)
    ctx = build_render_context(
        company, Customer(name="Bob"), _order(), _invoice(language="en", date_style="locale")
    )
    assert ctx.invoice["date"] == "January 15, 2025"
    assert ctx.invoice["dueDate"] == "February 14, 2025"
    assert ctx.invoice["paymentTerms"] == "Payable within 30 days without deduction."
    assert ctx.order["total"] == "41.84 EUR"


def test_product_items_are_numbered_and_formatted():
    ctx = build_render_context(sample_company(), Customer(name="Maria"), _order(), _invoice())
    first = ctx.order["products"][0]
    assert first == {
        "position": 1,
        "name": "Seife",
        "description": "",
        "quantity": "2",
        "unit": "Stk.",
        "unitPrice": "8,99 EUR",
        "total": "17,98 EUR",
    }


def test_company_and_customer_use_camel_case_paths():
    customer = Customer(name="Maria", customer_number="K-1")
    ctx = build_render_context(sample_company(), customer, _order(), _invoice())
    assert ctx.lookup("company.taxInfo.vatId") == "DE123456789"
    assert ctx.lookup("customer.customerNumber") == "K-1"


def test_input_validation():
    with pytest.raises(ValidationError):
        _order(items=[])
    with pytest.raises(ValidationError):
        LineItem(name="Seife", quantity=0, unit_price=1)
    with pytest.raises(ValidationError):
        _invoice(due_date=date(2025, 1, 1))
    with pytest.raises(ValidationError):
        _invoice(date_style="fancy")


def test_formatters():
    assert format_currency(12.5, "EUR", "de") == "12,50 EUR"
    assert format_currency(12.5, "EUR", "en") == "12.50 EUR"
    assert format_date(date(2025, 3, 4), "de", None) == "04.03.2025"
    assert format_date(date(2025, 3, 4), "en", None) == "2025-03-04"
