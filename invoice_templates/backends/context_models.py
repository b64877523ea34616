"""Typed invoice data and the render context built from it."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    confloat,
    conlist,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..rendering.models import RenderContext
from .templates_models import Address, CompanyInfo, Contact, TaxInfo

Language = Literal["de", "en"]

_DATE_STYLE_DEFAULTS: dict[str, str] = {"de": "locale", "en": "iso"}
_DATE_STYLES = {"iso", "locale"}

_SMALL_BUSINESS_NOTE_DEFAULTS: dict[str, str] = {
    "de": "Gemäß § 19 UStG wird keine Umsatzsteuer berechnet.",
    "en": "According to section 19 UStG (German VAT law), no VAT is charged.",
}

_PAYMENT_TERMS_DEFAULTS: dict[str, str] = {
    "de": "Zahlbar innerhalb von {days} Tagen ohne Abzug.",
    "en": "Payable within {days} days without deduction.",
}


class _ContextModel(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Customer(_ContextModel):
    name: str = Field(min_length=1, max_length=256)
    business_name: str | None = Field(default=None, max_length=256)
    email: str | None = Field(default=None, max_length=256)
    phone: str | None = Field(default=None, max_length=64)
    customer_number: str | None = Field(default=None, max_length=64)
    address: Address = Field(default_factory=Address)


class LineItem(_ContextModel):
    name: str = Field(min_length=1, max_length=256)
    description: str | None = Field(default=None, max_length=512)
    quantity: confloat(gt=0) = 1.0
    unit: str = Field(default="Stk.", max_length=32)
    unit_price: float  # may be negative for goodwill/discounts

    @property
    def total(self) -> float:
        return round(float(self.quantity) * float(self.unit_price), 2)


class Order(_ContextModel):
    number: str = Field(min_length=1, max_length=64)
    order_date: date
    items: conlist(LineItem, min_length=1)
    shipping: confloat(ge=0) = 0.0
    vat_rate: confloat(ge=0, le=1) = 0.19  # ignored for small businesses

    def subtotal(self) -> float:
        return round(sum(item.total for item in self.items), 2)

    @model_validator(mode="after")
    def _ensure_non_negative_subtotal(self) -> "Order":
        if self.subtotal() < 0:
            raise ValueError("Subtotal cannot be negative for orders")
        return self


class InvoiceMeta(_ContextModel):
    number: str = Field(min_length=1, max_length=64)
    invoice_date: date
    due_date: date | None = None
    payment_terms: str | None = Field(default=None, max_length=500)
    legal_notice: str | None = Field(default=None, max_length=2000)
    language: Language = "de"
    date_style: Literal["iso", "locale"] | None = None
    currency: str = Field(default="EUR", max_length=8)

    @field_validator("date_style", mode="before")
    def _normalize_date_style(cls, value: str | None):
        if value is None:
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized not in _DATE_STYLES:
                raise ValueError("date_style must be 'iso' or 'locale'")
            return normalized
        return value

    @model_validator(mode="after")
    def _due_date_not_before_invoice_date(self) -> "InvoiceMeta":
        if self.due_date is not None and self.due_date < self.invoice_date:
            raise ValueError("due_date cannot be before invoice_date")
        return self


def format_date(value: date, language: str, date_style: str | None) -> str:
    style = date_style or _DATE_STYLE_DEFAULTS.get(language, "iso")
    if style not in _DATE_STYLES:
        raise ValueError("date_style must be 'iso' or 'locale'")

    if style == "iso":
        return value.isoformat()

    if language == "en":
        return value.strftime("%B %d, %Y")
    return value.strftime("%d.%m.%Y")


def format_currency(value: float, currency: str, language: str | None = None) -> str:
    decimal_sep = "." if language == "en" else ","
    formatted = f"{value:.2f}"
    if decimal_sep != ".":
        formatted = formatted.replace(".", decimal_sep)
    return f"{formatted} {currency}"


def _format_rate(rate: float, language: str) -> str:
    formatted = f"{rate * 100:g}"
    if language != "en":
        formatted = formatted.replace(".", ",")
    return f"{formatted}%"


def _format_quantity(item: LineItem) -> str:
    return f"{item.quantity:g}"


def build_render_context(
    company: CompanyInfo,
    customer: Customer,
    order: Order,
    invoice: InvoiceMeta,
) -> RenderContext:
    """Compute totals and format every value the template variables expose.

    VAT applies to the item net only; shipping is added untaxed. Small
    businesses (§19 UStG) charge no VAT and get the exemption note.
    """

    language = invoice.language
    currency = invoice.currency

    def money(value: float) -> str:
        return format_currency(value, currency, language)

    def when(value: date) -> str:
        return format_date(value, language, invoice.date_style)

    net = order.subtotal()
    vat_rate = 0.0 if company.small_business else float(order.vat_rate)
    vat = round(net * vat_rate, 2)
    shipping = round(float(order.shipping), 2)
    grand = round(net + vat + shipping, 2)

    due_date = invoice.due_date or invoice.invoice_date + timedelta(days=company.payment_terms_days)
    payment_terms = invoice.payment_terms or _PAYMENT_TERMS_DEFAULTS[language].format(
        days=company.payment_terms_days
    )

    exemption_note = (
        _SMALL_BUSINESS_NOTE_DEFAULTS.get(language, _SMALL_BUSINESS_NOTE_DEFAULTS["de"])
        if company.small_business
        else ""
    )
    notices = [{"text": text} for text in (exemption_note, invoice.legal_notice) if text]

    products = [
        {
            "position": position,
            "name": item.name,
            "description": item.description or "",
            "quantity": _format_quantity(item),
            "unit": item.unit,
            "unitPrice": money(item.unit_price),
            "total": money(item.total),
        }
        for position, item in enumerate(order.items, start=1)
    ]

    return RenderContext(
        company=company.model_dump(mode="json", by_alias=True),
        customer=customer.model_dump(mode="json", by_alias=True),
        invoice={
            "number": invoice.number,
            "date": when(invoice.invoice_date),
            "dueDate": when(due_date),
            "paymentTerms": payment_terms,
            "legalNotice": invoice.legal_notice or "",
        },
        order={
            "number": order.number,
            "date": when(order.order_date),
            "products": products,
            "subtotal": money(net),
            "netTotal": money(net),
            "tax": money(vat),
            "vatTotal": money(vat),
            "shipping": money(shipping),
            "total": money(grand),
            "grandTotal": money(grand),
        },
        totals={
            "net": money(net),
            "vat": money(vat),
            "vatRate": _format_rate(vat_rate, language),
            "shipping": money(shipping),
            "grand": money(grand),
        },
        legal={"vatExemptionNote": exemption_note, "notices": notices},
    )


def sample_company() -> CompanyInfo:
    return CompanyInfo(
        name="Glücksmomente Manufaktur",
        address=Address(street="Musterstraße 123", postal_code="12345", city="Musterstadt"),
        contact=Contact(
            phone="+49 123 456789",
            email="info@gluecksmomente-manufaktur.de",
            website="www.gluecksmomente-manufaktur.de",
        ),
        tax_info=TaxInfo(tax_number="12/345/67890", vat_id="DE123456789"),
    )


def sample_inputs(
    today: date | None = None, language: Language = "de"
) -> tuple[Customer, Order, InvoiceMeta]:
    today = today or date.today()
    customer = Customer(
        name="Max Mustermann",
        email="max@example.com",
        address=Address(street="Beispielstraße 456", postal_code="98765", city="Beispielstadt"),
    )
    order = Order(
        number="ORD-2025-001",
        order_date=today,
        items=[
            LineItem(
                name="Lavendel Handseife",
                description="Natürliche Handseife mit Lavendelduft",
                quantity=2,
                unit_price=8.99,
            ),
            LineItem(
                name="Rosenseife Premium",
                description="Luxuriöse Seife mit Rosenöl",
                quantity=1,
                unit_price=12.99,
            ),
        ],
        shipping=4.99,
    )
    invoice = InvoiceMeta(number="RE-2025-001", invoice_date=today, language=language)
    return customer, order, invoice


def sample_render_context(
    company: CompanyInfo | None = None,
    *,
    today: date | None = None,
    language: Language = "de",
) -> RenderContext:
    """Render context for template previews (net 30.97, VAT 5.88, shipping 4.99)."""

    customer, order, invoice = sample_inputs(today, language)
    return build_render_context(company or sample_company(), customer, order, invoice)


def render_request_example() -> dict[str, Any]:
    customer, order, invoice = sample_inputs(date(2025, 1, 15))
    return {
        "template_id": None,
        "company": sample_company().model_dump(mode="json", by_alias=True),
        "customer": customer.model_dump(mode="json", by_alias=True),
        "order": order.model_dump(mode="json", by_alias=True),
        "invoice": invoice.model_dump(mode="json", by_alias=True, exclude_none=True),
    }


__all__ = [
    "Customer",
    "InvoiceMeta",
    "LineItem",
    "Order",
    "build_render_context",
    "format_currency",
    "format_date",
    "render_request_example",
    "sample_company",
    "sample_inputs",
    "sample_render_context",
]
