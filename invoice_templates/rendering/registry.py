"""Catalog of the variables template content may reference.

The registry is documentation for editors and the validator; rendering never
consults it. Loop item fields (``{{name}}`` inside
``{{loop:order.products}}``) are registered with ``item_of`` pointing at the
list they belong to.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    COMPANY = "company"
    CUSTOMER = "customer"
    INVOICE = "invoice"
    ORDER = "order"
    PRODUCT = "product"
    TOTALS = "totals"
    LEGAL = "legal"


CATEGORY_DISPLAY = {
    Category.COMPANY: {"label": "Firma", "icon": "🏢"},
    Category.CUSTOMER: {"label": "Kunde", "icon": "👤"},
    Category.INVOICE: {"label": "Rechnung", "icon": "📄"},
    Category.ORDER: {"label": "Bestellung", "icon": "🛒"},
    Category.PRODUCT: {"label": "Artikel", "icon": "📦"},
    Category.TOTALS: {"label": "Summen", "icon": "💰"},
    Category.LEGAL: {"label": "Rechtliches", "icon": "⚖️"},
}


@dataclass(frozen=True)
class VariableDescriptor:
    category: Category
    path: str
    label: str
    iterable: bool = False
    item_of: str | None = None

    @property
    def token(self) -> str:
        if self.iterable:
            return "{{loop:%s}}...{{/loop}}" % self.path
        return "{{%s}}" % self.path


_DEFAULT_VARIABLES: tuple[VariableDescriptor, ...] = (
    VariableDescriptor(Category.COMPANY, "company.name", "Firmenname"),
    VariableDescriptor(Category.COMPANY, "company.address.street", "Straße"),
    VariableDescriptor(Category.COMPANY, "company.address.postalCode", "PLZ"),
    VariableDescriptor(Category.COMPANY, "company.address.city", "Stadt"),
    VariableDescriptor(Category.COMPANY, "company.address.country", "Land"),
    VariableDescriptor(Category.COMPANY, "company.contact.phone", "Telefon"),
    VariableDescriptor(Category.COMPANY, "company.contact.email", "E-Mail"),
    VariableDescriptor(Category.COMPANY, "company.contact.website", "Website"),
    VariableDescriptor(Category.COMPANY, "company.taxInfo.taxNumber", "Steuernummer"),
    VariableDescriptor(Category.COMPANY, "company.taxInfo.vatId", "USt-IdNr."),
    VariableDescriptor(Category.COMPANY, "company.taxInfo.ceo", "Inhaber / Geschäftsführer"),
    VariableDescriptor(Category.COMPANY, "company.taxInfo.legalForm", "Rechtsform"),
    VariableDescriptor(Category.COMPANY, "company.taxInfo.taxOffice", "Finanzamt"),
    VariableDescriptor(Category.COMPANY, "company.taxInfo.registrationCourt", "Registergericht"),
    VariableDescriptor(Category.COMPANY, "company.bankDetails.bankName", "Bank"),
    VariableDescriptor(Category.COMPANY, "company.bankDetails.iban", "IBAN"),
    VariableDescriptor(Category.COMPANY, "company.bankDetails.bic", "BIC"),
    VariableDescriptor(Category.COMPANY, "company.logo.url", "Logo-URL"),
    VariableDescriptor(Category.CUSTOMER, "customer.name", "Kundenname"),
    VariableDescriptor(Category.CUSTOMER, "customer.businessName", "Firma des Kunden"),
    VariableDescriptor(Category.CUSTOMER, "customer.email", "Kunden-E-Mail"),
    VariableDescriptor(Category.CUSTOMER, "customer.phone", "Kunden-Telefon"),
    VariableDescriptor(Category.CUSTOMER, "customer.customerNumber", "Kundennummer"),
    VariableDescriptor(Category.CUSTOMER, "customer.address.street", "Kundenstraße"),
    VariableDescriptor(Category.CUSTOMER, "customer.address.postalCode", "Kunden-PLZ"),
    VariableDescriptor(Category.CUSTOMER, "customer.address.city", "Kundenstadt"),
    VariableDescriptor(Category.CUSTOMER, "customer.address.country", "Kundenland"),
    VariableDescriptor(Category.INVOICE, "invoice.number", "Rechnungsnummer"),
    VariableDescriptor(Category.INVOICE, "invoice.date", "Rechnungsdatum"),
    VariableDescriptor(Category.INVOICE, "invoice.dueDate", "Fälligkeitsdatum"),
    VariableDescriptor(Category.INVOICE, "invoice.paymentTerms", "Zahlungsbedingungen"),
    VariableDescriptor(Category.INVOICE, "invoice.legalNotice", "Rechtlicher Hinweis"),
    VariableDescriptor(Category.ORDER, "order.number", "Bestellnummer"),
    VariableDescriptor(Category.ORDER, "order.date", "Bestelldatum"),
    VariableDescriptor(Category.ORDER, "order.products", "Produktliste", iterable=True),
    VariableDescriptor(Category.ORDER, "order.subtotal", "Zwischensumme"),
    VariableDescriptor(Category.ORDER, "order.netTotal", "Nettosumme"),
    VariableDescriptor(Category.ORDER, "order.tax", "Steuern"),
    VariableDescriptor(Category.ORDER, "order.vatTotal", "MwSt-Betrag"),
    VariableDescriptor(Category.ORDER, "order.shipping", "Versandkosten"),
    VariableDescriptor(Category.ORDER, "order.total", "Gesamtsumme"),
    VariableDescriptor(Category.ORDER, "order.grandTotal", "Gesamtbetrag"),
    VariableDescriptor(Category.PRODUCT, "position", "Position", item_of="order.products"),
    VariableDescriptor(Category.PRODUCT, "name", "Artikel", item_of="order.products"),
    VariableDescriptor(Category.PRODUCT, "description", "Beschreibung", item_of="order.products"),
    VariableDescriptor(Category.PRODUCT, "quantity", "Menge", item_of="order.products"),
    VariableDescriptor(Category.PRODUCT, "unit", "Einheit", item_of="order.products"),
    VariableDescriptor(Category.PRODUCT, "unitPrice", "Einzelpreis", item_of="order.products"),
    VariableDescriptor(Category.PRODUCT, "total", "Gesamtpreis", item_of="order.products"),
    VariableDescriptor(Category.TOTALS, "totals.net", "Netto"),
    VariableDescriptor(Category.TOTALS, "totals.vat", "MwSt."),
    VariableDescriptor(Category.TOTALS, "totals.vatRate", "MwSt-Satz"),
    VariableDescriptor(Category.TOTALS, "totals.shipping", "Versand"),
    VariableDescriptor(Category.TOTALS, "totals.grand", "Gesamt"),
    VariableDescriptor(Category.LEGAL, "legal.vatExemptionNote", "MwSt-Befreiungshinweis"),
    VariableDescriptor(Category.LEGAL, "legal.notices", "Rechtliche Hinweise", iterable=True),
    VariableDescriptor(Category.LEGAL, "text", "Hinweistext", item_of="legal.notices"),
)


class VariableRegistry:
    """Singleton registry of all template variables."""

    _instance: "VariableRegistry | None" = None
    _variables: dict[str, VariableDescriptor]
    _item_fields: dict[str, dict[str, VariableDescriptor]]

    def __new__(cls) -> "VariableRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._variables = {}
            cls._instance._item_fields = {}
            for descriptor in _DEFAULT_VARIABLES:
                cls._instance.register(descriptor)
        return cls._instance

    def register(self, descriptor: VariableDescriptor) -> None:
        if descriptor.item_of:
            self._item_fields.setdefault(descriptor.item_of, {})[descriptor.path] = descriptor
        else:
            self._variables[descriptor.path] = descriptor

    def get(self, path: str) -> VariableDescriptor | None:
        return self._variables.get(path)

    def is_known(self, path: str) -> bool:
        return path in self._variables

    def item_fields(self, list_path: str) -> list[VariableDescriptor]:
        return list(self._item_fields.get(list_path, {}).values())

    def all_variables(self) -> list[VariableDescriptor]:
        return list(self._variables.values())

    def by_category(self, category: Category) -> list[VariableDescriptor]:
        return [v for v in self._variables.values() if v.category == category]

    def count(self) -> int:
        return len(self._variables)

    def to_api_format(self) -> dict:
        """Group variables by category for editors and the variables tool."""

        categories = []
        for category in Category:
            display = CATEGORY_DISPLAY[category]
            entries = [
                {"path": v.path, "label": v.label, "token": v.token, "iterable": v.iterable}
                for v in self.by_category(category)
            ]
            if category is Category.PRODUCT:
                entries = [
                    {"path": v.path, "label": v.label, "token": "{{%s}}" % v.path, "item_of": v.item_of}
                    for v in self.item_fields("order.products")
                ]
            if not entries:
                continue
            categories.append(
                {
                    "name": category.value,
                    "label": display["label"],
                    "icon": display["icon"],
                    "variables": entries,
                }
            )
        return {"total_variables": self.count(), "categories": categories}


def get_registry() -> VariableRegistry:
    """Get the singleton variable registry."""
    return VariableRegistry()


__all__ = [
    "CATEGORY_DISPLAY",
    "Category",
    "VariableDescriptor",
    "VariableRegistry",
    "get_registry",
]
