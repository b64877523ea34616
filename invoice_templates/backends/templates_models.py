"""Pydantic models for invoice templates."""
from __future__ import annotations

import re
from typing import Any, ClassVar, Literal, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializeAsAny,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

SECTION_TYPES: tuple[str, ...] = (
    "header",
    "legalInfo",
    "customerInfo",
    "invoiceInfo",
    "productTable",
    "totals",
    "paymentInfo",
    "footer",
)
TABLE_SECTION_TYPES = frozenset({"productTable"})

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
TEMPLATE_ID_PATTERN = r"^[A-Za-z0-9_.-]+$"
_TEMPLATE_ID = re.compile(TEMPLATE_ID_PATTERN)


def is_valid_template_id(template_id: str) -> bool:
    """Ids double as file names, so path separators and dot-only names are refused."""

    return bool(_TEMPLATE_ID.fullmatch(template_id)) and template_id.strip(".") != ""


class _TemplateModel(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Address(_TemplateModel):
    street: str | None = Field(default=None, max_length=256)
    postal_code: str | None = Field(default=None, max_length=32)
    city: str | None = Field(default=None, max_length=128)
    country: str | None = Field(default="Deutschland", max_length=128)


class Contact(_TemplateModel):
    phone: str | None = Field(default=None, max_length=64)
    email: str | None = Field(default=None, max_length=256)
    website: str | None = Field(default=None, max_length=256)


class TaxInfo(_TemplateModel):
    tax_number: str | None = Field(default=None, max_length=64)
    vat_id: str | None = Field(default=None, max_length=64)
    ceo: str | None = Field(default=None, max_length=256)
    legal_form: str | None = Field(default=None, max_length=128)
    tax_office: str | None = Field(default=None, max_length=256)
    registration_court: str | None = Field(default=None, max_length=256)


class BankDetails(_TemplateModel):
    bank_name: str | None = Field(default=None, max_length=256)
    iban: str | None = Field(default=None, max_length=64)
    bic: str | None = Field(default=None, max_length=32)


class Logo(_TemplateModel):
    enabled: bool = False
    url: str | None = Field(default=None, max_length=2048)
    width: int = Field(default=120, gt=0)
    height: int = Field(default=60, gt=0)


class CompanyInfo(_TemplateModel):
    name: str = Field(min_length=1, max_length=256)
    address: Address = Field(default_factory=Address)
    contact: Contact = Field(default_factory=Contact)
    tax_info: TaxInfo = Field(default_factory=TaxInfo)
    bank_details: BankDetails = Field(default_factory=BankDetails)
    logo: Logo = Field(default_factory=Logo)
    small_business: bool = False  # §19 UStG
    payment_terms_days: int = Field(default=14, ge=0)


class Margins(_TemplateModel):
    """Page margins in millimetres."""

    top: float = Field(default=20, ge=0)
    right: float = Field(default=15, ge=0)
    bottom: float = Field(default=20, ge=0)
    left: float = Field(default=15, ge=0)


class Fonts(_TemplateModel):
    family: str = "Arial, sans-serif"
    heading: int = Field(default=24, gt=0)
    subheading: int = Field(default=18, gt=0)
    body: int = Field(default=12, gt=0)
    small: int = Field(default=10, gt=0)


class Colors(_TemplateModel):
    primary: str = "#8b4a8b"
    secondary: str = "#f5f5f5"
    text: str = "#333333"
    accent: str = "#4caf50"

    @field_validator("primary", "secondary", "text", "accent")
    def _hex_color(cls, value: str) -> str:
        if not _HEX_COLOR.match(value):
            raise ValueError(f"'{value}' is not a hex color like #aabbcc")
        return value.lower()


class Layout(_TemplateModel):
    page_format: Literal["A4", "A5", "Letter"] = "A4"
    margins: Margins = Field(default_factory=Margins)
    fonts: Fonts = Field(default_factory=Fonts)
    colors: Colors = Field(default_factory=Colors)


class Column(_TemplateModel):
    enabled: bool = True
    width_percent: float = Field(default=0, ge=0, le=100)
    label: str | None = Field(default=None, max_length=128)


class Section(_TemplateModel):
    """Common shape of every template section.

    Concrete section kinds subclass this with a fixed ``type`` tag; use
    :func:`section_from_payload` to build the right variant from stored data.
    """

    type: str
    enabled: bool = True
    position: int = 0
    content: dict[str, str] = Field(default_factory=dict)

    is_table: ClassVar[bool] = False


class HeaderSection(Section):
    type: Literal["header"] = "header"


class LegalInfoSection(Section):
    type: Literal["legalInfo"] = "legalInfo"


class CustomerInfoSection(Section):
    type: Literal["customerInfo"] = "customerInfo"


class InvoiceInfoSection(Section):
    type: Literal["invoiceInfo"] = "invoiceInfo"


class ProductTableSection(Section):
    type: Literal["productTable"] = "productTable"
    columns: dict[str, Column] = Field(default_factory=dict)

    is_table: ClassVar[bool] = True


class TotalsSection(Section):
    type: Literal["totals"] = "totals"


class PaymentInfoSection(Section):
    type: Literal["paymentInfo"] = "paymentInfo"


class FooterSection(Section):
    type: Literal["footer"] = "footer"


class UnsupportedSection(Section):
    """Section of a kind this version does not know; kept verbatim."""

    model_config = ConfigDict(extra="allow")


SECTION_CLASSES: dict[str, type[Section]] = {
    "header": HeaderSection,
    "legalInfo": LegalInfoSection,
    "customerInfo": CustomerInfoSection,
    "invoiceInfo": InvoiceInfoSection,
    "productTable": ProductTableSection,
    "totals": TotalsSection,
    "paymentInfo": PaymentInfoSection,
    "footer": FooterSection,
}


def section_from_payload(payload: Mapping[str, Any], section_type: str | None = None) -> Section:
    """Build the tagged section variant for ``payload``.

    ``section_type`` wins over a ``type`` key inside the payload; it is how the
    persisted mapping shape (``{"footer": {...}}``) names its sections.
    """

    data = dict(payload)
    kind = section_type or data.get("type")
    if not kind:
        raise ValueError("section type is required")
    data["type"] = kind
    section_cls = SECTION_CLASSES.get(kind, UnsupportedSection)
    return section_cls.model_validate(data)


class Template(_TemplateModel):
    id: str = Field(min_length=1, max_length=128, pattern=TEMPLATE_ID_PATTERN)
    name: str = Field(min_length=1, max_length=256)
    is_default: bool = False
    company_info: CompanyInfo
    layout: Layout = Field(default_factory=Layout)
    sections: list[SerializeAsAny[Section]] = Field(default_factory=list)

    @field_validator("sections", mode="before")
    def _coerce_sections(cls, value: Any):
        if value is None:
            return []
        if isinstance(value, Mapping):
            return [
                section_from_payload(payload, section_type)
                for section_type, payload in value.items()
            ]
        coerced = []
        for entry in value:
            if isinstance(entry, Section):
                coerced.append(entry)
            else:
                coerced.append(section_from_payload(entry))
        return coerced

    @field_validator("id")
    def _usable_as_file_name(cls, value: str) -> str:
        if not is_valid_template_id(value):
            raise ValueError(f"template id '{value}' cannot be used as a file name")
        return value

    @model_validator(mode="after")
    def _one_section_per_type(self) -> "Template":
        seen: set[str] = set()
        for section in self.sections:
            if section.type in seen:
                raise ValueError(f"duplicate section type '{section.type}'")
            seen.add(section.type)
        return self

    def section(self, section_type: str) -> Section | None:
        for section in self.sections:
            if section.type == section_type:
                return section
        return None

    def enabled_sections(self) -> list[Section]:
        return [section for section in self.sections if section.enabled]

    def to_document(self) -> dict[str, Any]:
        """Return the persisted shape: sections keyed by type, no default flag."""

        payload = self.model_dump(
            mode="json", by_alias=True, exclude={"is_default", "sections"}
        )
        payload["sections"] = {
            section.type: section.model_dump(mode="json", by_alias=True, exclude={"type"})
            for section in self.sections
        }
        return payload

    @classmethod
    def from_document(cls, payload: Mapping[str, Any], *, is_default: bool = False) -> "Template":
        data = dict(payload)
        data.pop("isDefault", None)
        data.pop("is_default", None)
        data["isDefault"] = is_default
        return cls.model_validate(data)

    def summary(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "is_default": self.is_default,
            "company": self.company_info.name,
            "sections": len(self.sections),
            "enabled_sections": len(self.enabled_sections()),
        }


__all__ = [
    "Address",
    "BankDetails",
    "Colors",
    "Column",
    "CompanyInfo",
    "Contact",
    "CustomerInfoSection",
    "Fonts",
    "FooterSection",
    "HeaderSection",
    "InvoiceInfoSection",
    "Layout",
    "LegalInfoSection",
    "Logo",
    "Margins",
    "PaymentInfoSection",
    "ProductTableSection",
    "SECTION_CLASSES",
    "SECTION_TYPES",
    "Section",
    "TABLE_SECTION_TYPES",
    "TEMPLATE_ID_PATTERN",
    "TaxInfo",
    "Template",
    "TotalsSection",
    "UnsupportedSection",
    "is_valid_template_id",
    "section_from_payload",
]
