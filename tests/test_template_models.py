import pytest
from pydantic import ValidationError

from invoice_templates.backends.templates_models import (
    FooterSection,
    ProductTableSection,
    Template,
    UnsupportedSection,
    is_valid_template_id,
    section_from_payload,
)


def _document(**kwargs) -> dict:
    base = {
        "id": "standard",
        "name": "Standard",
        "companyInfo": {"name": "Glücksmomente Manufaktur"},
        "sections": {
            "footer": {"position": 3, "content": {"text": "Danke"}},
            "productTable": {
                "position": 2,
                "columns": {"name": {"widthPercent": 40, "label": "Artikel"}},
            },
        },
    }
    base.update(kwargs)
    return base


def test_mapping_sections_become_tagged_variants():
    template = Template.model_validate(_document())
    assert isinstance(template.section("footer"), FooterSection)
    table = template.section("productTable")
    assert isinstance(table, ProductTableSection)
    assert table.is_table
    assert table.columns["name"].width_percent == 40


def test_company_defaults_follow_original_configuration():
    template = Template.model_validate(_document())
    company = template.company_info
    assert company.payment_terms_days == 14
    assert company.address.country == "Deutschland"
    assert not company.small_business
    assert template.layout.colors.primary == "#8b4a8b"
    assert template.layout.page_format == "A4"


def test_sections_accept_list_shape():
    template = Template.model_validate(
        _document(sections=[{"type": "header", "position": 1}, {"type": "totals", "position": 2}])
    )
    assert [s.type for s in template.sections] == ["header", "totals"]


def test_duplicate_section_type_is_rejected():
    with pytest.raises(ValidationError):
        Template.model_validate(
            _document(sections=[{"type": "header"}, {"type": "header", "position": 2}])
        )


def test_columns_only_allowed_on_table_sections():
    with pytest.raises(ValidationError):
        section_from_payload({"columns": {"a": {"widthPercent": 10}}}, "footer")


def test_unknown_section_type_is_kept():
    section = section_from_payload({"position": 9, "qr": "data"}, "qrCode")
    assert isinstance(section, UnsupportedSection)
    assert section.type == "qrCode"


def test_invalid_color_and_id_are_rejected():
    with pytest.raises(ValidationError):
        Template.model_validate(_document(layout={"colors": {"primary": "purple"}}))
    with pytest.raises(ValidationError):
        Template.model_validate(_document(id="../etc"))
    with pytest.raises(ValidationError):
        Template.model_validate(_document(id=".."))


def test_to_document_uses_persisted_shape():
    template = Template.model_validate(_document(isDefault=True))
    document = template.to_document()
    assert "isDefault" not in document
    assert document["companyInfo"]["name"] == "Glücksmomente Manufaktur"
    assert set(document["sections"]) == {"footer", "productTable"}
    assert "type" not in document["sections"]["footer"]
    assert document["sections"]["productTable"]["columns"]["name"]["widthPercent"] == 40


def test_from_document_derives_default_flag():
    payload = _document(isDefault=True)
    assert not Template.from_document(payload).is_default
    assert Template.from_document(payload, is_default=True).is_default


def test_summary():
    summary = Template.model_validate(_document()).summary()
    assert summary == {
        "id": "standard",
        "name": "Standard",
        "is_default": False,
        "company": "Glücksmomente Manufaktur",
        "sections": 2,
        "enabled_sections": 2,
    }


def test_template_id_check_refuses_path_like_ids():
    assert is_valid_template_id("standard-2025.v1")
    for bad in ("", ".", "..", "../outside", "a/b", "a\\b", "name\n"):
        assert not is_valid_template_id(bad)
