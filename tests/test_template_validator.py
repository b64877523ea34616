import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoice_templates.backends.templates_models import Template
from invoice_templates.rendering.builtin import builtin_template
from invoice_templates.rendering.models import has_errors
from invoice_templates.rendering.validator import (
    GermanInvoicePolicy,
    NoLegalPolicy,
    TemplateValidator,
    get_legal_policy,
    validate_template,
)


def _template(sections: dict, **company) -> Template:
    return Template.model_validate(
        {
            "id": "t1",
            "name": "Test",
            "companyInfo": {
                "name": "Glücksmomente Manufaktur",
                "taxInfo": {"taxNumber": "12/345/67890"},
                **company,
            },
            "sections": sections,
        }
    )


def _rules(issues, severity=None):
    return [i.rule for i in issues if severity is None or i.severity == severity]


def test_builtin_template_has_no_errors():
    issues = validate_template(builtin_template())
    assert not has_errors(issues)


def test_duplicate_enabled_positions_are_an_error():
    template = _template(
        {
            "header": {"position": 1, "content": {"title": "Rechnung"}},
            "footer": {"position": 1, "content": {"tax": "{{company.taxInfo.taxNumber}}"}},
        }
    )
    issues = TemplateValidator().validate(template)
    assert "unique_positions" in _rules(issues, "error")


def test_duplicate_position_of_disabled_section_is_allowed():
    template = _template(
        {
            "header": {"position": 1, "content": {"title": "Rechnung"}},
            "footer": {
                "enabled": False,
                "position": 1,
                "content": {"tax": "{{company.taxInfo.taxNumber}}"},
            },
        }
    )
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert issues == []


def test_column_widths_over_100_are_an_error():
    template = _template(
        {
            "productTable": {
                "position": 1,
                "columns": {"a": {"widthPercent": 60}, "b": {"widthPercent": 50}},
            }
        }
    )
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert _rules(issues, "error") == ["column_widths"]
    assert issues[0].path == "sections.productTable.columns"


def test_disabled_columns_do_not_count_towards_width():
    template = _template(
        {
            "productTable": {
                "position": 1,
                "columns": {
                    "a": {"widthPercent": 60},
                    "b": {"widthPercent": 50, "enabled": False},
                },
            }
        }
    )
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert not has_errors(issues)


def test_narrow_table_is_a_warning():
    template = _template(
        {"productTable": {"position": 1, "columns": {"a": {"widthPercent": 20}}}}
    )
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert [(i.rule, i.severity) for i in issues] == [("column_widths", "warning")]


def test_no_enabled_sections_is_an_error():
    template = _template({"header": {"enabled": False, "position": 1}})
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert _rules(issues, "error") == ["enabled_sections"]


def test_multiple_loops_in_one_field_is_an_error():
    rows = "{{loop:order.products}}{{name}}{{/loop}}{{loop:order.products}}{{total}}{{/loop}}"
    template = _template({"productTable": {"position": 1, "content": {"rows": rows}}})
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert _rules(issues, "error") == ["loop_blocks"]


def test_unterminated_loop_is_an_error_and_nested_loop_a_warning():
    template = _template(
        {
            "header": {"position": 1, "content": {"broken": "{{loop:order.products}}Artikel"}},
            "productTable": {
                "position": 2,
                "content": {
                    "rows": "{{loop:order.products}}{{loop:legal.notices}}{{text}}{{/loop}}{{/loop}}"
                },
            },
        }
    )
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert [(i.rule, i.severity, i.path) for i in issues] == [
        ("loop_blocks", "error", "sections.header.content.broken"),
        ("loop_blocks", "warning", "sections.productTable.content.rows"),
    ]


def test_unknown_variable_and_unsupported_section_are_warnings():
    template = _template(
        {
            "header": {"position": 1, "content": {"title": "{{company.slogan}}"}},
            "qrCode": {"position": 2, "content": {"data": "x"}},
        }
    )
    issues = TemplateValidator(policy=NoLegalPolicy()).validate(template)
    assert sorted(_rules(issues, "warning")) == ["section_type", "unknown_variable"]
    assert not has_errors(issues)


def test_german_policy_warns_without_tax_reference():
    template = _template({"footer": {"position": 1, "content": {"text": "Danke!"}}})
    issues = TemplateValidator(policy=GermanInvoicePolicy()).validate(template)
    assert [(i.rule, i.severity) for i in issues] == [("legal_tax_reference", "warning")]


def test_german_policy_accepts_vat_id_in_legal_info():
    template = _template(
        {"legalInfo": {"position": 1, "content": {"vat": "USt-IdNr.: {{company.taxInfo.vatId}}"}}}
    )
    issues = TemplateValidator(policy=GermanInvoicePolicy()).validate(template)
    assert issues == []


def test_german_policy_warns_when_company_has_no_tax_identity():
    template = _template(
        {"footer": {"position": 1, "content": {"tax": "{{company.taxInfo.taxNumber}}"}}},
        taxInfo={},
    )
    issues = TemplateValidator(policy=GermanInvoicePolicy()).validate(template)
    assert _rules(issues) == ["legal_tax_identity"]


def test_get_legal_policy_by_name():
    assert isinstance(get_legal_policy("de"), GermanInvoicePolicy)
    assert isinstance(get_legal_policy(" NONE "), NoLegalPolicy)
    assert isinstance(get_legal_policy("fr"), NoLegalPolicy)
