"""Structural checks for invoice templates.

Error-severity issues make a template unusable for generation; warnings are
reported alongside rendered documents and never block.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Protocol

from ..backends.templates_models import SECTION_CLASSES, Section, Template
from .interpolator import scan
from .models import Issue
from .registry import VariableRegistry, get_registry

MAX_TABLE_WIDTH = 100.0
MIN_TABLE_WIDTH = 50.0

TAX_REFERENCE_VARIABLES = frozenset({"company.taxInfo.taxNumber", "company.taxInfo.vatId"})
LEGAL_SECTION_TYPES = ("footer", "legalInfo")


class LegalPolicy(Protocol):
    """Jurisdiction-specific completeness checks; only ever emits warnings."""

    name: str

    def check(self, template: Template) -> list[Issue]:
        ...


class NoLegalPolicy:
    name = "none"

    def check(self, template: Template) -> list[Issue]:
        return []


class GermanInvoicePolicy:
    """Soft checks for the tax identification German invoices carry (§14 UStG).

    The exact mandatory field set has not been confirmed by a legal expert, so
    nothing here is ever an error.
    """

    name = "de"

    def check(self, template: Template) -> list[Issue]:
        issues: list[Issue] = []

        legal_sections = [
            section
            for section in template.enabled_sections()
            if section.type in LEGAL_SECTION_TYPES
        ]
        referenced = {
            variable
            for section in legal_sections
            for content in section.content.values()
            for variable in scan(content).variables
        }
        if not referenced & TAX_REFERENCE_VARIABLES:
            path = f"sections.{legal_sections[0].type}" if legal_sections else "sections"
            issues.append(
                Issue(
                    severity="warning",
                    rule="legal_tax_reference",
                    message=(
                        "No footer or legal section references "
                        "{{company.taxInfo.taxNumber}} or {{company.taxInfo.vatId}}"
                    ),
                    path=path,
                )
            )

        tax_info = template.company_info.tax_info
        if not tax_info.tax_number and not tax_info.vat_id:
            issues.append(
                Issue(
                    severity="warning",
                    rule="legal_tax_identity",
                    message="Company info has neither a tax number nor a VAT id",
                    path="companyInfo.taxInfo",
                )
            )
        return issues


_POLICIES: dict[str, type] = {
    GermanInvoicePolicy.name: GermanInvoicePolicy,
    NoLegalPolicy.name: NoLegalPolicy,
}


def get_legal_policy(name: str | None) -> LegalPolicy:
    """Return the policy registered under ``name``; unknown names disable checks."""

    policy_cls = _POLICIES.get((name or "").strip().lower(), NoLegalPolicy)
    return policy_cls()


class TemplateValidator:
    def __init__(
        self,
        policy: LegalPolicy | None = None,
        registry: VariableRegistry | None = None,
    ) -> None:
        self.policy = policy if policy is not None else GermanInvoicePolicy()
        self.registry = registry or get_registry()

    def validate(self, template: Template) -> list[Issue]:
        issues: list[Issue] = []
        issues.extend(self._check_enabled_sections(template))
        issues.extend(self._check_positions(template))
        for section in template.sections:
            issues.extend(self._check_section_type(section))
            issues.extend(self._check_columns(section))
            issues.extend(self._check_content(section))
        issues.extend(self.policy.check(template))
        return issues

    def _check_enabled_sections(self, template: Template) -> list[Issue]:
        if template.enabled_sections():
            return []
        return [
            Issue(
                severity="error",
                rule="enabled_sections",
                message="Template has no enabled sections",
                path="sections",
            )
        ]

    def _check_positions(self, template: Template) -> list[Issue]:
        by_position: dict[int, list[str]] = defaultdict(list)
        for section in template.enabled_sections():
            by_position[section.position].append(section.type)

        issues = []
        for position, types in sorted(by_position.items()):
            if len(types) > 1:
                issues.append(
                    Issue(
                        severity="error",
                        rule="unique_positions",
                        message=f"Enabled sections {', '.join(types)} share position {position}",
                        path=f"sections.{types[1]}.position",
                    )
                )
        return issues

    def _check_section_type(self, section: Section) -> list[Issue]:
        if section.type in SECTION_CLASSES:
            return []
        return [
            Issue(
                severity="warning",
                rule="section_type",
                message=f"Section type '{section.type}' is not supported and will be skipped",
                path=f"sections.{section.type}",
            )
        ]

    def _check_columns(self, section: Section) -> list[Issue]:
        columns = getattr(section, "columns", None) if section.is_table else None
        if not columns:
            return []

        total = sum(column.width_percent for column in columns.values() if column.enabled)
        path = f"sections.{section.type}.columns"
        if total > MAX_TABLE_WIDTH:
            return [
                Issue(
                    severity="error",
                    rule="column_widths",
                    message=f"Column widths add up to {total:g}% (more than {MAX_TABLE_WIDTH:g}%)",
                    path=path,
                )
            ]
        if total < MIN_TABLE_WIDTH:
            return [
                Issue(
                    severity="warning",
                    rule="column_widths",
                    message=f"Column widths add up to only {total:g}%; the table may look truncated",
                    path=path,
                )
            ]
        return []

    def _check_content(self, section: Section) -> list[Issue]:
        issues = []
        for key, content in section.content.items():
            path = f"sections.{section.type}.content.{key}"
            shape = scan(content)
            if len(shape.loop_paths) > 1:
                issues.append(
                    Issue(
                        severity="error",
                        rule="loop_blocks",
                        message=f"Field has {len(shape.loop_paths)} loop blocks; only one is allowed",
                        path=path,
                    )
                )
            if shape.unterminated_loops or shape.stray_closers:
                issues.append(
                    Issue(
                        severity="error",
                        rule="loop_blocks",
                        message="Field has an unbalanced {{loop:...}} / {{/loop}} pair",
                        path=path,
                    )
                )
            for nested in shape.nested_loops:
                issues.append(
                    Issue(
                        severity="warning",
                        rule="loop_blocks",
                        message=f"Nested loop '{nested}' is not expanded and renders as text",
                        path=path,
                    )
                )
            for variable in shape.variables:
                if variable.startswith("@") or self.registry.is_known(variable):
                    continue
                issues.append(
                    Issue(
                        severity="warning",
                        rule="unknown_variable",
                        message=f"Unknown variable '{variable}'",
                        path=path,
                    )
                )
        return issues


def validate_template(template: Template, policy: LegalPolicy | None = None) -> list[Issue]:
    return TemplateValidator(policy=policy).validate(template)


__all__ = [
    "GermanInvoicePolicy",
    "LegalPolicy",
    "NoLegalPolicy",
    "TemplateValidator",
    "get_legal_policy",
    "validate_template",
]
