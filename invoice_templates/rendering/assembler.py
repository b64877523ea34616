"""Turn a template and a render context into a rendered document."""
from __future__ import annotations

import logging

from ..backends.templates_models import Template
from .errors import EmptyDocumentError, RenderFailure
from .models import RenderContext, RenderedDocument, RenderWarning, SourceKind
from .resolver import TemplateResolver
from .sections import SectionRenderer
from .validator import TemplateValidator

_LOGGER = logging.getLogger("invoice_templates.rendering.assembler")


class DocumentAssembler:
    def __init__(
        self,
        validator: TemplateValidator | None = None,
        renderer: SectionRenderer | None = None,
    ) -> None:
        self.validator = validator or TemplateValidator()
        self.renderer = renderer or SectionRenderer()

    def assemble(
        self,
        template: Template,
        ctx: RenderContext,
        *,
        source_kind: SourceKind | None = None,
    ) -> RenderedDocument:
        """Validate ``template`` and render its enabled sections in position order.

        Raises :class:`RenderFailure` when validation reports an error and
        :class:`EmptyDocumentError` when no section could be rendered.
        """

        issues = self.validator.validate(template)
        errors = [issue for issue in issues if issue.severity == "error"]
        if errors:
            first = errors[0]
            raise RenderFailure(
                f"Template {template.id} is invalid: {first.message}",
                invariant=first.rule,
                issues=issues,
            )

        warnings: list[RenderWarning] = [
            RenderWarning(code=f"validation.{issue.rule}", message=issue.message, path=issue.path)
            for issue in issues
        ]

        ordered = sorted(template.enabled_sections(), key=lambda section: section.position)
        sections = []
        for section in ordered:
            rendered = self.renderer.render_section(section, ctx)
            warnings.extend(rendered.warnings)
            if not rendered.skipped:
                sections.append(rendered)

        if not sections:
            raise EmptyDocumentError(template.id)

        _LOGGER.debug(
            "Assembled document from template %s",
            template.id,
            extra={"sections": len(sections), "warnings": len(warnings), "source": source_kind},
        )
        return RenderedDocument(
            template_id=template.id,
            template_name=template.name,
            source_kind=source_kind,
            layout=template.layout.model_copy(deep=True),
            sections=sections,
            warnings=warnings,
        )


def generate_document(
    resolver: TemplateResolver,
    ctx: RenderContext,
    requested_id: str | None = None,
    assembler: DocumentAssembler | None = None,
) -> RenderedDocument:
    template, source_kind = resolver.resolve(requested_id)
    assembler = assembler or DocumentAssembler(validator=resolver.validator)
    return assembler.assemble(template, ctx, source_kind=source_kind)


__all__ = ["DocumentAssembler", "generate_document"]
