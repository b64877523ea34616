"""Render one template section against a render context."""
from __future__ import annotations

import logging
from typing import Iterable

from ..backends.templates_models import SECTION_CLASSES, Column, Section
from .interpolator import CELL_SEPARATOR, expand
from .models import (
    RenderContext,
    RenderedColumn,
    RenderedSection,
    RenderWarning,
    UnsupportedSectionWarning,
)

_LOGGER = logging.getLogger("invoice_templates.rendering.sections")


class SectionRenderer:
    def __init__(self, supported_types: Iterable[str] | None = None) -> None:
        self.supported_types = frozenset(
            supported_types if supported_types is not None else SECTION_CLASSES
        )

    def supports(self, section_type: str) -> bool:
        return section_type in self.supported_types

    def render_section(self, section: Section, ctx: RenderContext) -> RenderedSection:
        if not section.enabled:
            return self._skipped(
                section,
                RenderWarning(
                    code="section_disabled",
                    message=f"Section '{section.type}' is disabled",
                    path=section.type,
                ),
            )
        if not self.supports(section.type):
            return self._skipped(section, UnsupportedSectionWarning(path=section.type))

        warnings: list[RenderWarning] = []
        fields: dict[str, str] = {}
        row_cells: list[list[str]] = []
        for key, content in section.content.items():
            expansion = expand(content, ctx)
            fields[key] = expansion.text
            warnings.extend(expansion.warnings)
            if section.is_table and expansion.has_loop and not row_cells:
                row_cells = expansion.cells

        columns: dict[str, Column] = getattr(section, "columns", None) or {}
        rendered = RenderedSection(
            type=section.type,
            position=section.position,
            fields=fields,
            columns=[
                RenderedColumn(key=key, label=column.label, width_percent=column.width_percent)
                for key, column in columns.items()
                if column.enabled
            ],
        )
        if section.is_table:
            rendered.rows = [
                self._row(cells, number, columns, warnings)
                for number, cells in enumerate(row_cells, start=1)
            ]

        rendered.warnings = _tag(warnings, section.type)
        _LOGGER.debug(
            "Rendered section %s",
            section.type,
            extra={"fields": len(fields), "rows": len(rendered.rows), "warnings": len(warnings)},
        )
        return rendered

    def _row(
        self,
        raw_cells: list[str],
        number: int,
        columns: dict[str, Column],
        warnings: list[RenderWarning],
    ) -> list[str]:
        cells = [cell.strip() for cell in raw_cells]
        if not columns:
            return cells

        if len(cells) != len(columns):
            warnings.append(
                RenderWarning(
                    code="row_shape",
                    message=f"Row {number} has {len(cells)} cells for {len(columns)} columns",
                    path=f"rows.{number}",
                )
            )
            cells = (cells + [""] * len(columns))[: len(columns)]

        return [cell for cell, column in zip(cells, columns.values()) if column.enabled]

    def _skipped(self, section: Section, warning: RenderWarning) -> RenderedSection:
        return RenderedSection(
            type=section.type,
            position=section.position,
            skipped=True,
            warnings=_tag([warning], section.type),
        )


def _tag(warnings: list[RenderWarning], section_type: str) -> list[RenderWarning]:
    return [
        warning if warning.section else warning.model_copy(update={"section": section_type})
        for warning in warnings
    ]


def render_section(section: Section, ctx: RenderContext) -> RenderedSection:
    return SectionRenderer().render_section(section, ctx)


__all__ = ["CELL_SEPARATOR", "SectionRenderer", "render_section"]
