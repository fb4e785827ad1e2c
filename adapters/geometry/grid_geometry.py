from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import List, Tuple

from domain.models import (
    FilterGroupSection,
    Layout,
    RailGeometry,
    Rect,
    Row,
    RowBlock,
    Section,
    SectionGeometry,
    WidgetGeometry,
)
from domain.ports.geometry import GeometryProvider
from domain.ports.layout import LayoutEngine


@dataclass(frozen=True)
class GeometryConfig:
    rem_px: float = 16.0
    column_gap_px: float = 12.0
    row_gap_px: float = 12.0
    section_gap_px: float = 20.0
    padding_x_px: float = 20.0
    padding_y_px: float = 20.0
    rail_gap_rem: float = 0.75
    filter_header_px: float = 48.0
    empty_group_height_px: float = 160.0
    empty_section_height_px: float = 96.0
    canvas_min_height_px: float = 400.0
    canvas_tail_px: float = 80.0


@dataclass(frozen=True)
class _RowGeometry:
    widgets: Tuple[WidgetGeometry, ...]
    rails: Tuple[RailGeometry, ...]
    height: float


class LayoutGeometryProvider(GeometryProvider):
    """Rectangles a renderer would produce for the current layout, computed without a DOM.

    Every snapshot is derived from a fresh layout pass, so hit-testing against it can never
    see stale positions after a resize or a content change.
    """

    def __init__(
        self,
        layout_engine: LayoutEngine,
        sections: Sequence[Section],
        container_width: float,
        config: GeometryConfig | None = None,
        origin_x: float = 0.0,
        origin_y: float = 0.0,
        dragging_widget_id: str | None = None,
    ) -> None:
        self.layout_engine = layout_engine
        self.container_width = container_width
        self.config = config or GeometryConfig()
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.dragging_widget_id = dragging_widget_id
        self.layouts: List[Layout] = []
        self._sections: List[SectionGeometry] = []
        self._canvas = self._build(list(sections))

    def canvas_rect(self) -> Rect:
        return self._canvas

    def section_geometries(self) -> Sequence[SectionGeometry]:
        return self._sections

    @property
    def content_left(self) -> float:
        return self.origin_x + self.config.padding_x_px

    @property
    def content_width(self) -> float:
        return max(self.container_width - 2 * self.config.padding_x_px, 0.0)

    def column_width(self, col_count: int) -> float:
        return (self.content_width - (col_count - 1) * self.config.column_gap_px) / col_count

    def span_width(self, span: int, col_count: int) -> float:
        return span * self.column_width(col_count) + (span - 1) * self.config.column_gap_px

    def _is_dragging(self, widget_id: str) -> bool:
        return widget_id == self.dragging_widget_id

    def _build(self, sections: List[Section]) -> Rect:
        cfg = self.config
        cursor = self.origin_y + cfg.padding_y_px
        content_bottom = cursor
        for section in sections:
            layout = self.layout_engine.layout_section(section, self.container_width)
            self.layouts.append(layout)
            geometry = self._section_geometry(section, layout, cursor)
            self._sections.append(geometry)
            content_bottom = geometry.rect.bottom
            cursor = content_bottom + cfg.section_gap_px

        bottom = max(
            self.origin_y + cfg.canvas_min_height_px,
            content_bottom + cfg.padding_y_px + cfg.canvas_tail_px,
        )
        return Rect(
            top=self.origin_y,
            bottom=bottom,
            left=self.origin_x,
            right=self.origin_x + self.container_width,
        )

    def _section_geometry(self, section: Section, layout: Layout, top: float) -> SectionGeometry:
        cfg = self.config
        left = self.content_left
        width = self.content_width
        is_group = isinstance(section, FilterGroupSection)
        body_top = top + cfg.filter_header_px if is_group else top

        widgets: List[WidgetGeometry] = []
        rails: List[RailGeometry] = []
        cursor = body_top
        for row_idx, row in enumerate(layout.rows):
            if row_idx > 0:
                cursor += cfg.row_gap_px
            placed = self._row_geometry(row, layout.col_count, cursor)
            widgets.extend(placed.widgets)
            rails.extend(placed.rails)
            cursor += placed.height

        if not layout.rows:
            cursor += cfg.empty_group_height_px if is_group else cfg.empty_section_height_px

        group_rect = None
        if is_group:
            group_rect = Rect(top=body_top, bottom=cursor, left=left, right=left + width)
        return SectionGeometry(
            section_id=section.id,
            kind=layout.type,
            rect=Rect(top=top, bottom=cursor, left=left, right=left + width),
            widgets=tuple(widgets),
            rails=tuple(rails),
            group_rect=group_rect,
        )

    def _row_height(self, row: Row) -> float:
        rem_px = self.config.rem_px
        tallest = 0.0
        for cell in row.cells:
            item = cell.item
            if isinstance(item, RowBlock):
                rail_height = sum(widget.min_height_rem for widget in item.rail)
                rail_height += max(len(item.rail) - 1, 0) * self.config.rail_gap_rem
                tallest = max(tallest, item.main.min_height_rem, rail_height)
            else:
                tallest = max(tallest, item.min_height_rem)
        return tallest * rem_px

    def _row_geometry(self, row: Row, col_count: int, top: float) -> _RowGeometry:
        cfg = self.config
        height = self._row_height(row)
        gap = cfg.column_gap_px
        widgets: List[WidgetGeometry] = []
        rails: List[RailGeometry] = []
        x = self.content_left
        equal_width = (self.content_width - (len(row.cells) - 1) * gap) / len(row.cells)

        for cell in row.cells:
            item = cell.item
            if cell.distribute_equally:
                width = equal_width
            else:
                width = self.span_width(cell.span, col_count)
            if isinstance(item, RowBlock):
                rail_width = self.column_width(col_count)
                rail_rect = Rect.from_box(x, top, rail_width, height)
                rail_widgets: List[WidgetGeometry] = []
                rail_cursor = top
                for rail_idx, widget in enumerate(item.rail):
                    if rail_idx > 0:
                        rail_cursor += cfg.rail_gap_rem * cfg.rem_px
                    widget_height = widget.min_height_rem * cfg.rem_px
                    rail_widgets.append(
                        WidgetGeometry(
                            widget_id=widget.id,
                            rect=Rect.from_box(x, rail_cursor, rail_width, widget_height),
                            dragging=self._is_dragging(widget.id),
                        )
                    )
                    rail_cursor += widget_height
                rails.append(RailGeometry(rect=rail_rect, widgets=tuple(rail_widgets)))
                main_left = x + rail_width + gap
                widgets.append(
                    WidgetGeometry(
                        widget_id=item.main.id,
                        rect=Rect.from_box(main_left, top, x + width - main_left, height),
                        dragging=self._is_dragging(item.main.id),
                    )
                )
            else:
                widgets.append(
                    WidgetGeometry(
                        widget_id=item.id,
                        rect=Rect.from_box(x, top, width, height),
                        dragging=self._is_dragging(item.id),
                    )
                )
            x += width + gap

        return _RowGeometry(widgets=tuple(widgets), rails=tuple(rails), height=height)
