from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import List, Tuple

from adapters.layout.packing import pack_rows
from adapters.layout.row_blocks import compose_row_blocks
from domain.models import FilterGroupSection, Layout, LayoutItem, Row, Section, Widget
from domain.ports.layout import LayoutEngine

DEFAULT_BREAKPOINTS: Tuple[Tuple[float, int], ...] = ((1200.0, 4), (900.0, 3), (600.0, 2))


@dataclass(frozen=True)
class LayoutConfig:
    max_rail_items: int = 4
    tolerance_rem: float = 2.0
    v_gap_rem: float = 0.75
    breakpoints: Tuple[Tuple[float, int], ...] = DEFAULT_BREAKPOINTS
    min_col_count: int = 1


def col_count_from_width(
    container_width: float,
    breakpoints: Sequence[Tuple[float, int]] = DEFAULT_BREAKPOINTS,
    min_col_count: int = 1,
) -> int:
    for min_width, cols in breakpoints:
        if container_width >= min_width:
            return cols
    return min_col_count


class GridLayoutEngine(LayoutEngine):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def col_count(self, container_width: float) -> int:
        return col_count_from_width(
            container_width, self.config.breakpoints, self.config.min_col_count
        )

    def compose(self, widgets: Sequence[Widget], col_count: int) -> List[LayoutItem]:
        return compose_row_blocks(
            widgets,
            col_count,
            max_rail_items=self.config.max_rail_items,
            tolerance_rem=self.config.tolerance_rem,
            v_gap_rem=self.config.v_gap_rem,
        )

    def pack(self, items: Sequence[LayoutItem], col_count: int) -> List[Row]:
        return pack_rows(items, col_count)

    def layout_widgets(
        self, widgets: Sequence[Widget], container_width: float
    ) -> Tuple[int, List[Row]]:
        col_count = self.col_count(container_width)
        return col_count, self.pack(self.compose(widgets, col_count), col_count)

    def layout_section(self, section: Section, container_width: float) -> Layout:
        col_count, rows = self.layout_widgets(section.item_widgets(), container_width)
        if isinstance(section, FilterGroupSection):
            return Layout(
                type="filter-group",
                col_count=col_count,
                rows=tuple(rows),
                group=section.group,
                container_width=container_width,
            )
        return Layout(type="widget", col_count=col_count, rows=tuple(rows))

    def layout_dashboard(self, sections: Sequence[Section], container_width: float) -> List[Layout]:
        return [self.layout_section(section, container_width) for section in sections]
