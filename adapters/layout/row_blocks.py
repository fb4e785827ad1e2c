from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import List, cast

from domain.models import LayoutItem, RowBlock, Widget, effective_span

logger = logging.getLogger(__name__)

ROW_BLOCK_COL_COUNT = 4
MAIN_SPAN = 3
RAIL_SPAN = 1


class _Rail:
    def __init__(self, target_rem: float, max_items: int, v_gap_rem: float) -> None:
        self.target_rem = target_rem
        self.max_items = max_items
        self.v_gap_rem = v_gap_rem
        self.height_rem = 0.0
        self.count = 0

    def _gap(self) -> float:
        return self.v_gap_rem if self.count > 0 else 0.0

    def accepts(self, item: LayoutItem, col_count: int) -> bool:
        if isinstance(item, RowBlock):
            return False
        if effective_span(item, col_count) != RAIL_SPAN:
            return False
        if self.count >= self.max_items:
            return False
        return self.height_rem + self._gap() + item.min_height_rem <= self.target_rem

    def take(self, widget: Widget) -> None:
        self.height_rem += self._gap() + widget.min_height_rem
        self.count += 1


def compose_row_blocks(
    widgets: Sequence[LayoutItem],
    col_count: int,
    *,
    max_rail_items: int = 4,
    tolerance_rem: float = 2.0,
    v_gap_rem: float = 0.75,
) -> List[LayoutItem]:
    items: List[LayoutItem] = list(widgets)
    if col_count != ROW_BLOCK_COL_COUNT:
        return items

    idx = 0
    while idx < len(items):
        seed = items[idx]
        if isinstance(seed, RowBlock) or effective_span(seed, col_count) != MAIN_SPAN:
            idx += 1
            continue

        rail = _Rail(seed.min_height_rem + tolerance_rem, max_rail_items, v_gap_rem)

        # Neighbours before the seed win; forward capture only runs when none qualified.
        captured_prev: List[Widget] = []
        back = idx - 1
        while back >= 0 and rail.accepts(items[back], col_count):
            candidate = cast(Widget, items[back])
            rail.take(candidate)
            captured_prev.append(candidate)
            back -= 1

        captured_next: List[Widget] = []
        if not captured_prev:
            ahead = idx + 1
            while ahead < len(items) and rail.accepts(items[ahead], col_count):
                candidate = cast(Widget, items[ahead])
                rail.take(candidate)
                captured_next.append(candidate)
                ahead += 1

        rail_widgets = [*reversed(captured_prev), *captured_next]
        if rail_widgets:
            start = idx - len(captured_prev)
            stop = idx + 1 + len(captured_next)
            items[start:stop] = [RowBlock(main=seed, rail=tuple(rail_widgets))]
            logger.debug(
                "RowBlock rb-%s captured %d rail widget(s) (%s), rail height %.2f/%.2f rem",
                seed.id,
                len(rail_widgets),
                "backward" if captured_prev else "forward",
                rail.height_rem,
                rail.target_rem,
            )
            idx = start
        idx += 1

    return items
