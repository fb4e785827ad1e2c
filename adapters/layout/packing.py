from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import List

from domain.models import Cell, LayoutItem, Row, RowBlock, item_span

logger = logging.getLogger(__name__)


class _RowBuffer:
    def __init__(self, col_count: int) -> None:
        self.col_count = col_count
        self.items: List[LayoutItem] = []
        self.spans: List[int] = []

    @property
    def used(self) -> int:
        return sum(self.spans)

    def fits(self, span: int) -> bool:
        return self.used + span <= self.col_count

    def add(self, item: LayoutItem, span: int) -> None:
        self.items.append(item)
        self.spans.append(span)

    def flush(self) -> Row | None:
        if not self.items:
            return None
        spans = list(self.spans)
        distribute_equally = False
        remaining = self.col_count - sum(spans)
        expandable = [idx for idx, item in enumerate(self.items) if not isinstance(item, RowBlock)]

        if remaining > 0 and expandable:
            all_min_span = all(spans[idx] == 1 for idx in expandable)
            if all_min_span and remaining < len(expandable):
                # Not enough slack to widen every 1-col cell; let the renderer split evenly.
                distribute_equally = True
                logger.debug(
                    "Row of %d one-column cells with %d spare column(s): distributing equally",
                    len(expandable),
                    remaining,
                )
            else:
                extra, leftover = divmod(remaining, len(expandable))
                for order, idx in enumerate(expandable):
                    bonus = extra + (1 if order < leftover else 0)
                    spans[idx] = min(self.col_count, spans[idx] + bonus)
                logger.debug(
                    "Expanded %d cell(s) by %d (+1 for the first %d) to fill %d column(s)",
                    len(expandable),
                    extra,
                    leftover,
                    self.col_count,
                )

        row = Row(
            cells=tuple(
                Cell(item=item, span=span, distribute_equally=distribute_equally)
                for item, span in zip(self.items, spans)
            )
        )
        self.items = []
        self.spans = []
        return row


def pack_rows(items: Sequence[LayoutItem], col_count: int) -> List[Row]:
    rows: List[Row] = []
    buffer = _RowBuffer(col_count)

    def flush() -> None:
        row = buffer.flush()
        if row is not None:
            rows.append(row)

    for item in items:
        span = item_span(item, col_count)
        if span >= col_count:
            flush()
            rows.append(Row(cells=(Cell(item=item, span=col_count),)))
            continue
        if not buffer.fits(span):
            flush()
        buffer.add(item, span)

    flush()
    logger.debug(
        "Packed %d item(s) into %d row(s) at %d column(s)", len(items), len(rows), col_count
    )
    return rows
