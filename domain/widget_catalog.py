from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from domain.models import FILTER_SIZE, HeightMode, Widget, WidgetSize

DEFAULT_MIN_HEIGHTS_REM: dict[str, float] = {
    "XS": 10.0,
    "S": 16.0,
    "M": 22.0,
    "L": 32.0,
    "XL": 46.0,
}

_SIZE_TOKENS: dict[WidgetSize, tuple[int, str, HeightMode, str]] = {
    WidgetSize.XS: (1, "XS", HeightMode.STRETCH_ROW, "XS"),
    WidgetSize.S: (1, "S", HeightMode.STRETCH_ROW, "S"),
    WidgetSize.M: (2, "M", HeightMode.STRETCH_ROW, "M"),
    WidgetSize.L: (3, "L", HeightMode.STRETCH_ROW, "L"),
    WidgetSize.XL_ROW: (4, "XL", HeightMode.STRETCH_ROW, "XL (Row)"),
    WidgetSize.XL_FILL: (4, "XL", HeightMode.FILL_VIEWPORT, "XL (Fill)"),
}


@dataclass(frozen=True)
class WidgetSpec:
    size: WidgetSize
    min_col_span: int
    min_height_rem: float
    height_mode: HeightMode
    display_name: str


def normalize_widget_size(value: object) -> WidgetSize | None:
    raw = str(value or "").strip()
    for size in WidgetSize:
        if size.value == raw:
            return size
    return None


def is_filter_size(value: object) -> bool:
    return str(value or "").strip() == FILTER_SIZE


class WidgetCatalog:
    def __init__(self, min_heights_rem: Mapping[str, float] | None = None) -> None:
        heights = dict(DEFAULT_MIN_HEIGHTS_REM)
        if min_heights_rem:
            heights.update({str(key): float(value) for key, value in min_heights_rem.items()})
        self.min_heights_rem = heights

    def spec_for(self, size: object) -> WidgetSpec:
        # Unknown sizes fall back to the smallest widget.
        resolved = normalize_widget_size(size) or WidgetSize.XS
        span, height_token, height_mode, display_name = _SIZE_TOKENS[resolved]
        return WidgetSpec(
            size=resolved,
            min_col_span=span,
            min_height_rem=self.min_heights_rem[height_token],
            height_mode=height_mode,
            display_name=display_name,
        )

    def create_widget(self, widget_id: str, size: object, title: str | None = None) -> Widget:
        spec = self.spec_for(size)
        return Widget(
            id=widget_id,
            size=spec.size,
            min_col_span=spec.min_col_span,
            min_height_rem=spec.min_height_rem,
            height_mode=spec.height_mode,
            title=spec.display_name if title is None else title,
        )
