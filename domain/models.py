from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

FILTER_SIZE = "FILTER"
DEFAULT_SECTION_TITLE = "New Section"
DEFAULT_FILTER_GROUP_TITLE = "Filter Container"


class WidgetSize(str, Enum):
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL_ROW = "XL_row"
    XL_FILL = "XL_fill"


class HeightMode(str, Enum):
    STRETCH_ROW = "stretchRow"
    FILL_VIEWPORT = "fillViewport"


class Widget(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    size: WidgetSize
    min_col_span: int = Field(..., ge=1, le=4, alias="minColSpan")
    min_height_rem: float = Field(..., gt=0, alias="minHeightRem")
    height_mode: HeightMode = Field(HeightMode.STRETCH_ROW, alias="heightMode")
    title: str = ""

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FilterChip(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str = "Filter"


class FilterGroupLayout(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_item_width_px: float = Field(280.0, alias="minItemWidthPx")
    gap_px: float = Field(12.0, alias="gapPx")
    align_heights_in_row: bool = Field(True, alias="alignHeightsInRow")


class FilterGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = DEFAULT_FILTER_GROUP_TITLE
    filters: Tuple[FilterChip, ...] = ()
    widgets: Tuple[Widget, ...] = ()
    layout: FilterGroupLayout = FilterGroupLayout()


class WidgetSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["widget"] = "widget"
    id: str = Field(..., min_length=1)
    title: str = DEFAULT_SECTION_TITLE
    widgets: Tuple[Widget, ...] = ()

    def item_widgets(self) -> Tuple[Widget, ...]:
        return self.widgets


class FilterGroupSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["filter-group"] = "filter-group"
    id: str = Field(..., min_length=1)
    group: FilterGroup

    def item_widgets(self) -> Tuple[Widget, ...]:
        return self.group.widgets


Section = Annotated[Union[WidgetSection, FilterGroupSection], Field(discriminator="type")]


class Dashboard(BaseModel):
    model_config = ConfigDict(frozen=True)

    sections: Tuple[Section, ...] = ()

    @field_validator("sections", mode="after")
    @classmethod
    def ensure_unique_ownership(cls, sections: Tuple[Section, ...]) -> Tuple[Section, ...]:
        seen_sections: Set[str] = set()
        seen_widgets: Set[str] = set()
        for section in sections:
            if section.id in seen_sections:
                msg = f"Duplicate section id found: {section.id}"
                raise ValueError(msg)
            seen_sections.add(section.id)
            for widget in section.item_widgets():
                if widget.id in seen_widgets:
                    msg = f"Widget {widget.id} is owned by more than one section"
                    raise ValueError(msg)
                seen_widgets.add(widget.id)
        return sections

    def find_section(self, section_id: str | None) -> Optional[Section]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def section_index(self, section_id: str) -> int:
        for idx, section in enumerate(self.sections):
            if section.id == section_id:
                return idx
        return -1

    def find_widget_owner(self, widget_id: str) -> Optional[Section]:
        # Widget sections are searched before filter groups.
        for section in self.sections:
            if isinstance(section, WidgetSection) and any(
                widget.id == widget_id for widget in section.widgets
            ):
                return section
        for section in self.sections:
            if isinstance(section, FilterGroupSection) and any(
                widget.id == widget_id for widget in section.group.widgets
            ):
                return section
        return None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class RowBlock:
    main: Widget
    rail: Tuple[Widget, ...]

    @property
    def id(self) -> str:
        return f"rb-{self.main.id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "rowblock",
            "id": self.id,
            "main": self.main.to_dict(),
            "rail": [widget.to_dict() for widget in self.rail],
        }


LayoutItem = Union[Widget, RowBlock]


def effective_span(widget: Widget, col_count: int) -> int:
    return min(widget.min_col_span, col_count)


def item_span(item: LayoutItem, col_count: int) -> int:
    if isinstance(item, RowBlock):
        return col_count
    return effective_span(item, col_count)


@dataclass(frozen=True)
class Cell:
    item: LayoutItem
    span: int
    distribute_equally: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": self.item.to_dict(),
            "span": self.span,
            "distributeEqually": self.distribute_equally,
        }


@dataclass(frozen=True)
class Row:
    cells: Tuple[Cell, ...]

    @property
    def used_cols(self) -> int:
        return sum(cell.span for cell in self.cells)

    @property
    def distribute_equally(self) -> bool:
        return any(cell.distribute_equally for cell in self.cells)

    def to_dict(self) -> dict[str, Any]:
        return {"cells": [cell.to_dict() for cell in self.cells]}


@dataclass(frozen=True)
class Layout:
    type: str  # "widget" or "filter-group"
    col_count: int
    rows: Tuple[Row, ...]
    group: FilterGroup | None = None
    container_width: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type,
            "colCount": self.col_count,
            "rows": [row.to_dict() for row in self.rows],
        }
        if self.group is not None:
            payload["group"] = self.group.model_dump(mode="json", by_alias=True)
        if self.container_width is not None:
            payload["containerWidth"] = self.container_width
        return payload


@dataclass(frozen=True)
class Rect:
    top: float
    bottom: float
    left: float
    right: float

    @classmethod
    def from_box(cls, left: float, top: float, width: float, height: float) -> Rect:
        return cls(top=top, bottom=top + height, left=left, right=left + width)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def to_dict(self) -> dict[str, float]:
        return {"top": self.top, "bottom": self.bottom, "left": self.left, "right": self.right}


@dataclass(frozen=True)
class WidgetGeometry:
    widget_id: str
    rect: Rect
    dragging: bool = False


@dataclass(frozen=True)
class RailGeometry:
    rect: Rect
    widgets: Tuple[WidgetGeometry, ...] = ()


@dataclass(frozen=True)
class SectionGeometry:
    section_id: str
    kind: str  # "widget" or "filter-group"
    rect: Rect
    widgets: Tuple[WidgetGeometry, ...] = ()
    rails: Tuple[RailGeometry, ...] = ()
    group_rect: Rect | None = None


class DropZoneType(str, Enum):
    WITHIN_SECTION = "within-section"
    WITHIN_FILTER_GROUP = "within-filter-group"
    BETWEEN_SECTIONS = "between-sections"


@dataclass(frozen=True)
class DropZone:
    type: DropZoneType
    position: int
    top: float
    bottom: float
    left: float
    right: float
    section_id: str | None = None
    widget_id: str | None = None
    is_rail_drop_zone: bool = False
    is_invalid: bool = False

    @property
    def is_within(self) -> bool:
        return self.type in (DropZoneType.WITHIN_SECTION, DropZoneType.WITHIN_FILTER_GROUP)

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type.value,
            "position": self.position,
            "top": self.top,
            "bottom": self.bottom,
            "left": self.left,
            "right": self.right,
        }
        if self.section_id is not None:
            payload["sectionId"] = self.section_id
        if self.widget_id is not None:
            payload["widgetId"] = self.widget_id
        if self.is_rail_drop_zone:
            payload["isRailDropZone"] = True
        if self.is_invalid:
            payload["isInvalid"] = True
        return payload


class DragKind(str, Enum):
    NONE = "none"
    PANEL = "panel"
    WIDGET = "widget"
    SECTION = "section"


@dataclass(frozen=True)
class DragState:
    kind: DragKind = DragKind.NONE
    size: str | None = None
    widget_id: str | None = None
    section_id: str | None = None

    @classmethod
    def from_panel(cls, size: str) -> DragState:
        return cls(kind=DragKind.PANEL, size=size)

    @classmethod
    def for_widget(cls, widget: Widget) -> DragState:
        return cls(kind=DragKind.WIDGET, size=widget.size.value, widget_id=widget.id)

    @classmethod
    def for_section(cls, section_id: str) -> DragState:
        return cls(kind=DragKind.SECTION, section_id=section_id)

    @property
    def candidate_size(self) -> str | None:
        if self.kind in (DragKind.PANEL, DragKind.WIDGET):
            return self.size or None
        return None
