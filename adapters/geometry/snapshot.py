from __future__ import annotations

from collections.abc import Sequence
from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.models import Rect, RailGeometry, SectionGeometry, WidgetGeometry
from domain.ports.geometry import GeometryProvider


class RectPayload(BaseModel):
    top: float
    bottom: float
    left: float
    right: float

    @model_validator(mode="before")
    @classmethod
    def accept_box(cls, value: Any) -> Any:
        # DOMRect-style payloads carry x/y/width/height instead of edges.
        if isinstance(value, dict) and "top" not in value and {"x", "y"} <= value.keys():
            x = float(value["x"])
            y = float(value["y"])
            return {
                "top": y,
                "bottom": y + float(value.get("height", 0.0)),
                "left": x,
                "right": x + float(value.get("width", 0.0)),
            }
        return value

    @model_validator(mode="after")
    def ensure_ordered_edges(self) -> RectPayload:
        if self.bottom < self.top or self.right < self.left:
            msg = "rect edges must satisfy top <= bottom and left <= right"
            raise ValueError(msg)
        return self

    def to_rect(self) -> Rect:
        return Rect(top=self.top, bottom=self.bottom, left=self.left, right=self.right)


class WidgetRectPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    widget_id: str = Field(..., alias="widgetId")
    rect: RectPayload
    dragging: bool = False

    def to_geometry(self) -> WidgetGeometry:
        return WidgetGeometry(
            widget_id=self.widget_id, rect=self.rect.to_rect(), dragging=self.dragging
        )


class RailPayload(BaseModel):
    rect: RectPayload
    widgets: List[WidgetRectPayload] = Field(default_factory=list)


class SectionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    section_id: str = Field(..., alias="sectionId")
    kind: Literal["widget", "filter-group"] = "widget"
    rect: RectPayload
    group_rect: RectPayload | None = Field(default=None, alias="groupRect")
    widgets: List[WidgetRectPayload] = Field(default_factory=list)
    rails: List[RailPayload] = Field(default_factory=list)

    def to_geometry(self) -> SectionGeometry:
        return SectionGeometry(
            section_id=self.section_id,
            kind=self.kind,
            rect=self.rect.to_rect(),
            widgets=tuple(widget.to_geometry() for widget in self.widgets),
            rails=tuple(
                RailGeometry(
                    rect=rail.rect.to_rect(),
                    widgets=tuple(widget.to_geometry() for widget in rail.widgets),
                )
                for rail in self.rails
            ),
            group_rect=self.group_rect.to_rect() if self.group_rect else None,
        )


class GeometrySnapshot(BaseModel):
    canvas: RectPayload
    sections: List[SectionPayload] = Field(default_factory=list)


class SnapshotGeometryProvider(GeometryProvider):
    def __init__(self, canvas: Rect, sections: Sequence[SectionGeometry]) -> None:
        self._canvas = canvas
        self._sections = tuple(sections)

    @classmethod
    def from_payload(cls, payload: Any) -> SnapshotGeometryProvider:
        snapshot = (
            payload
            if isinstance(payload, GeometrySnapshot)
            else GeometrySnapshot.model_validate(payload)
        )
        return cls(
            canvas=snapshot.canvas.to_rect(),
            sections=[section.to_geometry() for section in snapshot.sections],
        )

    def canvas_rect(self) -> Rect:
        return self._canvas

    def section_geometries(self) -> Sequence[SectionGeometry]:
        return self._sections
