from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, ConfigDict, Field

from adapters.geometry.snapshot import GeometrySnapshot, SnapshotGeometryProvider
from app.config import AppSettings, load_settings
from app.dashboard_wiring import DashboardContext, build_dashboard_context
from domain.models import Dashboard, DragKind, DragState

logger = logging.getLogger(__name__)


class DashboardRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dashboard: Dashboard = Dashboard()
    container_width: Optional[float] = Field(default=None, alias="containerWidth", gt=0)


class FitRequest(DashboardRequest):
    size: str
    section_id: str = Field(..., alias="sectionId")


class DragPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["none", "panel", "widget", "section"] = "none"
    size: Optional[str] = None
    widget_id: Optional[str] = Field(default=None, alias="widgetId")
    section_id: Optional[str] = Field(default=None, alias="sectionId")


class DropRequest(DashboardRequest):
    x: float
    y: float
    drag: DragPayload = DragPayload()
    geometry: Optional[GeometrySnapshot] = None


def build_drag_state(dashboard: Dashboard, payload: DragPayload) -> DragState:
    kind = DragKind(payload.kind)
    if kind == DragKind.WIDGET:
        if not payload.widget_id:
            raise HTTPException(status_code=400, detail="drag.widgetId is required")
        owner = dashboard.find_widget_owner(payload.widget_id)
        if owner is None:
            raise HTTPException(status_code=404, detail="Dragged widget not found")
        widget = next(item for item in owner.item_widgets() if item.id == payload.widget_id)
        return DragState.for_widget(widget)
    if kind == DragKind.PANEL:
        if not payload.size:
            raise HTTPException(status_code=400, detail="drag.size is required")
        return DragState.from_panel(payload.size)
    if kind == DragKind.SECTION:
        if not payload.section_id:
            raise HTTPException(status_code=400, detail="drag.sectionId is required")
        return DragState.for_section(payload.section_id)
    return DragState()


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title=settings.web.title, default_response_class=ORJSONResponse)
    context: DashboardContext = build_dashboard_context(settings)

    def width_of(request: DashboardRequest) -> float:
        return request.container_width or settings.web.default_container_width

    def resolve_zone(request: DropRequest) -> tuple[DragState, Any]:
        drag_state = build_drag_state(request.dashboard, request.drag)
        geometry = (
            SnapshotGeometryProvider.from_payload(request.geometry)
            if request.geometry is not None
            else None
        )
        zone = context.resolve(
            request.dashboard, width_of(request), request.x, request.y, drag_state, geometry
        )
        return drag_state, zone

    @app.get("/api/columns")
    def api_columns(width: float = Query(..., ge=0)) -> dict[str, Any]:
        return {"width": width, "colCount": context.layout_engine.col_count(width)}

    @app.post("/api/layout")
    def api_layout(request: DashboardRequest) -> dict[str, Any]:
        width = width_of(request)
        layouts = context.layout_engine.layout_dashboard(request.dashboard.sections, width)
        return {
            "containerWidth": width,
            "colCount": context.layout_engine.col_count(width),
            "sections": [
                {"sectionId": section.id, **layout.to_dict()}
                for section, layout in zip(request.dashboard.sections, layouts)
            ],
        }

    @app.post("/api/fit")
    def api_fit(request: FitRequest) -> dict[str, Any]:
        if request.dashboard.find_section(request.section_id) is None:
            raise HTTPException(status_code=404, detail="Section not found")
        oracle = context.fit_oracle(request.dashboard, width_of(request))
        return {"fits": oracle.would_fit(request.size, request.section_id)}

    @app.post("/api/drop-target")
    def api_drop_target(request: DropRequest) -> dict[str, Any]:
        _, zone = resolve_zone(request)
        return {"zone": zone.to_dict() if zone is not None else None}

    @app.post("/api/drop")
    def api_drop(request: DropRequest) -> dict[str, Any]:
        drag_state, zone = resolve_zone(request)
        editor = context.editor(request.dashboard)
        updated = editor.apply_drop(zone, drag_state)
        applied = updated != request.dashboard
        if not applied:
            logger.info("Drop rejected at (%s, %s)", request.x, request.y)
        return {
            "zone": zone.to_dict() if zone is not None else None,
            "applied": applied,
            "dashboard": updated.to_dict(),
        }

    return app


app = create_app(load_settings())
