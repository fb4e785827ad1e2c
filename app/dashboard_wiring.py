from __future__ import annotations

from dataclasses import dataclass

from adapters.geometry.grid_geometry import LayoutGeometryProvider
from adapters.layout.grid import GridLayoutEngine
from app.config import AppSettings
from domain.models import Dashboard, DragState, DropZone
from domain.ports.geometry import GeometryProvider
from domain.services.dashboard_editor import DashboardEditor
from domain.services.drop_zones import DropZoneResolver
from domain.services.fit_validation import FitOracle
from domain.widget_catalog import WidgetCatalog


@dataclass(frozen=True)
class DashboardContext:
    settings: AppSettings
    layout_engine: GridLayoutEngine
    catalog: WidgetCatalog

    def fit_oracle(self, dashboard: Dashboard, container_width: float) -> FitOracle:
        return FitOracle(self.layout_engine, dashboard.sections, container_width, self.catalog)

    def resolver(self, dashboard: Dashboard, container_width: float) -> DropZoneResolver:
        oracle = self.fit_oracle(dashboard, container_width)
        return DropZoneResolver(
            dashboard.sections,
            oracle.would_fit,
            self.settings.drop_zones.to_drop_zone_config(),
        )

    def computed_geometry(
        self,
        dashboard: Dashboard,
        container_width: float,
        dragging_widget_id: str | None = None,
    ) -> LayoutGeometryProvider:
        return LayoutGeometryProvider(
            self.layout_engine,
            dashboard.sections,
            container_width,
            self.settings.layout.to_geometry_config(),
            dragging_widget_id=dragging_widget_id,
        )

    def resolve(
        self,
        dashboard: Dashboard,
        container_width: float,
        x: float,
        y: float,
        drag_state: DragState,
        geometry: GeometryProvider | None = None,
    ) -> DropZone | None:
        provider = geometry or self.computed_geometry(
            dashboard, container_width, drag_state.widget_id
        )
        return self.resolver(dashboard, container_width).resolve(x, y, provider, drag_state)

    def editor(self, dashboard: Dashboard) -> DashboardEditor:
        return DashboardEditor(
            dashboard,
            self.catalog,
            group_layout=self.settings.filter_groups.to_group_layout(),
        )


def build_dashboard_context(settings: AppSettings) -> DashboardContext:
    return DashboardContext(
        settings=settings,
        layout_engine=GridLayoutEngine(settings.layout.to_layout_config()),
        catalog=settings.widgets.to_catalog(),
    )
