from __future__ import annotations

import logging
from collections.abc import Sequence

from domain.models import Section, WidgetSection
from domain.ports.layout import LayoutEngine
from domain.widget_catalog import WidgetCatalog, is_filter_size

logger = logging.getLogger(__name__)

PROBE_WIDGET_ID = "temp"


class FitOracle:
    def __init__(
        self,
        layout_engine: LayoutEngine,
        sections: Sequence[Section],
        container_width: float,
        catalog: WidgetCatalog | None = None,
    ) -> None:
        self.layout_engine = layout_engine
        self.sections = list(sections)
        self.container_width = container_width
        self.catalog = catalog or WidgetCatalog()

    def _find_section(self, section_id: str | None) -> Section | None:
        return next((section for section in self.sections if section.id == section_id), None)

    def would_fit(self, size: str, section_id: str | None) -> bool:
        if is_filter_size(size):
            return False

        section = self._find_section(section_id)
        # Missing sections and filter containers never block a drop.
        if not isinstance(section, WidgetSection):
            return True
        if not section.widgets:
            return True

        try:
            rows_before = len(
                self.layout_engine.layout_section(section, self.container_width).rows
            )
            probe = self.catalog.create_widget(PROBE_WIDGET_ID, size)
            candidate = section.model_copy(update={"widgets": (*section.widgets, probe)})
            rows_after = len(
                self.layout_engine.layout_section(candidate, self.container_width).rows
            )
        except Exception:  # noqa: BLE001
            logger.exception(
                "Fit simulation failed for size %s in section %s; allowing drop.", size, section_id
            )
            return True

        return rows_after == rows_before
