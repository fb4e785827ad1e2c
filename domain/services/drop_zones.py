from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import Dict, List, Tuple

from domain.models import (
    DragKind,
    DragState,
    DropZone,
    DropZoneType,
    FilterGroupSection,
    Rect,
    Section,
    SectionGeometry,
    WidgetGeometry,
)
from domain.ports.geometry import GeometryProvider

logger = logging.getLogger(__name__)

FitCheck = Callable[[str, str | None], bool]


@dataclass(frozen=True)
class DropZoneConfig:
    filter_widget_margin: float = 6.0
    filter_after_reach: float = 20.0
    filter_boundary_band: float = 15.0
    widget_edge_half_width: float = 15.0
    widget_vertical_pad: float = 10.0
    row_cluster_tolerance: float = 10.0
    rail_bottom_pad: float = 6.0
    first_section_top_reach: float = 60.0
    section_boundary_overlap: float = 5.0
    section_boundary_reach: float = 60.0
    empty_canvas_inset: float = 20.0
    empty_canvas_band_bottom: float = 100.0


@dataclass(frozen=True)
class _PlacedWidget:
    widget_id: str
    rect: Rect
    index: int


def _zone(
    zone_type: DropZoneType,
    position: int,
    rect: Rect,
    section_id: str | None = None,
    widget_id: str | None = None,
    is_rail_drop_zone: bool = False,
) -> DropZone:
    return DropZone(
        type=zone_type,
        position=position,
        top=rect.top,
        bottom=rect.bottom,
        left=rect.left,
        right=rect.right,
        section_id=section_id,
        widget_id=widget_id,
        is_rail_drop_zone=is_rail_drop_zone,
    )


class DropZoneResolver:
    def __init__(
        self,
        sections: Sequence[Section],
        fit_check: FitCheck | None = None,
        config: DropZoneConfig | None = None,
    ) -> None:
        self.sections: Dict[str, Section] = {section.id: section for section in sections}
        self.fit_check = fit_check
        self.config = config or DropZoneConfig()

    def resolve(
        self, x: float, y: float, geometry: GeometryProvider, drag_state: DragState
    ) -> DropZone | None:
        if not geometry.canvas_rect().contains(x, y):
            return None

        valid, invalid = self.classify(self.build_zones(geometry), drag_state)
        for zone in valid:
            if zone.contains(x, y):
                logger.debug("Pointer (%s, %s) resolved to %s", x, y, zone)
                return zone
        for zone in invalid:
            if zone.contains(x, y):
                logger.debug("Pointer (%s, %s) resolved to invalid %s", x, y, zone)
                return zone
        return None

    def classify(
        self, zones: Sequence[DropZone], drag_state: DragState
    ) -> Tuple[List[DropZone], List[DropZone]]:
        size = drag_state.candidate_size
        if (
            drag_state.kind not in (DragKind.PANEL, DragKind.WIDGET)
            or not size
            or self.fit_check is None
        ):
            return list(zones), []

        valid: List[DropZone] = []
        invalid: List[DropZone] = []
        verdicts: Dict[str | None, bool] = {}
        for zone in zones:
            if not zone.is_within:
                valid.append(zone)
                continue
            if zone.section_id not in verdicts:
                verdicts[zone.section_id] = self.fit_check(size, zone.section_id)
            if verdicts[zone.section_id]:
                valid.append(zone)
            else:
                invalid.append(replace(zone, is_invalid=True))
        return valid, invalid

    def build_zones(self, geometry: GeometryProvider) -> List[DropZone]:
        zones: List[DropZone] = []
        snapshots = list(geometry.section_geometries())
        for idx, snapshot in enumerate(snapshots):
            section = self.sections.get(snapshot.section_id)
            if section is None:
                continue
            if isinstance(section, FilterGroupSection):
                zones.extend(self._filter_group_zones(idx, snapshot, section))
            else:
                zones.extend(self._widget_section_zones(idx, snapshot, section))

        if not snapshots:
            canvas = geometry.canvas_rect()
            inset = self.config.empty_canvas_inset
            zones.append(
                _zone(
                    DropZoneType.BETWEEN_SECTIONS,
                    0,
                    Rect(
                        top=canvas.top + inset,
                        bottom=canvas.top + self.config.empty_canvas_band_bottom,
                        left=canvas.left + inset,
                        right=canvas.right - inset,
                    ),
                )
            )
        return zones

    def _filter_group_zones(
        self, idx: int, snapshot: SectionGeometry, section: FilterGroupSection
    ) -> List[DropZone]:
        cfg = self.config
        zones: List[DropZone] = []
        zone_type = DropZoneType.WITHIN_FILTER_GROUP

        if snapshot.group_rect is not None:
            placed = self._placed_widgets(
                [*snapshot.widgets, *(w for rail in snapshot.rails for w in rail.widgets)],
                [widget.id for widget in section.group.widgets],
            )
            placed.sort(key=lambda item: item.index)
            if not placed:
                zones.append(_zone(zone_type, 0, snapshot.group_rect, section.id))
            margin = cfg.filter_widget_margin
            for item in placed:
                rect = item.rect
                zones.append(
                    _zone(
                        zone_type,
                        item.index,
                        Rect(
                            top=rect.top - margin,
                            bottom=rect.bottom + margin,
                            left=rect.left - margin,
                            right=rect.right + margin,
                        ),
                        section.id,
                        widget_id=item.widget_id,
                    )
                )
                zones.append(
                    _zone(
                        zone_type,
                        item.index + 1,
                        Rect(
                            top=rect.top - margin,
                            bottom=rect.bottom + margin,
                            left=rect.right - margin,
                            right=rect.right + cfg.filter_after_reach,
                        ),
                        section.id,
                    )
                )

        rect = snapshot.rect
        band = cfg.filter_boundary_band
        zones.append(
            _zone(
                DropZoneType.BETWEEN_SECTIONS,
                idx,
                Rect(top=rect.top - band, bottom=rect.top, left=rect.left, right=rect.right),
            )
        )
        zones.append(
            _zone(
                DropZoneType.BETWEEN_SECTIONS,
                idx + 1,
                Rect(top=rect.bottom, bottom=rect.bottom + band, left=rect.left, right=rect.right),
            )
        )
        return zones

    def _widget_section_zones(
        self, idx: int, snapshot: SectionGeometry, section: Section
    ) -> List[DropZone]:
        cfg = self.config
        zones: List[DropZone] = []
        zone_type = DropZoneType.WITHIN_SECTION
        index_by_id = {widget.id: pos for pos, widget in enumerate(section.item_widgets())}

        for rail in snapshot.rails:
            if not rail.widgets:
                zones.append(_zone(zone_type, 0, rail.rect, section.id, is_rail_drop_zone=True))
                continue
            last = len(rail.widgets) - 1
            for rail_idx, widget in enumerate(rail.widgets):
                actual = index_by_id.get(widget.widget_id)
                if actual is None:
                    continue
                middle = widget.rect.top + widget.rect.height / 2
                if rail_idx == 0:
                    zones.append(
                        _zone(
                            zone_type,
                            actual,
                            Rect(
                                top=rail.rect.top,
                                bottom=middle,
                                left=rail.rect.left,
                                right=rail.rect.right,
                            ),
                            section.id,
                            is_rail_drop_zone=True,
                        )
                    )
                bottom = (
                    rail.rect.bottom
                    if rail_idx == last
                    else widget.rect.bottom + cfg.rail_bottom_pad
                )
                zones.append(
                    _zone(
                        zone_type,
                        actual + 1,
                        Rect(top=middle, bottom=bottom, left=rail.rect.left, right=rail.rect.right),
                        section.id,
                        is_rail_drop_zone=True,
                    )
                )

        placed = self._placed_widgets(
            [widget for widget in snapshot.widgets if not widget.dragging], list(index_by_id)
        )
        placed.sort(key=cmp_to_key(self._reading_order))
        pad = cfg.widget_vertical_pad
        half = cfg.widget_edge_half_width
        for order, item in enumerate(placed):
            rect = item.rect
            if order == 0:
                zones.append(
                    _zone(
                        zone_type,
                        item.index,
                        Rect(
                            top=rect.top - pad,
                            bottom=rect.bottom + pad,
                            left=rect.left - half,
                            right=rect.left + half,
                        ),
                        section.id,
                    )
                )
            zones.append(
                _zone(
                    zone_type,
                    item.index + 1,
                    Rect(
                        top=rect.top - pad,
                        bottom=rect.bottom + pad,
                        left=rect.right - half,
                        right=rect.right + half,
                    ),
                    section.id,
                )
            )

        rect = snapshot.rect
        if not placed:
            zones.append(_zone(zone_type, 0, rect, section.id))
        if idx == 0:
            zones.append(
                _zone(
                    DropZoneType.BETWEEN_SECTIONS,
                    0,
                    Rect(
                        top=rect.top - cfg.first_section_top_reach,
                        bottom=rect.top + cfg.section_boundary_overlap,
                        left=rect.left,
                        right=rect.right,
                    ),
                )
            )
        zones.append(
            _zone(
                DropZoneType.BETWEEN_SECTIONS,
                idx + 1,
                Rect(
                    top=rect.bottom - cfg.section_boundary_overlap,
                    bottom=rect.bottom + cfg.section_boundary_reach,
                    left=rect.left,
                    right=rect.right,
                ),
            )
        )
        return zones

    def _placed_widgets(
        self, widgets: Sequence[WidgetGeometry], ordered_ids: Sequence[str]
    ) -> List[_PlacedWidget]:
        index_by_id = {widget_id: pos for pos, widget_id in enumerate(ordered_ids)}
        placed: List[_PlacedWidget] = []
        for widget in widgets:
            index = index_by_id.get(widget.widget_id)
            if index is None:
                continue
            placed.append(_PlacedWidget(widget_id=widget.widget_id, rect=widget.rect, index=index))
        return placed

    def _reading_order(self, first: _PlacedWidget, second: _PlacedWidget) -> float:
        # Widgets whose tops are within tolerance share a visual row.
        if abs(first.rect.top - second.rect.top) < self.config.row_cluster_tolerance:
            return first.rect.left - second.rect.left
        return first.rect.top - second.rect.top


def resolve_drop_target(
    x: float,
    y: float,
    geometry: GeometryProvider,
    drag_state: DragState,
    sections: Sequence[Section],
    fit_check: FitCheck | None = None,
    config: DropZoneConfig | None = None,
) -> DropZone | None:
    return DropZoneResolver(sections, fit_check, config).resolve(x, y, geometry, drag_state)
