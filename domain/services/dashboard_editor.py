from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import List, Tuple, TypeVar

from domain.models import (
    DEFAULT_FILTER_GROUP_TITLE,
    Dashboard,
    DragKind,
    DragState,
    DropZone,
    DropZoneType,
    FilterChip,
    FilterGroup,
    FilterGroupLayout,
    FilterGroupSection,
    Section,
    Widget,
    WidgetSection,
)
from domain.ports.layout import LayoutEngine
from domain.widget_catalog import WidgetCatalog, is_filter_size

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ID_PATTERN = re.compile(r"^(?P<prefix>w|s|fg|filter)_(?P<number>\d+)$")


def insert_at(items: Sequence[T], position: int, item: T) -> Tuple[T, ...]:
    position = max(0, min(position, len(items)))
    return (*items[:position], item, *items[position:])


def remove_at(items: Sequence[T], position: int) -> Tuple[T, ...]:
    return (*items[:position], *items[position + 1 :])


def move_within(items: Sequence[T], current: int, target: int) -> Tuple[T, ...]:
    # Target indices count the moved item itself, so forward moves shift by one.
    if target > current:
        target -= 1
    if target == current:
        return tuple(items)
    return insert_at(remove_at(items, current), target, items[current])


class IdGenerator:
    def __init__(self, counters: dict[str, int] | None = None) -> None:
        self.counters = {"w": 0, "s": 0, "fg": 0, "filter": 0}
        if counters:
            self.counters.update(counters)

    @classmethod
    def from_dashboard(cls, dashboard: Dashboard) -> IdGenerator:
        generator = cls()
        for section in dashboard.sections:
            generator.observe(section.id)
            for widget in section.item_widgets():
                generator.observe(widget.id)
            if isinstance(section, FilterGroupSection):
                generator.observe(section.group.id)
                for chip in section.group.filters:
                    generator.observe(chip.id)
        return generator

    def observe(self, identifier: str) -> None:
        match = _ID_PATTERN.match(identifier)
        if not match:
            return
        prefix = match.group("prefix")
        self.counters[prefix] = max(self.counters[prefix], int(match.group("number")) + 1)

    def _next(self, prefix: str) -> str:
        value = self.counters[prefix]
        self.counters[prefix] = value + 1
        return f"{prefix}_{value}"

    def widget_id(self) -> str:
        return self._next("w")

    def section_id(self) -> str:
        return self._next("s")

    def filter_group_id(self) -> str:
        return self._next("fg")

    def filter_id(self) -> str:
        return self._next("filter")


class DashboardEditor:
    def __init__(
        self,
        dashboard: Dashboard | None = None,
        catalog: WidgetCatalog | None = None,
        ids: IdGenerator | None = None,
        group_layout: FilterGroupLayout | None = None,
    ) -> None:
        self.dashboard = dashboard or Dashboard()
        self.catalog = catalog or WidgetCatalog()
        self.ids = ids or IdGenerator.from_dashboard(self.dashboard)
        self.group_layout = group_layout or FilterGroupLayout()

    @property
    def sections(self) -> Tuple[Section, ...]:
        return self.dashboard.sections

    def _commit(self, sections: Sequence[Section]) -> Dashboard:
        self.dashboard = Dashboard(sections=tuple(sections))
        return self.dashboard

    def _replace_section(self, sections: Sequence[Section], updated: Section) -> List[Section]:
        return [updated if section.id == updated.id else section for section in sections]

    def _new_widget_section(self, widget: Widget) -> WidgetSection:
        return WidgetSection(id=self.ids.section_id(), widgets=(widget,))

    def _new_filter_section(self, widgets: Sequence[Widget] = ()) -> FilterGroupSection:
        group = FilterGroup(
            id=self.ids.filter_group_id(), widgets=tuple(widgets), layout=self.group_layout
        )
        return FilterGroupSection(id=self.ids.section_id(), group=group)

    def _without_empty(self, sections: Sequence[Section], section_id: str) -> List[Section]:
        # Emptied widget sections disappear; filter containers stay even when empty.
        return [
            section
            for section in sections
            if not (
                section.id == section_id
                and isinstance(section, WidgetSection)
                and not section.widgets
            )
        ]

    def apply_drop(self, zone: DropZone | None, drag_state: DragState) -> Dashboard:
        if zone is None or zone.is_invalid:
            logger.debug("Drop aborted: %s", "invalid target" if zone else "no target")
            return self.dashboard
        if drag_state.kind == DragKind.PANEL and drag_state.size:
            return self.drop_from_panel(zone, drag_state.size)
        if drag_state.kind == DragKind.WIDGET and drag_state.widget_id:
            return self.move_widget(drag_state.widget_id, zone)
        if drag_state.kind == DragKind.SECTION and drag_state.section_id:
            if zone.type == DropZoneType.BETWEEN_SECTIONS:
                return self.move_section(drag_state.section_id, zone.position)
        return self.dashboard

    def drop_from_panel(self, zone: DropZone, size: str) -> Dashboard:
        sections = list(self.sections)
        if is_filter_size(size):
            new_section = self._new_filter_section()
            if zone.type == DropZoneType.BETWEEN_SECTIONS:
                return self._commit(insert_at(sections, zone.position, new_section))
            return self._commit([*sections, new_section])

        if zone.type == DropZoneType.BETWEEN_SECTIONS:
            widget = self.catalog.create_widget(self.ids.widget_id(), size)
            new_section = self._new_widget_section(widget)
            return self._commit(insert_at(sections, zone.position, new_section))

        target = self.dashboard.find_section(zone.section_id)
        if zone.type == DropZoneType.WITHIN_SECTION and isinstance(target, WidgetSection):
            widget = self.catalog.create_widget(self.ids.widget_id(), size)
            updated = target.model_copy(
                update={"widgets": insert_at(target.widgets, zone.position, widget)}
            )
            return self._commit(self._replace_section(sections, updated))
        if zone.type == DropZoneType.WITHIN_FILTER_GROUP and isinstance(
            target, FilterGroupSection
        ):
            widget = self.catalog.create_widget(self.ids.widget_id(), size)
            widgets = insert_at(target.group.widgets, zone.position, widget)
            return self._commit(
                self._replace_section(sections, _with_group_widgets(target, widgets))
            )
        logger.debug("Drop target section %s is gone; ignoring drop", zone.section_id)
        return self.dashboard

    def move_widget(self, widget_id: str, zone: DropZone) -> Dashboard:
        source = self.dashboard.find_widget_owner(widget_id)
        if source is None:
            return self.dashboard
        source_widgets = source.item_widgets()
        current = next(idx for idx, widget in enumerate(source_widgets) if widget.id == widget_id)
        widget = source_widgets[current]
        sections = list(self.sections)

        if zone.type == DropZoneType.BETWEEN_SECTIONS:
            remaining = remove_at(source_widgets, current)
            sections = self._replace_section(sections, _with_items(source, remaining))
            new_section = self._new_widget_section(widget)
            sections = list(insert_at(sections, zone.position, new_section))
            return self._commit(self._without_empty(sections, source.id))

        target = self.dashboard.find_section(zone.section_id)
        expected = WidgetSection if zone.type == DropZoneType.WITHIN_SECTION else FilterGroupSection
        if not isinstance(target, expected):
            return self.dashboard

        if target.id == source.id:
            moved = move_within(source_widgets, current, zone.position)
            return self._commit(self._replace_section(sections, _with_items(source, moved)))

        remaining = remove_at(source_widgets, current)
        received = insert_at(target.item_widgets(), zone.position, widget)
        sections = self._replace_section(sections, _with_items(source, remaining))
        sections = self._replace_section(sections, _with_items(target, received))
        return self._commit(self._without_empty(sections, source.id))

    def move_section(self, section_id: str, position: int) -> Dashboard:
        current = self.dashboard.section_index(section_id)
        if current < 0:
            return self.dashboard
        return self._commit(move_within(self.sections, current, position))

    def delete_widget(self, widget_id: str) -> Dashboard:
        source = self.dashboard.find_widget_owner(widget_id)
        if source is None:
            return self.dashboard
        remaining = tuple(widget for widget in source.item_widgets() if widget.id != widget_id)
        sections = self._replace_section(self.sections, _with_items(source, remaining))
        return self._commit(self._without_empty(sections, source.id))

    def delete_section(self, section_id: str) -> Dashboard:
        return self._commit([section for section in self.sections if section.id != section_id])

    def move_widget_to_filter_group(self, widget_id: str) -> Dashboard:
        source_idx = next(
            (
                idx
                for idx, section in enumerate(self.sections)
                if isinstance(section, WidgetSection)
                and any(widget.id == widget_id for widget in section.widgets)
            ),
            -1,
        )
        if source_idx < 0:
            return self.dashboard
        source = self.sections[source_idx]
        widget = next(widget for widget in source.item_widgets() if widget.id == widget_id)
        remaining = tuple(item for item in source.item_widgets() if item.id != widget_id)
        sections = self._replace_section(self.sections, _with_items(source, remaining))
        sections = self._without_empty(sections, source.id)
        return self._commit(insert_at(sections, source_idx, self._new_filter_section((widget,))))

    def add_widget_to_last_section(
        self, size: str, container_width: float, layout_engine: LayoutEngine
    ) -> Dashboard:
        sections = list(self.sections)
        if is_filter_size(size):
            return self._commit([*sections, self._new_filter_section()])

        widget = self.catalog.create_widget(self.ids.widget_id(), size)
        last = sections[-1] if sections else None
        if not isinstance(last, WidgetSection):
            return self._commit([*sections, self._new_widget_section(widget)])

        candidate = last.model_copy(update={"widgets": (*last.widgets, widget)})
        layout = layout_engine.layout_section(candidate, container_width)
        if layout.rows and layout.rows[-1].used_cols <= layout.col_count:
            return self._commit(self._replace_section(sections, candidate))
        return self._commit([*sections, self._new_widget_section(widget)])

    def add_filter_chip(self, group_id: str, label: str = "Filter") -> Dashboard:
        target = self._find_group_section(group_id)
        if target is None:
            return self.dashboard
        chip = FilterChip(id=self.ids.filter_id(), label=label)
        group = target.group.model_copy(update={"filters": (*target.group.filters, chip)})
        return self._commit_group(target, group)

    def remove_filter_chip(self, group_id: str, filter_id: str) -> Dashboard:
        target = self._find_group_section(group_id)
        if target is None:
            return self.dashboard
        filters = tuple(chip for chip in target.group.filters if chip.id != filter_id)
        return self._commit_group(target, target.group.model_copy(update={"filters": filters}))

    def rename_widget(self, widget_id: str, title: str) -> Dashboard:
        source = self.dashboard.find_widget_owner(widget_id)
        if source is None:
            return self.dashboard
        renamed = tuple(
            widget.model_copy(update={"title": title}) if widget.id == widget_id else widget
            for widget in source.item_widgets()
        )
        return self._commit(self._replace_section(self.sections, _with_items(source, renamed)))

    def rename_filter_group(self, group_id: str, title: str) -> Dashboard:
        target = self._find_group_section(group_id)
        if target is None:
            return self.dashboard
        group = target.group.model_copy(
            update={"title": title.strip() or DEFAULT_FILTER_GROUP_TITLE}
        )
        return self._commit_group(target, group)

    def _commit_group(self, section: FilterGroupSection, group: FilterGroup) -> Dashboard:
        updated = section.model_copy(update={"group": group})
        return self._commit(self._replace_section(self.sections, updated))

    def _find_group_section(self, group_id: str) -> FilterGroupSection | None:
        for section in self.sections:
            if isinstance(section, FilterGroupSection) and section.group.id == group_id:
                return section
        return None


def _with_group_widgets(
    section: FilterGroupSection, widgets: Sequence[Widget]
) -> FilterGroupSection:
    group = section.group.model_copy(update={"widgets": tuple(widgets)})
    return section.model_copy(update={"group": group})


def _with_items(section: Section, widgets: Sequence[Widget]) -> Section:
    if isinstance(section, FilterGroupSection):
        return _with_group_widgets(section, widgets)
    return section.model_copy(update={"widgets": tuple(widgets)})
