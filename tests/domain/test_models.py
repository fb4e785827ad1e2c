from __future__ import annotations

import pytest
from pydantic import ValidationError

from domain.models import (
    Dashboard,
    DragKind,
    DragState,
    DropZone,
    DropZoneType,
    FilterGroupSection,
    Rect,
    RowBlock,
    Widget,
    WidgetSection,
    item_span,
)
from tests.helpers.dashboard_fixtures import dashboard, filter_section, widget, widget_section


def test_widget_accepts_camel_case_payload() -> None:
    item = Widget.model_validate(
        {"id": "w1", "size": "M", "minColSpan": 2, "minHeightRem": 22, "title": "Revenue"}
    )

    assert item.min_col_span == 2
    assert item.to_dict()["minHeightRem"] == 22
    assert item.to_dict()["heightMode"] == "stretchRow"


@pytest.mark.parametrize(
    "overrides",
    [{"minColSpan": 0}, {"minColSpan": 5}, {"minHeightRem": 0}, {"size": "XXL"}],
)
def test_widget_rejects_out_of_range_values(overrides: dict) -> None:
    payload = {"id": "w1", "size": "S", "minColSpan": 1, "minHeightRem": 16, **overrides}

    with pytest.raises(ValidationError):
        Widget.model_validate(payload)


def test_sections_are_discriminated_by_type() -> None:
    loaded = Dashboard.model_validate(
        {
            "sections": [
                {"type": "widget", "id": "s1"},
                {"type": "filter-group", "id": "s2", "group": {"id": "g1"}},
            ]
        }
    )

    assert isinstance(loaded.sections[0], WidgetSection)
    assert isinstance(loaded.sections[1], FilterGroupSection)
    assert loaded.sections[0].title == "New Section"
    assert loaded.sections[1].group.title == "Filter Container"


def test_duplicate_section_ids_are_rejected() -> None:
    with pytest.raises(ValidationError, match="Duplicate section id"):
        dashboard(widget_section("s1"), widget_section("s1"))


def test_widget_owned_by_two_sections_is_rejected() -> None:
    shared = widget("w1")

    with pytest.raises(ValidationError, match="more than one section"):
        dashboard(widget_section("s1", shared), filter_section("s2", shared))


def test_find_widget_owner_covers_filter_groups() -> None:
    board = dashboard(widget_section("s1", widget("a")), filter_section("s2", widget("b")))

    assert board.find_widget_owner("a").id == "s1"
    assert board.find_widget_owner("b").id == "s2"
    assert board.find_widget_owner("missing") is None
    assert board.section_index("s2") == 1
    assert board.section_index("missing") == -1


def test_item_span_of_row_block_is_full_width() -> None:
    block = RowBlock(main=widget("l1", "L"), rail=(widget("a"),))

    assert block.id == "rb-l1"
    assert item_span(block, 4) == 4
    assert item_span(widget("l1", "L"), 2) == 2


def test_rect_contains_is_inclusive() -> None:
    rect = Rect.from_box(10, 20, 30, 40)

    assert rect.contains(10, 20)
    assert rect.contains(40, 60)
    assert not rect.contains(40.1, 60)


def test_drop_zone_payload_uses_camel_case() -> None:
    zone = DropZone(
        type=DropZoneType.WITHIN_SECTION,
        position=2,
        top=0,
        bottom=10,
        left=0,
        right=10,
        section_id="s1",
        is_rail_drop_zone=True,
        is_invalid=True,
    )

    assert zone.is_within
    assert zone.to_dict() == {
        "type": "within-section",
        "position": 2,
        "top": 0,
        "bottom": 10,
        "left": 0,
        "right": 10,
        "sectionId": "s1",
        "isRailDropZone": True,
        "isInvalid": True,
    }


def test_drag_state_candidate_size() -> None:
    assert DragState.from_panel("M").candidate_size == "M"
    assert DragState.for_widget(widget("w1", "L")).candidate_size == "L"
    assert DragState.for_section("s1").candidate_size is None
    assert DragState().kind == DragKind.NONE
