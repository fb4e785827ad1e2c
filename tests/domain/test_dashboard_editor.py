from __future__ import annotations

from adapters.layout.grid import GridLayoutEngine
from domain.models import (
    DEFAULT_FILTER_GROUP_TITLE,
    Dashboard,
    DragState,
    DropZone,
    DropZoneType,
    FilterGroupSection,
    WidgetSection,
)
from domain.services.dashboard_editor import (
    DashboardEditor,
    IdGenerator,
    insert_at,
    move_within,
    remove_at,
)
from tests.helpers.dashboard_fixtures import (
    dashboard,
    filter_section,
    widget,
    widget_section,
    widgets,
)


def _zone(zone_type: DropZoneType, position: int, section_id: str | None = None) -> DropZone:
    return DropZone(
        type=zone_type, position=position, top=0, bottom=0, left=0, right=0, section_id=section_id
    )


def _between(position: int) -> DropZone:
    return _zone(DropZoneType.BETWEEN_SECTIONS, position)


def _within(section_id: str, position: int) -> DropZone:
    return _zone(DropZoneType.WITHIN_SECTION, position, section_id)


def _within_group(section_id: str, position: int) -> DropZone:
    return _zone(DropZoneType.WITHIN_FILTER_GROUP, position, section_id)


def _layout(board: Dashboard) -> list[tuple[str, list[str]]]:
    return [
        (section.id, [item.id for item in section.item_widgets()]) for section in board.sections
    ]


def test_sequence_helpers() -> None:
    assert insert_at(("a", "b"), 1, "x") == ("a", "x", "b")
    assert insert_at(("a", "b"), 10, "x") == ("a", "b", "x")
    assert insert_at(("a", "b"), -3, "x") == ("x", "a", "b")
    assert remove_at(("a", "b", "c"), 1) == ("a", "c")
    assert move_within(("a", "b", "c"), 0, 2) == ("b", "a", "c")
    assert move_within(("a", "b", "c"), 0, 3) == ("b", "c", "a")
    assert move_within(("a", "b", "c"), 2, 0) == ("c", "a", "b")
    assert move_within(("a", "b", "c"), 1, 2) == ("a", "b", "c")


def test_id_generator_continues_after_existing_ids() -> None:
    board = dashboard(
        widget_section("s_2", widget("w_4"), widget("custom")),
        filter_section("s_3", group_id="fg_7"),
    )

    ids = IdGenerator.from_dashboard(board)

    assert ids.widget_id() == "w_5"
    assert ids.widget_id() == "w_6"
    assert ids.section_id() == "s_4"
    assert ids.filter_group_id() == "fg_8"
    assert ids.filter_id() == "filter_0"


def test_panel_drop_between_sections_creates_section() -> None:
    editor = DashboardEditor(dashboard(widget_section("s1", widget("a"))))

    board = editor.drop_from_panel(_between(0), "M")

    assert _layout(board) == [("s_0", ["w_0"]), ("s1", ["a"])]
    created = board.sections[0].item_widgets()[0]
    assert created.min_col_span == 2
    assert created.title == "M"
    assert editor.dashboard is board


def test_panel_drop_inside_section_inserts_at_position() -> None:
    editor = DashboardEditor(dashboard(widget_section("s1", *widgets("a", "b"))))

    board = editor.drop_from_panel(_within("s1", 1), "XS")

    assert _layout(board) == [("s1", ["a", "w_0", "b"])]


def test_panel_drop_inside_filter_group() -> None:
    editor = DashboardEditor(dashboard(filter_section("fg1", widget("g1"))))

    board = editor.drop_from_panel(_within_group("fg1", 0), "L")

    assert _layout(board) == [("fg1", ["w_0", "g1"])]


def test_filter_panel_drop_creates_filter_group() -> None:
    editor = DashboardEditor(dashboard(widget_section("s1"), widget_section("s2")))

    board = editor.drop_from_panel(_between(1), "FILTER")

    section = board.sections[1]
    assert isinstance(section, FilterGroupSection)
    assert section.group.id == "fg_0"
    assert section.group.title == DEFAULT_FILTER_GROUP_TITLE
    assert section.group.widgets == ()


def test_filter_panel_drop_inside_section_appends_group() -> None:
    editor = DashboardEditor(dashboard(widget_section("s1"), widget_section("s2")))

    board = editor.drop_from_panel(_within("s1", 0), "FILTER")

    assert [section.id for section in board.sections] == ["s1", "s2", "s_0"]
    assert isinstance(board.sections[-1], FilterGroupSection)


def test_panel_drop_into_missing_section_is_ignored() -> None:
    original = dashboard(widget_section("s1"))
    editor = DashboardEditor(original)

    assert editor.drop_from_panel(_within("gone", 0), "XS") is original


def test_move_within_same_section() -> None:
    editor = DashboardEditor(dashboard(widget_section("s1", *widgets("a", "b", "c"))))

    assert _layout(editor.move_widget("a", _within("s1", 2))) == [("s1", ["b", "a", "c"])]
    assert _layout(editor.move_widget("c", _within("s1", 0))) == [("s1", ["c", "b", "a"])]


def test_move_to_other_section_removes_emptied_source() -> None:
    editor = DashboardEditor(
        dashboard(widget_section("s1", widget("a")), widget_section("s2", widget("b")))
    )

    board = editor.move_widget("a", _within("s2", 0))

    assert _layout(board) == [("s2", ["a", "b"])]


def test_emptied_filter_group_is_kept() -> None:
    editor = DashboardEditor(
        dashboard(filter_section("fg1", widget("g1")), widget_section("s1", widget("a")))
    )

    board = editor.move_widget("g1", _within("s1", 1))

    assert _layout(board) == [("fg1", []), ("s1", ["a", "g1"])]


def test_move_into_filter_group() -> None:
    editor = DashboardEditor(
        dashboard(widget_section("s1", *widgets("a", "b")), filter_section("fg1"))
    )

    board = editor.move_widget("b", _within_group("fg1", 0))

    assert _layout(board) == [("s1", ["a"]), ("fg1", ["b"])]


def test_move_between_sections_wraps_widget_in_new_section() -> None:
    editor = DashboardEditor(
        dashboard(widget_section("s1", widget("a")), widget_section("s2", widget("b")))
    )

    board = editor.move_widget("a", _between(2))

    assert _layout(board) == [("s2", ["b"]), ("s_0", ["a"])]


def test_move_to_wrong_zone_kind_is_ignored() -> None:
    original = dashboard(widget_section("s1", widget("a")), filter_section("fg1"))
    editor = DashboardEditor(original)

    assert editor.move_widget("a", _within("fg1", 0)) is original
    assert editor.move_widget("missing", _within("s1", 0)) is original


def test_move_section() -> None:
    editor = DashboardEditor(
        dashboard(widget_section("A"), widget_section("B"), widget_section("C"))
    )

    assert [section.id for section in editor.move_section("A", 2).sections] == ["B", "A", "C"]
    assert [section.id for section in editor.move_section("A", 3).sections] == ["B", "C", "A"]
    assert [section.id for section in editor.move_section("A", 0).sections] == ["A", "B", "C"]


def test_apply_drop_dispatches_by_drag_kind() -> None:
    editor = DashboardEditor(
        dashboard(widget_section("s1", widget("a")), widget_section("s2", widget("b")))
    )

    board = editor.apply_drop(_between(0), DragState.for_section("s2"))
    assert [section.id for section in board.sections] == ["s2", "s1"]

    board = editor.apply_drop(_within("s1", 1), DragState.from_panel("S"))
    assert _layout(board) == [("s2", ["b"]), ("s1", ["a", "w_0"])]

    board = editor.apply_drop(_within("s1", 0), DragState.for_widget(widget("b")))
    assert _layout(board) == [("s1", ["b", "a", "w_0"])]


def test_apply_drop_aborts_on_missing_or_invalid_zone() -> None:
    original = dashboard(widget_section("s1", widget("a")))
    editor = DashboardEditor(original)
    invalid = DropZone(
        type=DropZoneType.WITHIN_SECTION,
        position=0,
        top=0,
        bottom=0,
        left=0,
        right=0,
        section_id="s1",
        is_invalid=True,
    )

    assert editor.apply_drop(None, DragState.from_panel("XS")) is original
    assert editor.apply_drop(invalid, DragState.from_panel("XS")) is original
    assert editor.apply_drop(_within("s1", 0), DragState.for_section("s1")) is original


def test_delete_widget_and_section() -> None:
    editor = DashboardEditor(
        dashboard(
            widget_section("s1", widget("a")),
            filter_section("fg1", widget("g1")),
            widget_section("s2", *widgets("b", "c")),
        )
    )

    editor.delete_widget("a")
    editor.delete_widget("g1")
    board = editor.delete_widget("b")
    assert _layout(board) == [("fg1", []), ("s2", ["c"])]

    board = editor.delete_section("fg1")
    assert _layout(board) == [("s2", ["c"])]


def test_move_widget_to_filter_group_takes_source_slot() -> None:
    editor = DashboardEditor(
        dashboard(widget_section("s1", widget("x")), widget_section("s2", *widgets("a", "b")))
    )

    board = editor.move_widget_to_filter_group("a")
    assert _layout(board) == [("s1", ["x"]), ("s_0", ["a"]), ("s2", ["b"])]
    assert isinstance(board.sections[1], FilterGroupSection)

    board = editor.move_widget_to_filter_group("x")
    assert _layout(board) == [("s_1", ["x"]), ("s_0", ["a"]), ("s2", ["b"])]


def test_add_widget_to_last_section() -> None:
    engine = GridLayoutEngine()
    editor = DashboardEditor()

    board = editor.add_widget_to_last_section("M", 1280, engine)
    assert _layout(board) == [("s_0", ["w_0"])]

    board = editor.add_widget_to_last_section("XS", 1280, engine)
    assert _layout(board) == [("s_0", ["w_0", "w_1"])]

    board = editor.add_widget_to_last_section("FILTER", 1280, engine)
    assert isinstance(board.sections[-1], FilterGroupSection)

    board = editor.add_widget_to_last_section("S", 1280, engine)
    assert isinstance(board.sections[-1], WidgetSection)
    assert _layout(board)[-1] == ("s_2", ["w_2"])


def test_filter_chips_and_titles() -> None:
    editor = DashboardEditor(
        dashboard(filter_section("fg1", widget("g1"), group_id="group-1"))
    )

    editor.add_filter_chip("group-1", "Country")
    board = editor.add_filter_chip("group-1")
    group = board.sections[0].group
    assert [(chip.id, chip.label) for chip in group.filters] == [
        ("filter_0", "Country"),
        ("filter_1", "Filter"),
    ]

    board = editor.remove_filter_chip("group-1", "filter_0")
    assert [chip.id for chip in board.sections[0].group.filters] == ["filter_1"]

    board = editor.rename_filter_group("group-1", "   ")
    assert board.sections[0].group.title == DEFAULT_FILTER_GROUP_TITLE

    board = editor.rename_widget("g1", "Revenue")
    assert board.sections[0].group.widgets[0].title == "Revenue"


def test_unknown_targets_leave_dashboard_untouched() -> None:
    original = dashboard(widget_section("s1", widget("a")))
    editor = DashboardEditor(original)

    assert editor.add_filter_chip("missing") is original
    assert editor.rename_widget("missing", "x") is original
    assert editor.move_section("missing", 0) is original
    assert editor.move_widget_to_filter_group("missing") is original
