from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from adapters.filesystem.dashboard_repository import FileSystemDashboardRepository
from adapters.filesystem.json_utils import dump_json_text, load_json
from adapters.geometry.snapshot import SnapshotGeometryProvider
from app.config import load_settings
from app.dashboard_wiring import DashboardContext, build_dashboard_context
from domain.models import Dashboard, DragState, Layout, RowBlock

app = typer.Typer(no_args_is_help=True)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log layout decisions."),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _context(config: Optional[Path]) -> DashboardContext:
    return build_dashboard_context(load_settings(config))


def _load_dashboard(path: Path) -> Dashboard:
    if not path.exists():
        console.print(f"[red]File not found:[/] {path}")
        raise typer.Exit(code=1)
    try:
        return FileSystemDashboardRepository().load_by_path(path)
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid dashboard:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _describe(layout: Layout, section_id: str) -> Table:
    table = Table(title=f"{section_id} ({layout.type}, {layout.col_count} col)")
    table.add_column("Row", justify="right")
    table.add_column("Cells")
    table.add_column("Used", justify="right")
    for idx, row in enumerate(layout.rows):
        labels = []
        for cell in row.cells:
            item = cell.item
            if isinstance(item, RowBlock):
                rail = ", ".join(widget.id for widget in item.rail)
                labels.append(escape(f"{item.id}[{item.main.id} | {rail}]:{cell.span}"))
            else:
                labels.append(f"{item.id}({item.size.value}):{cell.span}")
        suffix = " =" if row.distribute_equally else ""
        table.add_row(str(idx), "  ".join(labels) + suffix, f"{row.used_cols}/{layout.col_count}")
    return table


@app.command("columns")
def columns(
    width: float = typer.Argument(..., help="Container width in pixels."),
    config: Optional[Path] = typer.Option(None, help="Settings YAML file."),
) -> None:
    console.print(_context(config).layout_engine.col_count(width))


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Dashboard JSON file to validate."),
) -> None:
    dashboard = _load_dashboard(input_path)
    widgets = sum(len(section.item_widgets()) for section in dashboard.sections)
    console.print(
        f"[green]Valid dashboard[/] ({len(dashboard.sections)} sections, {widgets} widgets): "
        f"{input_path}"
    )


@app.command("layout")
def layout(
    input_path: Path = typer.Argument(..., help="Dashboard JSON file."),
    width: float = typer.Option(1280.0, help="Container width in pixels."),
    as_json: bool = typer.Option(False, "--json", help="Print layouts as JSON."),
    config: Optional[Path] = typer.Option(None, help="Settings YAML file."),
) -> None:
    dashboard = _load_dashboard(input_path)
    context = _context(config)
    layouts = context.layout_engine.layout_dashboard(dashboard.sections, width)
    if as_json:
        payload = [
            {"sectionId": section.id, **section_layout.to_dict()}
            for section, section_layout in zip(dashboard.sections, layouts)
        ]
        typer.echo(dump_json_text(payload))
        return
    if not layouts:
        console.print("[yellow]Dashboard has no sections[/]")
        return
    for section, section_layout in zip(dashboard.sections, layouts):
        console.print(_describe(section_layout, section.id))


@app.command("drop-target")
def drop_target(
    input_path: Path = typer.Argument(..., help="Dashboard JSON file."),
    x: float = typer.Option(..., help="Pointer x coordinate."),
    y: float = typer.Option(..., help="Pointer y coordinate."),
    width: float = typer.Option(1280.0, help="Container width in pixels."),
    drag_size: Optional[str] = typer.Option(None, help="Size dragged from the panel."),
    drag_widget: Optional[str] = typer.Option(None, help="Id of the widget being moved."),
    drag_section: Optional[str] = typer.Option(None, help="Id of the section being moved."),
    geometry_path: Optional[Path] = typer.Option(
        None, "--geometry", help="Geometry snapshot JSON; computed from the layout when omitted."
    ),
    config: Optional[Path] = typer.Option(None, help="Settings YAML file."),
) -> None:
    dashboard = _load_dashboard(input_path)
    context = _context(config)

    if drag_widget:
        owner = dashboard.find_widget_owner(drag_widget)
        if owner is None:
            console.print(f"[red]Unknown widget:[/] {drag_widget}")
            raise typer.Exit(code=1)
        widget = next(item for item in owner.item_widgets() if item.id == drag_widget)
        drag_state = DragState.for_widget(widget)
    elif drag_section:
        drag_state = DragState.for_section(drag_section)
    elif drag_size:
        drag_state = DragState.from_panel(drag_size)
    else:
        drag_state = DragState()

    geometry = None
    if geometry_path is not None:
        if not geometry_path.exists():
            console.print(f"[red]File not found:[/] {geometry_path}")
            raise typer.Exit(code=1)
        try:
            geometry = SnapshotGeometryProvider.from_payload(load_json(geometry_path))
        except (ValidationError, ValueError) as exc:
            console.print(f"[red]Invalid geometry snapshot:[/] {escape(str(exc))}")
            raise typer.Exit(code=1) from exc

    zone = context.resolve(dashboard, width, x, y, drag_state, geometry)
    if zone is None:
        console.print("[yellow]No drop target[/]")
        raise typer.Exit(code=0)
    color = "red" if zone.is_invalid else "green"
    console.print(f"[{color}]{zone.type.value}[/] {dump_json_text(zone.to_dict())}")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    uvicorn.run("app.web_main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
