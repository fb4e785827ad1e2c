from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar, List, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.geometry.grid_geometry import GeometryConfig
from adapters.layout.grid import LayoutConfig
from domain.models import FilterGroupLayout
from domain.services.drop_zones import DropZoneConfig
from domain.widget_catalog import DEFAULT_MIN_HEIGHTS_REM, WidgetCatalog

DEFAULT_CONFIG_PATH = Path("config/dashboard.yaml")


def _parse_breakpoint(value: object) -> Tuple[float, int]:
    try:
        if isinstance(value, dict):
            return float(value["min_width"]), int(value["cols"])
        if isinstance(value, str):
            width, _, cols = value.partition(":")
            return float(width), int(cols)
        width, cols = value  # type: ignore[misc]
        return float(width), int(cols)
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"invalid breakpoint {value!r}, expected min_width:cols"
        raise ValueError(msg) from exc


class LayoutSettings(BaseModel):
    max_rail_items: int = Field(4, ge=0)
    tolerance_rem: float = 2.0
    v_gap_rem: float = 0.75
    breakpoints: Annotated[List[Tuple[float, int]], NoDecode] = Field(
        default_factory=lambda: [(1200.0, 4), (900.0, 3), (600.0, 2)]
    )
    min_col_count: int = 1
    rem_px: float = 16.0
    column_gap_px: float = 12.0
    row_gap_px: float = 12.0
    section_gap_px: float = 20.0
    padding_x_px: float = 20.0
    padding_y_px: float = 20.0
    filter_header_px: float = 48.0
    empty_group_height_px: float = 160.0
    empty_section_height_px: float = 96.0

    @field_validator("breakpoints", mode="before")
    @classmethod
    def normalize_breakpoints(cls, value: object) -> List[Tuple[float, int]]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            value = [token.strip() for token in value.split(",") if token.strip()]
        if not isinstance(value, (list, tuple)):
            msg = "layout.breakpoints must be a list of (min_width, cols) pairs"
            raise ValueError(msg)
        return [_parse_breakpoint(item) for item in value]

    @field_validator("breakpoints", mode="after")
    @classmethod
    def ensure_descending(cls, value: List[Tuple[float, int]]) -> List[Tuple[float, int]]:
        widths = [width for width, _ in value]
        if any(later >= earlier for earlier, later in zip(widths, widths[1:])):
            msg = "layout.breakpoints must be ordered by strictly descending width"
            raise ValueError(msg)
        return value

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            max_rail_items=self.max_rail_items,
            tolerance_rem=self.tolerance_rem,
            v_gap_rem=self.v_gap_rem,
            breakpoints=tuple(self.breakpoints),
            min_col_count=self.min_col_count,
        )

    def to_geometry_config(self) -> GeometryConfig:
        return GeometryConfig(
            rem_px=self.rem_px,
            column_gap_px=self.column_gap_px,
            row_gap_px=self.row_gap_px,
            section_gap_px=self.section_gap_px,
            padding_x_px=self.padding_x_px,
            padding_y_px=self.padding_y_px,
            rail_gap_rem=self.v_gap_rem,
            filter_header_px=self.filter_header_px,
            empty_group_height_px=self.empty_group_height_px,
            empty_section_height_px=self.empty_section_height_px,
        )


class WidgetSettings(BaseModel):
    min_heights_rem: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_MIN_HEIGHTS_REM))

    @field_validator("min_heights_rem", mode="after")
    @classmethod
    def ensure_known_tokens(cls, value: dict[str, float]) -> dict[str, float]:
        unknown = sorted(set(value) - set(DEFAULT_MIN_HEIGHTS_REM))
        if unknown:
            msg = f"widgets.min_heights_rem has unknown size tokens: {', '.join(unknown)}"
            raise ValueError(msg)
        if any(height <= 0 for height in value.values()):
            msg = "widgets.min_heights_rem values must be positive"
            raise ValueError(msg)
        return value

    def to_catalog(self) -> WidgetCatalog:
        return WidgetCatalog(self.min_heights_rem)


class FilterGroupSettings(BaseModel):
    min_item_width_px: float = 280.0
    gap_px: float = 12.0
    align_heights_in_row: bool = True

    def to_group_layout(self) -> FilterGroupLayout:
        return FilterGroupLayout(
            min_item_width_px=self.min_item_width_px,
            gap_px=self.gap_px,
            align_heights_in_row=self.align_heights_in_row,
        )


class DropZoneSettings(BaseModel):
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

    def to_drop_zone_config(self) -> DropZoneConfig:
        return DropZoneConfig(**self.model_dump())


class WebSettings(BaseModel):
    title: str = "Dashboard Grid"
    default_container_width: float = 1280.0


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DASH_", env_nested_delimiter="__")

    layout: LayoutSettings = LayoutSettings()
    widgets: WidgetSettings = WidgetSettings()
    filter_groups: FilterGroupSettings = FilterGroupSettings()
    drop_zones: DropZoneSettings = DropZoneSettings()
    web: WebSettings = WebSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("DASH_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous
