from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from app.config import AppSettings, LayoutSettings, WebSettings
from domain.models import Dashboard
from tests.helpers.dashboard_fixtures import load_dashboard_fixture


def _clear_dash_env() -> None:
    for key in list(os.environ):
        if key.startswith("DASH_"):
            os.environ.pop(key, None)


_clear_dash_env()


@pytest.fixture(autouse=True)
def clear_dash_env() -> Generator[None, None, None]:
    _clear_dash_env()
    yield
    _clear_dash_env()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        layout=LayoutSettings(),
        web=WebSettings(title="Test Dashboard", default_container_width=1280.0),
    )


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory


@pytest.fixture
def overview_dashboard() -> Dashboard:
    return load_dashboard_fixture("overview.json")


@pytest.fixture
def dashboard_file(tmp_path: Path) -> Callable[[Dashboard], Path]:
    def _write(dashboard: Dashboard) -> Path:
        path = tmp_path / "dashboard.json"
        path.write_text(dashboard.model_dump_json(by_alias=True), encoding="utf-8")
        return path

    return _write
