from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from domain.models import Dashboard


class DashboardRepository(Protocol):
    def load_all(self, directory: Path) -> Sequence[Dashboard]: ...

    def load_all_with_paths(self, directory: Path) -> Sequence[tuple[Path, Dashboard]]: ...

    def load_by_path(self, path: Path) -> Dashboard: ...
