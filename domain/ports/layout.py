from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.models import Layout, Section


class LayoutEngine(Protocol):
    def col_count(self, container_width: float) -> int:
        ...

    def layout_section(self, section: Section, container_width: float) -> Layout:
        ...

    def layout_dashboard(
        self, sections: Sequence[Section], container_width: float
    ) -> list[Layout]:
        ...
