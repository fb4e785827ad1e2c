from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.models import Rect, SectionGeometry


class GeometryProvider(Protocol):
    def canvas_rect(self) -> Rect: ...

    def section_geometries(self) -> Sequence[SectionGeometry]: ...
