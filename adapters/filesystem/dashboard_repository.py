from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

from domain.models import Dashboard
from domain.ports.repositories import DashboardRepository


class FileSystemDashboardRepository(DashboardRepository):
    def load_all(self, directory: Path) -> List[Dashboard]:
        return [dashboard for _, dashboard in self.load_all_with_paths(directory)]

    def load_all_with_paths(self, directory: Path) -> List[tuple[Path, Dashboard]]:
        return [(path, self.load_by_path(path)) for path in sorted(self._iter_paths(directory))]

    def load_by_path(self, path: Path) -> Dashboard:
        text = path.read_text(encoding="utf-8")
        content = json.loads(self._strip_comments(text))
        if isinstance(content, list):
            content = {"sections": content}
        return Dashboard.model_validate(content)

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        yield from directory.glob("*.json")

    def _strip_comments(self, content: str) -> str:
        result_lines: List[str] = []
        for line in content.splitlines():
            in_string = False
            escaped = False
            cleaned = []
            for idx, char in enumerate(line):
                if not escaped and char == '"':
                    in_string = not in_string
                if not in_string and char == "/" and idx + 1 < len(line) and line[idx + 1] == "/":
                    break
                cleaned.append(char)
                escaped = char == "\\" and not escaped
            result_lines.append("".join(cleaned))
        return "\n".join(result_lines)
