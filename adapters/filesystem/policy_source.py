from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from domain.errors import PolicyDecodeError
from domain.ports.repositories import PolicySource

DEFAULT_PATTERNS = ("*.yaml", "*.yml", "*.json")
DOCUMENT_SEPARATOR = "\n---\n"


class FileSystemPolicySource(PolicySource):
    def __init__(self, patterns: Sequence[str] = DEFAULT_PATTERNS) -> None:
        self.patterns = tuple(patterns)

    def load_text(self, path: Path) -> str:
        paths = self.iter_paths(path)
        if not paths:
            msg = f"No policy files found in {path}"
            raise PolicyDecodeError(msg)
        chunks: list[str] = []
        for file_path in paths:
            try:
                chunks.append(file_path.read_text(encoding="utf-8"))
            except UnicodeDecodeError as exc:
                msg = f"Policy file is not valid UTF-8: {file_path}"
                raise PolicyDecodeError(msg) from exc
        return DOCUMENT_SEPARATOR.join(chunks)

    def iter_paths(self, path: Path) -> list[Path]:
        if path.is_file():
            return [path]
        if not path.is_dir():
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        found: set[Path] = set()
        for pattern in self.patterns:
            found.update(item for item in path.glob(pattern) if item.is_file())
        return sorted(found)
