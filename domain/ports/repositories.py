from __future__ import annotations

from pathlib import Path
from typing import Protocol


class PolicySource(Protocol):
    def load_text(self, path: Path) -> str: ...

    def iter_paths(self, path: Path) -> list[Path]: ...
