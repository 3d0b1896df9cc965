from __future__ import annotations

from typing import Protocol

from domain.models import NodePlacement


class NodeLayoutEngine(Protocol):
    def place(self, index: int, label: str, namespace: str | None) -> NodePlacement:
        ...
