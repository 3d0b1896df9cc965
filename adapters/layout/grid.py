from __future__ import annotations

from dataclasses import dataclass

from domain.models import NodePlacement, Point, Size
from domain.ports.layout import NodeLayoutEngine


@dataclass(frozen=True)
class LayoutConfig:
    nodes_per_row: int = 5
    horizontal_spacing: float = 200.0
    vertical_spacing: float = 150.0
    origin: Point = Point(100.0, 100.0)
    font_size: float = 12.0
    char_width_ratio: float = 0.6
    line_gap: float = 6.0
    padding: float = 30.0
    min_width: float = 80.0


class GridLayoutEngine(NodeLayoutEngine):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def place(self, index: int, label: str, namespace: str | None) -> NodePlacement:
        return NodePlacement(
            position=self.position(index),
            size=self.estimate_size(label, namespace),
        )

    def position(self, index: int) -> Point:
        per_row = max(self.config.nodes_per_row, 1)
        col = index % per_row
        row = index // per_row
        return Point(
            self.config.origin.x + col * self.config.horizontal_spacing,
            self.config.origin.y + row * self.config.vertical_spacing,
        )

    def estimate_size(self, label: str, namespace: str | None = None) -> Size:
        text = f"{label}\n(ns: {namespace})" if namespace else label
        lines = text.split("\n")
        longest = max((len(line) for line in lines), default=0)
        width = max(
            self.config.min_width,
            longest * self.config.font_size * self.config.char_width_ratio + self.config.padding,
        )
        height = len(lines) * (self.config.font_size + self.config.line_gap) + self.config.padding
        return Size(width, height)
