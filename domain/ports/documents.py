from __future__ import annotations

from typing import Any, Protocol


class DocumentDecoder(Protocol):
    def decode(self, text: str) -> list[Any]: ...
