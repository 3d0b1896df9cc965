from __future__ import annotations

from typing import Any

import yaml

from domain.errors import PolicyDecodeError
from domain.ports.documents import DocumentDecoder


class YamlDocumentDecoder(DocumentDecoder):
    def decode(self, text: str) -> list[Any]:
        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as exc:
            msg = f"Error parsing policies: {_describe(exc)}"
            raise PolicyDecodeError(msg) from exc
        return [document for document in documents if document is not None]


def _describe(exc: yaml.YAMLError) -> str:
    problem = getattr(exc, "problem", None)
    mark = getattr(exc, "problem_mark", None)
    if problem and mark is not None:
        return f"{problem} (line {mark.line + 1}, column {mark.column + 1})"
    return str(exc).strip() or exc.__class__.__name__
