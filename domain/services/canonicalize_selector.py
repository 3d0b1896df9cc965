from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from domain.models import ANY_LABEL, LabelSelector, MatchExpression


@dataclass(frozen=True)
class CanonicalSelector:
    selector: LabelSelector
    text: str


def canonicalize_selector(raw: Any) -> CanonicalSelector | None:
    """Build a selector and its display text from a selector-shaped record.

    Returns ``None`` when ``raw`` is not a mapping at all. A mapping without
    usable ``matchLabels`` or ``matchExpressions`` is the empty selector,
    which matches everything and renders as ``any``.
    """
    if not isinstance(raw, Mapping):
        return None
    selector = LabelSelector(
        match_labels=_normalize_match_labels(raw.get("matchLabels")),
        match_expressions=_normalize_match_expressions(raw.get("matchExpressions")),
    )
    return CanonicalSelector(selector=selector, text=selector_text(selector))


def normalize_selector(raw: Any) -> LabelSelector | None:
    canonical = canonicalize_selector(raw)
    return canonical.selector if canonical else None


def selector_text(selector: LabelSelector | None) -> str:
    if selector is None or selector.is_empty():
        return ANY_LABEL
    parts: list[str] = []
    for key, value in (selector.match_labels or {}).items():
        parts.append(f"{key}={value}")
    for expression in selector.match_expressions or []:
        parts.append(_expression_text(expression))
    return ", ".join(parts)


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _expression_text(expression: MatchExpression) -> str:
    if not expression.values:
        return f"{expression.key} {expression.operator}"
    return f"{expression.key} {expression.operator} {','.join(expression.values)}"


def _normalize_match_labels(raw: Any) -> dict[str, str] | None:
    if not isinstance(raw, Mapping):
        return None
    return {stringify(key): stringify(value) for key, value in raw.items()}


def _normalize_match_expressions(raw: Any) -> list[MatchExpression] | None:
    if not isinstance(raw, list):
        return None
    expressions: list[MatchExpression] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        key = item.get("key")
        operator = item.get("operator")
        if not isinstance(key, str) or not isinstance(operator, str):
            continue
        raw_values = item.get("values")
        values = (
            [stringify(value) for value in raw_values] if isinstance(raw_values, list) else None
        )
        expressions.append(MatchExpression(key=key, operator=operator, values=values))
    return expressions
