"""Metadata predicate model shared by every lookup.

A filter on a metadata key is a ``Predicate``: a value plus the operator the
pinning API applies to it. Callers may pass bare scalars (equality) or
``{"value": ..., "op": ...}`` mappings; both are normalized into
``Predicate`` once, at the query-construction boundary.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pin_substrate.errors import ValidationError


class Op(str, Enum):
    """Comparison operators understood by the pin metadata query API."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"
    NOT_BETWEEN = "notBetween"
    LIKE = "like"
    NOT_LIKE = "notLike"
    ILIKE = "iLike"
    NOT_ILIKE = "notILike"
    REGEXP = "regexp"
    IREGEXP = "iRegexp"


_RANGE_OPS = {Op.BETWEEN, Op.NOT_BETWEEN}


@dataclass(frozen=True)
class Predicate:
    """A single metadata filter: ``<key> <op> value``."""

    value: Any
    op: Op = Op.EQ
    second_value: Any = None  # upper bound for between / notBetween

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"value": self.value, "op": self.op.value}
        if self.op in _RANGE_OPS:
            wire["secondValue"] = self.second_value
        return wire

    def matches(self, actual: Any) -> bool:
        """Evaluate the predicate against a stored metadata value.

        A missing key never matches, whatever the operator.
        """
        if actual is None:
            return False

        op = self.op
        if op in (Op.EQ, Op.NE):
            equal = _compare(actual, self.value) == 0
            return equal if op is Op.EQ else not equal
        if op is Op.GT:
            return _compare(actual, self.value) > 0
        if op is Op.GTE:
            return _compare(actual, self.value) >= 0
        if op is Op.LT:
            return _compare(actual, self.value) < 0
        if op is Op.LTE:
            return _compare(actual, self.value) <= 0
        if op in _RANGE_OPS:
            inside = (
                _compare(actual, self.value) >= 0
                and _compare(actual, self.second_value) <= 0
            )
            return inside if op is Op.BETWEEN else not inside
        if op in (Op.LIKE, Op.NOT_LIKE, Op.ILIKE, Op.NOT_ILIKE):
            flags = re.IGNORECASE if op in (Op.ILIKE, Op.NOT_ILIKE) else 0
            hit = re.fullmatch(_like_to_regex(str(self.value)), str(actual), flags) is not None
            return hit if op in (Op.LIKE, Op.ILIKE) else not hit
        # regexp / iRegexp
        flags = re.IGNORECASE if op is Op.IREGEXP else 0
        return re.search(str(self.value), str(actual), flags) is not None


def equals(value: Any) -> Predicate:
    return Predicate(value, Op.EQ)


def pattern(regex: str) -> Predicate:
    return Predicate(regex, Op.REGEXP)


def starts_with(prefix: str) -> Predicate:
    """Anchored regular-expression match on a literal prefix."""
    return Predicate(f"^{re.escape(prefix)}", Op.REGEXP)


def normalize(value: Any) -> Predicate:
    """Turn a bare scalar or ``{value, op}`` mapping into a ``Predicate``."""
    if isinstance(value, Predicate):
        return value
    if isinstance(value, Mapping) and "value" in value:
        try:
            op = Op(value.get("op") or Op.EQ.value)
        except ValueError as exc:
            raise ValidationError(f"Unknown query operator: {value.get('op')!r}") from exc
        return Predicate(value["value"], op, value.get("secondValue"))
    return equals(value)


def normalize_keyvalues(keyvalues: Mapping[str, Any] | None) -> dict[str, Predicate]:
    """Normalize every filter in ``keyvalues`` into a new dict.

    The caller's mapping is left untouched.
    """
    if not keyvalues:
        return {}
    return {key: normalize(value) for key, value in keyvalues.items()}


def to_wire(predicates: Mapping[str, Predicate]) -> dict[str, dict[str, Any]]:
    """Encode predicates as the ``metadata[keyvalues]`` query document."""
    return {key: pred.to_wire() for key, pred in predicates.items()}


def matches_all(predicates: Mapping[str, Predicate], keyvalues: Mapping[str, Any]) -> bool:
    return all(pred.matches(keyvalues.get(key)) for key, pred in predicates.items())


# ── helpers ──────────────────────────────────────────────


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _compare(left: Any, right: Any) -> int:
    """Three-way compare; numeric when both sides are numbers, else textual."""
    ln, rn = _as_number(left), _as_number(right)
    if ln is not None and rn is not None:
        a: Any = ln
        b: Any = rn
    else:
        a, b = str(left), str(right)
    return (a > b) - (a < b)


def _like_to_regex(like: str) -> str:
    parts = []
    for ch in like:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)
