"""Ordered "first match wins" extraction over loosely-typed vendor payloads.

Vendors name the same semantic field differently (``title``/``name``/``heading``,
``url``/``link``...). A :class:`FieldPicker` holds an explicit priority list of
``(key_path, extractor)`` candidates and returns the first non-empty value.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

Extractor = Callable[[Any], Any]
KeyPath = Tuple[str, ...]


def dig(obj: Any, path: Sequence[str]) -> Any:
    """Walk nested mappings; missing keys and non-mapping hops yield None."""
    current = obj
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def as_text(value: Any) -> str | None:
    """Accept only non-empty strings."""
    if isinstance(value, str) and value:
        return value
    return None


def as_scalar_text(value: Any) -> str | None:
    """Accept non-empty strings and numbers (rendered as text)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return as_text(value)


def is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def as_list(value: Any) -> List[Any]:
    """The value itself when it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


class FieldCandidate(BaseModel):
    """One ``key_path`` plus the extractor applied to the value found there."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: KeyPath
    extractor: Extractor = as_text

    def extract(self, obj: Any) -> Any:
        value = dig(obj, self.path)
        if value is None:
            return None
        return self.extractor(value)


class FieldPicker:
    """Evaluate candidates in priority order until one yields a value."""

    def __init__(self, candidates: Iterable[FieldCandidate]) -> None:
        self.candidates: List[FieldCandidate] = list(candidates)

    @classmethod
    def keys(cls, *keys: str, extractor: Extractor = as_text) -> FieldPicker:
        """Build a picker over top-level keys sharing one extractor."""
        return cls(FieldCandidate(path=(key,), extractor=extractor) for key in keys)

    @classmethod
    def paths(cls, *paths: Sequence[str], extractor: Extractor = as_text) -> FieldPicker:
        return cls(FieldCandidate(path=tuple(path), extractor=extractor) for path in paths)

    def pick(self, obj: Any, default: Any = None) -> Any:
        for candidate in self.candidates:
            value = candidate.extract(obj)
            if not is_empty(value):
                return value
        return default

    def pick_all(self, obj: Any) -> List[Any]:
        """Every non-empty candidate value, in priority order."""
        values = []
        for candidate in self.candidates:
            value = candidate.extract(obj)
            if not is_empty(value):
                values.append(value)
        return values

    def __or__(self, other: FieldPicker) -> FieldPicker:
        return FieldPicker([*self.candidates, *other.candidates])
