from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator


def _wire_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class Query:
    """
    Ordered filter parameters of a list request.

    Setting a key twice replaces the value in place instead of adding a
    second parameter; some services care about the order on the wire.
    """

    def __init__(self) -> None:
        self._params: dict[str, str] = {}

    def set(self, key: str, value: Any) -> "Query":
        self._params[key] = _wire_value(value)
        return self

    def remove(self, key: str) -> "Query":
        self._params.pop(key, None)
        return self

    def get(self, key: str) -> str | None:
        return self._params.get(key)

    def to_wire(self) -> list[tuple[str, str]]:
        return list(self._params.items())

    def copy(self) -> "Query":
        other = Query()
        other._params = dict(self._params)
        return other

    def __contains__(self, key: object) -> bool:
        return key in self._params

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"Query({self.to_wire()!r})"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortPolicy(str, Enum):
    """How a sort key is honoured for a resource family."""

    SERVER = "server"
    CLIENT = "client"
    REJECT = "reject"


class SortKey(str, Enum):
    """
    Base for per-family sort key enums.

    Each member value is the ``sort_key`` wire name. ``attribute`` names the
    model field used for client-side ordering and ``policy`` tells the
    engine where sorting happens.
    """

    @property
    def attribute(self) -> str:
        return self.value

    @property
    def policy(self) -> SortPolicy:
        return SortPolicy.SERVER


@dataclass(frozen=True)
class Sort:
    key: SortKey
    direction: Direction = Direction.ASC

    @classmethod
    def asc(cls, key: SortKey) -> "Sort":
        return cls(key, Direction.ASC)

    @classmethod
    def desc(cls, key: SortKey) -> "Sort":
        return cls(key, Direction.DESC)


class SortSpec:
    def __init__(self) -> None:
        self._items: list[Sort] = []

    def append(self, sort: Sort) -> None:
        self._items.append(sort)

    @property
    def client_side(self) -> bool:
        return any(s.key.policy is SortPolicy.CLIENT for s in self._items)

    def to_wire(self) -> list[tuple[str, str]]:
        out: list[tuple[str, str]] = []
        for s in self._items:
            out += [("sort_key", s.key.value), ("sort_dir", s.direction.value)]
        return out

    def apply(self, items: list[Any]) -> list[Any]:
        """Stable multi-key sort; the primary key is applied last."""
        result = list(items)
        for s in reversed(self._items):
            result.sort(
                key=lambda item, attr=s.key.attribute: _sort_value(getattr(item, attr, None)),
                reverse=s.direction is Direction.DESC,
            )
        return result

    def __iter__(self) -> Iterator[Sort]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


def _sort_value(value: Any) -> tuple[int, Any]:
    # None sorts before everything else
    if value is None:
        return (0, 0)
    return (1, value)
