from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Iterator, Mapping, Optional, TypeVar

from stackfind.engine.pagination import DEFAULT_PAGE_SIZE, PaginationCursor, utcnow
from stackfind.engine.query import Direction, Query, Sort, SortKey, SortPolicy, SortSpec
from stackfind.engine.resource import ResourceKind, Session
from stackfind.errors import Ambiguous, NotFound, QueryConsumed, UnsupportedSort

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceQuery(Generic[T]):
    """
    Builder for a listing request against one resource family.

    Configure it with the ``with_*`` setters and ``sort_by``, then call one
    terminal method (``fetch``, ``all``, ``one`` or iterate over it). A
    builder is single-owner and can only be executed once; build a new one
    to run the same listing again.

    Subclasses set ``kind`` and ``sort_keys`` and add filter setters that map
    to exactly one query parameter each.
    """

    kind: ResourceKind
    sort_keys: Optional[type[SortKey]] = None

    def __init__(
        self,
        session: Session,
        page_size: int = DEFAULT_PAGE_SIZE,
        scope: Mapping[str, str] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.query = Query()
        self.sort = SortSpec()
        self.limit: Optional[int] = None
        self.page_size = page_size
        self.scope = dict(scope or {})
        self.deadline: Optional[datetime] = None
        self.clock = clock
        self._consumed = False

    def with_filter(self, key: str, value: Any) -> "ResourceQuery[T]":
        self.query.set(key, value)
        return self

    def without_filter(self, key: str) -> "ResourceQuery[T]":
        self.query.remove(key)
        return self

    def sort_by(self, sort: Sort | SortKey, direction: Direction = Direction.ASC) -> "ResourceQuery[T]":
        if isinstance(sort, SortKey):
            sort = Sort(sort, direction)
        if self.sort_keys is None or not isinstance(sort.key, self.sort_keys):
            raise TypeError(f"{sort.key!r} is not a sort key for {self.kind.name}")
        if sort.key.policy is SortPolicy.REJECT:
            raise UnsupportedSort(f"Sorting {self.kind.name} by {sort.key.value} is not supported")
        self.sort.append(sort)
        return self

    def with_limit(self, limit: int) -> "ResourceQuery[T]":
        """Cap the total number of items returned by ``fetch`` or ``all``."""
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.limit = limit
        return self

    def with_page_size(self, page_size: int) -> "ResourceQuery[T]":
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        return self

    def with_deadline(self, deadline: datetime) -> "ResourceQuery[T]":
        """Stop paginating once ``deadline`` passes. Naive values are local time."""
        if deadline.tzinfo is None:
            deadline = deadline.astimezone(timezone.utc)
        self.deadline = deadline
        return self

    def _consume(self) -> None:
        if self._consumed:
            raise QueryConsumed(f"This {self.kind.name} query has already been executed")
        self._consumed = True

    def _params(self) -> list[tuple[str, str]]:
        params = self.query.to_wire()
        if self.sort and self.kind.sortable and not self.sort.client_side:
            params += self.sort.to_wire()
        return params

    def _cursor(self, limit: Optional[int]) -> PaginationCursor:
        logger.debug("Querying %s with %r, limit=%s, page_size=%d", self.kind.name, self.query, limit, self.page_size)
        return PaginationCursor(
            self.kind,
            self.session,
            self._params(),
            page_size=self.page_size,
            limit=limit,
            scope=self.scope,
            deadline=self.deadline,
            clock=self.clock,
        )

    def fetch(self) -> list[T]:
        """
        Return one page of results, at most ``limit`` items.

        Only a single request is made, so fewer than ``limit`` items may come
        back even when more exist. With a client-side sort only the received
        page is sorted.
        """
        self._consume()
        if self.limit == 0:
            return []
        cursor = self._cursor(self.limit)
        items = cursor.fetch_page()
        if self.sort.client_side:
            items = self.sort.apply(items)
        if self.limit is not None:
            items = items[: self.limit]
        return items

    def all(self) -> list[T]:
        """Return every matching item, up to ``limit``, in order."""
        self._consume()
        if self.limit == 0:
            return []
        if self.sort.client_side:
            # the cap only applies once the full listing is ordered
            items = self.sort.apply(self._cursor(None).collect())
            return items if self.limit is None else items[: self.limit]
        return self._cursor(self.limit).collect()

    def one(self) -> T:
        """Return the only matching item, failing when there are none or several."""
        label = ", ".join(f"{k}={v}" for k, v in self.query.to_wire()) or "<all>"
        items = self.all()
        if not items:
            raise NotFound(self.kind.name, label)
        if len(items) > 1:
            raise Ambiguous(self.kind.name, label, [self.kind.marker_of(i) for i in items])
        return items[0]

    def __iter__(self) -> Iterator[T]:
        self._consume()
        if self.limit == 0:
            return iter(())
        if self.sort.client_side:
            return iter(self.sort.apply(self._cursor(None).collect())[: self.limit])
        return iter(self._cursor(self.limit))
