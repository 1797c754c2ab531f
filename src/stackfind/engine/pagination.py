from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence

from stackfind.engine.resource import ResourceKind, Session
from stackfind.errors import QueryTimeout

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PaginationState:
    marker: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    consumed: int = 0
    exhausted: bool = False


class PaginationCursor:
    """
    Walks a marker-paginated listing one page at a time.

    Pages are requested strictly in order: the marker for the next request is
    derived from the last item of the previous page. Iteration stops on an
    empty page, on a short page, once ``limit`` items were produced, or when
    the server hands back the same marker twice.
    """

    def __init__(
        self,
        kind: ResourceKind,
        session: Session,
        params: Sequence[tuple[str, str]] = (),
        page_size: int = DEFAULT_PAGE_SIZE,
        limit: Optional[int] = None,
        scope: Mapping[str, str] | None = None,
        deadline: Optional[datetime] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.kind = kind
        self.session = session
        self.params = list(params)
        self.limit = limit
        self.scope = dict(scope or {})
        self.deadline = deadline
        self.clock = clock
        self.state = PaginationState(page_size=page_size)
        self.requests = 0
        self._received: list[Any] = []

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(self.limit - self.state.consumed, 0)

    def _request_size(self) -> int:
        remaining = self.remaining
        if remaining is None:
            return self.state.page_size
        return min(self.state.page_size, remaining)

    def _check_deadline(self) -> None:
        if self.deadline is not None and self.clock() >= self.deadline:
            logger.warning("Deadline passed while listing %s after %d request(s)", self.kind.name, self.requests)
            raise QueryTimeout(self.kind.name, list(self._received))

    def fetch_page(self) -> list[Any]:
        """Issue a single request for the page after the current marker."""
        self._check_deadline()
        size = self._request_size()
        wire = self.params + [("limit", str(size))]
        if self.state.marker is not None:
            wire.append(("marker", self.state.marker))
        self.requests += 1
        page = self.kind.list(self.session, wire, self.scope)
        logger.debug("Received %d %s item(s) (request %d, marker=%s)", len(page), self.kind.name, self.requests, self.state.marker)
        return page

    def pages(self) -> Iterator[list[Any]]:
        while not self.state.exhausted:
            if self.remaining == 0:
                self.state.exhausted = True
                return

            requested = self._request_size()
            used_marker = self.state.marker
            page = self.fetch_page()
            if not page:
                self.state.exhausted = True
                return

            remaining = self.remaining
            chunk = page if remaining is None else page[:remaining]
            self.state.consumed += len(chunk)
            self._received.extend(chunk)

            next_marker = self.kind.marker_of(page[-1])
            if remaining is not None and len(page) >= remaining:
                self.state.exhausted = True
            elif next_marker == used_marker:
                logger.warning("Server returned marker %s again for %s, stopping", next_marker, self.kind.name)
                self.state.exhausted = True
            elif len(page) < requested:
                self.state.exhausted = True
            self.state.marker = next_marker

            yield chunk

    def __iter__(self) -> Iterator[Any]:
        for page in self.pages():
            yield from page

    def collect(self) -> list[Any]:
        for _ in self.pages():
            pass
        return list(self._received)
