from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, TypeVar

from stackfind.engine.pagination import DEFAULT_PAGE_SIZE
from stackfind.engine.resource_query import ResourceQuery
from stackfind.errors import Ambiguous, NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceLoader(Generic[T]):
    """
    Resolves an ID or a name into exactly one resource.

    IDs are tried first with a direct lookup. Names go through a filtered
    listing and must match exactly one resource; duplicates are reported,
    never silently resolved to the first hit.
    """

    def __init__(
        self,
        session,
        query_cls: type[ResourceQuery],
        page_size: int = DEFAULT_PAGE_SIZE,
        scope: Mapping[str, str] | None = None,
    ):
        self.session = session
        self.query_cls = query_cls
        self.kind = query_cls.kind
        self.page_size = page_size
        self.scope = dict(scope or {})

    def load(self, identifier: str) -> T:
        kind = self.kind
        if kind.looks_like_id(identifier):
            try:
                return kind.get_by_id(self.session, identifier, self.scope)
            except NotFound:
                if kind.name_filter is None:
                    raise NotFound(kind.name, identifier)
                logger.debug("No %s with ID %s, trying it as a name", kind.name, identifier)
        elif kind.name_filter is None:
            raise NotFound(kind.name, identifier)

        query = self.query_cls(self.session, page_size=self.page_size, scope=self.scope)
        query.with_filter(kind.name_filter, identifier)
        matches = [item for item in query.all() if getattr(item, "name", None) == identifier]

        if not matches:
            raise NotFound(kind.name, identifier)
        if len(matches) > 1:
            raise Ambiguous(kind.name, identifier, [_identity(kind, m) for m in matches])
        return self.promote(matches[0])

    def promote(self, item: Any) -> T:
        """Fetch the full representation of a summary, if it is one."""
        kind = self.kind
        if isinstance(item, kind.detail_model) or kind.get_path is None:
            return item
        return kind.get_by_id(self.session, _identity(kind, item), self.scope)


def _identity(kind, item: Any) -> str:
    ident = getattr(item, "id", None)
    return str(ident) if ident is not None else kind.marker_of(item)
