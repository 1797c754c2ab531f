from __future__ import annotations

from typing import Any, Optional, Sequence


class StackFindError(Exception):
    """Base class for every error raised by stackfind."""


class NotFound(StackFindError):
    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class Ambiguous(StackFindError):
    """Name resolution matched more than one resource."""

    def __init__(self, kind: str, identifier: str, candidates: Sequence[str]):
        self.kind = kind
        self.identifier = identifier
        self.candidates = list(candidates)
        super().__init__(
            f"Multiple {kind} resources match {identifier!r}: {', '.join(self.candidates)}"
        )


class TransportError(StackFindError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DeserializationError(StackFindError):
    pass


class AuthExpired(StackFindError):
    pass


class QueryTimeout(StackFindError):
    """
    The caller deadline passed before pagination completed.

    ``items`` holds everything accumulated before the deadline was noticed.
    """

    def __init__(self, kind: str, items: list[Any]):
        self.kind = kind
        self.items = items
        super().__init__(f"Deadline exceeded while listing {kind} ({len(items)} items received)")


class UnsupportedSort(StackFindError):
    pass


class QueryConsumed(StackFindError):
    pass


class ServiceDisabled(StackFindError):
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Service {service!r} is not enabled in settings")
