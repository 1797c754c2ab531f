from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from stackfind.errors import DeserializationError

logger = logging.getLogger(__name__)

UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}$")
ANY_ID_RE = re.compile(r"^.+$")


class Session(Protocol):
    """What the engine needs from a session: one authenticated JSON GET."""

    def get_json(
        self,
        service: str,
        path: str,
        params: Sequence[tuple[str, str]] | None = None,
        microversion: Optional[str] = None,
    ) -> Any:
        ...


@dataclass(frozen=True)
class ResourceKind:
    """
    Describes how one resource family is listed, fetched and paginated.

    ``list_path`` and ``get_path`` are format strings; ``list_path`` receives
    the query scope (e.g. ``container``) and ``get_path`` additionally ``id``.
    """

    name: str
    service: str
    list_path: str
    model: type[BaseModel]
    collection_key: Optional[str] = None
    item_key: Optional[str] = None
    full_model: Optional[type[BaseModel]] = None
    get_path: Optional[str] = None
    get_key: Optional[str] = None
    marker_field: str = "id"
    id_pattern: Optional[re.Pattern] = UUID_RE
    name_filter: Optional[str] = "name"
    forced_params: tuple[tuple[str, str], ...] = ()
    sortable: bool = True
    microversion: Optional[str] = None

    @property
    def detail_model(self) -> type[BaseModel]:
        return self.full_model or self.model

    def looks_like_id(self, value: str) -> bool:
        return self.id_pattern is not None and self.get_path is not None and bool(self.id_pattern.match(value))

    def list(self, session: Session, params: Sequence[tuple[str, str]], scope: Mapping[str, str] | None = None) -> list[Any]:
        path = self.list_path.format(**_quoted(scope or {}))
        logger.debug("Listing %s at %s with %s", self.name, path, params)
        forced = {key for key, _ in self.forced_params}
        wire = list(self.forced_params) + [(k, v) for k, v in params if k not in forced]
        body = session.get_json(self.service, path, wire, microversion=self.microversion)
        if self.collection_key is not None:
            if not isinstance(body, dict) or self.collection_key not in body:
                raise DeserializationError(f"Expected '{self.collection_key}' in {self.name} listing")
            body = body[self.collection_key]
        if not isinstance(body, list):
            raise DeserializationError(f"Expected a list of {self.name} resources, got {type(body).__name__}")
        if self.item_key is not None:
            try:
                body = [entry[self.item_key] for entry in body]
            except (KeyError, TypeError) as exc:
                raise DeserializationError(f"Expected '{self.item_key}' wrapper in {self.name} listing") from exc
        return [self.decode(entry, self.model) for entry in body]

    def get_by_id(self, session: Session, ident: str, scope: Mapping[str, str] | None = None) -> Any:
        if self.get_path is None:
            raise TypeError(f"{self.name} cannot be fetched by ID")
        path = self.get_path.format(**_quoted(dict(scope or {}, id=ident)))
        body = session.get_json(self.service, path, microversion=self.microversion)
        if self.get_key is not None:
            if not isinstance(body, dict) or self.get_key not in body:
                raise DeserializationError(f"Expected '{self.get_key}' in {self.name} response")
            body = body[self.get_key]
        return self.decode(body, self.detail_model)

    def marker_of(self, item: Any) -> str:
        return str(getattr(item, self.marker_field))

    def decode(self, data: Any, model: type[BaseModel]) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise DeserializationError(f"Invalid {self.name} payload: {exc}") from exc


def _quoted(values: Mapping[str, str]) -> dict[str, str]:
    return {key: quote(str(value), safe="") for key, value in values.items()}
