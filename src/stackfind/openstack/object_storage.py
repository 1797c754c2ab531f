from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stackfind.engine.query import SortKey, SortPolicy
from stackfind.engine.resource import ResourceKind
from stackfind.engine.resource_query import ResourceQuery


def parse_last_modified(value) -> datetime:
    """
    Parse a Swift ``last_modified`` value into an aware UTC datetime.

    Accepts HTTP-dates (``Wed, 21 Oct 2023 07:28:00 GMT``) and the naive
    ISO 8601 form Swift uses in JSON listings. Anything else is an error.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            try:
                parsed = datetime.fromisoformat(value)
            except ValueError:
                raise ValueError(f"Invalid last_modified date: {value!r}") from None
    else:
        raise ValueError(f"Invalid last_modified date: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Container(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    bytes: int = Field(ge=0)
    count: int = Field(ge=0)
    last_modified: datetime

    @field_validator("last_modified", mode="before")
    @classmethod
    def last_modified_from_wire(cls, value):
        return parse_last_modified(value)


class Object(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    bytes: int = Field(ge=0)
    content_type: str
    last_modified: datetime
    hash: Optional[str] = None

    @field_validator("last_modified", mode="before")
    @classmethod
    def last_modified_from_wire(cls, value):
        return parse_last_modified(value)


class ContainerSortKey(SortKey):
    """Swift only lists in name order, so every key is sorted client-side."""

    NAME = "name"
    BYTES = "bytes"
    COUNT = "count"
    LAST_MODIFIED = "last_modified"

    @property
    def policy(self) -> SortPolicy:
        return SortPolicy.CLIENT


class ObjectSortKey(SortKey):
    """Swift only lists in name order, so every key is sorted client-side."""

    NAME = "name"
    BYTES = "bytes"
    CONTENT_TYPE = "content_type"
    LAST_MODIFIED = "last_modified"

    @property
    def policy(self) -> SortPolicy:
        return SortPolicy.CLIENT


# Containers and objects have no IDs: the name is both the marker and the
# only way to look them up.

CONTAINER = ResourceKind(
    name="container",
    service="object_store",
    list_path="/",
    model=Container,
    marker_field="name",
    id_pattern=None,
    name_filter="prefix",
    forced_params=(("format", "json"),),
    sortable=False,
)

OBJECT = ResourceKind(
    name="object",
    service="object_store",
    list_path="/{container}",
    model=Object,
    marker_field="name",
    id_pattern=None,
    name_filter="prefix",
    forced_params=(("format", "json"),),
    sortable=False,
)


class ContainerQuery(ResourceQuery[Container]):
    kind = CONTAINER
    sort_keys = ContainerSortKey

    def with_prefix(self, value: str) -> "ContainerQuery":
        return self.with_filter("prefix", value)

    def with_end_marker(self, value: str) -> "ContainerQuery":
        return self.with_filter("end_marker", value)


class ObjectQuery(ResourceQuery[Object]):
    kind = OBJECT
    sort_keys = ObjectSortKey

    def with_prefix(self, value: str) -> "ObjectQuery":
        return self.with_filter("prefix", value)

    def with_end_marker(self, value: str) -> "ObjectQuery":
        return self.with_filter("end_marker", value)
