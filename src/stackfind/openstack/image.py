from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stackfind.engine.query import SortKey, SortPolicy
from stackfind.engine.resource import ResourceKind
from stackfind.engine.resource_query import ResourceQuery


class Image(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    # Glance allows unnamed images
    name: Optional[str] = None
    status: str
    visibility: Optional[str] = None
    size: Optional[int] = None
    disk_format: Optional[str] = None
    container_format: Optional[str] = None
    min_disk: int = 0
    min_ram: int = 0
    owner: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImageSortKey(SortKey):
    """
    Glance image sort keys.

    Everything is sorted server-side except ``TAGS``: Glance refuses to sort
    on it and a list has no natural order, so it is rejected up front.
    """

    ID = "id"
    NAME = "name"
    STATUS = "status"
    VISIBILITY = "visibility"
    SIZE = "size"
    DISK_FORMAT = "disk_format"
    CONTAINER_FORMAT = "container_format"
    MIN_DISK = "min_disk"
    MIN_RAM = "min_ram"
    OWNER = "owner"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TAGS = "tags"

    @property
    def policy(self) -> SortPolicy:
        if self is ImageSortKey.TAGS:
            return SortPolicy.REJECT
        return SortPolicy.SERVER


IMAGE = ResourceKind(
    name="image",
    service="image",
    list_path="/images",
    collection_key="images",
    model=Image,
    get_path="/images/{id}",
)


class ImageQuery(ResourceQuery[Image]):
    kind = IMAGE
    sort_keys = ImageSortKey

    def with_name(self, value: str) -> "ImageQuery":
        return self.with_filter("name", value)

    def with_status(self, value: str) -> "ImageQuery":
        return self.with_filter("status", value)

    def with_visibility(self, value: str) -> "ImageQuery":
        return self.with_filter("visibility", value)

    def with_owner(self, value: str) -> "ImageQuery":
        return self.with_filter("owner", value)

    def with_tag(self, value: str) -> "ImageQuery":
        return self.with_filter("tag", value)

    def with_member_status(self, value: str) -> "ImageQuery":
        return self.with_filter("member_status", value)
