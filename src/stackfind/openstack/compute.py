from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stackfind.engine.query import SortKey, SortPolicy
from stackfind.engine.resource import ANY_ID_RE, ResourceKind
from stackfind.engine.resource_query import ResourceQuery


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ServerSummary(_Model):
    id: str
    name: str


class Server(ServerSummary):
    status: Optional[str] = None
    access_ipv4: Optional[str] = Field(default=None, alias="accessIPv4")
    access_ipv6: Optional[str] = Field(default=None, alias="accessIPv6")
    availability_zone: Optional[str] = Field(default=None, alias="OS-EXT-AZ:availability_zone")
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    flavor: Dict[str, Any] = Field(default_factory=dict)
    # boot-from-volume servers report "" instead of an image
    image: Optional[Dict[str, Any]] = None
    key_name: Optional[str] = None
    project_id: Optional[str] = Field(default=None, alias="tenant_id")
    user_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator("image", mode="before")
    @classmethod
    def empty_image_is_none(cls, value):
        return value or None

    @field_validator("access_ipv4", "access_ipv6", mode="before")
    @classmethod
    def empty_ip_is_none(cls, value):
        return value or None


class ServerSortKey(SortKey):
    """Nova server sort keys; all are sorted server-side."""

    ACCESS_IPV4 = "access_ip_v4"
    ACCESS_IPV6 = "access_ip_v6"
    AVAILABILITY_ZONE = "availability_zone"
    CREATED_AT = "created_at"
    DISPLAY_NAME = "display_name"
    HOST = "host"
    KEY_NAME = "key_name"
    LAUNCHED_AT = "launched_at"
    POWER_STATE = "power_state"
    PROJECT_ID = "project_id"
    TASK_STATE = "task_state"
    UPDATED_AT = "updated_at"
    USER_ID = "user_id"
    UUID = "uuid"
    VM_STATE = "vm_state"


SERVER = ResourceKind(
    name="server",
    service="compute",
    list_path="/servers",
    collection_key="servers",
    model=ServerSummary,
    full_model=Server,
    get_path="/servers/{id}",
    get_key="server",
)

SERVER_DETAIL = ResourceKind(
    name="server",
    service="compute",
    list_path="/servers/detail",
    collection_key="servers",
    model=Server,
    full_model=Server,
    get_path="/servers/{id}",
    get_key="server",
)


class ServerQuery(ResourceQuery[ServerSummary]):
    kind = SERVER
    sort_keys = ServerSortKey

    def detailed(self) -> "ServerQuery":
        """List full server records instead of summaries."""
        self.kind = SERVER_DETAIL
        return self

    def with_name(self, value: str) -> "ServerQuery":
        # Nova treats this as a regular expression
        return self.with_filter("name", value)

    def with_status(self, value: str) -> "ServerQuery":
        return self.with_filter("status", value)

    def with_flavor(self, flavor_id: str) -> "ServerQuery":
        return self.with_filter("flavor", flavor_id)

    def with_image(self, image_id: str) -> "ServerQuery":
        return self.with_filter("image", image_id)

    def with_availability_zone(self, value: str) -> "ServerQuery":
        return self.with_filter("availability_zone", value)

    def with_ip(self, value: str) -> "ServerQuery":
        return self.with_filter("ip", value)

    def with_changes_since(self, value: datetime) -> "ServerQuery":
        return self.with_filter("changes-since", value.isoformat())

    def with_project(self, project_id: str) -> "ServerQuery":
        return self.with_filter("project_id", project_id)

    def with_all_projects(self, value: bool = True) -> "ServerQuery":
        return self.with_filter("all_tenants", value)


class FlavorSummary(_Model):
    id: str
    name: str


class Flavor(FlavorSummary):
    vcpus: int
    ram: int
    disk: int
    ephemeral: int = Field(default=0, alias="OS-FLV-EXT-DATA:ephemeral")
    swap: int = 0
    is_public: bool = Field(default=True, alias="os-flavor-access:is_public")
    rxtx_factor: float = 1.0
    description: Optional[str] = None

    @field_validator("swap", mode="before")
    @classmethod
    def empty_swap_is_zero(cls, value):
        return value or 0


class FlavorSortKey(SortKey):
    """Nova flavor sort keys; all are sorted server-side."""

    FLAVOR_ID = "flavorid"
    NAME = "name"
    MEMORY_MB = "memory_mb"
    VCPUS = "vcpus"
    ROOT_GB = "root_gb"
    EPHEMERAL_GB = "ephemeral_gb"
    SWAP = "swap"
    CREATED_AT = "created_at"


FLAVOR = ResourceKind(
    name="flavor",
    service="compute",
    list_path="/flavors",
    collection_key="flavors",
    model=FlavorSummary,
    full_model=Flavor,
    get_path="/flavors/{id}",
    get_key="flavor",
    # flavor IDs are free-form ("1", "m1.tiny-id", UUIDs)
    id_pattern=ANY_ID_RE,
)

FLAVOR_DETAIL = ResourceKind(
    name="flavor",
    service="compute",
    list_path="/flavors/detail",
    collection_key="flavors",
    model=Flavor,
    full_model=Flavor,
    get_path="/flavors/{id}",
    get_key="flavor",
    id_pattern=ANY_ID_RE,
)


class FlavorQuery(ResourceQuery[FlavorSummary]):
    kind = FLAVOR
    sort_keys = FlavorSortKey

    def detailed(self) -> "FlavorQuery":
        self.kind = FLAVOR_DETAIL
        return self

    def with_min_disk(self, value: int) -> "FlavorQuery":
        return self.with_filter("minDisk", value)

    def with_min_ram(self, value: int) -> "FlavorQuery":
        return self.with_filter("minRam", value)

    def with_is_public(self, value: bool) -> "FlavorQuery":
        return self.with_filter("is_public", value)


class KeyPair(_Model):
    name: str
    fingerprint: str
    public_key: str
    type: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None


class KeyPairSortKey(SortKey):
    """Nova cannot sort key pairs, so they are always sorted client-side."""

    NAME = "name"
    FINGERPRINT = "fingerprint"
    TYPE = "type"

    @property
    def policy(self) -> SortPolicy:
        return SortPolicy.CLIENT


KEYPAIR = ResourceKind(
    name="keypair",
    service="compute",
    list_path="/os-keypairs",
    collection_key="keypairs",
    item_key="keypair",
    model=KeyPair,
    get_path="/os-keypairs/{id}",
    get_key="keypair",
    marker_field="name",
    # key pairs are addressed by name only
    id_pattern=ANY_ID_RE,
    name_filter=None,
    sortable=False,
    # limit and marker appeared in 2.35
    microversion="2.35",
)


class KeyPairQuery(ResourceQuery[KeyPair]):
    kind = KEYPAIR
    sort_keys = KeyPairSortKey

    def with_user_id(self, value: str) -> "KeyPairQuery":
        return self.with_filter("user_id", value)
