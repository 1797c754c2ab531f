from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stackfind.engine.query import SortKey
from stackfind.engine.resource import ResourceKind
from stackfind.engine.resource_query import ResourceQuery


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Network(_Model):
    id: str
    name: str = ""
    status: Optional[str] = None
    admin_state_up: bool = True
    shared: bool = False
    external: bool = Field(default=False, alias="router:external")
    mtu: Optional[int] = None
    project_id: Optional[str] = None
    description: str = ""
    subnets: List[str] = Field(default_factory=list)


class Subnet(_Model):
    id: str
    name: str = ""
    network_id: str
    cidr: str
    ip_version: int
    gateway_ip: Optional[str] = None
    enable_dhcp: bool = True
    project_id: Optional[str] = None


class Port(_Model):
    id: str
    name: str = ""
    network_id: str
    mac_address: str
    status: Optional[str] = None
    device_id: str = ""
    device_owner: str = ""
    admin_state_up: bool = True
    fixed_ips: List[Dict[str, Any]] = Field(default_factory=list)
    project_id: Optional[str] = None


class FloatingIp(_Model):
    id: str
    floating_ip_address: str
    floating_network_id: str
    fixed_ip_address: Optional[str] = None
    port_id: Optional[str] = None
    router_id: Optional[str] = None
    status: Optional[str] = None
    project_id: Optional[str] = None


# Neutron sorts on any attribute, so every key below is server-side.


class NetworkSortKey(SortKey):
    ID = "id"
    NAME = "name"
    STATUS = "status"
    MTU = "mtu"
    PROJECT_ID = "project_id"


class SubnetSortKey(SortKey):
    ID = "id"
    NAME = "name"
    CIDR = "cidr"
    IP_VERSION = "ip_version"
    NETWORK_ID = "network_id"


class PortSortKey(SortKey):
    ID = "id"
    NAME = "name"
    STATUS = "status"
    MAC_ADDRESS = "mac_address"
    DEVICE_ID = "device_id"
    DEVICE_OWNER = "device_owner"
    NETWORK_ID = "network_id"


class FloatingIpSortKey(SortKey):
    ID = "id"
    FLOATING_IP_ADDRESS = "floating_ip_address"
    FIXED_IP_ADDRESS = "fixed_ip_address"
    FLOATING_NETWORK_ID = "floating_network_id"
    STATUS = "status"


NETWORK = ResourceKind(
    name="network",
    service="network",
    list_path="/networks",
    collection_key="networks",
    model=Network,
    get_path="/networks/{id}",
    get_key="network",
)

SUBNET = ResourceKind(
    name="subnet",
    service="network",
    list_path="/subnets",
    collection_key="subnets",
    model=Subnet,
    get_path="/subnets/{id}",
    get_key="subnet",
)

PORT = ResourceKind(
    name="port",
    service="network",
    list_path="/ports",
    collection_key="ports",
    model=Port,
    get_path="/ports/{id}",
    get_key="port",
)

FLOATING_IP = ResourceKind(
    name="floating IP",
    service="network",
    list_path="/floatingips",
    collection_key="floatingips",
    model=FloatingIp,
    get_path="/floatingips/{id}",
    get_key="floatingip",
    name_filter=None,
)


class NetworkQuery(ResourceQuery[Network]):
    kind = NETWORK
    sort_keys = NetworkSortKey

    def with_name(self, value: str) -> "NetworkQuery":
        return self.with_filter("name", value)

    def with_status(self, value: str) -> "NetworkQuery":
        return self.with_filter("status", value)

    def with_shared(self, value: bool) -> "NetworkQuery":
        return self.with_filter("shared", value)

    def with_external(self, value: bool) -> "NetworkQuery":
        return self.with_filter("router:external", value)

    def with_admin_state_up(self, value: bool) -> "NetworkQuery":
        return self.with_filter("admin_state_up", value)

    def with_project(self, project_id: str) -> "NetworkQuery":
        return self.with_filter("project_id", project_id)


class SubnetQuery(ResourceQuery[Subnet]):
    kind = SUBNET
    sort_keys = SubnetSortKey

    def with_name(self, value: str) -> "SubnetQuery":
        return self.with_filter("name", value)

    def with_network(self, network_id: str) -> "SubnetQuery":
        return self.with_filter("network_id", network_id)

    def with_cidr(self, value: str) -> "SubnetQuery":
        return self.with_filter("cidr", value)

    def with_ip_version(self, value: int) -> "SubnetQuery":
        return self.with_filter("ip_version", value)


class PortQuery(ResourceQuery[Port]):
    kind = PORT
    sort_keys = PortSortKey

    def with_name(self, value: str) -> "PortQuery":
        return self.with_filter("name", value)

    def with_network(self, network_id: str) -> "PortQuery":
        return self.with_filter("network_id", network_id)

    def with_device_id(self, value: str) -> "PortQuery":
        return self.with_filter("device_id", value)

    def with_device_owner(self, value: str) -> "PortQuery":
        return self.with_filter("device_owner", value)

    def with_mac_address(self, value: str) -> "PortQuery":
        return self.with_filter("mac_address", value)

    def with_status(self, value: str) -> "PortQuery":
        return self.with_filter("status", value)


class FloatingIpQuery(ResourceQuery[FloatingIp]):
    kind = FLOATING_IP
    sort_keys = FloatingIpSortKey

    def with_floating_network(self, network_id: str) -> "FloatingIpQuery":
        return self.with_filter("floating_network_id", network_id)

    def with_floating_ip_address(self, value: str) -> "FloatingIpQuery":
        return self.with_filter("floating_ip_address", value)

    def with_port(self, port_id: str) -> "FloatingIpQuery":
        return self.with_filter("port_id", port_id)

    def with_router(self, router_id: str) -> "FloatingIpQuery":
        return self.with_filter("router_id", router_id)

    def with_status(self, value: str) -> "FloatingIpQuery":
        return self.with_filter("status", value)
