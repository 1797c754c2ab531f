from __future__ import annotations

import importlib
from types import ModuleType
from typing import Iterable, Optional

from stackfind.config import ALL_SERVICES, Settings
from stackfind.engine.loader import ResourceLoader
from stackfind.engine.resource_query import ResourceQuery
from stackfind.errors import ServiceDisabled
from stackfind.openstack.session import Session

_FAMILY_MODULES = {
    "compute": "stackfind.openstack.compute",
    "network": "stackfind.openstack.network",
    "image": "stackfind.openstack.image",
    "object_store": "stackfind.openstack.object_storage",
}


class Cloud:
    """
    High level entry point for querying an OpenStack cloud.

    Every query and loader created here shares the same ``Session``. Resource
    families are imported on first use, and only if enabled in settings.
    """

    def __init__(self, session: Session, page_size: int = 100, services: Iterable[str] = ALL_SERVICES):
        self.session = session
        self.page_size = page_size
        self.services = frozenset(services)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Cloud":
        from stackfind.openstack.connection import get_conn

        conn = get_conn(settings)
        session = Session(conn, connect_retries=settings.connect_retries)
        return cls(session, page_size=settings.page_size, services=settings.services)

    @classmethod
    def from_config(cls, cloud_name: Optional[str] = None) -> "Cloud":
        """Create a cloud from a clouds.yaml entry (or the OS_* environment)."""
        return cls.from_settings(Settings(cloud=cloud_name))

    def refresh(self) -> None:
        """Renew the authentication token."""
        self.session.refresh()

    def _family(self, service: str) -> ModuleType:
        if service not in self.services:
            raise ServiceDisabled(service)
        return importlib.import_module(_FAMILY_MODULES[service])

    def _query(self, service: str, name: str, **scope) -> ResourceQuery:
        query_cls = getattr(self._family(service), name)
        return query_cls(self.session, page_size=self.page_size, scope=scope)

    def _loader(self, service: str, name: str, **scope) -> ResourceLoader:
        query_cls = getattr(self._family(service), name)
        return ResourceLoader(self.session, query_cls, page_size=self.page_size, scope=scope)

    # compute

    def find_servers(self):
        return self._query("compute", "ServerQuery")

    def find_flavors(self):
        return self._query("compute", "FlavorQuery")

    def find_keypairs(self):
        return self._query("compute", "KeyPairQuery")

    def get_server(self, id_or_name: str):
        return self._loader("compute", "ServerQuery").load(id_or_name)

    def get_flavor(self, id_or_name: str):
        return self._loader("compute", "FlavorQuery").load(id_or_name)

    def get_keypair(self, name: str):
        return self._loader("compute", "KeyPairQuery").load(name)

    def list_servers(self):
        return self.find_servers().all()

    def list_flavors(self):
        return self.find_flavors().all()

    def list_keypairs(self):
        return self.find_keypairs().all()

    # network

    def find_networks(self):
        return self._query("network", "NetworkQuery")

    def find_subnets(self):
        return self._query("network", "SubnetQuery")

    def find_ports(self):
        return self._query("network", "PortQuery")

    def find_floating_ips(self):
        return self._query("network", "FloatingIpQuery")

    def get_network(self, id_or_name: str):
        return self._loader("network", "NetworkQuery").load(id_or_name)

    def get_subnet(self, id_or_name: str):
        return self._loader("network", "SubnetQuery").load(id_or_name)

    def get_port(self, id_or_name: str):
        return self._loader("network", "PortQuery").load(id_or_name)

    def get_floating_ip(self, id: str):
        return self._loader("network", "FloatingIpQuery").load(id)

    def list_networks(self):
        return self.find_networks().all()

    def list_subnets(self):
        return self.find_subnets().all()

    def list_ports(self):
        return self.find_ports().all()

    def list_floating_ips(self):
        return self.find_floating_ips().all()

    # image

    def find_images(self):
        return self._query("image", "ImageQuery")

    def get_image(self, id_or_name: str):
        return self._loader("image", "ImageQuery").load(id_or_name)

    def list_images(self):
        return self.find_images().all()

    # object storage

    def find_containers(self):
        return self._query("object_store", "ContainerQuery")

    def find_objects(self, container: str):
        return self._query("object_store", "ObjectQuery", container=container)

    def get_container(self, name: str):
        return self._loader("object_store", "ContainerQuery").load(name)

    def get_object(self, container: str, name: str):
        return self._loader("object_store", "ObjectQuery", container=container).load(name)

    def list_containers(self):
        return self.find_containers().all()

    def list_objects(self, container: str):
        return self.find_objects(container).all()
