from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from keystoneauth1 import exceptions as ks_exceptions
from openstack import exceptions as sdk_exceptions

from stackfind.errors import AuthExpired, DeserializationError, NotFound, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    generation: int
    token: Optional[str] = None


class Session:
    """
    Authenticated GET access to the cloud's services.

    One session is shared by every query and loader built from the same
    cloud. Requests only read the current snapshot; re-authentication is
    serialized and publishes a new snapshot instead of changing the old one.
    """

    def __init__(self, conn, connect_retries: int = 3):
        self.conn = conn
        self.connect_retries = connect_retries
        self._lock = threading.Lock()
        self._snapshot = SessionSnapshot(generation=0)

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def refresh(self, seen: Optional[int] = None) -> SessionSnapshot:
        """
        Re-authenticate and publish a new snapshot.

        ``seen`` is the generation the caller failed with; if another caller
        already refreshed past it, the existing snapshot is returned as is.
        """
        with self._lock:
            current = self._snapshot
            if seen is not None and current.generation != seen:
                return current
            logger.warning("Re-authenticating (generation %d)", current.generation)
            try:
                self.conn.session.invalidate()
                token = self.conn.authorize()
            except (ks_exceptions.ClientException, sdk_exceptions.SDKException) as exc:
                raise AuthExpired(f"Re-authentication failed: {exc}") from exc
            self._snapshot = SessionSnapshot(generation=current.generation + 1, token=token)
            return self._snapshot

    def _get(self, service: str, path: str, params, microversion: Optional[str]):
        proxy = getattr(self.conn, service)
        kwargs = {}
        if microversion is not None:
            kwargs["microversion"] = microversion
        try:
            return proxy.get(
                path,
                params=list(params or ()),
                raise_exc=False,
                connect_retries=self.connect_retries,
                **kwargs,
            )
        except (ks_exceptions.ClientException, sdk_exceptions.SDKException) as exc:
            raise TransportError(f"GET {service}{path} failed: {exc}") from exc

    def get_json(
        self,
        service: str,
        path: str,
        params: Optional[Sequence[tuple[str, str]]] = None,
        microversion: Optional[str] = None,
    ) -> Any:
        snapshot = self._snapshot
        response = self._get(service, path, params, microversion)
        if response.status_code == 401:
            self.refresh(seen=snapshot.generation)
            response = self._get(service, path, params, microversion)
            if response.status_code == 401:
                raise AuthExpired(f"Credentials rejected for GET {service}{path}")

        if response.status_code == 404:
            raise NotFound("resource", f"{service}{path}")
        if response.status_code >= 400:
            raise TransportError(
                f"GET {service}{path} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise DeserializationError(f"GET {service}{path} did not return JSON") from exc
