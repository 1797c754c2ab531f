from __future__ import annotations

from openstack import connection

from stackfind.config import Settings


def get_conn(settings: Settings):
    """
    Create an OpenStack SDK connection.

    Uses the same auth as the `openstack` CLI: env vars or clouds.yaml, with
    the endpoint interface and region taken from settings.
    """
    kwargs = {"cloud": settings.cloud, "interface": settings.interface}
    if settings.region_name:
        kwargs["region_name"] = settings.region_name

    return connection.from_config(**kwargs)
