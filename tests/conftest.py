from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from stackfind.errors import NotFound

PASSTHROUGH_PARAMS = {"limit", "marker", "sort_key", "sort_dir", "format", "prefix"}


@dataclass
class Call:
    service: str
    path: str
    params: list
    microversion: str | None = None

    @property
    def args(self) -> dict:
        return dict(self.params)


@dataclass
class Listing:
    items: list
    key: str | None = None
    marker_field: str = "id"
    item_key: str | None = None
    # ignore the marker entirely, like a broken server would
    ignore_marker: bool = False


@dataclass
class FakeSession:
    """In-memory marker-paginating service that records every request."""

    listings: dict = field(default_factory=dict)
    resources: dict = field(default_factory=dict)
    calls: list = field(default_factory=list)

    def add_listing(self, service, path, items, key=None, marker_field="id", item_key=None, ignore_marker=False):
        self.listings[(service, path)] = Listing(list(items), key, marker_field, item_key, ignore_marker)

    def add_resource(self, service, path, body):
        self.resources[(service, path)] = body

    def get_json(self, service, path, params=None, microversion=None):
        params = list(params or [])
        self.calls.append(Call(service, path, params, microversion))
        if (service, path) in self.listings:
            return self._page(self.listings[(service, path)], params)
        if (service, path) in self.resources:
            return self.resources[(service, path)]
        raise NotFound("resource", f"{service}{path}")

    def _page(self, listing, params):
        args = dict(params)
        items = list(listing.items)
        for key, value in params:
            if key not in PASSTHROUGH_PARAMS:
                items = [i for i in items if str(i.get(key)) == value]
        if "prefix" in args:
            items = [i for i in items if i["name"].startswith(args["prefix"])]

        keys = [v for k, v in params if k == "sort_key"]
        dirs = [v for k, v in params if k == "sort_dir"]
        for key, direction in reversed(list(zip(keys, dirs))):
            items.sort(key=lambda i: i[key], reverse=direction == "desc")

        start = 0
        marker = args.get("marker")
        if marker is not None and not listing.ignore_marker:
            positions = [n for n, i in enumerate(items) if str(i[listing.marker_field]) == marker]
            start = positions[0] + 1 if positions else len(items)
        page = items[start:start + int(args.get("limit", len(items)))]

        if listing.item_key:
            page = [{listing.item_key: i} for i in page]
        return {listing.key: page} if listing.key else page

    def list_calls(self, path):
        return [c for c in self.calls if c.path == path]


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def containers():
    return [
        {"name": "a", "bytes": 10, "count": 1, "last_modified": "Wed, 21 Oct 2023 07:28:00 GMT"},
        {"name": "b", "bytes": 20, "count": 2, "last_modified": "Thu, 22 Oct 2023 07:28:00 GMT"},
        {"name": "m", "bytes": 5, "count": 3, "last_modified": "2023-10-20T07:28:00.000000"},
    ]


@pytest.fixture
def networks():
    return [
        {"id": f"00000000-0000-0000-0000-{n:012d}", "name": name, "status": status}
        for n, (name, status) in enumerate(
            [
                ("public", "ACTIVE"),
                ("private", "ACTIVE"),
                ("shared", "DOWN"),
                ("lab", "ACTIVE"),
                ("mgmt", "BUILD"),
            ],
            start=1,
        )
    ]


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()
