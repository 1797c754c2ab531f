import math
from datetime import timedelta

import pytest

from stackfind.engine.pagination import PaginationCursor
from stackfind.errors import QueryTimeout
from stackfind.openstack.network import NETWORK
from stackfind.openstack.object_storage import CONTAINER


def test_containers_paginate_on_name(session, containers):
    session.add_listing("object_store", "/", containers, marker_field="name")
    cursor = PaginationCursor(CONTAINER, session, page_size=2)

    pages = list(cursor.pages())

    assert [[c.name for c in p] for p in pages] == [["a", "b"], ["m"]]
    assert cursor.requests == 2
    first, second = session.calls
    assert "marker" not in first.args
    assert second.args["marker"] == "b"
    assert first.args["format"] == "json"


def test_empty_listing_makes_one_request(session):
    session.add_listing("network", "/networks", [], key="networks")
    cursor = PaginationCursor(NETWORK, session, page_size=10)

    assert cursor.collect() == []
    assert cursor.requests == 1


@pytest.mark.parametrize("total,page_size", [(0, 3), (1, 1), (4, 2), (5, 2), (7, 3), (10, 100)])
def test_request_count_is_bounded(session, total, page_size):
    items = [{"id": f"id-{n:03d}", "name": f"net{n}"} for n in range(total)]
    session.add_listing("network", "/networks", items, key="networks")
    cursor = PaginationCursor(NETWORK, session, page_size=page_size)

    result = cursor.collect()

    assert [n.id for n in result] == [i["id"] for i in items]
    assert cursor.requests <= math.ceil(total / page_size) + 1


def test_limit_truncates_and_shrinks_requests(session, networks):
    session.add_listing("network", "/networks", networks, key="networks")
    cursor = PaginationCursor(NETWORK, session, page_size=2, limit=3)

    result = cursor.collect()

    assert [n.name for n in result] == ["public", "private", "shared"]
    assert [c.args["limit"] for c in session.calls] == ["2", "1"]


def test_limit_applies_when_server_ignores_page_size(session, networks):
    class Oversized:
        def get_json(self, service, path, params=None, microversion=None):
            return {"networks": networks}

    cursor = PaginationCursor(NETWORK, Oversized(), page_size=2, limit=3)

    assert len(cursor.collect()) == 3
    assert cursor.requests == 1


def test_limit_zero_issues_no_requests(session, networks):
    session.add_listing("network", "/networks", networks, key="networks")
    cursor = PaginationCursor(NETWORK, session, page_size=2, limit=0)

    assert cursor.collect() == []
    assert session.calls == []


def test_repeated_marker_stops_the_loop(session, networks):
    session.add_listing("network", "/networks", networks[:2], key="networks", ignore_marker=True)
    cursor = PaginationCursor(NETWORK, session, page_size=2)

    result = cursor.collect()

    # the second page repeats the first, then the marker stops advancing
    assert cursor.requests == 2
    assert len(result) == 4


def test_full_last_page_needs_an_empty_page_to_stop(session, networks):
    session.add_listing("network", "/networks", networks[:4], key="networks")
    cursor = PaginationCursor(NETWORK, session, page_size=2)

    assert len(cursor.collect()) == 4
    assert cursor.requests == 3
    assert cursor.state.exhausted


def test_deadline_returns_partial_results(session, networks, clock):
    session.add_listing("network", "/networks", networks, key="networks")

    class SlowSession:
        def get_json(self, *args, **kwargs):
            clock.advance(10)
            return session.get_json(*args, **kwargs)

    deadline = clock() + timedelta(seconds=15)
    cursor = PaginationCursor(NETWORK, SlowSession(), page_size=2, deadline=deadline, clock=clock)

    with pytest.raises(QueryTimeout) as exc_info:
        cursor.collect()

    assert [n.name for n in exc_info.value.items] == ["public", "private", "shared", "lab"]
    assert cursor.requests == 2


def test_iteration_is_lazy(session, networks):
    session.add_listing("network", "/networks", networks, key="networks")
    cursor = PaginationCursor(NETWORK, session, page_size=2)

    it = iter(cursor)
    assert next(it).name == "public"
    assert len(session.calls) == 1


def test_page_size_must_be_positive(session):
    with pytest.raises(ValueError):
        PaginationCursor(NETWORK, session, page_size=0)
