from datetime import datetime, timedelta, timezone

import pytest

from stackfind.engine.query import Direction, Sort
from stackfind.errors import Ambiguous, NotFound, QueryConsumed, QueryTimeout, UnsupportedSort
from stackfind.openstack.compute import KeyPairQuery, KeyPairSortKey, ServerQuery, ServerSortKey
from stackfind.openstack.image import ImageQuery, ImageSortKey
from stackfind.openstack.network import NetworkQuery, NetworkSortKey
from stackfind.openstack.object_storage import ContainerQuery, ContainerSortKey


@pytest.fixture
def network_session(session, networks):
    session.add_listing("network", "/networks", networks, key="networks")
    return session


def test_filter_setter_maps_to_one_parameter(network_session):
    q = NetworkQuery(network_session).with_status("DOWN").with_status("ACTIVE")

    result = q.all()

    assert [n.name for n in result] == ["public", "private", "lab"]
    assert network_session.calls[0].params.count(("status", "ACTIVE")) == 1
    assert ("status", "DOWN") not in network_session.calls[0].params


@pytest.mark.parametrize("limit", [0, 1, 2, 3, 5, 8])
def test_all_never_exceeds_limit(network_session, limit):
    result = NetworkQuery(network_session, page_size=2).with_limit(limit).all()
    assert len(result) == min(limit, 5)


def test_limit_zero_short_circuits(network_session):
    assert NetworkQuery(network_session).with_limit(0).all() == []
    assert NetworkQuery(network_session).with_limit(0).fetch() == []
    assert network_session.calls == []


def test_negative_limit_is_rejected(network_session):
    with pytest.raises(ValueError):
        NetworkQuery(network_session).with_limit(-1)


def test_fetch_makes_exactly_one_request(network_session):
    result = NetworkQuery(network_session, page_size=2).with_limit(4).fetch()

    assert [n.name for n in result] == ["public", "private"]
    assert len(network_session.calls) == 1


def test_fetch_is_a_prefix_of_all(network_session):
    def build():
        return NetworkQuery(network_session, page_size=3).sort_by(Sort.desc(NetworkSortKey.NAME))

    fetched = build().fetch()
    everything = build().all()

    assert everything[: len(fetched)] == fetched
    assert len(everything) == 5


def test_server_side_sort_parameters(network_session):
    q = NetworkQuery(network_session).sort_by(NetworkSortKey.STATUS).sort_by(NetworkSortKey.NAME, Direction.DESC)

    result = q.all()

    params = network_session.calls[0].params
    assert params[:4] == [("sort_key", "status"), ("sort_dir", "asc"), ("sort_key", "name"), ("sort_dir", "desc")]
    assert [n.name for n in result] == ["public", "private", "lab", "mgmt", "shared"]


def test_ascending_sort_gives_non_decreasing_values(network_session):
    result = NetworkQuery(network_session, page_size=2).sort_by(Sort.asc(NetworkSortKey.NAME)).all()
    names = [n.name for n in result]
    assert all(a <= b for a, b in zip(names, names[1:]))


def test_sort_key_must_belong_to_the_resource(network_session):
    with pytest.raises(TypeError):
        NetworkQuery(network_session).sort_by(ServerSortKey.UUID)


def test_rejected_sort_key_fails_before_any_request(session):
    with pytest.raises(UnsupportedSort):
        ImageQuery(session).sort_by(ImageSortKey.TAGS)
    assert session.calls == []


def test_client_side_sort_is_applied_before_the_limit(session, containers):
    session.add_listing("object_store", "/", containers, marker_field="name")

    result = ContainerQuery(session, page_size=2).sort_by(Sort.desc(ContainerSortKey.BYTES)).with_limit(2).all()

    assert [c.name for c in result] == ["b", "a"]
    assert all("sort_key" not in c.args for c in session.calls)
    assert len(session.calls) == 2


def test_keypairs_sort_client_side_and_unwrap_items(session):
    session.add_listing(
        "compute",
        "/os-keypairs",
        [
            {"name": "zeta", "fingerprint": "aa", "public_key": "ssh-rsa A"},
            {"name": "alpha", "fingerprint": "bb", "public_key": "ssh-rsa B"},
        ],
        key="keypairs",
        marker_field="name",
        item_key="keypair",
    )

    result = KeyPairQuery(session).sort_by(KeyPairSortKey.NAME).all()

    assert [k.name for k in result] == ["alpha", "zeta"]
    assert session.calls[0].microversion == "2.35"


def test_format_json_sent_once(session, containers):
    session.add_listing("object_store", "/", containers, marker_field="name")

    ContainerQuery(session).with_filter("format", "json").all()

    assert session.calls[0].params.count(("format", "json")) == 1


def test_query_runs_only_once(network_session):
    q = NetworkQuery(network_session)
    q.all()
    with pytest.raises(QueryConsumed):
        q.fetch()


def test_one_requires_a_single_match(network_session):
    assert NetworkQuery(network_session).with_name("lab").one().name == "lab"
    with pytest.raises(NotFound):
        NetworkQuery(network_session).with_name("nope").one()
    with pytest.raises(Ambiguous) as exc_info:
        NetworkQuery(network_session).with_status("ACTIVE").one()
    assert len(exc_info.value.candidates) == 3


def test_iterating_a_query(network_session):
    names = [n.name for n in NetworkQuery(network_session, page_size=2).with_limit(3)]
    assert names == ["public", "private", "shared"]


def test_detailed_servers_use_detail_listing(session):
    session.add_listing(
        "compute",
        "/servers/detail",
        [{"id": "s1", "name": "web", "status": "ACTIVE", "accessIPv4": "10.0.0.1", "image": ""}],
        key="servers",
    )

    server = ServerQuery(session).detailed().all()[0]

    assert server.status == "ACTIVE"
    assert server.access_ipv4 == "10.0.0.1"
    assert server.image is None


def test_naive_deadline_is_treated_as_local_time(network_session):
    q = NetworkQuery(network_session, page_size=2).with_deadline(datetime.now() + timedelta(hours=1))

    assert q.deadline.tzinfo is timezone.utc
    assert len(q.all()) == 5


def test_naive_deadline_in_the_past_times_out(network_session):
    q = NetworkQuery(network_session).with_deadline(datetime.now() - timedelta(hours=1))

    with pytest.raises(QueryTimeout) as exc_info:
        q.all()
    assert exc_info.value.items == []
    assert network_session.calls == []
