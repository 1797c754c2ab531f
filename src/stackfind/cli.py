from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import typer
from rich import print
from rich.logging import RichHandler
from rich.table import Table

from stackfind.config import Settings, load_settings
from stackfind.engine.pagination import utcnow
from stackfind.engine.query import Direction
from stackfind.errors import QueryTimeout, StackFindError

app = typer.Typer(add_completion=False)

SortOption = typer.Option(None, "--sort", help="field[:asc|desc], may be repeated")


class State:
    settings: Settings = Settings()
    cloud = None


state = State()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, help="YAML settings file"),
    cloud: Optional[str] = typer.Option(None, help="Cloud name from clouds.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler()])
    settings = load_settings(config)
    if cloud:
        settings = settings.model_copy(update={"cloud": cloud})
    state.settings = settings
    state.cloud = None


def get_cloud():
    if state.cloud is None:
        from stackfind.cloud import Cloud

        state.cloud = Cloud.from_settings(state.settings)
    return state.cloud


def apply_common(query, limit: Optional[int], sort: Optional[List[str]]):
    for spec in sort or []:
        field, _, direction = spec.partition(":")
        try:
            key = query.sort_keys(field)
            order = Direction(direction or "asc")
        except ValueError:
            choices = ", ".join(k.value for k in query.sort_keys)
            raise typer.BadParameter(f"Invalid sort {spec!r}; fields: {choices}")
        try:
            query.sort_by(key, order)
        except StackFindError as exc:
            raise typer.BadParameter(str(exc))
    if limit is not None:
        try:
            query.with_limit(limit)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--limit")
    if state.settings.timeout_seconds:
        query.with_deadline(utcnow() + timedelta(seconds=state.settings.timeout_seconds))
    return query


def render(title: str, columns: List[str], rows) -> None:
    t = Table(title=title)
    for c in columns:
        t.add_column(c.replace("_", " ").title())
    for row in rows:
        t.add_row(*[_cell(getattr(row, c, "")) for c in columns])
    print(t)


def _cell(value) -> str:
    return "" if value is None else str(value)


def run(query, title: str, columns: List[str]) -> None:
    try:
        rows = query.all()
    except QueryTimeout as exc:
        render(title, columns, exc.items)
        print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=2)
    except StackFindError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    render(title, columns, rows)


@app.command()
def servers(
    status: Optional[str] = typer.Option(None),
    name: Optional[str] = typer.Option(None, help="Regular expression on server name"),
    detail: bool = typer.Option(False, help="List full server records"),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_servers()
    if detail:
        q.detailed()
    if status:
        q.with_status(status)
    if name:
        q.with_name(name)
    columns = ["id", "name", "status", "access_ipv4"] if detail else ["id", "name"]
    run(apply_common(q, limit, sort), "Servers", columns)


@app.command()
def flavors(
    min_ram: Optional[int] = typer.Option(None),
    min_disk: Optional[int] = typer.Option(None),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_flavors().detailed()
    if min_ram is not None:
        q.with_min_ram(min_ram)
    if min_disk is not None:
        q.with_min_disk(min_disk)
    run(apply_common(q, limit, sort), "Flavors", ["name", "vcpus", "ram", "disk"])


@app.command()
def keypairs(limit: Optional[int] = typer.Option(20), sort: Optional[List[str]] = SortOption):
    q = get_cloud().find_keypairs()
    run(apply_common(q, limit, sort), "Key pairs", ["name", "fingerprint", "type"])


@app.command()
def images(
    status: Optional[str] = typer.Option(None),
    visibility: Optional[str] = typer.Option(None),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_images()
    if status:
        q.with_status(status)
    if visibility:
        q.with_visibility(visibility)
    run(apply_common(q, limit, sort), "Images", ["name", "id", "status"])


@app.command()
def networks(
    name: Optional[str] = typer.Option(None),
    external: Optional[bool] = typer.Option(None, "--external/--internal"),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_networks()
    if name:
        q.with_name(name)
    if external is not None:
        q.with_external(external)
    run(apply_common(q, limit, sort), "Networks", ["name", "id", "status"])


@app.command()
def subnets(
    network: Optional[str] = typer.Option(None, help="Network ID"),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_subnets()
    if network:
        q.with_network(network)
    run(apply_common(q, limit, sort), "Subnets", ["name", "id", "cidr", "network_id"])


@app.command()
def ports(
    network: Optional[str] = typer.Option(None, help="Network ID"),
    device: Optional[str] = typer.Option(None, help="Device (server) ID"),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_ports()
    if network:
        q.with_network(network)
    if device:
        q.with_device_id(device)
    run(apply_common(q, limit, sort), "Ports", ["name", "id", "mac_address", "status"])


@app.command("floating-ips")
def floating_ips(
    status: Optional[str] = typer.Option(None),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_floating_ips()
    if status:
        q.with_status(status)
    run(apply_common(q, limit, sort), "Floating IPs", ["id", "floating_ip_address", "fixed_ip_address", "status"])


@app.command()
def containers(
    prefix: Optional[str] = typer.Option(None),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_containers()
    if prefix:
        q.with_prefix(prefix)
    run(apply_common(q, limit, sort), "Containers", ["name", "count", "bytes", "last_modified"])


@app.command()
def objects(
    container: str,
    prefix: Optional[str] = typer.Option(None),
    limit: Optional[int] = typer.Option(20),
    sort: Optional[List[str]] = SortOption,
):
    q = get_cloud().find_objects(container)
    if prefix:
        q.with_prefix(prefix)
    run(apply_common(q, limit, sort), f"Objects in {container}", ["name", "bytes", "content_type", "last_modified"])


SHOW_KINDS = {
    "server": "get_server",
    "flavor": "get_flavor",
    "keypair": "get_keypair",
    "image": "get_image",
    "network": "get_network",
    "subnet": "get_subnet",
    "port": "get_port",
    "floating-ip": "get_floating_ip",
    "container": "get_container",
}


@app.command()
def show(kind: str, id_or_name: str):
    """
    Resolve a resource by ID or name and print it.
    """
    if kind not in SHOW_KINDS:
        raise typer.BadParameter(f"Unknown kind {kind!r}; choose from {', '.join(SHOW_KINDS)}")
    try:
        resource = getattr(get_cloud(), SHOW_KINDS[kind])(id_or_name)
    except StackFindError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    print(resource.model_dump(mode="json"))


@app.command("show-object")
def show_object(container: str, name: str):
    """
    Print one object of a container, resolved by exact name.
    """
    try:
        obj = get_cloud().get_object(container, name)
    except StackFindError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    print(obj.model_dump(mode="json"))
