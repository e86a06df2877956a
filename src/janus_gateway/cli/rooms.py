"""CLI: janus rooms list|create|destroy"""

import json

import click
from rich.console import Console
from rich.table import Table

from janus_gateway.plugins.textroom import TextroomRequestFactory, TextroomRoom
from janus_gateway.plugins.videoroom import VideoroomRequestFactory, VideoroomRoom

console = Console()

PLUGINS = {
    "videoroom": (VideoroomRequestFactory, VideoroomRoom),
    "textroom": (TextroomRequestFactory, TextroomRoom),
}


def _load_config() -> dict:
    from janus_gateway.cli.main import _load_config
    return _load_config()


def _get_admin():
    from janus_gateway.cli.main import _get_admin
    return _get_admin()


def _run(coro):
    from janus_gateway.cli.main import _run
    return _run(coro)


def _room_id(value: str):
    return int(value) if value.isdigit() else value


def _factory(plugin: str, admin_key):
    factory_cls, _ = PLUGINS[plugin]
    return factory_cls(admin_key or _load_config().get("admin_key"))


plugin_option = click.option("--plugin", type=click.Choice(sorted(PLUGINS)), default="videoroom", show_default=True)
admin_key_option = click.option("--admin-key", default=None, help="Plugin admin_key (defaults to saved config)")


@click.group()
def rooms():
    """Room management through the Admin API."""


@rooms.command("list")
@plugin_option
@admin_key_option
@click.option("--json-output", "--json", is_flag=True)
def rooms_list(plugin, admin_key, json_output):
    """List rooms."""

    async def _list():
        async with await _get_admin() as api:
            resp = await api.message_plugin(_factory(plugin, admin_key).list_request())
        if json_output:
            click.echo(json.dumps([r.model_dump(by_alias=True) for r in resp.rooms], indent=2, default=str))
            return
        table = Table(title=f"{plugin} rooms ({len(resp.rooms)})")
        table.add_column("Room", style="bold")
        table.add_column("Description")
        table.add_column("Participants")
        table.add_column("PIN")
        for r in resp.rooms:
            table.add_row(str(r.room), r.description or "", str(r.num_participants), "yes" if r.pin_required else "")
        console.print(table)

    _run(_list())


@rooms.command("create")
@click.argument("room")
@plugin_option
@admin_key_option
@click.option("--description", default=None)
@click.option("--secret", default=None)
@click.option("--pin", default=None)
@click.option("--private", "is_private", is_flag=True)
@click.option("--permanent", is_flag=True)
def rooms_create(room, plugin, admin_key, description, secret, pin, is_private, permanent):
    """Create a room."""
    _, room_cls = PLUGINS[plugin]
    new_room = room_cls(room=_room_id(room), description=description, secret=secret, pin=pin, is_private=is_private)

    async def _create():
        async with await _get_admin() as api:
            with console.status("Creating room..."):
                resp = await api.message_plugin(_factory(plugin, admin_key).create_request(new_room, permanent=permanent))
        console.print(f"[green]Room {resp.room} created.[/green]")

    _run(_create())


@rooms.command("destroy")
@click.argument("room")
@plugin_option
@admin_key_option
@click.option("--secret", default=None)
@click.option("--permanent", is_flag=True)
def rooms_destroy(room, plugin, admin_key, secret, permanent):
    """Destroy a room."""

    async def _destroy():
        async with await _get_admin() as api:
            with console.status("Destroying room..."):
                resp = await api.message_plugin(
                    _factory(plugin, admin_key).destroy_request(_room_id(room), permanent=permanent, secret=secret)
                )
        console.print(f"[green]Room {resp.room} destroyed.[/green]")

    _run(_destroy())
