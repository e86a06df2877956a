"""CLI: janus admin sessions|handles|handle-info|tokens|add-token|remove-token"""

import json

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _get_admin():
    from janus_gateway.cli.main import _get_admin
    return _get_admin()


def _run(coro):
    from janus_gateway.cli.main import _run
    return _run(coro)


@click.group()
def admin():
    """Admin/Monitor API."""


@admin.command("sessions")
@click.option("--json-output", "--json", is_flag=True)
def admin_sessions(json_output):
    """List active sessions."""

    async def _list():
        async with await _get_admin() as api:
            sessions = await api.list_sessions()
        if json_output:
            click.echo(json.dumps(sessions))
            return
        if not sessions:
            console.print("[dim]No active sessions.[/dim]")
            return
        for sid in sessions:
            console.print(str(sid))

    _run(_list())


@admin.command("handles")
@click.argument("session_id", type=int)
@click.option("--json-output", "--json", is_flag=True)
def admin_handles(session_id, json_output):
    """List the handles of a session."""

    async def _list():
        async with await _get_admin() as api:
            handles = await api.list_handles(session_id)
        if json_output:
            click.echo(json.dumps(handles))
            return
        for hid in handles:
            console.print(str(hid))

    _run(_list())


@admin.command("handle-info")
@click.argument("session_id", type=int)
@click.argument("handle_id", type=int)
def admin_handle_info(session_id, handle_id):
    """Dump the internal state of a handle."""

    async def _info():
        async with await _get_admin() as api:
            resp = await api.handle_info(session_id, handle_id)
        click.echo(json.dumps(resp.info or {}, indent=2))

    _run(_info())


@admin.command("tokens")
@click.option("--json-output", "--json", is_flag=True)
def admin_tokens(json_output):
    """List stored tokens."""

    async def _list():
        async with await _get_admin() as api:
            tokens = await api.list_tokens()
        if json_output:
            click.echo(json.dumps([t.model_dump(by_alias=True) for t in tokens], indent=2))
            return
        table = Table(title=f"Tokens ({len(tokens)})")
        table.add_column("Token", style="bold")
        table.add_column("Allowed plugins")
        for t in tokens:
            table.add_row(t.token, ", ".join(t.plugins))
        console.print(table)

    _run(_list())


@admin.command("add-token")
@click.argument("token")
@click.option("--plugin", "plugins", multiple=True, help="Plugin the token may attach to (repeatable)")
def admin_add_token(token, plugins):
    """Add a token."""

    async def _add():
        async with await _get_admin() as api:
            await api.add_token(token, list(plugins) or None)
        console.print(f"[green]Token {token} added.[/green]")

    _run(_add())


@admin.command("remove-token")
@click.argument("token")
def admin_remove_token(token):
    """Remove a token."""

    async def _remove():
        async with await _get_admin() as api:
            await api.remove_token(token)
        console.print(f"[green]Token {token} removed.[/green]")

    _run(_remove())
