"""
Janus CLI, the `janus` command.

Commands:
  janus config show|set    Saved connection settings
  janus info               Gateway server info
  janus admin <cmd>        Admin API: sessions, handles, tokens
  janus rooms <cmd>        Videoroom/textroom room management
"""

import asyncio
import json
from pathlib import Path

try:
    import click
    from rich.console import Console
    from rich.table import Table
except ImportError:
    raise SystemExit("CLI requires extras: pip install janus-gateway[cli]")

from janus_gateway.admin import AdminAPI
from janus_gateway.client import Gateway
from janus_gateway.errors import JanusError

console = Console()
CONFIG_FILE = Path.home() / ".janus" / "config.json"

DEFAULT_URL = "ws://localhost:8188/"
DEFAULT_ADMIN_URL = "http://localhost:7088/admin"
CONFIG_KEYS = ("url", "admin_url", "admin_secret", "api_secret", "token", "admin_key")


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


async def _get_gateway() -> Gateway:
    cfg = _load_config()
    return await Gateway.connect(
        cfg.get("url", DEFAULT_URL),
        token=cfg.get("token"),
        api_secret=cfg.get("api_secret"),
    )


async def _get_admin() -> AdminAPI:
    cfg = _load_config()
    return await AdminAPI.connect(cfg.get("admin_url", DEFAULT_ADMIN_URL), secret=cfg.get("admin_secret"))


def _run(coro):
    try:
        return asyncio.run(coro)
    except JanusError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
def main():
    """Janus CLI: talk to a Janus WebRTC gateway."""


@main.group("config")
def config():
    """Saved connection settings (~/.janus/config.json)."""


@config.command("show")
def config_show():
    """Show saved settings. Secrets are masked."""
    cfg = _load_config()
    table = Table(title="Janus config")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key in CONFIG_KEYS:
        value = cfg.get(key)
        if value and key not in ("url", "admin_url"):
            value = value[:2] + "***"
        table.add_row(key, value or "[dim]unset[/dim]")
    console.print(table)


@config.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def config_set(key, value):
    """Save a setting."""
    cfg = _load_config()
    cfg[key] = value
    _save_config(cfg)
    console.print(f"[green]{key} saved.[/green]")


@main.command("info")
@click.option("--json-output", "--json", is_flag=True)
def info_cmd(json_output):
    """Show gateway server info."""

    async def _info():
        async with await _get_gateway() as gateway:
            with console.status("Fetching server info..."):
                info = await gateway.info()
        if json_output:
            click.echo(info.model_dump_json(by_alias=True, indent=2))
            return
        console.print(f"[bold]{info.name or 'Janus'}[/bold] {info.version_string or ''}")
        table = Table(title="Plugins")
        table.add_column("Package", style="bold")
        table.add_column("Name")
        table.add_column("Version")
        for package, plugin in sorted(info.plugins.items()):
            table.add_row(package, plugin.name or "", plugin.version_string or "")
        console.print(table)

    _run(_info())


# Register subcommands from separate modules
from janus_gateway.cli.admin import admin
from janus_gateway.cli.rooms import rooms

main.add_command(admin)
main.add_command(rooms)


if __name__ == "__main__":
    main()
