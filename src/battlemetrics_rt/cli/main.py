"""
BattleMetrics real-time CLI (`bmrt` command).

Commands:
  bmrt listen      Subscribe to server event channels and print every message

Servers come from --server (repeatable), the comma-separated SERVERS
environment variable, or "servers" in ~/.bmrt/config.json, in that order.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install battlemetrics-rt[cli]")

from battlemetrics_rt.client import AsyncRealtimeClient
from battlemetrics_rt.config import ClientSettings
from battlemetrics_rt.models.envelope import ActivityFilter, Envelope, FilterTags, FilterTypes
from battlemetrics_rt.models.events import ACTIVITY_FILTER_TARGET

console = Console()
CONFIG_FILE = Path.home() / ".bmrt" / "config.json"
CHANNEL_PREFIX = "server:events:"


def _load_config(path: Path = CONFIG_FILE) -> dict:
    try:
        return json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, log_time_format="%Y-%m-%d %H:%M:%S")],
        force=True,
    )


def parse_servers(values: tuple[str, ...]) -> list[str]:
    """Flatten comma-separated server ids into channel names, dropping blanks."""
    channels: list[str] = []
    for value in values:
        for sid in value.split(","):
            sid = sid.strip()
            if not sid:
                continue
            channel = sid if sid.startswith(CHANNEL_PREFIX) else CHANNEL_PREFIX + sid
            if channel not in channels:
                channels.append(channel)
    return channels


def build_filters(
    cfg: dict[str, Any],
    tag_type_mode: Optional[str],
    type_whitelist: tuple[str, ...],
    type_blacklist: tuple[str, ...],
    tag_whitelist: tuple[str, ...],
    tag_blacklist: tuple[str, ...],
) -> dict[str, ActivityFilter]:
    filters = {target: ActivityFilter.model_validate(f) for target, f in cfg.get("filters", {}).items()}
    if tag_type_mode or type_whitelist or type_blacklist or tag_whitelist or tag_blacklist:
        filters[ACTIVITY_FILTER_TARGET] = ActivityFilter(
            tag_type_mode=tag_type_mode,
            tags=FilterTags(whitelist=list(tag_whitelist) or None, blacklist=list(tag_blacklist) or None),
            types=FilterTypes(whitelist=list(type_whitelist) or None, blacklist=list(type_blacklist) or None),
        )
    return filters


def _print_message(envelope: Envelope) -> None:
    logging.getLogger("bmrt").info(
        f"[{envelope.channel or '-'}] {envelope.type} {envelope.id} {json.dumps(envelope.payload)}"
    )


def _echo_json(envelope: Envelope) -> None:
    click.echo(envelope.model_dump_json(by_alias=True, exclude_none=True))


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
def main():
    """BattleMetrics real-time CLI: stream server events to your terminal."""


@main.command("listen")
@click.option("-s", "--server", "servers", multiple=True, help="Server id (repeatable, comma-separated ok).")
@click.option("--tag-type-mode", type=click.Choice(["and", "or"]), default=None)
@click.option("--type-whitelist", multiple=True)
@click.option("--type-blacklist", multiple=True)
@click.option("--tag-whitelist", multiple=True)
@click.option("--tag-blacklist", multiple=True)
@click.option("--replay-window", type=float, default=None, help="Seconds; 0 replays regardless of age.")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=CONFIG_FILE)
@click.option("--json-output", "--json", is_flag=True)
@click.option("-v", "--verbose", is_flag=True)
def listen_cmd(
    servers, tag_type_mode, type_whitelist, type_blacklist, tag_whitelist, tag_blacklist,
    replay_window, config_path, json_output, verbose,
):
    """Subscribe to server event channels and print each message."""
    cfg = _load_config(config_path)
    sources = servers or (os.environ.get("SERVERS", ""),)
    channels = parse_servers(sources) or parse_servers(tuple(str(s) for s in cfg.get("servers", [])))
    if not channels:
        raise click.UsageError("No servers given. Use --server or set SERVERS.")

    filters = build_filters(cfg, tag_type_mode, type_whitelist, type_blacklist, tag_whitelist, tag_blacklist)

    overrides: dict[str, Any] = {}
    window = replay_window if replay_window is not None else cfg.get("replay_window")
    if window is not None:
        overrides["replay_window"] = window or None
    settings = ClientSettings(**overrides)

    _setup_logging(verbose)
    client = AsyncRealtimeClient(
        channels=channels,
        filters=filters,
        handler=_echo_json if json_output else _print_message,
        settings=settings,
    )
    if not json_output:
        console.print(f"[cyan]Listening on {', '.join(channels)} (Ctrl+C to exit)[/cyan]")
    try:
        _run(client.run_forever())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
