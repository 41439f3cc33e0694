"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands only decide what to show.
"""
from __future__ import annotations

import json
from typing import Any, Mapping

import typer
from rich.console import Console
from rich.table import Table
from multiformats import CID

from ..identifiers import encode_peer_identity
from ..responses import NamePublishResponse, SubscriptionMessage

_console = Console()


def print_cid(cid: CID) -> None:
    typer.echo(str(cid))


def print_pins(pins: list) -> None:
    """Print one pinned/unpinned identifier per line."""
    if not pins:
        typer.echo("No pins changed")
        return
    for pin in pins:
        typer.echo(pin)


def print_node(node: Any) -> None:
    """Print a dag node as indented JSON."""
    typer.echo(json.dumps(node, indent=2, sort_keys=True, default=str))


def print_keys(keys: Mapping[str, CID], table: bool = False) -> None:
    """Print keys sorted by name, ``name<TAB>cid`` or as a table."""
    if not keys:
        typer.echo("No keys")
        return
    if table:
        rendered = Table(title=f"IPNS keys ({len(keys)})")
        rendered.add_column("Name", style="cyan")
        rendered.add_column("CID", style="yellow", overflow="fold")
        for name in sorted(keys):
            rendered.add_row(name, str(keys[name]))
        _console.print(rendered)
        return
    for name in sorted(keys):
        typer.echo(f"{name}\t{keys[name]}")


def print_published(record: NamePublishResponse) -> None:
    typer.echo(f"Published to {record.name}: {record.value}")


def print_peer(cid: CID) -> None:
    typer.echo(f"Peer ID: {encode_peer_identity(cid)}")
    typer.echo(f"CID: {cid}")


def print_message(message: SubscriptionMessage) -> None:
    """Print a pubsub message; payloads that are not UTF-8 are shown as hex."""
    try:
        text = message.payload.decode("utf-8")
    except UnicodeDecodeError:
        text = message.payload.hex()
    typer.echo(f"{message.sender}: {text}")
