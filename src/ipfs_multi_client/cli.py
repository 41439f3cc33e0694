"""
IPFS multi client CLI

Thin Typer front end over ``IpfsService``:
- add / cat: store and fetch content
- pin-add / pin-rm: manage pins
- dag-put / dag-get: structured objects
- keys / name-publish / name-resolve: IPNS
- id: this node's peer id
- pub / sub: pubsub messaging
"""
from __future__ import annotations

import json
import logging
from itertools import islice
from typing import Optional

import typer

from .cli_context import CLIContext
from .identifiers import decode_self_describing
from .operations import run_and_exit
from .operations.printers import (
    print_cid, print_keys, print_message, print_node, print_peer, print_pins, print_published
)

app = typer.Typer(name="ipfs-multi-client", help="IPFS RPC client")

CHUNK_SIZE = 256 * 1024


@app.callback()
def main(
    ctx: typer.Context,
    api: Optional[str] = typer.Option(None, "--api", envvar="IPFS_API_URL", help="Daemon RPC API URL"),
    verbose: bool = typer.Option(False, "--verbose", help="Log requests to stderr"),
) -> None:
    """Talk to an IPFS daemon over its HTTP RPC API."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = {"api": api}


def _context(ctx: typer.Context) -> CLIContext:
    api = ctx.obj.get("api") if ctx.obj else None
    context = CLIContext.from_env(api)
    ctx.call_on_close(context.close)
    return context


@app.command()
def add(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to add, or '-' for stdin"),
) -> None:
    """Store a file (or stdin) without pinning it and print its CID."""

    def _add() -> None:
        service = _context(ctx).service
        if path == "-":
            stdin = typer.get_binary_stream("stdin")
            cid = service.add(iter(lambda: stdin.read(CHUNK_SIZE), b""))
        else:
            with open(path, "rb") as f:
                cid = service.add(f)
        print_cid(cid)

    run_and_exit(_add)


@app.command()
def cat(
    ctx: typer.Context,
    cid: str = typer.Argument(..., help="CID to fetch"),
    path: Optional[str] = typer.Option(None, "--path", help="Sub-path below the CID, e.g. /dir/file"),
) -> None:
    """Write the content of a CID to stdout."""

    def _cat() -> None:
        data = _context(ctx).service.cat(decode_self_describing(cid), path)
        typer.echo(data, nl=False)

    run_and_exit(_cat)


@app.command("pin-add")
def pin_add(
    ctx: typer.Context,
    cid: str = typer.Argument(..., help="CID to pin"),
    recursive: bool = typer.Option(True, "--recursive/--no-recursive", help="Pin linked content too"),
) -> None:
    """Pin a CID."""

    def _pin_add() -> None:
        result = _context(ctx).service.pin_add(decode_self_describing(cid), recursive)
        print_pins(result.pins)

    run_and_exit(_pin_add)


@app.command("pin-rm")
def pin_rm(
    ctx: typer.Context,
    cid: str = typer.Argument(..., help="CID to unpin"),
    recursive: bool = typer.Option(True, "--recursive/--no-recursive", help="Unpin linked content too"),
) -> None:
    """Remove a pin."""

    def _pin_rm() -> None:
        result = _context(ctx).service.pin_rm(decode_self_describing(cid), recursive)
        print_pins(result.pins)

    run_and_exit(_pin_rm)


@app.command("dag-put")
def dag_put(
    ctx: typer.Context,
    node: str = typer.Argument(..., help="Node as a JSON document"),
) -> None:
    """Store a JSON document as a dag node and print its CID."""

    def _dag_put() -> None:
        print_cid(_context(ctx).service.dag_put(json.loads(node)))

    run_and_exit(_dag_put)


@app.command("dag-get")
def dag_get(
    ctx: typer.Context,
    cid: str = typer.Argument(..., help="CID of the node"),
    path: Optional[str] = typer.Option(None, "--path", help="Path inside the node, e.g. /data"),
) -> None:
    """Print a dag node as JSON."""

    def _dag_get() -> None:
        print_node(_context(ctx).service.dag_get(decode_self_describing(cid), path))

    run_and_exit(_dag_get)


@app.command()
def keys(
    ctx: typer.Context,
    table: bool = typer.Option(False, "--table", help="Render as a table"),
) -> None:
    """List IPNS keys."""
    run_and_exit(lambda: print_keys(_context(ctx).service.key_list(), table=table))


@app.command("name-publish")
def name_publish(
    ctx: typer.Context,
    cid: str = typer.Argument(..., help="CID to publish"),
    key: str = typer.Option("self", "--key", help="Key name to publish under"),
) -> None:
    """Publish an IPNS record."""

    def _publish() -> None:
        print_published(_context(ctx).service.name_publish(decode_self_describing(cid), key))

    run_and_exit(_publish)


@app.command("name-resolve")
def name_resolve(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="IPNS name to resolve"),
) -> None:
    """Resolve an IPNS name to a CID."""
    run_and_exit(lambda: print_cid(_context(ctx).service.name_resolve(name)))


@app.command("id")
def peer_id(ctx: typer.Context) -> None:
    """Show this node's peer id."""
    run_and_exit(lambda: print_peer(_context(ctx).service.peer_id()))


@app.command()
def pub(
    ctx: typer.Context,
    topic: str = typer.Argument(..., help="Topic name"),
    message: str = typer.Argument(..., help="Message text (sent as UTF-8)"),
) -> None:
    """Publish a message on a topic."""
    run_and_exit(lambda: _context(ctx).service.pubsub_pub(topic, message.encode("utf-8")))


@app.command()
def sub(
    ctx: typer.Context,
    topic: str = typer.Argument(..., help="Topic name"),
    count: int = typer.Option(0, "--count", min=0, help="Stop after this many messages (0 = forever)"),
) -> None:
    """Print messages received on a topic until interrupted."""

    def _sub() -> None:
        with _context(ctx).service.pubsub_sub(topic) as subscription:
            messages = subscription.messages()
            if count:
                messages = islice(messages, count)
            for message in messages:
                print_message(message)

    run_and_exit(_sub)


if __name__ == "__main__":
    app()
