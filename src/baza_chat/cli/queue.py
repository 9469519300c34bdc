"""CLI: baza queue show|drain|clear"""

import json

import click
from rich.console import Console
from rich.table import Table

from baza_chat.errors import OfflineError, TransportError

console = Console()


def _get_client():
    from baza_chat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from baza_chat.cli.main import _run
    return _run(coro)


@click.group()
def queue():
    """Unsent message queue."""


@queue.command("show")
@click.option("--json-output", "--json", is_flag=True)
def queue_show(json_output):
    """List messages waiting to be resent."""

    async def _show():
        client = _get_client()
        try:
            pending = await client.queue.pending()
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps([e.to_stored() for e in pending], indent=2))
            return
        if not pending:
            console.print("[dim]Queue is empty.[/dim]")
            return
        table = Table(title="Unsent messages")
        table.add_column("#", style="dim")
        table.add_column("Recipient")
        table.add_column("Text")
        table.add_column("Lang")
        table.add_column("Attempts", justify="right")
        for i, e in enumerate(pending, 1):
            table.add_row(str(i), e.recipient_id, e.text, e.language_hint or "", str(e.attempts))
        console.print(table)

    _run(_show())


@queue.command("drain")
def queue_drain():
    """Resend queued messages now."""

    async def _drain():
        client = _get_client()
        try:
            try:
                await client.service.ping()
            except TransportError:
                raise OfflineError(f"Backend {client.config.base_url} is unreachable")
            result = await client.drain()
        finally:
            await client.close()
        console.print(f"Sent {result.sent}, still queued {result.failed}, dropped {result.dropped}.")

    try:
        _run(_drain())
    except OfflineError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@queue.command("clear")
@click.confirmation_option(prompt="Discard all unsent messages?")
def queue_clear():
    """Discard all unsent messages."""

    async def _clear():
        client = _get_client()
        try:
            await client.queue.clear()
        finally:
            await client.close()
        console.print("[yellow]Queue cleared.[/yellow]")

    _run(_clear())
