"""CLI: baza config set|show, baza profile set|show|clear"""

import json
from typing import Optional

import click
from rich.console import Console

from baza_chat.config import load_config, save_config
from baza_chat.i18n import TRANSLATIONS

console = Console()


def _get_client():
    from baza_chat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from baza_chat.cli.main import _run
    return _run(coro)


@click.group()
def config():
    """Client configuration."""


@config.command("show")
def config_show():
    """Print the effective configuration."""
    click.echo(load_config().model_dump_json(indent=2))


@config.command("set")
@click.option("--base-url", default=None)
@click.option("--language", type=click.Choice(sorted(TRANSLATIONS)), default=None)
@click.option("--max-attempts", type=int, default=None, help="Drop queued messages after N failed resends.")
def config_set(base_url: Optional[str], language: Optional[str], max_attempts: Optional[int]):
    """Update and persist configuration values."""
    updates = {"base_url": base_url, "language": language, "max_attempts": max_attempts}
    cfg = load_config().model_copy(update={k: v for k, v in updates.items() if v is not None})
    save_config(cfg)
    console.print("[green]Config saved.[/green]")


@click.group()
def profile():
    """Locally cached profile."""


@profile.command("show")
def profile_show():
    """Print the cached profile."""

    async def _show():
        client = _get_client()
        try:
            p = await client.profile.load()
        finally:
            await client.close()
        click.echo(json.dumps(p.model_dump(), indent=2))

    _run(_show())


@profile.command("set")
@click.option("--name", default=None)
@click.option("--phone", default=None, help="Phone number used as chat recipient id.")
@click.option("--language", type=click.Choice(sorted(TRANSLATIONS)), default=None)
def profile_set(name: Optional[str], phone: Optional[str], language: Optional[str]):
    """Save name / phone / language locally."""

    async def _set():
        client = _get_client()
        try:
            p = await client.profile.save(name=name, phone=phone, language=language)
        finally:
            await client.close()
        console.print(f"[green]Saved profile for {p.name or p.phone or 'anonymous'}.[/green]")

    _run(_set())


@profile.command("clear")
def profile_clear():
    """Forget the cached profile (logout). Unsent messages are kept."""

    async def _clear():
        client = _get_client()
        try:
            await client.profile.clear()
        finally:
            await client.close()
        console.print("[yellow]Profile cleared.[/yellow]")

    _run(_clear())
