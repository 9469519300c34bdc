"""
BazaAI CLI — `baza` command.

Commands:
  baza config <cmd>        Backend URL, language, retry limit
  baza profile <cmd>       Cached name / phone / language
  baza chat                Interactive REPL chat
  baza send <message>      One-shot message
  baza queue <cmd>         Inspect, drain or clear unsent messages
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install baza-chat[cli]")

from baza_chat.client import AsyncBazaChat
from baza_chat.config import load_config

console = Console()


def _get_client() -> AsyncBazaChat:
    return AsyncBazaChat(config=load_config())


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log delivery and queue activity.")
def main(verbose: bool):
    """BazaAI CLI — Airtime, money, balance and support over chat."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands from separate modules
from baza_chat.cli.chat import chat_cmd, send_cmd
from baza_chat.cli.profile import config, profile
from baza_chat.cli.queue import queue

main.add_command(config)
main.add_command(profile)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(queue)


if __name__ == "__main__":
    main()
