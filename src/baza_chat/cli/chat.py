"""CLI: baza chat, baza send"""

import asyncio
import json
from typing import Optional

import click
from rich.console import Console

from baza_chat.models.message import Message, MessageStatus, Role

console = Console()

COMMANDS_HELP = "/retry  /clear  /buy N  /lang en|kin  /quit"


def _get_client():
    from baza_chat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from baza_chat.cli.main import _run
    return _run(coro)


def _print_reply(message: Optional[Message]) -> None:
    if message is None:
        return
    if message.status == MessageStatus.FAILED:
        console.print(f"[red]BazaAI:[/red] {message.text}")
        return
    console.print(f"[green]BazaAI:[/green] {message.text}")
    for i, opt in enumerate(message.options or [], 1):
        price = f" ({opt.price:g})" if opt.price is not None else ""
        console.print(f"  [cyan]{i}.[/cyan] {opt.label(i)}{price}")


def _last_options(timeline: tuple[Message, ...]):
    for m in reversed(timeline):
        if m.role == Role.ASSISTANT and m.options:
            return m.options
    return []


def _last_failed(timeline: tuple[Message, ...]) -> Optional[Message]:
    for m in reversed(timeline):
        if m.role == Role.ASSISTANT and m.status == MessageStatus.FAILED and m.reply_to:
            return m
    return None


@click.command("chat")
def chat_cmd():
    """Interactive chat with BazaAI."""

    async def _chat():
        client = _get_client()
        profile = await client.profile.load()
        if not profile.registered:
            console.print("[red]No phone on file. Run `baza profile set --phone ...` first.[/red]")
            await client.close()
            raise SystemExit(1)
        await client.start()
        console.print(f"[cyan]Type your message ({COMMANDS_HELP})[/cyan]\n")
        try:
            while True:
                if client.suggestions:
                    console.print(f"[dim]Try: {' | '.join(client.suggestions)}[/dim]")
                # prompt in a worker thread so the watch and drain tasks keep running
                msg = await asyncio.to_thread(click.prompt, "You", prompt_suffix=": ")
                cmd, _, arg = msg.strip().partition(" ")
                if cmd in ("/quit", "/exit"):
                    break
                if cmd == "/clear":
                    client.clear()
                    console.print("[dim]Chat cleared.[/dim]")
                elif cmd == "/retry":
                    failed = _last_failed(client.timeline)
                    if failed is None:
                        console.print("[dim]Nothing to retry.[/dim]")
                    else:
                        _print_reply(await client.retry(failed))
                elif cmd == "/buy":
                    options = _last_options(client.timeline)
                    if not arg.isdigit() or not 1 <= int(arg) <= len(options):
                        console.print("[yellow]Pick an option number from the last reply.[/yellow]")
                        continue
                    option = options[int(arg) - 1]
                    if await asyncio.to_thread(click.confirm, f"Buy {option.label(int(arg))}?"):
                        _print_reply(await client.purchase(option, profile.phone))
                elif cmd == "/lang":
                    client.pipeline.set_language(arg or "en")
                    await client.profile.save(language=client.pipeline.language)
                else:
                    with console.status("Bot is typing…"):
                        reply = await client.send(msg, profile.phone)
                    _print_reply(reply)
        except (KeyboardInterrupt, EOFError, click.Abort):
            pass
        finally:
            await client.close()

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("-r", "--recipient", "recipient_id", default=None, help="Defaults to the profile phone.")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, recipient_id: Optional[str], json_output: bool):
    """Send a one-shot message. Undelivered messages are queued for later."""

    async def _send():
        client = _get_client()
        try:
            await client.apply_profile()
            reply = await client.send(message, recipient_id)
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps({
                "reply": reply.model_dump(mode="json") if reply else None,
                "suggestions": client.suggestions,
            }))
        else:
            _print_reply(reply)

    try:
        _run(_send())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
