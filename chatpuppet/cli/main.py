"""CLI commands for chatpuppet."""

import asyncio
import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chatpuppet import __version__
from chatpuppet.bus import OutboundMessage
from chatpuppet.cli.fixtures import build_puppet, load_fixture
from chatpuppet.config import Config, get_config_path, load_config, save_config
from chatpuppet.errors import ChatPuppetError
from chatpuppet.log import configure_logging
from chatpuppet.message import Message
from chatpuppet.puppet import Puppet
from chatpuppet.schema import kind_name
from chatpuppet.transport import HttpTransport, MemoryTransport

app = typer.Typer(
    name="chatpuppet",
    help="chatpuppet - inspect and answer chat messages",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"chatpuppet v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    log_level: str = typer.Option(None, "--log-level", help="Override the configured log level"),
):
    """chatpuppet - chat message toolkit."""
    configure_logging(log_level or load_config().logging.level)


def _describe_target(message: Message) -> str:
    room = message.room()
    if room is not None:
        return f"room {room.topic or room.id}"
    to = message.to()
    if to is not None:
        return to.display_name
    return f"[dim]{message.room_id or message.to_id} (unknown)[/dim]"


def _describe_body(message: Message) -> str:
    if message.variant.streamable:
        return f"{message.filename()} [dim]({message.mime_type() or message.ext()})[/dim]"
    return message.text()


# ============================================================================
# Inspection
# ============================================================================


def _open_puppet(fixture: Path, gateway: bool) -> Puppet:
    """Puppet over the fixture's directory; messages come from the fixture or the gateway."""
    config = load_config()
    try:
        world = load_fixture(fixture)
        transport = HttpTransport.from_config(config.transport) if gateway else None
        return build_puppet(world, config, transport)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Error: invalid fixture {fixture}: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _run(puppet: Puppet, coro):
    async def runner():
        try:
            return await coro
        finally:
            await puppet.transport.aclose()

    try:
        return asyncio.run(runner())
    except ChatPuppetError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Inspection
# ============================================================================


@app.command()
def show(
    fixture: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fixture JSON file"),
    message_id: str = typer.Option(None, "--id", help="Only show this message"),
    gateway: bool = typer.Option(False, "--gateway", help="Fetch messages from the configured gateway"),
):
    """Hydrate the messages of a fixture and print them."""
    puppet = _open_puppet(fixture, gateway)

    async def hydrate_all():
        if gateway and message_id:
            messages = [puppet.message(message_id)]
        else:
            messages = await puppet.find_messages({"id": message_id} if message_id else None)
        for m in messages:
            await m.ready()
        return messages

    messages = _run(puppet, hydrate_all())

    if not messages:
        console.print("[yellow]No messages found.[/yellow]")
        raise typer.Exit(1)

    table = Table(title=str(fixture))
    table.add_column("Id", style="cyan")
    table.add_column("Type")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Body")
    table.add_column("Mentions")

    for m in messages:
        mentions = ", ".join(c.display_name for c in m.mentioned())
        if m.mentions_ambiguous():
            mentions += " [yellow](ambiguous)[/yellow]"
        sender = m.sender().display_name + (" [dim](self)[/dim]" if m.is_self() else "")
        table.add_row(m.id, kind_name(m.type()), sender, _describe_target(m), _describe_body(m), mentions)

    console.print(table)


# ============================================================================
# Replying
# ============================================================================


@app.command()
def reply(
    fixture: Path = typer.Argument(..., exists=True, dir_okay=False, help="Fixture JSON file"),
    message_id: str = typer.Argument(..., help="Message to answer"),
    text: str = typer.Argument(..., help="Reply text"),
    mention: list[str] = typer.Option(None, "--mention", "-m", help="Contact id to @mention (rooms only)"),
    gateway: bool = typer.Option(False, "--gateway", help="Answer through the configured gateway"),
):
    """Reply to a fixture message and print what was sent."""
    puppet = _open_puppet(fixture, gateway)

    async def answer():
        message = await puppet.message(message_id).ready()
        contacts = []
        for contact_id in mention or []:
            contact = await puppet.directory.find_contact(contact_id)
            if contact is None:
                console.print(f"[yellow]Skipping unknown contact {contact_id}[/yellow]")
                continue
            contacts.append(contact)
        ack = await message.say(text, contacts)

        if isinstance(puppet.transport, MemoryTransport):
            return await puppet.transport.bus.consume_outbound()
        return OutboundMessage(
            message_id=ack.message_id,
            target_id=ack.target_id,
            target_type="room" if message.room_id else "contact",
            text=text,
            mention_ids=[c.id for c in contacts] if message.room_id else [],
        )

    sent = _run(puppet, answer())

    console.print(f"[green]>[/green] {sent.target_type} [cyan]{sent.target_id}[/cyan]: {sent.text}")
    if sent.mention_ids:
        console.print(f"  [dim]mentions: {', '.join(sent.mention_ids)}[/dim]")


# ============================================================================
# Setup
# ============================================================================


@app.command()
def init():
    """Interactive setup of the chat gateway connection."""
    config_path = get_config_path()
    config = load_config() if config_path.exists() else Config()

    console.print("\n[bold]Gateway Setup[/bold]\n")

    base_url = typer.prompt("Gateway URL", default=config.transport.base_url)
    if not base_url.strip().startswith(("http://", "https://")):
        console.print("[red]Gateway URL must start with http:// or https://[/red]")
        raise typer.Exit(1)
    config.transport.base_url = base_url.strip()

    token = typer.prompt("Access token (leave blank for none)", default="", hide_input=True)
    config.transport.token = token.strip()
    console.print("  [green]>[/green] Gateway saved\n")

    save_config(config)
    console.print(f"[green]>[/green] Config saved to {config_path}")


if __name__ == "__main__":
    app()
