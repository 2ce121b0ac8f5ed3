"""Portfolio Bot CLI - chat with the bot in a terminal."""

import asyncio
import uuid
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .adapters.base import Connector
from .bot import create_engine
from .config import get_settings
from .core.logging import configure_logging
from .models.schemas import ChannelAttachment, ConversationUpdate, OutboundMessage

console = Console()

BOT_ID = "portfolio-bot"
IMAGE_PREFIX = "!image "


class ConsoleConnector(Connector):
    """Prints outbound messages to the terminal."""

    def __init__(self, output: Optional[Console] = None):
        self.output = output or console

    async def send(self, message: OutboundMessage) -> None:
        if message.type == "typing":
            self.output.print("[dim]...[/dim]")
            return

        if message.text:
            self.output.print(f"[bold cyan]bot>[/bold cyan] {message.text}")
        for card in message.attachments:
            self.output.print(f"  [bold]{card.title}[/bold]" + (f" - {card.subtitle}" if card.subtitle else ""))
            if card.text:
                self.output.print(f"  {card.text}")
        for action in message.suggested_actions:
            self.output.print(f"  [green]{action.value}[/green]  {action.label}")


def parse_line(line: str):
    """Split a typed line into text and attachments."""
    if line.startswith(IMAGE_PREFIX):
        name = line[len(IMAGE_PREFIX):].strip() or "image.png"
        return "", [ChannelAttachment(content_type="image/png", name=name)]
    return line, []


async def run_chat(conversation_id: str) -> None:
    settings = get_settings()
    engine = create_engine(settings, connector=ConsoleConnector())

    await engine.handle_conversation_update(
        ConversationUpdate(conversation_id=conversation_id, bot_id=BOT_ID, members_added=[BOT_ID])
    )
    await engine.scheduler.drain()

    try:
        while True:
            line = await asyncio.to_thread(console.input, "[bold]you>[/bold] ")
            if line.strip().lower() in ("quit", "exit"):
                break

            text, attachments = parse_line(line)
            await engine.handle_text(conversation_id, text, user_id="console", attachments=attachments)
            await engine.scheduler.drain()
    finally:
        await engine.close()


@click.group()
@click.version_option(version=__version__, prog_name="portfolio-bot")
def cli():
    """Portfolio Bot - local tools for the portfolio site bot."""


@cli.command("chat")
@click.option("--conversation-id", "-c", default=None, help="Resume a conversation by id")
@click.option("--debug", is_flag=True, help="Show debug logging")
def chat(conversation_id: Optional[str], debug: bool):
    """Chat with the bot in the terminal.

    \b
    Type 'quit' to stop, 'reset' to start over and
    '!image <name>' to send an image.
    """
    settings = get_settings()
    configure_logging("debug" if debug else settings.log_level, settings.log_format)

    conversation_id = conversation_id or f"console-{uuid.uuid4().hex[:8]}"
    console.print(f"[dim]Conversation {conversation_id}[/dim]")

    try:
        asyncio.run(run_chat(conversation_id))
    except (KeyboardInterrupt, EOFError):
        console.print()


if __name__ == "__main__":
    cli()
