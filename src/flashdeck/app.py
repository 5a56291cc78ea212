"""Interactive command loop."""
import logging
import os
import re
import shlex
import subprocess
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from flashdeck.config import DEFAULT_DECK_PATH, DEFAULT_HARDNESS, LOG_LEVEL, MAX_STUDY, get_editor
from flashdeck.deck import Deck
from flashdeck.errors import DeckError, EditorNotConfiguredError
from flashdeck.models import Card, utcnow

console = Console()
logger = logging.getLogger(__name__)

PROMPT_PREVIEW_LEN = 42
HARDNESS_CHOICES = ["1", "2", "3", "4", "5"]


class QuitRequested(Exception):
    """Raised by the quit command to end the session."""
    pass


@dataclass
class Command:
    callback: Callable[[Deck, list[str]], None]
    help: str


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def format_due(next_due: datetime, now: Optional[datetime] = None) -> str:
    """Describe how long until ``next_due`` in the largest sensible unit."""
    now = now or utcnow()
    until = (next_due - now).total_seconds()
    if until < 0:
        return "now"

    days = int(until // 86400)
    if days == 0:
        amount, noun = int(until // 3600), "hour"
    elif days < 7:
        amount, noun = days, "day"
    elif days <= 365:
        amount, noun = days // 7, "week"
    else:
        amount, noun = days // 30, "month"
    if amount != 1:
        noun += "s"
    return f"{amount} {noun}"


def preview(text: str, length: int = PROMPT_PREVIEW_LEN) -> str:
    if len(text) > length:
        text = text[:length] + "..."
    return re.sub(r"\s+", " ", text).strip()


def card_id_from_args(args: list[str]) -> int:
    if not args:
        raise ValueError("No card # given")
    return int(args[0])


def spawn_editor(prefix: str, contents: str = "") -> str:
    """Open ``contents`` in $EDITOR and return the saved text."""
    editor = get_editor()
    if not editor:
        raise EditorNotConfiguredError()

    with tempfile.NamedTemporaryFile(
        "w", prefix=f"flashdeck.{prefix}.", suffix=".txt", delete=False
    ) as tmp:
        tmp.write(contents)
        tmp_path = tmp.name
    try:
        try:
            result = subprocess.run(shlex.split(editor) + [tmp_path])
        except OSError as exc:
            raise EditorNotConfiguredError(f"Cannot run editor {editor!r}: {exc}") from exc
        if result.returncode != 0:
            raise DeckError(f"Editor exited with status {result.returncode}")
        with open(tmp_path) as f:
            return f.read()
    finally:
        os.remove(tmp_path)


def cmd_new(deck: Deck, args: list[str]) -> None:
    Prompt.ask("[dim]Press Enter to edit the card PROMPT[/dim]")
    prompt = spawn_editor("prompt", "Write the PROMPT here and save+quit")
    console.print(Panel(prompt, title="Prompt", border_style="cyan"))
    Prompt.ask("[dim]Press Enter to edit the card ANSWER[/dim]")
    answer = spawn_editor("answer", "Write the ANSWER here and save+quit")
    console.print(Panel(answer, title="Answer", border_style="green"))
    card = deck.new_card(prompt, answer)
    console.print(f"[green]Added card {card.id}[/green]")


def cmd_edit(deck: Deck, args: list[str]) -> None:
    card = deck.get_card(card_id_from_args(args))
    prompt = answer = None
    if Prompt.ask("Edit the PROMPT?", choices=["y", "n"], default="y") == "y":
        prompt = spawn_editor("prompt", card.prompt)
    if Prompt.ask("Edit the ANSWER?", choices=["y", "n"], default="y") == "y":
        answer = spawn_editor("answer", card.answer)
    if prompt is not None or answer is not None:
        deck.edit_card(card.id, prompt=prompt, answer=answer)


def cmd_show(deck: Deck, args: list[str]) -> None:
    card = deck.get_card(card_id_from_args(args))
    console.print(Panel(card.prompt, title="PROMPT", border_style="cyan"))
    console.print(Panel(card.answer, title="ANSWER", border_style="green"))


def cmd_del(deck: Deck, args: list[str]) -> None:
    card_id = card_id_from_args(args)
    if deck.delete_card(card_id) is None:
        console.print(f"[yellow]No card with id {card_id}[/yellow]")
    else:
        console.print(f"[green]Deleted card {card_id}[/green]")


def cmd_list(deck: Deck, args: list[str]) -> None:
    now = utcnow()
    table = Table()
    table.add_column("Id", justify="right", style="cyan")
    table.add_column("Reps", justify="right")
    table.add_column("Due")
    table.add_column("Prompt")
    for card in deck.cards:
        table.add_row(str(card.id), str(card.repetitions),
                      format_due(card.next_due, now), preview(card.prompt))
    console.print(table)


def cmd_due(deck: Deck, args: list[str]) -> None:
    console.print(f"{len(deck.due_cards())} cards due.")


def ask_hardness() -> int:
    answer = Prompt.ask(
        "Enter HARDNESS (1-5)", choices=HARDNESS_CHOICES, default=str(DEFAULT_HARDNESS),
    )
    return int(answer)


def review_card(deck: Deck, card: Card, position: int, total: int) -> None:
    console.print(Panel(card.prompt, title=f"Card {position}/{total}", border_style="cyan"))
    Prompt.ask("[dim]Press Enter to see the ANSWER[/dim]")
    console.print(Panel(card.answer, border_style="green"))
    deck.review(card, ask_hardness())
    console.print()


def cmd_study(deck: Deck, args: list[str]) -> None:
    cards = deck.due_cards()[:MAX_STUDY]
    if not cards:
        console.print("[yellow]No cards due right now![/yellow]")
        return
    console.print(f"\n[bold]Study Session[/bold] - {len(cards)} cards\n")
    for i, card in enumerate(cards, 1):
        review_card(deck, card, i, len(cards))
    deck.sync()


def cmd_quit(deck: Deck, args: list[str]) -> None:
    raise QuitRequested()


def show_help(deck: Deck, args: list[str]) -> None:
    console.print("\n[bold]Commands:[/bold]")
    for name in sorted(COMMANDS):
        console.print(f"  [cyan]{name:<8}[/cyan] {COMMANDS[name].help}")
    console.print()


COMMANDS: dict[str, Command] = {
    "del": Command(cmd_del, "delete a card by id"),
    "due": Command(cmd_due, "see the cards due"),
    "edit": Command(cmd_edit, "edit a card"),
    "list": Command(cmd_list, "list all cards in the deck"),
    "new": Command(cmd_new, "create a new card"),
    "quit": Command(cmd_quit, "quit"),
    "show": Command(cmd_show, "show a card's prompt and answer"),
    "study": Command(cmd_study, "study all due cards"),
}
# help lists the table it lives in, so it is registered once the table exists
COMMANDS["?"] = Command(show_help, "show this help")


def dispatch(deck: Deck, line: str) -> None:
    """Run one command line against ``deck``."""
    tokens = line.split()
    if not tokens:
        return
    command = COMMANDS.get(tokens[0])
    if command is None:
        console.print(f"[red]Don't know what to do with '{tokens[0]}'. Enter '?' for help[/red]")
        return
    try:
        command.callback(deck, tokens[1:])
    except (DeckError, ValueError) as e:
        logger.debug(f"Command {tokens[0]} failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(e))}[/red]")


def run_loop(deck: Deck) -> None:
    while True:
        try:
            line = Prompt.ask("[bold]flashdeck>[/bold]")
            dispatch(deck, line.strip())
        except QuitRequested:
            console.print("[dim]Bye![/dim]")
            return
        except EOFError:
            return
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")


def close_deck(deck: Deck) -> bool:
    try:
        deck.close()
    except DeckError as e:
        console.print(f"[red]close: {e}[/red]")
        return False
    return True


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()
    path = argv[0] if argv else os.path.expanduser(DEFAULT_DECK_PATH)

    try:
        deck = Deck.open(path)
    except DeckError as e:
        console.print(f"[red]open: {e}[/red]")
        return 1

    console.print(Panel(
        f"[bold]{path}[/bold]\n[dim]{len(deck)} cards. Enter ? for help.[/dim]",
        title="Opened deck", border_style="blue",
    ))
    try:
        run_loop(deck)
    finally:
        closed = close_deck(deck)
    return 0 if closed else 1


if __name__ == "__main__":
    sys.exit(main())
