"""
adapters.cli.main - CLI adapter for the data agent.

Mirrors src/adapters/rest/ but for terminal use. Uses the same
ServiceFactory and AgentOrchestrator as the REST API so all behaviour is
identical.

Commands
--------
  ask        One-shot question (continues the current conversation)
  chat       Interactive chat session
  schema     Show the formatted schema of one or all collections
  history    Show the stored messages of a conversation
  clear      Delete a conversation's history
  new        Forget the current conversation and start a fresh one

Usage
-----
  python src/adapters/cli/main.py ask "How many orders were delivered?"
  python src/adapters/cli/main.py chat --session alice_demo
  python src/adapters/cli/main.py schema orders
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from adapters.cli.session import CliSession, forget_session, load_session, save_session
from application.context import SessionContext, generate_session_id
from application.dto import TurnResult
from domain.exceptions import UnknownCollectionError
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "1.0.0"

console = Console()
app = typer.Typer(
    help="Conversational MongoDB data agent",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    config = Settings.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _resolve_session(session_id: Optional[str], user_id: Optional[str]) -> CliSession:
    """Explicit --session wins, then the stored conversation, then a new one."""
    if session_id:
        session = CliSession(session_id=session_id, user_id=user_id or "")
    else:
        session = load_session() or CliSession(
            session_id=generate_session_id(user_id), user_id=user_id or "",
        )
    save_session(session)
    return session


def _print_turn(result: TurnResult) -> None:
    if result.success:
        console.print(Panel(Markdown(result.response or ""), title="Agent", border_style="green"))
        usage = result.usage
        if usage is not None:
            console.print(
                f"[dim]{usage.calls} call(s), {usage.total_tokens} tokens "
                f"({usage.input_tokens} in / {usage.output_tokens} out)[/dim]"
            )
    else:
        console.print(Panel(
            f"[bold red]The turn failed.[/bold red]\n{result.error}",
            border_style="red",
        ))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"mongo-agent v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Conversation
# ---------------------------------------------------------------------------

@app.command()
def ask(
    query: str = typer.Argument(..., help="Your question about the data."),
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Conversation id."),
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Your user id."),
) -> None:
    """Ask a one-shot question."""
    session = _resolve_session(session_id, user_id)

    async def _run() -> None:
        factory = await _make_factory()
        try:
            orchestrator = factory.create_orchestrator()
            ctx = SessionContext(session_id=session.session_id, user_id=session.user_id)
            with console.status("[bold cyan]Thinking…", spinner="dots"):
                result = await orchestrator.run_turn(ctx, query)
        finally:
            await factory.shutdown()

        _print_turn(result)
        console.print(f"[dim]session: {session.session_id}[/dim]")
        if not result.success:
            raise typer.Exit(code=1)

    asyncio.run(_run())


@app.command()
def chat(
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Conversation id."),
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Your user id."),
) -> None:
    """Start an interactive chat session."""
    session = _resolve_session(session_id, user_id)

    async def _run() -> None:
        factory = await _make_factory()
        orchestrator = factory.create_orchestrator()

        console.print(Panel(
            f"[bold]Data Agent Chat[/bold]\n"
            f"Session [bold]{session.session_id}[/bold]\n"
            "Type your question, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        try:
            while True:
                try:
                    user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                    console.print("[dim]Goodbye![/dim]")
                    break

                if not user_input.strip():
                    continue

                ctx = SessionContext(session_id=session.session_id, user_id=session.user_id)
                with console.status("[bold cyan]Thinking…", spinner="dots"):
                    result = await orchestrator.run_turn(ctx, user_input)

                console.print()
                _print_turn(result)
        finally:
            await factory.shutdown()

    asyncio.run(_run())


@app.command()
def history(
    session_id: Optional[str] = typer.Argument(None, help="Conversation id (default: current)."),
) -> None:
    """Show the stored messages of a conversation."""
    stored = load_session()
    sid = session_id or (stored.session_id if stored else None)
    if not sid:
        console.print("[dim]No current conversation.[/dim]")
        return

    async def _run() -> None:
        factory = await _make_factory()
        try:
            result = await factory.create_orchestrator().get_history(sid)
        finally:
            await factory.shutdown()

        if not result.success:
            console.print(f"[bold red]Could not load history:[/bold red] {result.error}")
            raise typer.Exit(code=1)
        if not result.messages:
            console.print(f"[dim]No messages in {sid}.[/dim]")
            return

        t = Table(box=box.SIMPLE, title=f"{sid} ({result.message_count} messages)")
        t.add_column("Time", style="dim")
        t.add_column("Role", style="bold")
        t.add_column("Content")
        for msg in result.messages:
            t.add_row(msg.timestamp[:19], msg.role, msg.content)
        console.print(t)

    asyncio.run(_run())


@app.command()
def clear(
    session_id: Optional[str] = typer.Argument(None, help="Conversation id (default: current)."),
) -> None:
    """Delete a conversation's stored history."""
    stored = load_session()
    sid = session_id or (stored.session_id if stored else None)
    if not sid:
        console.print("[dim]No current conversation.[/dim]")
        return
    if not Confirm.ask(f"Delete the history of [bold]{sid}[/bold]?"):
        return

    async def _run() -> None:
        factory = await _make_factory()
        try:
            result = await factory.create_orchestrator().clear_session(sid)
        finally:
            await factory.shutdown()

        if result.success:
            console.print("[green]History cleared.[/green]")
        else:
            console.print(f"[bold red]Could not clear history:[/bold red] {result.error}")
            raise typer.Exit(code=1)

    asyncio.run(_run())


@app.command()
def new() -> None:
    """Forget the current conversation; the next ask starts a new one."""
    forget_session()
    console.print("[green]Started a new conversation.[/green]")


# ---------------------------------------------------------------------------
# Commands: Schema (no LLM needed)
# ---------------------------------------------------------------------------

@app.command()
def schema(
    collection: Optional[str] = typer.Argument(None, help="Collection name (default: all)."),
) -> None:
    """Show the formatted schema the agent sees."""

    async def _run() -> None:
        factory = await _make_factory()
        try:
            reflector = factory.create_reflector()
            formatter = factory.create_formatter()
            if collection:
                try:
                    schemas = {collection: formatter.format(reflector.reflect(collection))}
                except UnknownCollectionError as exc:
                    console.print(f"[bold red]{exc}[/bold red]")
                    raise typer.Exit(code=1)
            else:
                schemas = formatter.format_all(reflector)
        finally:
            await factory.shutdown()

        for name, fields in schemas.items():
            t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
            t.add_column("Field", style="bold")
            t.add_column("Type")
            for path, encoded in fields.items():
                t.add_row(path, encoded)
            console.print(Panel(t, title=name, border_style="blue"))

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Conversational MongoDB data agent"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
