"""CLI commands for anchor."""

import asyncio
import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from anchor import __logo__, __version__
from anchor.chat.turn import ChatTurnController
from anchor.compaction.context import build_context_for_api
from anchor.compaction.estimator import TokenCounter, estimate_total_tokens
from anchor.compaction.trigger import should_compact, tail_tokens
from anchor.errors import InvariantViolation
from anchor.session.types import ChatSession

app = typer.Typer(
    name="anchor",
    help=f"{__logo__} anchor - conversation context compaction",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} anchor v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """anchor - conversation context compaction."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _load_session(path: Path) -> ChatSession:
    """Read a chat session JSON file, exiting on unreadable or corrupted data."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]Session file not found: {path}[/red]")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(data, dict):
        console.print(f"[red]Session file must contain a JSON object: {path}[/red]")
        raise typer.Exit(1)

    try:
        return ChatSession.from_dict(data)
    except InvariantViolation as e:
        console.print(f"[red]Corrupted session state: {e}[/red]")
        raise typer.Exit(1)


def _save_session(session: ChatSession, path: Path) -> None:
    path.write_text(
        json.dumps(session.to_dict(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def _load_app_config(config_path: Path | None):
    from anchor.config.loader import load_config
    return load_config(config_path)


@app.command()
def tokens(
    session_file: Path = typer.Argument(help="Chat session JSON file"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Show token estimates and whether the session needs compaction."""
    config = _load_app_config(config_path)
    session = _load_session(session_file)
    counter = TokenCounter(encoding_name=config.chat.compaction.encoding)
    policy = config.chat.compaction.to_policy()

    table = Table(title=f"Session {session.id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Messages", str(len(session.messages)))
    table.add_row("State", session.state)
    table.add_row(
        "Summary up to",
        "-" if session.summary_up_to_index is None else str(session.summary_up_to_index),
    )
    table.add_row("Full history tokens", str(estimate_total_tokens(session.messages, counter=counter)))
    table.add_row("Context tokens", str(tail_tokens(session, counter)))
    table.add_row("Threshold", str(policy.compact_threshold))
    table.add_row("Needs compaction", "yes" if should_compact(session, policy, counter) else "no")
    console.print(table)


@app.command()
def context(
    session_file: Path = typer.Argument(help="Chat session JSON file"),
):
    """Print the message list that would be sent for the next turn."""
    session = _load_session(session_file)

    for i, msg in enumerate(build_context_for_api(session)):
        console.rule(f"[bold]{i}[/bold] {msg.role}")
        console.print(Markdown(msg.content))


@app.command()
def compact(
    session_file: Path = typer.Argument(help="Chat session JSON file"),
    force: bool = typer.Option(False, "--force", "-f", help="Compact even below the threshold"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write the session back"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Run one compaction pass and store the summary in the session file."""
    from anchor.providers.litellm_provider import LiteLLMProvider

    config = _load_app_config(config_path)
    if not config.get_api_key():
        console.print("[red]Error: No API key configured.[/red]")
        console.print("Set provider.apiKey in ~/.anchor/config.json or ANCHOR_PROVIDER__API_KEY")
        raise typer.Exit(1)

    session = _load_session(session_file)
    provider = LiteLLMProvider(
        api_key=config.get_api_key(),
        api_base=config.provider.endpoint_url,
        default_model=config.chat.model_name,
        timeout_seconds=config.provider.timeout_seconds,
    )
    controller = ChatTurnController.from_config(config, provider)

    if force:
        result = asyncio.run(controller.compact_now(session))
    else:
        result = asyncio.run(controller.compaction.compact_if_needed(session))

    if result is None:
        console.print("[dim]Below the compaction threshold. Use --force to compact anyway.[/dim]")
        return

    if result.failed:
        console.print(f"[yellow]Summarization failed, state kept: {result.error}[/yellow]")
    elif not result.messages_compacted:
        console.print("[dim]Nothing new to compact.[/dim]")
    else:
        console.print(
            f"[green]✓[/green] Compacted {result.messages_compacted} messages "
            f"({result.tokens_before} → {result.tokens_after} tokens), "
            f"summary up to message {result.summary_up_to_index}"
        )

    if not dry_run:
        _save_session(session, session_file)
