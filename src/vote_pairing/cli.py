"""CLI for Vote Pairing."""

from __future__ import annotations

import asyncio
import json
import logging
import random
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, NoReturn

import pydantic
import structlog
import typer
from dotenv import load_dotenv
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler

from vote_pairing import __version__
from vote_pairing.core.config import VotingConfig, load_config
from vote_pairing.core.errors import ConfigurationError
from vote_pairing.models import ErrorResponse
from vote_pairing.services.sources import FileCandidateSource
from vote_pairing.services.storage import VoteStore
from vote_pairing.services.ticket import PairingTicketService
from vote_pairing.services.voting import VotingService

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="vote-pairing",
    help="Vote Pairing - fair candidate pairs and signed pairing tickets for head-to-head votes",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]
CandidatesOption = Annotated[
    Path | None,
    typer.Option("--candidates", help="Candidates YAML/JSON file (overrides config)"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"vote-pairing v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Vote Pairing CLI."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config_path: Path | None) -> VotingConfig:
    if config_path is None:
        return VotingConfig()
    console.print(f"[bold]Loading config:[/bold] {config_path}")
    return load_config(config_path)


def _candidates_path(config: VotingConfig, candidates: Path | None) -> Path:
    path = candidates or (Path(config.candidates_path) if config.candidates_path else None)
    if path is None:
        msg = "Candidates file required"
        raise ConfigurationError(msg, "Pass --candidates or set candidates_path in config.")
    return path


def _print_result(result: BaseModel) -> None:
    console.print_json(result.model_dump_json(exclude_none=True))
    if isinstance(result, ErrorResponse):
        raise typer.Exit(1)


def _run_with_service(
    config: VotingConfig,
    candidates: Path,
    action: Callable[[VotingService], Awaitable[BaseModel]],
) -> BaseModel:
    """Build the service around a fresh store, run one action, clean up."""

    async def _run() -> BaseModel:
        source = await FileCandidateSource.open(candidates)
        store = VoteStore(config)
        try:
            service = VotingService(config, source, store.votes)
            return await action(service)
        finally:
            await store.close()

    return asyncio.run(_run())


def _fail(e: Exception) -> NoReturn:
    if isinstance(e, ConfigurationError):
        console.print(f"[red]{e}")
    else:
        console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(1) from e


@app.command()
def pair(
    voter_id: Annotated[str, typer.Argument(help="Voter requesting a pair")],
    config_path: ConfigOption = None,
    candidates: CandidatesOption = None,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for reproducible pairs")] = None,
) -> None:
    """Select a pair for a voter and print the signed offer."""
    try:
        config = _load_config(config_path)
        path = _candidates_path(config, candidates)
        rng = random.Random(seed if seed is not None else config.seed)  # noqa: S311
        result = _run_with_service(
            config, path, lambda service: service.request_pairing(voter_id, rng)
        )
    except (FileNotFoundError, ConfigurationError, pydantic.ValidationError) as e:
        _fail(e)
    _print_result(result)


@app.command()
def submit(
    voter_id: Annotated[str, typer.Argument(help="Voter submitting the vote")],
    submission_path: Annotated[Path, typer.Argument(help="Vote submission JSON file")],
    config_path: ConfigOption = None,
    candidates: CandidatesOption = None,
) -> None:
    """Verify and record a vote from a JSON submission."""
    try:
        config = _load_config(config_path)
        path = _candidates_path(config, candidates)
        payload = json.loads(submission_path.read_text(encoding="utf-8"))
        result = _run_with_service(
            config, path, lambda service: service.submit_vote(voter_id, payload)
        )
    except (
        FileNotFoundError,
        json.JSONDecodeError,
        ConfigurationError,
        pydantic.ValidationError,
    ) as e:
        _fail(e)
    _print_result(result)


@app.command()
def verify(
    signature: Annotated[str, typer.Argument(help="Ticket signature to check")],
    event_a: Annotated[str, typer.Option("--event-a", help="First snapshot event id")],
    event_b: Annotated[str, typer.Option("--event-b", help="Second snapshot event id")],
    voter_id: Annotated[str, typer.Option("--voter", help="Voter the ticket was issued to")],
    config_path: ConfigOption = None,
) -> None:
    """Check a pairing ticket without recording anything."""
    try:
        config = _load_config(config_path)
        tickets = PairingTicketService(config.get_signing_secret())
    except (FileNotFoundError, ConfigurationError, pydantic.ValidationError) as e:
        _fail(e)

    if tickets.verify(signature, event_a, event_b, voter_id):
        console.print("[green]Ticket is valid[/green]")
        return
    console.print("[red]Ticket is invalid[/red]")
    raise typer.Exit(1)


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without running."""
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Decay: {config.pairing.decay}")
        console.print(f"  Effort band: {config.pairing.band_lower}-{config.pairing.band_upper}")
        console.print(f"  Max attempts: {config.pairing.max_attempts}")
        console.print(f"  Min rationale length: {config.min_rationale_length}")
        console.print(f"  Database: {config.database_url}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Vote Pairing[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Request a pair for voter 42")
    console.print("  uv run vote-pairing pair 42 --candidates candidates.yaml\n")

    console.print("  # Submit a vote")
    console.print("  uv run vote-pairing submit 42 vote.json --candidates candidates.yaml\n")

    console.print("  # Check a ticket")
    console.print("  uv run vote-pairing verify <signature> --event-a 7 --event-b 9 --voter 42\n")

    console.print("  # Validate config")
    console.print("  uv run vote-pairing validate config.yaml")


if __name__ == "__main__":
    app()
