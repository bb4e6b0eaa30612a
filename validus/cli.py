"""Command-line interface for Validus.

Provides ``validus chat``, ``match`` and ``responses``. The entry point is
registered via ``pyproject.toml`` as ``validus = "validus.cli:cli"``.
"""

import asyncio
import logging
from pathlib import Path

import click

from validus.config import LOCALE, MATCH_DISTANCE, MATCH_THRESHOLD, MAX_LISTEN_SECONDS, SPEECH_RATE
from validus.dialogue.controller import DialogueController
from validus.dialogue.matcher import FuzzyMatcher
from validus.dialogue.normalizer import normalize
from validus.dialogue.response_index import (
    ResponseIndex,
    ResponseTableError,
    default_index,
    load_responses,
)
from validus.dialogue.types import MatchConfig, Matched
from validus.speech.console import ConsoleRecognizer, ConsoleSynthesizer

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    """Send log records to stderr; DEBUG with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )


def _build_index(responses: Path | None, threshold: float, distance: int) -> ResponseIndex:
    """Build the response index or exit with a readable error."""
    try:
        config = MatchConfig(similarity_threshold=threshold, max_edit_distance=distance)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    try:
        table = load_responses(responses) if responses is not None else None
        return default_index(table, config)
    except ResponseTableError as exc:
        click.echo(click.style(str(exc), fg="red"), err=True)
        raise SystemExit(1)


_responses_option = click.option(
    "--responses",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file mapping trigger phrases to replies (default: built-in table)",
)
_threshold_option = click.option(
    "--threshold",
    type=float,
    default=MATCH_THRESHOLD,
    show_default=True,
    help="Highest accepted match score (lower = stricter)",
)
_distance_option = click.option(
    "--distance",
    type=int,
    default=MATCH_DISTANCE,
    show_default=True,
    help="How far into a trigger a match may start",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def cli(verbose: bool) -> None:
    """Validus -- voice assistant with fuzzy canned replies."""
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------


async def _chat(controller: DialogueController, recognizer: ConsoleRecognizer) -> None:
    """Run turns until console input closes."""
    async with controller:
        while True:
            if not await controller.activate():
                break

            idle = asyncio.create_task(controller.wait_until_idle())
            eof = asyncio.create_task(recognizer.wait_for_eof())
            done, pending = await asyncio.wait({idle, eof}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()

            if eof in done:
                await controller.deactivate()
                break


@cli.command()
@_responses_option
@_threshold_option
@_distance_option
@click.option("--locale", default=LOCALE, show_default=True, help="Recognition locale")
@click.option(
    "--listen-timeout",
    type=float,
    default=MAX_LISTEN_SECONDS,
    show_default=True,
    help="Seconds to wait for speech before apologizing (0 = no limit)",
)
@click.option(
    "--rate",
    type=float,
    default=SPEECH_RATE,
    show_default=True,
    help="Simulated speaking rate in words/sec (0 = instant)",
)
def chat(
    responses: Path | None,
    threshold: float,
    distance: int,
    locale: str,
    listen_timeout: float,
    rate: float,
) -> None:
    """Talk to Validus by typing. Ctrl-D to quit."""
    index = _build_index(responses, threshold, distance)
    click.echo(click.style("Validus Echo is listening. Ctrl-D to quit.", fg="green"))

    async def run() -> None:
        recognizer = ConsoleRecognizer()
        controller = DialogueController(
            index,
            recognizer,
            ConsoleSynthesizer(words_per_second=rate),
            locale=locale,
            max_listen_seconds=listen_timeout,
        )
        await _chat(controller, recognizer)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
    click.echo()
    click.echo("Goodbye.")


# ---------------------------------------------------------------------------
# match
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("text")
@_responses_option
@_threshold_option
@_distance_option
def match(text: str, responses: Path | None, threshold: float, distance: int) -> None:
    """Show how TEXT would be answered, without any speech."""
    index = _build_index(responses, threshold, distance)
    query = normalize(text)
    result = FuzzyMatcher().resolve(query, index)

    click.echo(f"Query:   {query!r}")
    if isinstance(result, Matched):
        click.echo(f"Trigger: {result.trigger!r} (score {result.score:.3f})")
        click.echo(click.style(f"Reply:   {result.reply}", fg="green"))
    else:
        click.echo(click.style(f"No match ({result.reason.value})", fg="yellow"))
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# responses
# ---------------------------------------------------------------------------


@cli.command("responses")
@_responses_option
def list_responses(responses: Path | None) -> None:
    """List the trigger phrases and their replies."""
    index = _build_index(responses, MATCH_THRESHOLD, MATCH_DISTANCE)
    if not len(index):
        click.echo(click.style("Response table is empty.", fg="yellow"))
        return
    for entry in index:
        click.echo(f"{click.style(entry.trigger, bold=True)}: {entry.reply}")
