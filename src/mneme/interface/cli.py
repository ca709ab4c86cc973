"""mneme CLI — build queues, grade cards and inspect statistics from a YAML card file."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
import yaml  # type: ignore

from mneme.application.config import AppConfig, resolve_config
from mneme.domain.review.models import Rating

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mneme: spaced-repetition review scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mneme configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for mneme."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.getLogger("mneme").setLevel(VERBOSITY_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    """Current local time, zone-aware."""
    return datetime.now().astimezone()


def _resolve(path: Path | None, **overrides: Any) -> AppConfig:
    return resolve_config({"cards_file": path, **overrides})


def parse_rating(value: str) -> Rating:
    """Accept a rating name (again/hard/good/easy) or its number (1-4)."""
    if value.isdigit():
        number = int(value)
        if not 1 <= number <= 4:
            raise ValueError(f"rating must be between 1 and 4, got {number}")
        return Rating(number)
    try:
        return Rating[value.strip().upper()]
    except KeyError:
        raise ValueError(f"unknown rating {value!r}; use again, hard, good or easy") from None


def _fail(error: Exception) -> NoReturn:
    logger.debug("Command failed", exc_info=error)
    typer.secho(f"Error: {error}", fg="red", err=True)
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("queue")
def queue(
    path: Annotated[
        Path | None, typer.Argument(help="YAML card file. Defaults to config or ./cards.yaml.")
    ] = None,
    deck: Annotated[str | None, typer.Option(help="Only include cards from this deck.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the ordered study queue for right now."""
    from mneme.application.factory import get_card_repository, get_review_service

    async def run():
        config = _resolve(path)
        repo = get_card_repository(config)
        now = _now()
        service = await get_review_service(config, repo, tz=now.tzinfo)
        return await service.build_queue(now, deck=deck)

    try:
        cards = asyncio.run(run())
    except (ValueError, yaml.YAMLError) as e:
        _fail(e)

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {"id": c.id, "state": c.state.name.lower(), "due": c.due.isoformat()}
                    for c in cards
                ],
                indent=2,
            )
        )
        return

    if not cards:
        typer.secho("Nothing to study right now.", fg="green")
        return

    for index, card in enumerate(cards, start=1):
        label = card.question or card.id
        state = card.state.name.lower()
        typer.echo(f"{index:>3}. [{state:<10}] {label}  (due {card.due:%Y-%m-%d %H:%M})")


@app.command("review")
def review(
    card_id: Annotated[str, typer.Argument(help="ID of the card to grade.")],
    rating: Annotated[str, typer.Argument(help="again, hard, good, easy (or 1-4).")],
    path: Annotated[
        Path | None, typer.Argument(help="YAML card file. Defaults to config or ./cards.yaml.")
    ] = None,
    time_ms: Annotated[int, typer.Option("--time-ms", help="Response time in ms.")] = 0,
):
    """[bold green]Grade[/bold green] one card and save its new schedule."""
    from mneme.application.factory import get_card_repository, get_review_service

    async def run():
        config = _resolve(path)
        repo = get_card_repository(config)
        card = await repo.get(card_id)
        if card is None:
            raise ValueError(f"card {card_id!r} not found in {repo.path}")
        now = _now()
        service = await get_review_service(config, repo, tz=now.tzinfo)
        outcome = await service.grade_card(card, parse_rating(rating), time_ms, now)
        await repo.append_review(outcome.result)
        return outcome

    try:
        outcome = asyncio.run(run())
    except (ValueError, yaml.YAMLError) as e:
        _fail(e)

    updated = outcome.updated_card
    typer.secho(
        f"{updated.id}: {outcome.result.previous_state.name.lower()} -> "
        f"{updated.state.name.lower()}, next due {updated.due:%Y-%m-%d %H:%M}",
        fg="green",
    )


@app.command("stats")
def stats(
    path: Annotated[
        Path | None, typer.Argument(help="YAML card file. Defaults to config or ./cards.yaml.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show retention, streaks, card maturity and today's progress."""
    from mneme.application.factory import get_card_repository, get_review_service
    from mneme.application.stats.aggregator import (
        calculate_retention_rate,
        card_maturity_breakdown,
        get_streak_info,
    )

    async def run():
        config = _resolve(path)
        repo = get_card_repository(config)
        now = _now()
        service = await get_review_service(config, repo, tz=now.tzinfo)
        boundary = service.day_boundary
        cards = await repo.get_all()
        reviews = await repo.get_reviews()
        today_reviews = [r for r in reviews if boundary.is_today(r.timestamp, now)]
        return {
            "retention": calculate_retention_rate(reviews),
            "streak": asdict(get_streak_info(reviews, now.date(), now.tzinfo)),
            "maturity": asdict(card_maturity_breakdown(cards, now)),
            "today": asdict(await service.daily_stats(now, today_reviews)),
            "total_reviews": len(reviews),
        }

    try:
        summary = asyncio.run(run())
    except (ValueError, yaml.YAMLError) as e:
        _fail(e)

    if json_output:
        typer.echo(json.dumps(summary, indent=2))
        return

    streak = summary["streak"]
    today = summary["today"]
    maturity = summary["maturity"]
    typer.echo(f"Reviews: {summary['total_reviews']}  Retention: {summary['retention']:.0%}")
    typer.echo(f"Streak: {streak['current_streak']} days (longest {streak['longest_streak']})")
    typer.echo(
        f"Today ({today['date']}): {today['reviews_completed']} reviewed, "
        f"{today['due_today']} due, {today['new_remaining']} new remaining"
    )
    typer.echo("Cards: " + "  ".join(f"{name} {count}" for name, count in maturity.items()))


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
