"""Command line front end for the meal ledger.

Usage:
    macrocam add --calories 650 --protein 40 --description "Chicken bowl"
    macrocam add --photo lunch.jpg --estimate
    macrocam delete <meal-id>
    macrocam today
    macrocam week
    macrocam list [--day YYYY-MM-DD]
    macrocam estimate <photo>
    macrocam serve [--host 0.0.0.0] [--port 8787]
"""

from __future__ import annotations

import argparse
import asyncio
import inspect
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from macrocam.app_logging import configure_logging
from macrocam.config import Settings
from macrocam.containers import ClientContainer, build_client
from macrocam.domain.errors import EstimationFailed, InvalidInput
from macrocam.services.aggregation import (
    day_key,
    meals_for_day,
    totals_for_day,
    week_summary,
)

if TYPE_CHECKING:
    from macrocam.domain.meals import Meal


async def cmd_add(args: argparse.Namespace, container: ClientContainer) -> int:
    """Log a meal, optionally pre-filled from a photo estimate."""
    form = container.entry_form()
    form.open()
    if args.photo:
        photo_path = Path(args.photo)
        try:
            photo_bytes = photo_path.read_bytes()
        except OSError as exc:
            print(f"Could not read photo: {exc}")
            return 1
        form.attach_photo(str(photo_path.resolve()), photo_bytes)
        if args.estimate:
            estimate = await form.estimate()
            if estimate is None:
                print(f"Estimate failed: {form.error}")
            else:
                print(
                    f"Estimated {estimate.description}: "
                    f"{estimate.calories} kcal, {estimate.protein_g} g protein"
                )
    if args.description is not None:
        form.draft.description = args.description
    if args.calories is not None:
        form.draft.calories_text = args.calories
    if args.protein is not None:
        form.draft.protein_text = args.protein
    try:
        meal = form.save()
    except InvalidInput as exc:
        print(f"Invalid input: {exc}")
        return 1
    print(f"Saved {meal.id}: {_format_meal(meal, container)}")
    _warn_on_persist_error(container)
    return 0


def cmd_delete(args: argparse.Namespace, container: ClientContainer) -> int:
    """Remove a meal by id."""
    container.ledger.remove(args.meal_id)
    print(f"Deleted {args.meal_id}")
    _warn_on_persist_error(container)
    return 0


def cmd_today(args: argparse.Namespace, container: ClientContainer) -> int:
    """Print today's totals and meals."""
    tz = container.day_timezone
    today = day_key(_now_ms(), tz)
    meals = container.ledger.all()
    totals = totals_for_day(meals, today, tz)
    print(f"Today ({today})")
    print(f"Calories: {totals.calories}")
    print(f"Protein: {totals.protein_g} g")
    todays = meals_for_day(meals, today, tz)
    if not todays:
        print("No meals yet. Run `macrocam add` to log one.")
    for meal in todays:
        print(f"- {_format_meal(meal, container)}")
    return 0


def cmd_week(args: argparse.Namespace, container: ClientContainer) -> int:
    """Print the last seven days of totals."""
    summary = week_summary(
        container.ledger.all(), datetime.now(tz=UTC), container.day_timezone
    )
    print("Last 7 days")
    print(f"Weekly calories: {summary.total.calories}")
    print(f"Weekly protein: {summary.total.protein_g} g")
    for row in summary.daily:
        print(f"- {row.day}: {row.calories} kcal, {row.protein_g} g protein")
    return 0


def cmd_list(args: argparse.Namespace, container: ClientContainer) -> int:
    """List logged meals, newest first."""
    meals = container.ledger.all()
    if args.day:
        meals = tuple(meals_for_day(meals, args.day, container.day_timezone))
    for meal in meals:
        print(f"{meal.id}  {_format_meal(meal, container)}")
    return 0


async def cmd_estimate(args: argparse.Namespace, container: ClientContainer) -> int:
    """Request an estimate for a photo without saving it."""
    try:
        photo_bytes = Path(args.photo).read_bytes()
    except OSError as exc:
        print(f"Could not read photo: {exc}")
        return 1
    try:
        estimate = await container.estimation_client.estimate(photo_bytes)
    except EstimationFailed as exc:
        print(f"Estimate failed: {exc}")
        return 1
    print(json.dumps(estimate.to_wire()))
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run the estimation server."""
    import uvicorn

    from macrocam.api.app import create_app
    from macrocam.containers import build_container

    app = create_app(build_container(settings))
    uvicorn.run(app, host=args.host, port=args.port or settings.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="macrocam",
        description="Log meals and track daily calories and protein.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Log a meal")
    add.add_argument("--description", "-d", default=None)
    add.add_argument("--calories", "-c", default=None)
    add.add_argument("--protein", "-p", default=None)
    add.add_argument("--photo", default=None, help="Path to a JPEG photo")
    add.add_argument(
        "--estimate",
        action="store_true",
        help="Pre-fill values from the photo before applying overrides",
    )
    add.set_defaults(handler=cmd_add)

    delete = subparsers.add_parser("delete", help="Delete a meal by id")
    delete.add_argument("meal_id")
    delete.set_defaults(handler=cmd_delete)

    today = subparsers.add_parser("today", help="Show today's totals")
    today.set_defaults(handler=cmd_today)

    week = subparsers.add_parser("week", help="Show the last 7 days")
    week.set_defaults(handler=cmd_week)

    listing = subparsers.add_parser("list", help="List logged meals")
    listing.add_argument("--day", default=None, help="Only meals on YYYY-MM-DD")
    listing.set_defaults(handler=cmd_list)

    estimate = subparsers.add_parser("estimate", help="Estimate a photo")
    estimate.add_argument("photo")
    estimate.set_defaults(handler=cmd_estimate)

    serve = subparsers.add_parser("serve", help="Run the estimation server")
    serve.add_argument("--host", default="0.0.0.0")  # noqa: S104
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(handler=None)

    return parser


def main(
    argv: list[str] | None = None,
    container: ClientContainer | None = None,
) -> int:
    """Entry point for the ``macrocam`` command."""
    configure_logging(logging.WARNING)
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        return cmd_serve(args, container.settings if container else Settings())
    return asyncio.run(_dispatch(args, container or build_client()))


async def _dispatch(args: argparse.Namespace, container: ClientContainer) -> int:
    try:
        result = args.handler(args, container)
        if inspect.isawaitable(result):
            result = await result
        return result
    finally:
        await container.close_resources()


def _format_meal(meal: Meal, container: ClientContainer) -> str:
    logged = datetime.fromtimestamp(meal.timestamp / 1000, tz=container.day_timezone)
    photo = " [photo]" if meal.photo_reference else ""
    return (
        f"{logged:%Y-%m-%d %H:%M} {meal.description}{photo}: "
        f"{meal.calories} kcal, {meal.protein_g} g protein"
    )


def _warn_on_persist_error(container: ClientContainer) -> None:
    if container.ledger.last_persist_error is not None:
        print(
            f"Warning: meal kept for this session but not saved to disk "
            f"({container.ledger.last_persist_error})"
        )


def _now_ms() -> int:
    return int(datetime.now(tz=UTC).timestamp() * 1000)


if __name__ == "__main__":
    sys.exit(main())
