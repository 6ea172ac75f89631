"""Day bucketing and nutrition totals over a ledger snapshot."""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

from macrocam.domain.meals import DailyTotals, Meal, NutritionTotals, WeekSummary

WEEK_DAYS = 7


def day_key(timestamp_ms: int, tz: tzinfo = UTC) -> str:
    """Return the ISO calendar date of a millisecond timestamp in ``tz``."""
    instant = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return instant.astimezone(tz).date().isoformat()


def meals_for_day(meals: Iterable[Meal], day: str, tz: tzinfo = UTC) -> list[Meal]:
    """Return the meals logged on ``day``, preserving ledger order."""
    return [meal for meal in meals if day_key(meal.timestamp, tz) == day]


def totals_for_day(
    meals: Iterable[Meal], day: str, tz: tzinfo = UTC
) -> NutritionTotals:
    """Sum calories and protein for meals logged on ``day``."""
    calories = 0
    protein_g = 0
    for meal in meals_for_day(meals, day, tz):
        calories += meal.calories
        protein_g += meal.protein_g
    return NutritionTotals(calories=calories, protein_g=protein_g)


def last_n_days(n: int, reference: datetime, tz: tzinfo = UTC) -> list[str]:
    """Return ``n`` day keys ending at the reference day, today first."""
    if n < 0:
        raise ValueError("n must not be negative")
    today = _local_date(reference, tz)
    return [(today - timedelta(days=offset)).isoformat() for offset in range(n)]


def range_totals(
    meals: Iterable[Meal], days: Iterable[str], tz: tzinfo = UTC
) -> NutritionTotals:
    """Sum totals over a set of days, counting each day once."""
    wanted = set(days)
    calories = 0
    protein_g = 0
    for meal in meals:
        if day_key(meal.timestamp, tz) in wanted:
            calories += meal.calories
            protein_g += meal.protein_g
    return NutritionTotals(calories=calories, protein_g=protein_g)


def daily_totals(
    meals: Iterable[Meal], days: Iterable[str], tz: tzinfo = UTC
) -> list[DailyTotals]:
    """Return one totals row per day, in the order given."""
    snapshot = list(meals)
    rows = []
    for day in days:
        totals = totals_for_day(snapshot, day, tz)
        rows.append(
            DailyTotals(day=day, calories=totals.calories, protein_g=totals.protein_g)
        )
    return rows


def week_summary(
    meals: Iterable[Meal], reference: datetime, tz: tzinfo = UTC
) -> WeekSummary:
    """Return the trailing seven days of totals, today first."""
    snapshot = list(meals)
    days = last_n_days(WEEK_DAYS, reference, tz)
    return WeekSummary(
        daily=daily_totals(snapshot, days, tz),
        total=range_totals(snapshot, days, tz),
    )


def _local_date(reference: datetime, tz: tzinfo) -> date:
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=UTC)
    return reference.astimezone(tz).date()
