"""Tests for day bucketing and totals."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from macrocam.domain.meals import Meal, MealDraft, NutritionTotals
from macrocam.services.aggregation import (
    daily_totals,
    day_key,
    last_n_days,
    meals_for_day,
    range_totals,
    totals_for_day,
    week_summary,
)
from macrocam.services.ledger import MealLedger
from tests.conftest import DAY_MS, NOW, NOW_MS, FakeClock, InMemoryLedgerStore


def _meal(meal_id: str, timestamp: int, calories: int, protein_g: int) -> Meal:
    return Meal(
        id=meal_id,
        timestamp=timestamp,
        description="Meal",
        calories=calories,
        protein_g=protein_g,
    )


def test_day_key_uses_utc_by_default() -> None:
    assert day_key(NOW_MS) == "2026-10-18"
    late_evening = int(datetime(2026, 10, 18, 23, 59, tzinfo=ZoneInfo("UTC")).timestamp())
    assert day_key(late_evening * 1000 + 60_000) == "2026-10-19"


def test_day_key_respects_timezone() -> None:
    timestamp = int(datetime(2026, 10, 18, 2, 0, tzinfo=ZoneInfo("UTC")).timestamp())

    assert day_key(timestamp * 1000, ZoneInfo("America/Los_Angeles")) == "2026-10-17"


def test_totals_for_day_empty_ledger_is_zero() -> None:
    assert totals_for_day([], "2026-10-18") == NutritionTotals(0, 0)


def test_today_and_yesterday_scenario() -> None:
    clock = FakeClock()
    ledger = MealLedger.open(InMemoryLedgerStore(), clock=clock)
    ledger.append(MealDraft(calories_text="650", protein_text="40"))
    clock.now_ms = NOW_MS - DAY_MS
    ledger.append(MealDraft(calories_text="300", protein_text="10"))
    meals = ledger.all()

    today, yesterday = last_n_days(2, NOW)

    assert totals_for_day(meals, today) == NutritionTotals(650, 40)
    assert totals_for_day(meals, yesterday) == NutritionTotals(300, 10)
    assert range_totals(meals, [today, yesterday]) == NutritionTotals(950, 50)


def test_last_n_days_walks_back_one_day_at_a_time() -> None:
    days = last_n_days(7, NOW)

    assert len(days) == 7
    assert days[0] == day_key(NOW_MS)
    parsed = [date.fromisoformat(day) for day in days]
    for newer, older in zip(parsed, parsed[1:], strict=False):
        assert newer - older == timedelta(days=1)


def test_last_n_days_zero_and_negative() -> None:
    assert last_n_days(0, NOW) == []
    with pytest.raises(ValueError):
        last_n_days(-1, NOW)


def test_last_n_days_treats_naive_reference_as_utc() -> None:
    assert last_n_days(1, datetime(2026, 3, 1, 0, 30)) == ["2026-03-01"]


def test_last_n_days_crosses_month_boundary() -> None:
    assert last_n_days(3, datetime(2026, 3, 1, 12, 0)) == [
        "2026-03-01",
        "2026-02-28",
        "2026-02-27",
    ]


def test_range_totals_matches_sum_of_days() -> None:
    meals = [
        _meal(str(offset), NOW_MS - offset * DAY_MS, 100 + offset, offset)
        for offset in range(10)
    ]
    days = last_n_days(7, NOW)

    total = range_totals(meals, days)
    per_day = [totals_for_day(meals, day) for day in days]

    assert total.calories == sum(day.calories for day in per_day)
    assert total.protein_g == sum(day.protein_g for day in per_day)
    assert total.calories == sum(100 + offset for offset in range(7))


def test_range_totals_counts_duplicate_days_once() -> None:
    meals = [_meal("a", NOW_MS, 500, 25)]

    assert range_totals(meals, ["2026-10-18", "2026-10-18"]) == NutritionTotals(
        500, 25
    )


def test_aggregation_ignores_ledger_order() -> None:
    meals = [
        _meal("a", NOW_MS - DAY_MS, 300, 10),
        _meal("b", NOW_MS, 200, 15),
        _meal("c", NOW_MS, 100, 5),
    ]

    assert totals_for_day(meals, "2026-10-18") == totals_for_day(
        list(reversed(meals)), "2026-10-18"
    )
    assert [meal.id for meal in meals_for_day(meals, "2026-10-18")] == ["b", "c"]


def test_daily_totals_and_week_summary() -> None:
    meals = [
        _meal("a", NOW_MS, 650, 40),
        _meal("b", NOW_MS - 2 * DAY_MS, 300, 10),
        _meal("old", NOW_MS - 8 * DAY_MS, 999, 99),
    ]

    rows = daily_totals(meals, ["2026-10-18", "2026-10-17", "2026-10-16"])
    summary = week_summary(meals, NOW)

    assert [(row.day, row.calories) for row in rows] == [
        ("2026-10-18", 650),
        ("2026-10-17", 0),
        ("2026-10-16", 300),
    ]
    assert len(summary.daily) == 7
    assert summary.total == NutritionTotals(950, 50)
