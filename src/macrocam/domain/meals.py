"""Domain models for meal logging."""

from dataclasses import dataclass

DEFAULT_DESCRIPTION = "Meal"


@dataclass(frozen=True)
class Meal:
    """A committed meal entry in the ledger."""

    id: str
    timestamp: int
    description: str
    calories: int
    protein_g: int
    photo_reference: str | None = None


@dataclass
class MealDraft:
    """Unsaved, user-editable meal form state."""

    description: str = ""
    calories_text: str = ""
    protein_text: str = ""
    photo_reference: str | None = None


@dataclass(frozen=True)
class NutritionTotals:
    """Summed calories and protein."""

    calories: int = 0
    protein_g: int = 0


@dataclass(frozen=True)
class DailyTotals:
    """Totals for a single calendar day."""

    day: str
    calories: int
    protein_g: int


@dataclass(frozen=True)
class WeekSummary:
    """Per-day rows for a trailing window plus the window total."""

    daily: list[DailyTotals]
    total: NutritionTotals
