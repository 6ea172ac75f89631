"""Meal ledger service."""

import dataclasses
import logging
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from macrocam.domain.errors import InvalidInput, StoreUnavailable
from macrocam.domain.meals import DEFAULT_DESCRIPTION, Meal, MealDraft

_logger = logging.getLogger(__name__)

_WHOLE_NUMBER = re.compile(r"[0-9]+")


class LedgerStore(Protocol):
    """Durable persistence interface for the meal list."""

    def load(self) -> list[Meal]:
        """Return the persisted meals, or an empty list."""

    def save(self, meals: Iterable[Meal]) -> None:
        """Persist the full meal list, raising StoreUnavailable on failure."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_id() -> str:
    return uuid4().hex


@dataclass
class MealLedger:
    """In-memory authoritative list of meals, newest first."""

    store: LedgerStore
    clock: Callable[[], int] = _now_ms
    id_factory: Callable[[], str] = _new_id
    last_persist_error: StoreUnavailable | None = None
    _meals: list[Meal] = field(default_factory=list, repr=False)

    @classmethod
    def open(
        cls,
        store: LedgerStore,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_id,
    ) -> "MealLedger":
        """Create a ledger hydrated from the store."""
        return cls(
            store=store,
            clock=clock,
            id_factory=id_factory,
            _meals=list(store.load()),
        )

    def all(self) -> tuple[Meal, ...]:
        """Return a read-only snapshot of the ledger."""
        return tuple(self._meals)

    def get(self, meal_id: str) -> Meal | None:
        """Return the meal with the given id, if present."""
        for meal in self._meals:
            if meal.id == meal_id:
                return meal
        return None

    def append(self, draft: MealDraft) -> Meal:
        """Validate a draft, prepend it as a new meal and persist."""
        calories = parse_whole_number("calories", draft.calories_text)
        protein_g = parse_whole_number("protein", draft.protein_text)
        meal_id = self.id_factory()
        while self.get(meal_id) is not None:
            meal_id = self.id_factory()
        meal = Meal(
            id=meal_id,
            timestamp=self.clock(),
            description=_clean_description(draft.description),
            calories=calories,
            protein_g=protein_g,
            photo_reference=draft.photo_reference,
        )
        self._meals = [meal, *self._meals]
        self._persist()
        return meal

    def remove(self, meal_id: str) -> None:
        """Drop the meal with the given id and persist; unknown ids are ignored."""
        self._meals = [meal for meal in self._meals if meal.id != meal_id]
        self._persist()

    def replace(self, meal_id: str, draft: MealDraft) -> Meal:
        """Correct a meal's values, keeping its id, timestamp and photo."""
        current = self.get(meal_id)
        if current is None:
            raise KeyError(meal_id)
        updated = dataclasses.replace(
            current,
            description=_clean_description(draft.description),
            calories=parse_whole_number("calories", draft.calories_text),
            protein_g=parse_whole_number("protein", draft.protein_text),
        )
        self._meals = [updated if meal.id == meal_id else meal for meal in self._meals]
        self._persist()
        return updated

    def _persist(self) -> None:
        try:
            self.store.save(self._meals)
        except StoreUnavailable as exc:
            _logger.warning("Failed to persist ledger: %s", exc)
            self.last_persist_error = exc
        else:
            self.last_persist_error = None


def parse_whole_number(field_name: str, raw: str | int | None) -> int:
    """Parse a non-negative integer entry; blank input counts as zero."""
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise InvalidInput(field_name, raw)
    if isinstance(raw, int):
        if raw < 0:
            raise InvalidInput(field_name, raw)
        return raw
    text = str(raw).strip()
    if not text:
        return 0
    if not _WHOLE_NUMBER.fullmatch(text):
        raise InvalidInput(field_name, raw)
    return int(text)


def _clean_description(description: str) -> str:
    return description.strip() or DEFAULT_DESCRIPTION
