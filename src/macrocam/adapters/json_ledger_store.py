"""JSON file key-value store for the meal ledger."""

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from macrocam.domain.errors import StoreUnavailable
from macrocam.domain.meals import Meal
from macrocam.services.ledger import LedgerStore

STORAGE_KEY = "@macrocam_meals_v1"

# Last instant that still has a calendar date in every zone.
MAX_TIMESTAMP_MS = int(datetime(9999, 12, 31, tzinfo=UTC).timestamp() * 1000) - 1

_logger = logging.getLogger(__name__)


class StoredMeal(BaseModel):
    """Serialized meal record as kept under the storage key."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    ts: int = Field(ge=0, le=MAX_TIMESTAMP_MS)
    description: str
    calories: int = Field(ge=0)
    protein_g: int = Field(ge=0)
    photo_uri: str | None = Field(default=None, alias="photoUri")

    @classmethod
    def from_meal(cls, meal: Meal) -> "StoredMeal":
        return cls(
            id=meal.id,
            ts=meal.timestamp,
            description=meal.description,
            calories=meal.calories,
            protein_g=meal.protein_g,
            photo_uri=meal.photo_reference,
        )

    def to_meal(self) -> Meal:
        return Meal(
            id=self.id,
            timestamp=self.ts,
            description=self.description,
            calories=self.calories,
            protein_g=self.protein_g,
            photo_reference=self.photo_uri,
        )


@dataclass
class JsonFileLedgerStore(LedgerStore):
    """Ledger store backed by a JSON document of string keys."""

    path: Path
    key: str = STORAGE_KEY

    def load(self) -> list[Meal]:
        """Load meals, failing closed to an empty list on bad data."""
        try:
            document = self._read_document()
        except OSError as exc:
            _logger.warning("Could not read ledger store %s: %s", self.path, exc)
            return []
        raw = document.get(self.key)
        if raw is None:
            return []
        try:
            records = json.loads(raw) if isinstance(raw, str) else raw
        except json.JSONDecodeError:
            _logger.warning("Ignoring corrupt ledger data under %s", self.key)
            return []
        if not isinstance(records, list):
            _logger.warning("Ignoring ledger data of type %s", type(records).__name__)
            return []
        meals: list[Meal] = []
        seen: set[str] = set()
        for record in records:
            try:
                meal = StoredMeal.model_validate(record).to_meal()
            except ValidationError:
                _logger.warning("Skipping invalid meal record: %r", record)
                continue
            if meal.id in seen:
                _logger.warning("Skipping duplicate meal id %s", meal.id)
                continue
            seen.add(meal.id)
            meals.append(meal)
        return meals

    def save(self, meals: Iterable[Meal]) -> None:
        """Rewrite the full meal list under the storage key."""
        payload = [
            StoredMeal.from_meal(meal).model_dump(by_alias=True, exclude_none=True)
            for meal in meals
        ]
        try:
            document = self._read_document()
        except OSError as exc:
            raise StoreUnavailable(f"Could not read {self.path}: {exc}") from exc
        document[self.key] = json.dumps(payload)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreUnavailable(f"Could not write {self.path}: {exc}") from exc

    def _read_document(self) -> dict[str, object]:
        """Return the stored document; unreadable files raise OSError."""
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            document = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            _logger.warning("Ignoring corrupt ledger store %s", self.path)
            return {}
        return document if isinstance(document, dict) else {}
