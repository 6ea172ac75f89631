"""Meal entry form: draft editing, photo estimates and saving."""

import logging
from dataclasses import dataclass, field

from macrocam.adapters.estimation_client import EstimationClient
from macrocam.domain.errors import EstimationFailed
from macrocam.domain.estimation import Estimate
from macrocam.domain.meals import Meal, MealDraft
from macrocam.services.ledger import MealLedger

_logger = logging.getLogger(__name__)

ESTIMATE_FALLBACK_ERROR = "Couldn't estimate from photo. Try again."


@dataclass
class MealEntryForm:
    """Holds one draft at a time and commits it to the ledger.

    Each ``open`` starts a new generation. An estimate that completes after
    the form was closed or reopened is dropped instead of overwriting the
    newer draft.
    """

    ledger: MealLedger
    estimation_client: EstimationClient
    draft: MealDraft = field(default_factory=MealDraft)
    is_open: bool = False
    estimating: bool = False
    error: str | None = None
    generation: int = 0
    _photo_bytes: bytes | None = field(default=None, repr=False)

    def open(self) -> None:
        """Start a fresh draft."""
        self.generation += 1
        self.draft = MealDraft()
        self._photo_bytes = None
        self.error = None
        self.estimating = False
        self.is_open = True

    def close(self) -> None:
        """Discard the in-progress draft."""
        self.generation += 1
        self.draft = MealDraft()
        self._photo_bytes = None
        self.estimating = False
        self.is_open = False

    def attach_photo(self, reference: str, photo_bytes: bytes) -> None:
        """Associate a captured photo with the draft."""
        self.draft.photo_reference = reference
        self._photo_bytes = photo_bytes

    async def estimate(self) -> Estimate | None:
        """Pre-fill the draft from the attached photo.

        Returns the applied estimate, or None when there is no photo, the
        request failed, or the form moved on while it was in flight.
        """
        if not self.is_open or self._photo_bytes is None:
            return None
        generation = self.generation
        self.error = None
        self.estimating = True
        try:
            estimate = await self.estimation_client.estimate(self._photo_bytes)
        except EstimationFailed as exc:
            if generation == self.generation:
                self.error = str(exc) or ESTIMATE_FALLBACK_ERROR
                self.estimating = False
            _logger.warning("Photo estimate failed: %s", exc)
            return None
        if generation != self.generation:
            _logger.info("Discarding estimate for a closed draft")
            return None
        self.estimating = False
        self.draft.description = estimate.description
        self.draft.calories_text = str(estimate.calories)
        self.draft.protein_text = str(estimate.protein_g)
        return estimate

    def save(self) -> Meal:
        """Commit the draft to the ledger and close the form."""
        meal = self.ledger.append(self.draft)
        self.close()
        return meal
