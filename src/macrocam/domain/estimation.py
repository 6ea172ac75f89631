"""Models for photo estimation results."""

import math

from pydantic import BaseModel, Field

DEFAULT_FOOD_DESCRIPTION = "Food"


class Estimate(BaseModel):
    """Normalized nutrition guess for a photo."""

    description: str = DEFAULT_FOOD_DESCRIPTION
    calories: int = Field(default=0, ge=0)
    protein_g: int = Field(default=0, ge=0)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "Estimate":
        """Build an estimate from an untrusted JSON object."""
        description = payload.get("description")
        text = str(description).strip() if description else ""
        return cls(
            description=text or DEFAULT_FOOD_DESCRIPTION,
            calories=coerce_whole_number(payload.get("calories")),
            protein_g=coerce_whole_number(payload.get("protein_g")),
        )

    def to_wire(self) -> dict[str, object]:
        """Return the JSON body served by the estimation endpoint."""
        return {
            "description": self.description,
            "calories": self.calories,
            "protein_g": self.protein_g,
        }


class ParseFailure(BaseModel):
    """Model output that could not be read as an estimate."""

    raw: str


EstimateResult = Estimate | ParseFailure


def coerce_whole_number(value: object) -> int:
    """Round a loosely typed number half-up, falling back to zero."""
    if isinstance(value, bool):
        number = float(value)
    elif isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip()) if value.strip() else 0.0
        except ValueError:
            return 0
    else:
        return 0
    if not math.isfinite(number):
        return 0
    return max(math.floor(number + 0.5), 0)
