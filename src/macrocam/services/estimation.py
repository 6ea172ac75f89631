"""Photo estimation service using a vision LLM."""

import base64
import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from macrocam.domain.errors import UpstreamMalformed
from macrocam.domain.estimation import Estimate, EstimateResult, ParseFailure

ESTIMATE_PROMPT = (
    "Estimate calories and protein for the food in the photo. "
    "Return ONLY valid JSON with keys: description, calories, protein_g. "
    "calories and protein_g must be integers."
)

_JSON_FENCE = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE = re.compile(r"```\s*")

_logger = logging.getLogger(__name__)


class VisionClient(Protocol):
    """Interface for LLM vision calls returning free text."""

    async def complete(self, *, model: str, image_data_url: str, prompt: str) -> str:
        """Return the model's text reply for a prompt and an image."""


@dataclass
class EstimationService:
    """Service that asks a vision model for a nutrition estimate."""

    client: VisionClient
    model: str

    async def estimate(self, image_bytes: bytes) -> Estimate:
        """Estimate a photo, raising UpstreamMalformed on unreadable output."""
        result = await self.classify(image_bytes)
        if isinstance(result, ParseFailure):
            raise UpstreamMalformed(result.raw)
        return result

    async def classify(self, image_bytes: bytes) -> EstimateResult:
        """Estimate a photo, returning a tagged estimate or parse failure."""
        raw = await self.client.complete(
            model=self.model,
            image_data_url=_to_data_url(image_bytes),
            prompt=ESTIMATE_PROMPT,
        )
        return parse_model_output(raw)


def parse_model_output(raw: str | None) -> EstimateResult:
    """Read the model reply as an estimate, tolerating fences and prose."""
    text = (raw or "").strip()
    try:
        parsed = json.loads(extract_json(text))
    except json.JSONDecodeError:
        _logger.warning("Vision model returned non-JSON output")
        return ParseFailure(raw=text)
    if not isinstance(parsed, dict):
        return ParseFailure(raw=text)
    return Estimate.from_payload(parsed)


def extract_json(text: str) -> str:
    """Return the most likely JSON object substring of a model reply."""
    cleaned = _FENCE.sub("", _JSON_FENCE.sub("", text)).strip()
    if cleaned.startswith("{") and cleaned.endswith("}"):
        return cleaned
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        return cleaned[start : end + 1]
    return cleaned


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
