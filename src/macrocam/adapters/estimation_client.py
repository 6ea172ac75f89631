"""HTTP client for the photo estimation endpoint."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from macrocam.domain.errors import EstimationFailed
from macrocam.domain.estimation import Estimate


class EstimationClient(Protocol):
    """Interface for requesting a nutrition estimate for a photo."""

    async def estimate(self, photo_bytes: bytes) -> Estimate:
        """Return a normalized estimate or raise EstimationFailed."""


@dataclass
class HttpxEstimationClient(EstimationClient):
    """Estimation client posting photos to the MacroCam server."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 60

    @classmethod
    def create(cls, base_url: str, timeout: float = 60) -> "HttpxEstimationClient":
        """Create an estimation client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def estimate(self, photo_bytes: bytes) -> Estimate:
        """Upload a JPEG photo and normalize the returned estimate."""
        try:
            response = await self.http_client.post(
                f"{self.base_url}/estimate",
                files={"photo": ("photo.jpg", photo_bytes, "image/jpeg")},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise EstimationFailed(f"Estimate request failed: {exc}") from exc
        if response.is_error:
            raise EstimationFailed(
                f"Server error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise EstimationFailed(
                "Estimate response was not JSON", status_code=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise EstimationFailed(
                "Estimate response was not an object",
                status_code=response.status_code,
            )
        return Estimate.from_payload(payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
