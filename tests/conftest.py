"""Shared test fixtures."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from macrocam.config import Settings
from macrocam.containers import AppContainer
from macrocam.domain.errors import EstimationFailed, StoreUnavailable
from macrocam.domain.estimation import Estimate
from macrocam.domain.meals import Meal
from macrocam.services.estimation import EstimationService, VisionClient
from macrocam.services.ledger import LedgerStore

NOW = datetime(2026, 10, 18, 12, 30, tzinfo=UTC)
NOW_MS = int(NOW.timestamp() * 1000)
DAY_MS = 24 * 60 * 60 * 1000


@dataclass
class InMemoryLedgerStore(LedgerStore):
    """In-memory ledger store that records every save."""

    meals: list[Meal] = field(default_factory=list)
    saves: list[list[Meal]] = field(default_factory=list)

    def load(self) -> list[Meal]:
        return list(self.meals)

    def save(self, meals: Iterable[Meal]) -> None:
        snapshot = list(meals)
        self.saves.append(snapshot)
        self.meals = snapshot


@dataclass
class FailingLedgerStore(InMemoryLedgerStore):
    """Ledger store whose writes always fail."""

    def save(self, meals: Iterable[Meal]) -> None:
        raise StoreUnavailable("disk full")


@dataclass
class FakeClock:
    """Clock returning a settable millisecond timestamp."""

    now_ms: int = NOW_MS

    def __call__(self) -> int:
        return self.now_ms


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning fixed text."""

    text: str = '{"description": "Chicken rice bowl", "calories": 650, "protein_g": 40}'
    error: Exception | None = None
    calls: list[dict[str, str]] = field(default_factory=list)

    async def complete(self, *, model: str, image_data_url: str, prompt: str) -> str:
        self.calls.append(
            {"model": model, "image_data_url": image_data_url, "prompt": prompt}
        )
        if self.error is not None:
            raise self.error
        return self.text


@dataclass
class FakeEstimationClient:
    """Fake estimation client with a fixed estimate or failure."""

    estimate_result: Estimate = field(
        default_factory=lambda: Estimate(description="Salad", calories=311, protein_g=0)
    )
    error: EstimationFailed | None = None
    photos: list[bytes] = field(default_factory=list)
    closed: bool = False

    async def estimate(self, photo_bytes: bytes) -> Estimate:
        self.photos.append(photo_bytes)
        if self.error is not None:
            raise self.error
        return self.estimate_result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        upload_dir=tmp_path / "uploads",
        data_path=tmp_path / "storage.json",
    )


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def container(settings: Settings, vision_client: FakeVisionClient) -> AppContainer:
    estimation_service = EstimationService(
        client=vision_client, model=settings.openai_model
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        estimation_service=estimation_service,
        close_resources=close_resources,
    )
