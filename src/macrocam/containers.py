"""Dependency container wiring for the server and the client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from macrocam.adapters.estimation_client import (
    EstimationClient,
    HttpxEstimationClient,
)
from macrocam.adapters.json_ledger_store import JsonFileLedgerStore
from macrocam.adapters.openai_vision_client import OpenAIVisionClient
from macrocam.config import Settings
from macrocam.services.entry import MealEntryForm
from macrocam.services.estimation import EstimationService
from macrocam.services.ledger import MealLedger


@dataclass
class AppContainer:
    """Holds estimation server dependencies."""

    settings: Settings
    estimation_service: EstimationService
    close_resources: Callable[[], Awaitable[None]]


@dataclass
class ClientContainer:
    """Holds client-side dependencies built around one ledger."""

    settings: Settings
    ledger: MealLedger
    estimation_client: EstimationClient
    day_timezone: ZoneInfo
    close_resources: Callable[[], Awaitable[None]]

    def entry_form(self) -> MealEntryForm:
        """Return a new entry form bound to this ledger."""
        return MealEntryForm(
            ledger=self.ledger, estimation_client=self.estimation_client
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the estimation server container."""
    resolved_settings = settings or Settings()
    if not resolved_settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is required to run the estimation server")
    openai_client = OpenAIVisionClient.create(
        resolved_settings.openai_api_key,
        timeout=resolved_settings.estimate_timeout_seconds,
    )
    estimation_service = EstimationService(
        client=openai_client,
        model=resolved_settings.openai_model,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        estimation_service=estimation_service,
        close_resources=close_resources,
    )


def build_client(settings: Settings | None = None) -> ClientContainer:
    """Create the client container with a ledger hydrated from disk."""
    resolved_settings = settings or Settings()
    store = JsonFileLedgerStore(
        path=resolved_settings.data_path.expanduser(),
        key=resolved_settings.store_key,
    )
    estimation_client = HttpxEstimationClient.create(
        resolved_settings.server_base_url,
        timeout=resolved_settings.estimate_timeout_seconds,
    )

    async def close_resources() -> None:
        await estimation_client.close()

    return ClientContainer(
        settings=resolved_settings,
        ledger=MealLedger.open(store),
        estimation_client=estimation_client,
        day_timezone=ZoneInfo(resolved_settings.day_timezone),
        close_resources=close_resources,
    )
