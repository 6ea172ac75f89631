"""Error types shared across the ledger, store and estimation layers."""


class MacroCamError(Exception):
    """Base error for the application."""


class InvalidInput(MacroCamError, ValueError):  # noqa: N818
    """Raised when calorie or protein input is not a non-negative integer."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"{field} must be a whole number, got {value!r}")
        self.field = field
        self.value = value


class StoreUnavailable(MacroCamError):  # noqa: N818
    """Raised when the durable ledger store cannot be written."""


class EstimationFailed(MacroCamError):  # noqa: N818
    """Raised when a photo estimate could not be obtained."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamMalformed(MacroCamError):  # noqa: N818
    """Raised when the vision model reply cannot be read as JSON."""

    def __init__(self, raw: str) -> None:
        super().__init__("Model did not return JSON")
        self.raw = raw
