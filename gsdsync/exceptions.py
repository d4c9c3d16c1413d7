class IntegrationError(Exception):
    """Raised when a call to the remote store fails or returns garbage."""


class RateLimitError(IntegrationError):
    """Raised when the remote store answers 429."""


class RecordNotFoundError(IntegrationError):
    """Raised when the remote store has no record with the requested id."""


class PositionExhaustedError(Exception):
    """Raised when two neighbours are too close to fit a new position between them."""
