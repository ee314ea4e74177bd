class ChartMakerError(Exception):
    """Base error for everything raised by the catalog integrations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ChartMakerError):
    """Invalid or contradictory input. Maps to HTTP 400 and is never retried or cached."""


class UpstreamError(ChartMakerError):
    """Transport failure or non-success status from a catalog API. Maps to HTTP 502."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
