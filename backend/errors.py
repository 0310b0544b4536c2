class LabDailyError(Exception):
    """Base class for application errors."""


class ValidationError(LabDailyError):
    """Missing or invalid input. Maps to HTTP 400 with a readable message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(LabDailyError):
    """The reports API could not be reached or answered unexpectedly."""
