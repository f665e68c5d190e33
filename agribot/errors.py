# File: agribot/errors.py


class AgribotError(Exception):
    """Base class for errors raised by the recommendation pipeline."""


class ServiceUnavailable(AgribotError):
    """The generative model could not produce text (failed, blocked, timed out or not configured)."""


class InvalidInput(AgribotError, ValueError):
    """A request payload is missing a required field or carries a non-numeric value."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field
