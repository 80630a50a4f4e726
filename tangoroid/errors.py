"""Exception types raised by the vocabulary core."""


class TangoroidError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(TangoroidError):
    """Input rejected before anything was written (e.g. duplicate word)."""


class NotAuthenticatedError(TangoroidError):
    """A store operation was attempted without a current owner."""


class LookupFailedError(TangoroidError):
    """Base class for definition/image lookup failures."""

    def __init__(self, text: str, message: str = ""):
        self.text = text
        super().__init__(message or f"Lookup failed for '{text}'")


class NotFoundError(LookupFailedError):
    """Every provider reported that the word does not exist."""

    def __init__(self, text: str, message: str = ""):
        super().__init__(text, message or f"Word not found in dictionary: '{text}'")


class ServiceError(LookupFailedError):
    """A collaborator failed (HTTP error, bad payload, timeout)."""


class PersistenceError(TangoroidError):
    """The document store could not complete a read or write."""


class SessionStateError(TangoroidError):
    """A review action is not allowed in the current session state."""
