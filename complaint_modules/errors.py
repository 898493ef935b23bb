"""Exception types raised by the complaint modules."""


class ComplaintError(Exception):
    """Base class for complaint intake failures."""


class AIServiceError(ComplaintError):
    """The completion service could not produce a usable response.

    Always recoverable: the generator falls back to the template letter.
    """


class StorageError(ComplaintError):
    """The complaint store could not read or write its backing file."""
