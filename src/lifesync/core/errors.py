"""Error taxonomy for the state engine."""


class LifeSyncError(Exception):
    """Base class for all LifeSync errors."""

    pass


class ParseError(LifeSyncError):
    """Raised when a stored or imported document is not valid JSON."""

    pass


class InvalidFormat(ParseError):
    """Raised when an imported document does not parse as a JSON object."""

    pass


class ShapeError(LifeSyncError):
    """A collection or record had the wrong shape and was repaired."""

    pass


class StorageWriteError(LifeSyncError):
    """Raised when the durable slot could not be written."""

    pass


class NotFound(LifeSyncError):
    """Raised when an id does not match any entity."""

    pass
