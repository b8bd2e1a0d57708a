class RadiusTransactionError(Exception):
    """Base error for a single RADIUS transaction attempt."""


class SetupError(RadiusTransactionError):
    """Raised when the engine handle, dictionaries or configuration fail."""


class AttributeRejectedError(RadiusTransactionError):
    """Raised when an attribute cannot be added to the Access-Request."""


class EntropyError(RadiusTransactionError):
    """Raised when the secure random source fails."""
