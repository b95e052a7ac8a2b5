"""Error types raised by the analysis pipeline."""


class NebenkostenError(Exception):
    """Base class for all pipeline errors."""


class BillValidationError(NebenkostenError):
    """Bill data is missing or out of range.

    Recoverable: the caller should ask the user for a manual correction.

    Attributes:
        field: Name of the offending field, if a single one is to blame
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class LocationNotResolvableError(NebenkostenError):
    """Postal code is neither bundled nor known to the lookup service."""

    def __init__(self, postal_code: str, reason: str | None = None) -> None:
        message = f"Unbekannte Postleitzahl: {postal_code}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.postal_code = postal_code
        self.reason = reason


class DocumentRenderError(NebenkostenError):
    """An uploaded document (PDF) could not be opened or rendered."""
