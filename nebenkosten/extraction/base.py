"""Interface shared by bill field extraction providers.

A provider turns raw OCR text into an ExtractedBill. Providers are
interchangeable behind this interface and are picked by name through
the registry in factory.py.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from nebenkosten.extraction.schema import ExtractedBill
from nebenkosten.shared.config import Settings


class ExtractionResult(BaseModel):
    """Outcome of running a provider over one bill text.

    A successful result may still lack fields; see ExtractedBill.missing_fields.

    Attributes:
        bill: Recovered fields, None if the provider failed
        success: False only if the provider itself broke
        error: Failure description
        provider: Name of the provider that produced the result
    """

    bill: ExtractedBill | None
    success: bool
    error: str | None = None
    provider: str


class ExtractionProvider(ABC):
    """Base class for bill extraction providers."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    def extract_bill_fields(self, ocr_text: str) -> ExtractionResult:
        """Recover bill fields from OCR text (which may be empty)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider can run in this environment."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Name used in logs and results."""
