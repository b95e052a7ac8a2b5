"""Regex/heuristic extraction provider for German operating cost statements."""

import logging

from nebenkosten.extraction.base import ExtractionProvider, ExtractionResult
from nebenkosten.extraction.parser import BillTextParser
from nebenkosten.shared.config import Settings

logger = logging.getLogger(__name__)


class HeuristicExtractionProvider(ExtractionProvider):
    """Extracts bill fields with pattern-matching heuristics.

    Runs fully offline. Partial results are still successful: absent fields
    are left unset for the caller to fill in.
    """

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._parser = BillTextParser(max_plausible_cost=settings.max_plausible_cost)

    @property
    def provider_name(self) -> str:
        return "heuristic"

    def is_available(self) -> bool:
        return True

    def extract_bill_fields(self, ocr_text: str) -> ExtractionResult:
        try:
            bill = self._parser.parse(ocr_text)
        except Exception as e:
            logger.exception(f"Heuristic extraction failed: {e}")
            return ExtractionResult(
                bill=None,
                success=False,
                error=f"Extraction failed: {str(e)}",
                provider=self.provider_name,
            )

        return ExtractionResult(bill=bill, success=True, provider=self.provider_name)
