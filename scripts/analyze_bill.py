"""Analyze a utility bill from the command line.

Accepts a scanned bill image or PDF (OCR is run first) or a text file
containing already recognized bill text. Manual corrections override
extracted values, mirroring the correction form of the web API.

Usage:
    python scripts/analyze_bill.py abrechnung.png
    python scripts/analyze_bill.py abrechnung.pdf
    python scripts/analyze_bill.py abrechnung.txt --floor-area 72.5
    python scripts/analyze_bill.py abrechnung.png --postal-code 10115 --json
"""

import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

import httpx

from nebenkosten.analysis.pipeline import BillAnalyzer, build_bill_record
from nebenkosten.analysis.schema import AnalysisResult, BillCorrections, CostCategory
from nebenkosten.energy.prices import ElectricityPriceService
from nebenkosten.extraction.factory import create_extraction_service
from nebenkosten.location.resolver import LocationResolver, PostalCodeLookupClient
from nebenkosten.ocr.factory import create_ocr_service
from nebenkosten.ocr.pdf import is_pdf, recognize_pdf
from nebenkosten.shared.config import Settings, get_settings
from nebenkosten.shared.exceptions import (
    BillValidationError,
    DocumentRenderError,
    LocationNotResolvableError,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".text"}

_CATEGORY_LABELS = {
    "heating": "Heizung",
    "water": "Wasser",
    "waste": "Müll",
    "maintenance": "Instandhaltung",
    "total": "Gesamt",
}


def _log_progress(fraction: float) -> None:
    logger.info(f"OCR {fraction:.0%}")


def read_bill_text(path: Path, settings: Settings) -> str:
    """Return bill text, running OCR when path is an image or PDF.

    Raises:
        RuntimeError: If OCR fails
        DocumentRenderError: If a PDF cannot be rendered
    """
    if path.suffix.lower() in TEXT_SUFFIXES:
        return path.read_text(encoding="utf-8")

    ocr_service = create_ocr_service(settings)
    if is_pdf(path.name, None):
        result = recognize_pdf(ocr_service, path.read_bytes(), settings, progress=_log_progress)
    else:
        result = ocr_service.extract_text(path, progress=_log_progress)
    if not result.success:
        raise RuntimeError(result.error or "OCR failed")
    return result.text


async def analyze(
    text: str, corrections: BillCorrections, settings: Settings
) -> AnalysisResult:
    extraction = create_extraction_service(settings).extract_bill_fields(text)
    if not extraction.success:
        raise RuntimeError(extraction.error or "Extraction failed")
    if extraction.bill is not None and extraction.bill.missing_fields:
        logger.info(f"Not found in bill text: {', '.join(extraction.bill.missing_fields)}")

    bill = build_bill_record(extraction.bill, corrections, today=date.today())

    async with httpx.AsyncClient() as client:
        analyzer = BillAnalyzer(
            settings,
            location_resolver=LocationResolver(PostalCodeLookupClient(settings, client)),
            price_service=ElectricityPriceService.create(settings, client),
        )
        return await analyzer.analyze(bill)


def print_report(result: AnalysisResult) -> None:
    profile = result.regional_profile
    print(f"\n=== Nebenkostenanalyse {profile.postal_code} {profile.city} ({profile.state}) ===")
    print(f"Datenquelle: {profile.data_source} [{profile.data_quality.value}]")
    print(f"Abrechnungsmonate: {result.normalized_costs.months_in_period}\n")

    for comparison in result.comparisons:
        label = _CATEGORY_LABELS.get(comparison.category, comparison.category)
        print(
            f"{label:<15} {comparison.user_amount:6.2f} €/m²  "
            f"(Ø {comparison.baseline_amount:.2f})  {comparison.message}"
        )

    print(f"\nEinsparpotenzial: €{result.savings.potential_savings:.0f}/Jahr")
    for recommendation in result.savings.recommendations:
        print(f"  - {recommendation}")

    if result.energy_price is not None:
        price = result.energy_price
        print(f"\nStrompreis: {price.price_eur_per_kwh:.3f} €/kWh ({price.source})")
    print(f"Vertrauenswert: {result.confidence}%")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Analyze a German utility bill")
    parser.add_argument("bill", type=Path, help="Bill image, PDF or OCR text file")
    parser.add_argument("--postal-code", default=None, help="Override the postal code")
    parser.add_argument(
        "--floor-area", type=float, default=None, help="Override the floor area in m²"
    )
    for category in CostCategory:
        parser.add_argument(
            f"--{category.value}",
            type=float,
            default=None,
            help=f"Override the {category.value} cost (EUR for the whole period)",
        )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    args = parser.parse_args()
    settings = get_settings()

    if not args.bill.exists():
        logger.error(f"File not found: {args.bill}")
        sys.exit(2)

    corrections = BillCorrections(
        postal_code=args.postal_code,
        floor_area_sqm=args.floor_area,
        costs={
            category: getattr(args, category.value)
            for category in CostCategory
            if getattr(args, category.value) is not None
        },
    )

    try:
        bill_text = read_bill_text(args.bill, settings)
        analysis = asyncio.run(analyze(bill_text, corrections, settings))
    except BillValidationError as e:
        logger.error(e.message)
        sys.exit(1)
    except LocationNotResolvableError as e:
        logger.error(str(e))
        sys.exit(1)
    except (DocumentRenderError, RuntimeError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.json:
        print(json.dumps(analysis.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        print_report(analysis)
