"""HTTP API of the Nebenkosten checker.

Endpoints:
- GET  /health, /ready, /metrics
- POST /api/v1/bills/analyze  manually entered bill figures
- POST /api/v1/bills/extract  field extraction from OCR text
- POST /api/v1/bills/upload   scan or PDF upload: OCR, extraction and analysis
- GET  /api/v1/status         reachability of the external data sources

Services are built once in the application lifespan and reach the
endpoints through FastAPI dependencies. Uploaded scans only live in a
temporary file for the duration of the OCR run.

Run with: uvicorn nebenkosten.api.main:app --port 8000
"""

import logging
import tempfile
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Annotated

import httpx
from fastapi import (
    Depends,
    FastAPI,
    File,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from nebenkosten.analysis.pipeline import BillAnalyzer, build_bill_record
from nebenkosten.analysis.schema import AnalysisResult, BillCorrections, BillRecord
from nebenkosten.api import metrics
from nebenkosten.api.status import UpstreamStatus, check_upstreams
from nebenkosten.energy.prices import ElectricityPriceService
from nebenkosten.extraction.base import ExtractionProvider
from nebenkosten.extraction.factory import create_extraction_service
from nebenkosten.extraction.schema import ExtractedBill
from nebenkosten.location.resolver import LocationResolver, PostalCodeLookupClient
from nebenkosten.ocr.factory import TextExtractor, create_ocr_service
from nebenkosten.ocr.pdf import is_pdf, recognize_pdf
from nebenkosten.ocr.service import OCRResult
from nebenkosten.shared.config import Settings, get_settings
from nebenkosten.shared.exceptions import (
    BillValidationError,
    DocumentRenderError,
    LocationNotResolvableError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Ein unerwarteter Fehler ist aufgetreten"
ANALYZE_PATH = "/api/v1/bills/analyze"


@dataclass
class Services:
    """Collaborators shared by all requests of one application instance."""

    settings: Settings
    ocr_service: TextExtractor
    extraction_service: ExtractionProvider
    analyzer: BillAnalyzer


def build_services(settings: Settings, client: httpx.AsyncClient) -> Services:
    """Wire the pipeline from settings and a shared HTTP client."""
    resolver = LocationResolver(PostalCodeLookupClient(settings, client))
    return Services(
        settings=settings,
        ocr_service=create_ocr_service(settings),
        extraction_service=create_extraction_service(settings),
        analyzer=BillAnalyzer(
            settings,
            location_resolver=resolver,
            price_service=ElectricityPriceService.create(settings, client),
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    async with httpx.AsyncClient() as client:
        app.state.services = build_services(settings, client)
        logger.info(
            f"{settings.service_name} {settings.service_version} started "
            f"({settings.environment}, OCR: {settings.ocr_provider})"
        )
        yield


def get_services(request: Request) -> Services:
    """Dependency returning the services built in the lifespan."""
    services: Services = request.app.state.services
    return services


ServicesDep = Annotated[Services, Depends(get_services)]

app = FastAPI(
    title="Nebenkosten Checker",
    description="Analyze German utility bills against regional averages",
    version=get_settings().service_version,
    lifespan=lifespan,
)


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Count requests and observe their latency, except for scrapes of /metrics."""
    path = request.url.path
    if path == "/metrics":
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    metrics.http_requests_total.labels(
        method=request.method, endpoint=path, status=response.status_code
    ).inc()
    metrics.http_request_duration_seconds.labels(method=request.method, endpoint=path).observe(
        elapsed
    )
    return response


@app.exception_handler(BillValidationError)
async def bill_validation_error_handler(
    request: Request, exc: BillValidationError
) -> JSONResponse:
    metrics.analyses_total.labels(status="invalid_input").inc()
    return JSONResponse(
        status_code=422,
        content={"error": exc.message, "field": exc.field},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies get the same error shape as bill validation."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    if request.url.path == ANALYZE_PATH:
        metrics.analyses_total.labels(status="invalid_input").inc()
    return JSONResponse(
        status_code=422,
        content={
            "error": str(first.get("msg", "Ungültige Eingabe")).removeprefix("Value error, "),
            "field": ".".join(location) or None,
        },
    )


@app.exception_handler(LocationNotResolvableError)
async def location_error_handler(
    request: Request, exc: LocationNotResolvableError
) -> JSONResponse:
    metrics.analyses_total.labels(status="unknown_location").inc()
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": str(exc), "postal_code": exc.postal_code},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": GENERIC_ERROR_MESSAGE},
    )


class HealthResponse(BaseModel):
    """Liveness check payload."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check payload.

    Manual analysis works without OCR, so a missing OCR engine is reported
    but does not make the service unready.
    """

    ready: bool
    ocr_available: bool


class ExtractTextRequest(BaseModel):
    """OCR text to run field extraction on."""

    text: str = Field(..., description="Raw OCR text, may be empty")


class UploadResponse(BaseModel):
    """Analysis of an uploaded bill scan or PDF."""

    success: bool
    document_id: str
    text: str = Field(..., description="Recognized text")
    extracted: ExtractedBill
    result: AnalysisResult


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check(services: ServicesDep) -> ReadinessResponse:
    return ReadinessResponse(ready=True, ocr_available=services.ocr_service.is_available())


@app.get("/metrics", tags=["Monitoring"])
def prometheus_metrics() -> Response:
    payload, content_type = metrics.get_metrics()
    return Response(content=payload, media_type=content_type)


async def _run_analysis(services: Services, bill: BillRecord) -> AnalysisResult:
    result = await services.analyzer.analyze(bill)
    metrics.analyses_total.labels(status="success").inc()
    metrics.analysis_potential_savings_eur.observe(result.savings.potential_savings)
    return result


@app.get("/api/v1/status", response_model=UpstreamStatus, tags=["Monitoring"])
async def upstream_status(services: ServicesDep) -> UpstreamStatus:
    """Check which external data sources currently answer.

    Always 200; unavailable sources are listed with their error.
    """
    return await check_upstreams(
        services.analyzer.location_resolver.lookup_client, services.analyzer.price_service
    )


@app.post(ANALYZE_PATH, response_model=AnalysisResult, tags=["Bills"])
async def analyze_bill(form: BillCorrections, services: ServicesDep) -> AnalysisResult:
    """Analyze manually entered bill data.

    Costs are the TOTAL amounts of the billing period in EUR. A missing
    period defaults to the previous calendar year and missing comparable
    categories count as 0, both lowering the confidence score.

    ## Error Handling

    - Returns 422 if postal code, floor area, period or costs are invalid
    - Returns 404 if the postal code cannot be resolved to a location
    """
    bill = build_bill_record(None, form, today=date.today())
    return await _run_analysis(services, bill)


@app.post("/api/v1/bills/extract", response_model=ExtractedBill, tags=["Bills"])
def extract_fields(request: ExtractTextRequest, services: ServicesDep) -> ExtractedBill:
    """Extract bill fields from OCR text without analyzing them."""
    result = services.extraction_service.extract_bill_fields(request.text)
    if not result.success or result.bill is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Extraction failed: {result.error}",
        )
    return result.bill


def _bad_upload(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _check_upload(file: UploadFile, content: bytes, max_bytes: int) -> None:
    """Reject uploads that cannot be a bill scan or PDF statement.

    Raises:
        HTTPException: 400 with the reason
    """
    if not file.filename:
        raise _bad_upload("No filename provided")
    content_type = file.content_type or ""
    if not (content_type.startswith("image/") or is_pdf(file.filename, content_type)):
        raise _bad_upload(
            f"Invalid file type: {file.content_type}. Only images and PDFs are supported."
        )
    if not content:
        raise _bad_upload("Empty file")
    if len(content) > max_bytes:
        raise _bad_upload(f"File too large. Maximum {max_bytes // (1024 * 1024)}MB allowed.")


async def _recognize(ocr_service: TextExtractor, content: bytes, suffix: str) -> OCRResult:
    """Run OCR on an image upload in a worker thread; the temp file is always removed."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp.write(content)
        scan_path = Path(tmp.name)

    try:
        return await run_in_threadpool(ocr_service.extract_text, scan_path)
    finally:
        scan_path.unlink(missing_ok=True)


async def _recognize_upload(services: Services, file: UploadFile, content: bytes) -> OCRResult:
    """OCR an uploaded image, or the leading pages of an uploaded PDF.

    Raises:
        HTTPException: 400 if a PDF cannot be rendered
    """
    started = time.perf_counter()
    try:
        if is_pdf(file.filename, file.content_type):
            return await run_in_threadpool(
                recognize_pdf, services.ocr_service, content, services.settings
            )
        return await _recognize(services.ocr_service, content, Path(file.filename or "").suffix)
    except DocumentRenderError as e:
        raise _bad_upload(f"Invalid PDF: {e}") from e
    finally:
        metrics.ocr_processing_duration_seconds.observe(time.perf_counter() - started)


@app.post("/api/v1/bills/upload", response_model=UploadResponse, tags=["Bills"])
async def upload_bill(
    services: ServicesDep,
    file: UploadFile = File(..., description="Scanned bill (PNG, JPEG, TIFF) or PDF"),  # noqa: B008
    postal_code: str | None = Query(None, description="Manual postal code correction"),
    floor_area_sqm: float | None = Query(None, description="Manual floor area correction"),
) -> UploadResponse | JSONResponse:
    """Upload a bill scan or PDF for OCR, field extraction and analysis.

    Of a PDF only the first `pdf_max_pages` pages are recognized.

    ```bash
    curl -X POST "http://localhost:8000/api/v1/bills/upload?floor_area_sqm=72.5" \\
      -F "file=@abrechnung.png"
    ```

    ## Error Handling

    - Returns 400 if file is missing, empty, too large, not an image or PDF,
      or an unreadable PDF
    - Returns 422 with the extracted fields if required data could not be
      recovered, so the client can ask for manual correction
    - Returns 404 if the postal code cannot be resolved
    - Returns 500 if OCR processing fails
    """
    content = await file.read()
    _check_upload(file, content, services.settings.max_upload_bytes)
    metrics.bill_upload_size_bytes.observe(len(content))

    document_id = str(uuid.uuid4())
    ocr_result = await _recognize_upload(services, file, content)

    ocr_status = "success" if ocr_result.success else "failed"
    metrics.ocr_requests_total.labels(status=ocr_status).inc()
    metrics.bills_uploaded_total.labels(status=ocr_status).inc()
    if not ocr_result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"OCR processing failed: {ocr_result.error}",
        )

    extraction = services.extraction_service.extract_bill_fields(ocr_result.text)
    extracted = extraction.bill or ExtractedBill()

    corrections = BillCorrections(postal_code=postal_code, floor_area_sqm=floor_area_sqm)
    try:
        bill = build_bill_record(extracted, corrections, today=date.today())
    except BillValidationError as e:
        metrics.analyses_total.labels(status="invalid_input").inc()
        logger.info(f"Upload {document_id} needs manual input: {e.field}")
        return JSONResponse(
            status_code=422,
            content={
                "error": e.message,
                "field": e.field,
                "document_id": document_id,
                "extracted": extracted.model_dump(mode="json"),
            },
        )

    result = await _run_analysis(services, bill)
    logger.info(f"Upload {document_id} analyzed for {bill.postal_code}")

    return UploadResponse(
        success=True,
        document_id=document_id,
        text=ocr_result.text,
        extracted=extracted,
        result=result,
    )
