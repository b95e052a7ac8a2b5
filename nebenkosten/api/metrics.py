"""Prometheus metrics of the bill analysis API.

All series use the `nebenkosten` namespace, including the lookup metrics
defined next to the location and price services.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

NAMESPACE = "nebenkosten"

http_requests_total = Counter(
    "http_requests_total",
    "HTTP requests by route and status code",
    ["method", "endpoint", "status"],
    namespace=NAMESPACE,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    namespace=NAMESPACE,
    # Uploads include OCR and can take several seconds
    buckets=(0.025, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

bills_uploaded_total = Counter(
    "bills_uploaded_total",
    "Bill scans received, by OCR outcome",
    ["status"],  # success, failed
    namespace=NAMESPACE,
)

bill_upload_size_bytes = Histogram(
    "bill_upload_size_bytes",
    "Size of uploaded bill scans",
    namespace=NAMESPACE,
    buckets=(50_000, 250_000, 1_000_000, 2_500_000, 5_000_000, 10_000_000),
)

ocr_processing_duration_seconds = Histogram(
    "ocr_processing_duration_seconds",
    "Time spent recognizing one bill scan",
    namespace=NAMESPACE,
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 45.0),
)

ocr_requests_total = Counter(
    "ocr_requests_total",
    "OCR runs by outcome",
    ["status"],  # success, failed
    namespace=NAMESPACE,
)

analyses_total = Counter(
    "bill_analyses_total",
    "Bill analyses by outcome",
    ["status"],  # success, invalid_input, unknown_location
    namespace=NAMESPACE,
)

analysis_potential_savings_eur = Histogram(
    "bill_analysis_potential_savings_eur",
    "Estimated annual savings per analysis in EUR",
    namespace=NAMESPACE,
    buckets=(0, 50, 100, 200, 500, 1000, 2000, 5000),
)


def get_metrics() -> tuple[bytes, str]:
    """Current metrics in Prometheus text format with its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
