# certiai/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["observability"])

upload_counter = Counter(
    "certiai_upload_total",
    "Number of certificate uploads",
    ["result"],  # accepted|rejected
)

reconcile_counter = Counter(
    "certiai_verification_result_total",
    "Terminal verification outcomes",
    ["status", "path"],  # status=AUTHENTIC|SUSPICIOUS|FORGED, path=classified|failed
)

upload_size_hist = Histogram(
    "certiai_upload_size_bytes",
    "Size of accepted uploads",
    buckets=(1e4, 1e5, 3e5, 1e6, 3e6, 1e7),
)

classifier_latency_hist = Histogram(
    "certiai_classifier_latency_seconds",
    "Latency of outbound classifier calls",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 20, 30),
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
