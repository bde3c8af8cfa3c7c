import logging
from time import perf_counter

from flask import Blueprint, g, request, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

metrics_bp = Blueprint("metrics", __name__)

# Prometheus metrics
REQUEST_LATENCY = Histogram(
    "moviecatalog_http_request_latency_seconds",
    "Latency of HTTP requests",
    ["method", "path", "status"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)
REQUEST_COUNT = Counter(
    "moviecatalog_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
ERROR_COUNT = Counter(
    "moviecatalog_http_errors_total",
    "Total HTTP 5xx responses",
    ["method", "path", "status"],
)
ACCESS_REFUSED = Counter(
    "moviecatalog_access_refused_total",
    "Requests refused by the token guard (401) or the ownership check (403)",
    ["path", "reason"],
)

REFUSAL_REASONS = {401: "unauthenticated", 403: "not_owner"}


@metrics_bp.before_app_request
def _metrics_before():
    g._t_start = perf_counter()


@metrics_bp.after_app_request
def _metrics_after(resp):
    start = getattr(g, "_t_start", None)
    if start is None:
        return resp
    try:
        dur = perf_counter() - start
        method = request.method
        # stabilize label cardinality: use the rule pattern when available
        path = request.url_rule.rule if request.url_rule else "<unmatched>"
        status = str(resp.status_code)

        REQUEST_LATENCY.labels(method, path, status).observe(dur)
        REQUEST_COUNT.labels(method, path, status).inc()
        if resp.status_code >= 500:
            ERROR_COUNT.labels(method, path, status).inc()
        reason = REFUSAL_REASONS.get(resp.status_code)
        if reason:
            ACCESS_REFUSED.labels(path, reason).inc()
    except Exception:
        # metrics must never break the response
        logger.exception("Failed to record metrics")
    return resp


@metrics_bp.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(data, mimetype=CONTENT_TYPE_LATEST)
