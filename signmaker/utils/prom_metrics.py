"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_image_cache_lookup(...): record image search cache lookups
- observe_outbound_call(...): record webhook / provider call latency
- observe_email(...): count emails by kind and outcome
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'sm_http_requests_total', 'Total HTTP requests', ['endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'sm_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

IMAGE_CACHE_LOOKUPS = Counter(
    'sm_image_cache_lookups_total', 'Total image search cache lookups'
)

IMAGE_CACHE_HITS = Counter(
    'sm_image_cache_hits_total', 'Total image search cache hits'
)

OUTBOUND_LATENCY = Histogram(
    'sm_outbound_call_latency_seconds', 'Outbound webhook/provider latency seconds', ['target', 'outcome']
)

EMAILS_SENT = Counter(
    'sm_emails_total', 'Emails attempted', ['kind', 'outcome']
)


def observe_request(endpoint: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_image_cache_lookup(hit: bool) -> None:
    IMAGE_CACHE_LOOKUPS.inc()
    if hit:
        IMAGE_CACHE_HITS.inc()


def observe_outbound_call(target: str, latency_seconds: float, ok: bool) -> None:
    OUTBOUND_LATENCY.labels(target=target, outcome='ok' if ok else 'error').observe(latency_seconds)


def observe_email(kind: str, ok: bool) -> None:
    EMAILS_SENT.labels(kind=kind, outcome='sent' if ok else 'failed').inc()


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    return generate_latest()
