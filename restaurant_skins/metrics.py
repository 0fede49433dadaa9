"""Metrics definitions for the skin pipeline."""

from prometheus_client import Counter, Histogram


# Application Metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)


# Skin Cache Metrics
SKIN_CACHE_HITS_TOTAL = Counter(
    'skin_cache_hits_total',
    'Total skin cache hits',
    ['artifact']
)

SKIN_CACHE_MISSES_TOTAL = Counter(
    'skin_cache_misses_total',
    'Total skin cache misses',
    ['artifact']
)

SKIN_CACHE_INVALIDATIONS_TOTAL = Counter(
    'skin_cache_invalidations_total',
    'Cache entries dropped by revalidation',
    ['artifact']
)


# Render Metrics
SKIN_FALLBACKS_TOTAL = Counter(
    'skin_fallbacks_total',
    'Renders that fell back to a default skin or mapping',
    ['reason']
)

CSS_SCOPE_WARNINGS_TOTAL = Counter(
    'css_scope_warnings_total',
    'Warnings raised while scoping skin stylesheets',
    ['skin_id']
)

RENDER_DURATION_SECONDS = Histogram(
    'render_duration_seconds',
    'Time to build a render plan',
    ['skin_id'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)


def record_cache_lookup(artifact: str, hit: bool):
    """Record a skin cache lookup."""
    if hit:
        SKIN_CACHE_HITS_TOTAL.labels(artifact=artifact).inc()
    else:
        SKIN_CACHE_MISSES_TOTAL.labels(artifact=artifact).inc()


def record_cache_invalidation(artifact: str, dropped: int):
    """Record cache entries dropped by an invalidation signal."""
    if dropped > 0:
        SKIN_CACHE_INVALIDATIONS_TOTAL.labels(artifact=artifact).inc(dropped)


def record_fallback(reason: str):
    """Record a fallback to a default or degraded skin artifact."""
    SKIN_FALLBACKS_TOTAL.labels(reason=reason).inc()


def record_scope_warnings(skin_id: str, count: int):
    """Record CSS scoping warnings for a skin."""
    if count > 0:
        CSS_SCOPE_WARNINGS_TOTAL.labels(skin_id=skin_id).inc(count)


def record_render(skin_id: str, duration: float):
    """Record render plan duration."""
    RENDER_DURATION_SECONDS.labels(skin_id=skin_id).observe(duration)
