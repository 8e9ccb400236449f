"""
Prometheus metrics for the record procedures.

HTTP and database metrics come from django-prometheus; these cover the
query cache, which it cannot see. All of them are exported at
``/metrics``.
"""
from prometheus_client import Counter, Histogram

QUERY_CACHE_REQUESTS = Counter(
    'clinic_query_cache_requests_total',
    'Query cache lookups by procedure and outcome',
    ['procedure', 'result'],
)

CACHE_INVALIDATIONS = Counter(
    'clinic_cache_invalidations_total',
    'Cache prefixes invalidated by mutations',
    ['mutation'],
)

LISTING_QUERY_SECONDS = Histogram(
    'clinic_listing_query_seconds',
    'Time spent running the record listing count and page fetch',
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)
