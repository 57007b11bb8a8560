"""Prometheus metrics for the Synthetix metrics API."""

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


class Metrics:
    """Prometheus metrics collection."""

    def __init__(self):
        # Request metrics
        self.request_count = Counter(
            'snx_api_requests_total',
            'Total number of API requests',
            ['method', 'endpoint', 'status']
        )

        self.request_duration = Histogram(
            'snx_api_request_duration_seconds',
            'Request duration in seconds',
            ['method', 'endpoint']
        )

        # Cache metrics
        self.cache_hits = Counter(
            'snx_api_cache_hits_total',
            'Cache hit count',
            ['metric']
        )

        self.cache_misses = Counter(
            'snx_api_cache_misses_total',
            'Cache miss count',
            ['metric']
        )

        self.cache_errors = Counter(
            'snx_api_cache_errors_total',
            'Cache store failures, by operation',
            ['operation']
        )

        # Source metrics
        self.failovers = Counter(
            'snx_api_failovers_total',
            'Number of switches to a backup ledger endpoint',
            ['network']
        )

        self.source_errors = Counter(
            'snx_api_source_errors_total',
            'Upstream read failures',
            ['kind']
        )

        self.refresh_runs = Counter(
            'snx_api_refresh_runs_total',
            'Background refresh runs',
            ['metric', 'status']
        )


# Global metrics instance
metrics = Metrics()


def setup_metrics(app: FastAPI):
    """Setup metrics endpoint."""

    @app.get("/metrics", include_in_schema=False)
    async def get_metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )
