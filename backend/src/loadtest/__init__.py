"""Load testing module initialization."""

from .models import (
    LoadTestTarget, LoadTestSpec, Attempt,
    AggregateMetrics, PerRequestMetrics, LoadTestReport,
)
from .errors import LoadTestValidationError
from .aggregation import compute_metrics, compute_per_request_metrics
from .runner import LoadTestRunner

__all__ = [
    'LoadTestTarget',
    'LoadTestSpec',
    'Attempt',
    'AggregateMetrics',
    'PerRequestMetrics',
    'LoadTestReport',
    'LoadTestValidationError',
    'compute_metrics',
    'compute_per_request_metrics',
    'LoadTestRunner',
]
