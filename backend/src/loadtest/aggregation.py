"""Statistics over load test attempts.

Metrics are always recomputed from the full attempt list and depend only
on its contents, never on its order.
"""

from collections import defaultdict
from typing import Dict, List

from .models import Attempt, AggregateMetrics, PerRequestMetrics, LoadTestTarget


def _fill_metrics(metrics: AggregateMetrics, attempts: List[Attempt],
                  duration_seconds: float) -> AggregateMetrics:
    total = len(attempts)
    failed = sum(1 for a in attempts if a.failed)
    times = [a.elapsed_ms for a in attempts if a.elapsed_ms is not None]

    metrics.total_requests = total
    metrics.failed_requests = failed
    metrics.successful_requests = total - failed
    metrics.avg_response_time_ms = sum(times) / len(times) if times else 0.0
    metrics.min_response_time_ms = min(times) if times else 0
    metrics.max_response_time_ms = max(times) if times else 0
    metrics.error_rate_percent = (failed / total * 100) if total else 0.0
    metrics.throughput_per_second = (total / duration_seconds) if duration_seconds > 0 else 0.0
    return metrics


def compute_metrics(attempts: List[Attempt], duration_seconds: float) -> AggregateMetrics:
    """Aggregate metrics across every attempt of a run."""
    return _fill_metrics(AggregateMetrics(), attempts, duration_seconds)


def compute_per_request_metrics(attempts: List[Attempt], targets: List[LoadTestTarget],
                                duration_seconds: float) -> List[PerRequestMetrics]:
    """Metrics for each target, in target order."""
    by_index: Dict[int, List[Attempt]] = defaultdict(list)
    for attempt in attempts:
        by_index[attempt.request_index].append(attempt)

    return [
        _fill_metrics(
            PerRequestMetrics(
                request_index=target.index,
                method=target.request.method.value,
                url=target.request.url,
            ),
            by_index.get(target.index, []),
            duration_seconds,
        )
        for target in targets
    ]
