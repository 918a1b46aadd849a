"""Load test data structures."""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any

from templating.models import ResolvedRequest


@dataclass(frozen=True)
class LoadTestTarget:
    """A resolved request together with its position in the run."""
    index: int
    request: ResolvedRequest


@dataclass
class LoadTestSpec:
    """Parameters of one load test invocation."""
    targets: List[LoadTestTarget]
    concurrency: int
    iterations: int

    @property
    def attempts_per_round(self) -> int:
        return len(self.targets) * self.concurrency

    @property
    def total_attempts(self) -> int:
        return self.attempts_per_round * self.iterations


@dataclass(frozen=True)
class Attempt:
    """Outcome of one dispatch; status 0 means no response was received."""
    request_index: int
    status: int
    elapsed_ms: Optional[int]
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status >= 400 or self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AggregateMetrics:
    """Statistics derived from a list of attempts."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    avg_response_time_ms: float = 0.0
    min_response_time_ms: int = 0
    max_response_time_ms: int = 0
    error_rate_percent: float = 0.0
    throughput_per_second: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PerRequestMetrics(AggregateMetrics):
    """Statistics restricted to the attempts of one request."""
    request_index: int = 0
    method: str = ""
    url: str = ""


@dataclass
class LoadTestReport:
    """Everything a load test run produces."""
    attempts: List[Attempt] = field(default_factory=list)
    aggregate: AggregateMetrics = field(default_factory=AggregateMetrics)
    per_request: List[PerRequestMetrics] = field(default_factory=list)
    duration_seconds: float = 0.0
    cancelled: bool = False

    def to_dict(self, max_attempts: int = None) -> Dict[str, Any]:
        """Serialize the report, optionally keeping only the first attempts."""
        attempts = self.attempts if max_attempts is None else self.attempts[:max_attempts]
        return {
            "attempts": [a.to_dict() for a in attempts],
            "aggregate": self.aggregate.to_dict(),
            "per_request": [m.to_dict() for m in self.per_request],
            "duration_seconds": round(self.duration_seconds, 3),
            "cancelled": self.cancelled,
        }
