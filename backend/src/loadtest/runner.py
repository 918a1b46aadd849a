"""Load test execution with a bounded worker pool."""

import asyncio
import logging
import time
from typing import List, Optional

from dispatch.client import DispatchError
from templating.resolver import validate_resolved_request
from utils.config import settings
from .aggregation import compute_metrics, compute_per_request_metrics
from .errors import LoadTestValidationError
from .models import Attempt, LoadTestReport, LoadTestSpec, LoadTestTarget

logger = logging.getLogger(__name__)


class LoadTestRunner:
    """Dispatches each target ``concurrency`` times per round, for ``iterations`` rounds.

    Within a round, every attempt is queued up front and ``concurrency``
    workers drain the queue, so no more than ``concurrency`` requests are in
    flight however many targets the run has. Rounds run one after another.
    """

    def __init__(self, dispatcher, max_concurrency: int = None, max_iterations: int = None):
        self.dispatcher = dispatcher
        self.max_concurrency = max_concurrency or settings.max_concurrency
        self.max_iterations = max_iterations or settings.max_iterations

    def validate_parameters(self, concurrency, iterations) -> None:
        """Check concurrency and iteration counts against the configured bounds."""
        if not isinstance(concurrency, int) or isinstance(concurrency, bool) \
                or not 1 <= concurrency <= self.max_concurrency:
            raise LoadTestValidationError(
                f"Concurrency must be a number between 1 and {self.max_concurrency}"
            )
        if not isinstance(iterations, int) or isinstance(iterations, bool) \
                or not 1 <= iterations <= self.max_iterations:
            raise LoadTestValidationError(
                f"Iterations must be a number between 1 and {self.max_iterations}"
            )

    def validate(self, spec: LoadTestSpec) -> None:
        """Reject a load test before anything is dispatched."""
        self.validate_parameters(spec.concurrency, spec.iterations)

        if not spec.targets:
            raise LoadTestValidationError("No valid requests to test")

        for target in spec.targets:
            error = validate_resolved_request(target.request)
            if error is not None:
                raise LoadTestValidationError(
                    f"Invalid request data for request at index {target.index}: {error.message}"
                )

    async def run(self, spec: LoadTestSpec,
                  cancel_event: Optional[asyncio.Event] = None) -> LoadTestReport:
        """Run every round and aggregate the attempts."""
        self.validate(spec)

        logger.info(
            f"Starting load test: {len(spec.targets)} request(s) x concurrency {spec.concurrency} "
            f"x {spec.iterations} iteration(s) = {spec.total_attempts} attempts"
        )

        attempts: List[Attempt] = []
        start_time = time.perf_counter()

        for round_number in range(1, spec.iterations + 1):
            if cancel_event is not None and cancel_event.is_set():
                break
            round_attempts = await self._run_round(spec, cancel_event)
            attempts.extend(round_attempts)
            logger.debug(f"Round {round_number}/{spec.iterations} finished with {len(round_attempts)} attempts")

        duration_seconds = time.perf_counter() - start_time
        cancelled = cancel_event is not None and cancel_event.is_set()

        report = LoadTestReport(
            attempts=attempts,
            aggregate=compute_metrics(attempts, duration_seconds),
            per_request=compute_per_request_metrics(attempts, spec.targets, duration_seconds),
            duration_seconds=duration_seconds,
            cancelled=cancelled,
        )

        logger.info(
            f"Load test finished in {duration_seconds:.2f}s: {report.aggregate.total_requests} requests, "
            f"{report.aggregate.failed_requests} failed"
            + (" (cancelled)" if cancelled else "")
        )
        return report

    async def _run_round(self, spec: LoadTestSpec,
                         cancel_event: Optional[asyncio.Event]) -> List[Attempt]:
        queue: asyncio.Queue = asyncio.Queue()
        for target in spec.targets:
            for _ in range(spec.concurrency):
                queue.put_nowait(target)

        results: List[Attempt] = []
        worker_count = min(spec.concurrency, queue.qsize())
        workers = [
            asyncio.create_task(self._worker(queue, results, cancel_event))
            for _ in range(worker_count)
        ]
        await asyncio.gather(*workers)
        return results

    async def _worker(self, queue: asyncio.Queue, results: List[Attempt],
                      cancel_event: Optional[asyncio.Event]) -> None:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return
            try:
                target = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            # Appends happen on the event loop thread, one at a time.
            results.append(await self._attempt(target))

    async def _attempt(self, target: LoadTestTarget) -> Attempt:
        start_time = time.perf_counter()
        try:
            response = await self.dispatcher.send(target.request)
            return Attempt(
                request_index=target.index,
                status=response.status,
                elapsed_ms=self._elapsed_ms(start_time),
            )
        except DispatchError as e:
            logger.debug(f"Attempt for request {target.index} failed: {e.message}")
            return Attempt(
                request_index=target.index,
                status=e.status or 0,
                elapsed_ms=self._elapsed_ms(start_time),
                error=e.message,
            )
        except Exception as e:
            logger.warning(f"Unexpected error during attempt for request {target.index}: {e}", exc_info=True)
            return Attempt(
                request_index=target.index,
                status=0,
                elapsed_ms=self._elapsed_ms(start_time),
                error=str(e) or type(e).__name__,
            )

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int(round((time.perf_counter() - start_time) * 1000))
