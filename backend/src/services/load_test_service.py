"""Load test orchestration: request selection, resolution, execution and storage."""

import asyncio
import logging
from typing import Dict, List, Optional, Any

from loadtest.errors import LoadTestValidationError
from loadtest.models import LoadTestSpec, LoadTestTarget
from loadtest.runner import LoadTestRunner
from storage.repository import Storage
from templating.models import RequestTemplate
from templating.resolver import TemplateResolver
from utils.config import settings
from utils.errors import NotFoundError
from .request_service import load_variables

logger = logging.getLogger(__name__)


class LoadTestService:
    """Runs a load test for one request or for every request of a collection."""

    def __init__(self, storage: Storage, runner: LoadTestRunner,
                 resolver: TemplateResolver = None, max_stored_attempts: int = None):
        self.storage = storage
        self.runner = runner
        self.resolver = resolver or TemplateResolver()
        self.max_stored_attempts = max_stored_attempts or settings.max_stored_attempts

    async def run(self, request: Optional[RequestTemplate], collection_id: Optional[str],
                  concurrency: int, iterations: int, environment: Optional[str],
                  cancel_event: Optional[asyncio.Event] = None) -> Dict[str, Any]:
        """Validate, run and persist a load test; returns the stored report."""
        if request is None and not collection_id:
            raise LoadTestValidationError("Either 'request' or 'collection_id' is required")
        if request is not None and collection_id:
            raise LoadTestValidationError("Provide either 'request' or 'collection_id', not both")
        self.runner.validate_parameters(concurrency, iterations)
        if not environment or not isinstance(environment, str):
            raise LoadTestValidationError("Environment name (string) is required")

        variables = load_variables(self.storage, environment)
        templates = self._select_templates(request, collection_id)

        targets: List[LoadTestTarget] = []
        for index, template in enumerate(templates):
            result = self.resolver.prepare(template, variables)
            if not result.ok:
                raise LoadTestValidationError(
                    f"Invalid request data for request at index {index}: {result.error.message}"
                ) from result.error
            targets.append(LoadTestTarget(index=index, request=result.request))

        spec = LoadTestSpec(targets=targets, concurrency=concurrency, iterations=iterations)
        report = await self.runner.run(spec, cancel_event=cancel_event)

        payload = report.to_dict(max_attempts=self.max_stored_attempts)
        result_id = self.storage.save_load_test_result({
            "environment": environment,
            "collection_id": collection_id,
            "request": request.to_dict() if request is not None else None,
            "concurrency": concurrency,
            "iterations": iterations,
            "duration_seconds": payload["duration_seconds"],
            "cancelled": payload["cancelled"],
            "attempts": payload["attempts"],
            "aggregate": payload["aggregate"],
            "per_request": payload["per_request"],
        })

        response = report.to_dict()
        response["id"] = result_id
        return response

    def _select_templates(self, request: Optional[RequestTemplate],
                          collection_id: Optional[str]) -> List[RequestTemplate]:
        if request is not None:
            return [request]

        if not self.storage.get_collection(collection_id):
            raise NotFoundError("Collection not found")
        saved = self.storage.list_requests(collection_id)
        if not saved:
            raise LoadTestValidationError("No requests found in the collection")
        return [RequestTemplate.from_dict(r) for r in saved]
