"""Single request sending."""

import logging
import time
from typing import Dict, List, Any

from dispatch.client import DispatchError
from storage.repository import Storage
from templating.models import RequestTemplate, Variable
from templating.resolver import TemplateResolver, ResolutionResult
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def load_variables(storage: Storage, environment: str) -> List[Variable]:
    """Fetch an environment's variables by name."""
    record = storage.get_environment_by_name(environment)
    if not record:
        raise NotFoundError(f"Environment '{environment}' not found")
    return [Variable.from_dict(v) for v in record["variables"]]


class RequestService:
    """Resolves a template against an environment and sends it once."""

    def __init__(self, storage: Storage, dispatcher, resolver: TemplateResolver = None):
        self.storage = storage
        self.dispatcher = dispatcher
        self.resolver = resolver or TemplateResolver()

    def resolve(self, template: RequestTemplate, environment: str) -> ResolutionResult:
        variables = load_variables(self.storage, environment)
        return self.resolver.prepare(template, variables)

    async def send(self, template: RequestTemplate, environment: str) -> Dict[str, Any]:
        """Send a request; resolution failures raise, transport failures are reported."""
        request = self.resolve(template, environment).unwrap()

        start_time = time.perf_counter()
        try:
            response = await self.dispatcher.send(request)
            outcome = {
                "success": True,
                "data": response.data,
                "status": response.status,
                "headers": response.headers,
                "time": self._elapsed_ms(start_time),
            }
        except DispatchError as e:
            logger.info(f"Request {request.method.value} {request.url} failed: {e.message}")
            outcome = {
                "success": False,
                "error": e.message,
                "status": e.status or 0,
                "time": self._elapsed_ms(start_time),
            }

        self.storage.add_history({
            "method": request.method.value,
            "url": request.url,
            "environment": environment,
            "status": outcome["status"],
            "elapsed_ms": outcome["time"],
            "success": outcome["success"],
            "error": outcome.get("error"),
        })
        return outcome

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int(round((time.perf_counter() - start_time) * 1000))
