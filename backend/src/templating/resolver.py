"""Placeholder resolution for request templates.

A template's URL, header values and body are treated as independent text
fields. Every ``{{key}}`` occurrence whose key matches an environment
variable exactly is replaced by the variable's value. Because a value may
itself contain placeholders, substitution is repeated over all fields
until a pass changes nothing. Failing to settle within ``max_passes``
passes is reported as a circular reference; placeholders that survive a
settled pass are reported as unresolved variables, including a variable
whose value is exactly its own placeholder.
"""

import json
import re
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from .errors import (
    RequestTemplateError, CircularReferenceError,
    UnresolvedVariableError, InvalidRequestError,
)
from .models import Header, RequestTemplate, ResolvedRequest, Variable
from utils.config import settings

logger = logging.getLogger(__name__)

# No whitespace trimming: "{{ key }}" never matches the variable "key".
PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

ALLOWED_URL_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving a template: either a request or an error."""
    request: Optional[ResolvedRequest] = None
    error: Optional[RequestTemplateError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> ResolvedRequest:
        """Return the resolved request, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.request


def find_placeholders(text: Optional[str]) -> List[str]:
    """Return placeholder names in order of appearance (duplicates kept)."""
    if not text:
        return []
    return PLACEHOLDER_PATTERN.findall(text)


def _unique(names: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


class TemplateResolver:
    """Resolves ``{{key}}`` placeholders against an environment's variables."""

    def __init__(self, max_passes: int = None):
        self.max_passes = max_passes or settings.max_resolution_passes

    def resolve(self, template: RequestTemplate, variables: List[Variable]) -> ResolutionResult:
        """Substitute placeholders in URL, header values and body."""
        lookup: Dict[str, str] = {v.key: v.value for v in variables}
        fields = self._fields_of(template)

        for _ in range(self.max_passes):
            substituted = tuple(self._substitute(text, lookup) for text in fields)
            if substituted == fields:
                break
            fields = substituted
        else:
            logger.debug(f"Resolution did not settle after {self.max_passes} passes: {template.url}")
            return ResolutionResult(error=CircularReferenceError(self.max_passes))

        leftover = _unique(name for text in fields for name in find_placeholders(text))
        if leftover:
            return ResolutionResult(error=UnresolvedVariableError(leftover))

        url, body, header_values = fields[0], fields[1], fields[2:]
        resolved = ResolvedRequest(
            method=template.method,
            url=url,
            headers=[Header(key=h.key, value=v) for h, v in zip(template.headers, header_values)],
            body=body,
        )
        return ResolutionResult(request=resolved)

    def prepare(self, template: RequestTemplate, variables: List[Variable]) -> ResolutionResult:
        """Resolve a template and check that the result can be dispatched."""
        result = self.resolve(template, variables)
        if not result.ok:
            return result
        error = validate_resolved_request(result.request)
        if error is not None:
            return ResolutionResult(error=error)
        return result

    @staticmethod
    def _fields_of(template: RequestTemplate) -> Tuple[Optional[str], ...]:
        return (template.url, template.body) + tuple(h.value for h in template.headers)

    @staticmethod
    def _substitute(text: Optional[str], lookup: Dict[str, str]) -> Optional[str]:
        if not text:
            return text
        return PLACEHOLDER_PATTERN.sub(
            lambda match: lookup.get(match.group(1), match.group(0)), text
        )


def validate_resolved_request(request: ResolvedRequest) -> Optional[InvalidRequestError]:
    """Check the URL is absolute http(s) and a non-empty body parses as JSON."""
    parsed = urlparse(request.url)
    if parsed.scheme not in ALLOWED_URL_SCHEMES or not parsed.netloc:
        return InvalidRequestError(f"Invalid URL: '{request.url}'")

    if request.body:
        try:
            json.loads(request.body)
        except ValueError as e:
            return InvalidRequestError(f"Invalid JSON body: {e}")

    return None
