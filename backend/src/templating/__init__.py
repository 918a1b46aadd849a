"""Request templating module initialization."""

from .models import HttpMethod, Variable, Header, RequestTemplate, ResolvedRequest
from .errors import (
    RequestTemplateError, CircularReferenceError,
    UnresolvedVariableError, InvalidRequestError,
)
from .resolver import TemplateResolver, ResolutionResult, find_placeholders, validate_resolved_request

__all__ = [
    'HttpMethod',
    'Variable',
    'Header',
    'RequestTemplate',
    'ResolvedRequest',
    'RequestTemplateError',
    'CircularReferenceError',
    'UnresolvedVariableError',
    'InvalidRequestError',
    'TemplateResolver',
    'ResolutionResult',
    'find_placeholders',
    'validate_resolved_request',
]
