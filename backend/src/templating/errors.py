"""Errors produced while turning a template into a sendable request."""

from typing import List

from utils.errors import APIRequesterError


class RequestTemplateError(APIRequesterError):
    """Base class for resolution and validation failures."""

    status_code = 400


class CircularReferenceError(RequestTemplateError):
    """Substitution did not reach a fixed point within the pass limit."""

    def __init__(self, max_passes: int):
        self.max_passes = max_passes
        super().__init__(
            f"Maximum of {max_passes} passes reached while resolving placeholders. "
            "Possible circular reference in variables."
        )


class UnresolvedVariableError(RequestTemplateError):
    """Placeholders remain that no environment variable defines."""

    def __init__(self, names: List[str]):
        self.names = list(names)
        super().__init__(
            f"The following variables are unresolved: {', '.join(self.names)}. "
            "Please define them in the selected environment."
        )


class InvalidRequestError(RequestTemplateError):
    """The resolved URL or body is malformed."""
