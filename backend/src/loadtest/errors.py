"""Load test errors."""

from utils.errors import APIRequesterError


class LoadTestValidationError(APIRequesterError):
    """A load test was rejected before any request was dispatched."""

    status_code = 400
