"""HTTP dispatch module initialization."""

from .client import HttpDispatcher, DispatchResponse, DispatchError

__all__ = [
    'HttpDispatcher',
    'DispatchResponse',
    'DispatchError',
]
