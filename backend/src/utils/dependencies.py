"""Dependency injection for shared instances."""

from fastapi import Request

# Singleton instances
_storage_instance = None


def get_storage():
    """Get the shared Storage instance."""
    global _storage_instance
    if _storage_instance is None:
        from storage.repository import Storage
        _storage_instance = Storage()
    return _storage_instance


def get_dispatcher(request: Request):
    """Get the HttpDispatcher owned by the running application."""
    return request.app.state.dispatcher
