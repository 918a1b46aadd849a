"""Request sending and history endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from typing import Optional

from api.schemas import RequestTemplateModel
from services.request_service import RequestService
from storage.repository import Storage
from utils.config import settings
from utils.dependencies import get_storage, get_dispatcher
from utils.errors import NotFoundError

router = APIRouter()


class SendRequestPayload(RequestTemplateModel):
    """Send request model."""
    environment: str = Field(..., min_length=1)


@router.post("/requests/send")
async def send_request(payload: SendRequestPayload,
                       storage: Storage = Depends(get_storage),
                       dispatcher=Depends(get_dispatcher)):
    """Resolve a request against an environment and send it once."""
    service = RequestService(storage, dispatcher)
    return await service.send(payload.to_template(), payload.environment)


@router.get("/requests/history")
async def get_history(
    limit: int = Query(settings.history_page_size, ge=1, le=100),
    offset: int = Query(0, ge=0),
    method: Optional[str] = None,
    search: Optional[str] = None,
    storage: Storage = Depends(get_storage),
):
    """Get sent requests, newest first."""
    items, total = storage.list_history(limit=limit, offset=offset, method=method, search=search)
    return {
        "success": True,
        "history": items,
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.delete("/requests/history")
async def clear_history(storage: Storage = Depends(get_storage)):
    deleted = storage.clear_history()
    return {"success": True, "deleted": deleted}


@router.delete("/requests/history/{history_id}")
async def delete_history_entry(history_id: str, storage: Storage = Depends(get_storage)):
    """Delete one history entry."""
    if not storage.delete_history(history_id):
        raise NotFoundError("History item not found")
    return {"success": True, "message": "History item deleted successfully"}
