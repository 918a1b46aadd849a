"""Collection and saved request endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import List, Optional

from api.schemas import RequestTemplateModel
from storage.repository import Storage
from utils.dependencies import get_storage
from utils.errors import NotFoundError

router = APIRouter()


class CollectionPayload(BaseModel):
    """Create collection model."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class SaveRequestPayload(RequestTemplateModel):
    """Saved request model."""
    name: str = Field(..., min_length=1)


@router.post("/collections", status_code=201)
async def create_collection(payload: CollectionPayload, storage: Storage = Depends(get_storage)):
    return storage.create_collection(payload.name.strip(), payload.description)


@router.get("/collections")
async def list_collections(storage: Storage = Depends(get_storage)):
    return {"success": True, "collections": storage.list_collections()}


@router.get("/collections/{collection_id}")
async def get_collection(collection_id: str, storage: Storage = Depends(get_storage)):
    collection = storage.get_collection(collection_id)
    if not collection:
        raise NotFoundError("Collection not found")
    return collection


@router.delete("/collections/{collection_id}")
async def delete_collection(collection_id: str, storage: Storage = Depends(get_storage)):
    """Delete a collection together with its saved requests."""
    if not storage.delete_collection(collection_id):
        raise NotFoundError("Collection not found")
    return {"success": True, "message": "Collection deleted successfully"}


@router.post("/collections/{collection_id}/requests", status_code=201)
async def save_request(collection_id: str, payload: SaveRequestPayload,
                       storage: Storage = Depends(get_storage)):
    """Save a request template into a collection."""
    if not storage.get_collection(collection_id):
        raise NotFoundError("Collection not found")

    data = payload.to_template().to_dict()
    data["name"] = payload.name.strip()
    return storage.add_request(collection_id, data)


@router.get("/collections/{collection_id}/requests")
async def list_saved_requests(collection_id: str, storage: Storage = Depends(get_storage)):
    if not storage.get_collection(collection_id):
        raise NotFoundError("Collection not found")
    return {"success": True, "requests": storage.list_requests(collection_id)}
