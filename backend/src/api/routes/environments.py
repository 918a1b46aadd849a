"""Environment management endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from typing import List

from storage.repository import Storage
from utils.dependencies import get_storage
from utils.errors import NotFoundError

router = APIRouter()


class VariableModel(BaseModel):
    """Environment variable model."""
    key: str = Field(..., min_length=1)
    value: str = ""

    @field_validator("key")
    @classmethod
    def strip_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Key is required")
        return value

    @field_validator("value")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class EnvironmentPayload(BaseModel):
    """Create/update environment model."""
    name: str = Field(..., min_length=1)
    variables: List[VariableModel] = []

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Environment name is required")
        return value

    @field_validator("variables")
    @classmethod
    def unique_keys(cls, variables: List[VariableModel]) -> List[VariableModel]:
        keys = [v.key for v in variables]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate variable keys: {', '.join(duplicates)}")
        return variables


class EnvironmentResponse(BaseModel):
    """Environment response model."""
    id: str
    name: str
    variables: List[VariableModel]
    created_at: str


@router.post("/environments", response_model=EnvironmentResponse, status_code=201)
async def create_environment(payload: EnvironmentPayload, storage: Storage = Depends(get_storage)):
    """Create a named environment."""
    return storage.create_environment(
        payload.name, [v.model_dump() for v in payload.variables]
    )


@router.get("/environments", response_model=List[EnvironmentResponse])
async def list_environments(storage: Storage = Depends(get_storage)):
    """List all environments, newest first."""
    return storage.list_environments()


@router.get("/environments/{environment_id}", response_model=EnvironmentResponse)
async def get_environment(environment_id: str, storage: Storage = Depends(get_storage)):
    environment = storage.get_environment(environment_id)
    if not environment:
        raise NotFoundError("Environment not found")
    return environment


@router.put("/environments/{environment_id}", response_model=EnvironmentResponse)
async def update_environment(environment_id: str, payload: EnvironmentPayload,
                             storage: Storage = Depends(get_storage)):
    """Replace an environment's name and variables."""
    environment = storage.update_environment(
        environment_id, payload.name, [v.model_dump() for v in payload.variables]
    )
    if not environment:
        raise NotFoundError("Environment not found")
    return environment


@router.delete("/environments/{environment_id}")
async def delete_environment(environment_id: str, storage: Storage = Depends(get_storage)):
    if not storage.delete_environment(environment_id):
        raise NotFoundError("Environment not found")
    return {"success": True, "message": "Environment deleted successfully"}
