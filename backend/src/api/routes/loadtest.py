"""Load testing endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional

from api.schemas import RequestTemplateModel
from loadtest.runner import LoadTestRunner
from services.load_test_service import LoadTestService
from storage.repository import Storage
from utils.dependencies import get_storage, get_dispatcher
from utils.errors import NotFoundError

router = APIRouter()


class LoadTestConfiguration(BaseModel):
    """Load test configuration model."""
    request: Optional[RequestTemplateModel] = None
    collection_id: Optional[str] = None
    concurrency: int
    iterations: int
    environment: Optional[str] = None


@router.post("/loadtest")
async def run_load_test(config: LoadTestConfiguration,
                        storage: Storage = Depends(get_storage),
                        dispatcher=Depends(get_dispatcher)):
    """Run a load test and store its report."""
    service = LoadTestService(storage, LoadTestRunner(dispatcher))
    return await service.run(
        request=config.request.to_template() if config.request else None,
        collection_id=config.collection_id,
        concurrency=config.concurrency,
        iterations=config.iterations,
        environment=config.environment,
    )


@router.get("/loadtest/{result_id}")
async def get_load_test_result(result_id: str, storage: Storage = Depends(get_storage)):
    """Get a stored load test report."""
    result = storage.get_load_test_result(result_id)
    if not result:
        raise NotFoundError("Load test result not found")
    return result
