from fastapi import APIRouter, Depends
from domain.schemas import BatchStatusResponse
from api.deps import BatchRegistry, get_registry

router = APIRouter()


@router.get("/batches/{batch_id}", response_model=BatchStatusResponse)
async def get_batch(batch_id: str, registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    return registry.get(batch_id).snapshot()
