import logging
import os
import uuid
from pathlib import Path
from typing import List
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException, Response
from app.settings import settings
from domain.schemas import BatchStatusResponse
from domain.services.intake import SourceDocument
from api.deps import BatchRegistry, get_registry

logger = logging.getLogger(__name__)

router = APIRouter()


async def save_upload(f: UploadFile, default_name: str = "uploaded.pdf") -> SourceDocument:
    os.makedirs(settings.STORAGE_DIR, exist_ok=True)
    name = f.filename or default_name
    path = os.path.join(settings.STORAGE_DIR,
                        f"{uuid.uuid4().hex[:12]}_{os.path.basename(name).replace(' ', '_')}")
    content = await f.read()
    with open(path, "wb") as out:
        out.write(content)
    return SourceDocument.from_path(path, name=name, content_type=f.content_type or None)


def discard_upload(document: SourceDocument) -> None:
    """Delete a file this service stored. Files outside STORAGE_DIR are left alone."""
    path = Path(document.path).resolve()
    if path.parent != Path(settings.STORAGE_DIR).resolve():
        return
    path.unlink(missing_ok=True)
    logger.info("Removed stored upload %s", path.name)


@router.post("/batches", response_model=BatchStatusResponse, status_code=201)
async def create_batch(registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    return registry.create().snapshot()


@router.delete("/batches/{batch_id}", status_code=204)
async def delete_batch(batch_id: str, registry: BatchRegistry = Depends(get_registry)) -> Response:
    scheduler = registry.remove(batch_id)
    for item in scheduler.queue:
        discard_upload(item.document)
    if scheduler.selection is not None and scheduler.selection.document is not None:
        discard_upload(scheduler.selection.document)
    return Response(status_code=204)


@router.post("/batches/{batch_id}/files", response_model=BatchStatusResponse)
async def add_files(batch_id: str,
                    files: List[UploadFile] = File(...),
                    registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    scheduler = registry.get(batch_id)
    if not files:
        raise HTTPException(status_code=400, detail="Upload at least one resume")
    documents = [await save_upload(f) for f in files]
    try:
        scheduler.add_files(documents)
    except Exception:
        for doc in documents:
            discard_upload(doc)
        raise
    return scheduler.snapshot()


@router.delete("/batches/{batch_id}/files/{item_id}", response_model=BatchStatusResponse)
async def remove_file(batch_id: str, item_id: str,
                      registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    scheduler = registry.get(batch_id)
    item = scheduler.queue.get(item_id)
    if scheduler.remove_item(item_id):
        discard_upload(item.document)
    return scheduler.snapshot()
