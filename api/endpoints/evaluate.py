from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from domain.schemas import AnalyzeRequest, BatchStatusResponse
from domain.services.job_context import JobSelection
from domain.services.scoring_pipeline import ScoringScheduler
from api.deps import BatchRegistry, get_registry
from api.endpoints.upload import discard_upload, save_upload

router = APIRouter()


def _launch(scheduler: ScoringScheduler, selection: JobSelection) -> None:
    previous: Optional[JobSelection] = scheduler.selection
    scheduler.launch(selection)
    # a re-run no longer needs the job description file of the run before it
    if previous is not None and previous.document is not None and previous.document != selection.document:
        discard_upload(previous.document)


@router.post("/batches/{batch_id}/analyze", response_model=BatchStatusResponse, status_code=202)
async def analyze(batch_id: str, body: AnalyzeRequest,
                  registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    scheduler = registry.get(batch_id)
    _launch(scheduler, JobSelection(job_id=body.job_id))
    return scheduler.snapshot()


@router.post("/batches/{batch_id}/analyze-with-jd", response_model=BatchStatusResponse, status_code=202)
async def analyze_with_jd(batch_id: str, jd: UploadFile = File(...),
                          registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    scheduler = registry.get(batch_id)
    document = await save_upload(jd, default_name="job_description.pdf")
    try:
        _launch(scheduler, JobSelection(document=document))
    except Exception:
        # rejected before the run claimed the file
        discard_upload(document)
        raise
    return scheduler.snapshot()


@router.post("/batches/{batch_id}/cancel", response_model=BatchStatusResponse)
async def cancel(batch_id: str, registry: BatchRegistry = Depends(get_registry)) -> BatchStatusResponse:
    scheduler = registry.get(batch_id)
    scheduler.cancel()
    return scheduler.snapshot()
