from typing import List, Dict, Any
from fastapi import APIRouter, Depends
from domain.errors import NotFoundError
from domain.schemas import JobCreate, JobResponse
from infra.repositories.jobs_repository import JobsRepository
from infra.repositories.candidates_repository import CandidatesRepository
from api.deps import get_jobs_repo, get_candidates_repo

router = APIRouter()


@router.get("/jobs", response_model=List[JobResponse])
def list_jobs(jobs_repo: JobsRepository = Depends(get_jobs_repo)):
    return jobs_repo.find()


@router.post("/jobs", response_model=JobResponse, status_code=201)
def create_job(body: JobCreate, jobs_repo: JobsRepository = Depends(get_jobs_repo)):
    job_id = jobs_repo.insert_one(body.model_dump())
    return jobs_repo.find_one(job_id)


@router.get("/jobs/{job_id}", response_model=JobResponse)
def get_job(job_id: str, jobs_repo: JobsRepository = Depends(get_jobs_repo)):
    job = jobs_repo.find_one(job_id)
    if not job:
        raise NotFoundError(f"job {job_id} not found")
    return job


@router.get("/jobs/{job_id}/candidates")
def list_candidates(job_id: str,
                    candidates_repo: CandidatesRepository = Depends(get_candidates_repo)) -> List[Dict[str, Any]]:
    # resume payloads stay out of listings
    return [{k: v for k, v in c.items() if k != "resume_base64"}
            for c in candidates_repo.find_by_job(job_id)]
