import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError

from app.settings import settings
from domain.errors import ExtractionError, NotFoundError, PersistenceError, ValidationError
from domain.schemas import ExtractedJobDetails, JobContext
from domain.services.intake import LoadedDocument, SourceDocument
from infra.llm.client import extract_job_details_llm
from infra.repositories.jobs_repository import JobsRepository, new_job_id

logger = logging.getLogger(__name__)

UPLOADED_JOB_SENTINEL = "temp-uploaded-jd"

ExtractFn = Callable[[LoadedDocument], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class JobSelection:
    """Where a batch takes its job context from: a stored job or an uploaded JD."""
    job_id: Optional[str] = None
    document: Optional[SourceDocument] = None

    def validate(self) -> None:
        if bool(self.job_id) == bool(self.document):
            raise ValidationError("select exactly one job source: a stored job or an uploaded job description")


class JobSource(str, Enum):
    STORE = "store"
    UPLOAD = "upload"


@dataclass(frozen=True)
class ResolvedJob:
    context: JobContext
    job_id: str
    source: JobSource

    @property
    def tracks_stats(self) -> bool:
        # counters belong to jobs a recruiter created, not ones inferred from an upload
        return self.source is JobSource.STORE


def _coerce_skills(skills: Any) -> List[str]:
    if isinstance(skills, str):
        # some models answer "Python, SQL" instead of a JSON list
        return [s.strip() for s in skills.split(",") if s.strip()]
    if isinstance(skills, (list, tuple)):
        return [str(s).strip() for s in skills if s and str(s).strip()]
    raise ExtractionError(f"job description extraction returned skills as {type(skills).__name__}")


def _normalize_extraction(raw: Dict[str, Any]) -> ExtractedJobDetails:
    cleaned = {k: v for k, v in raw.items() if v not in (None, "")}
    if "skills" in cleaned:
        cleaned["skills"] = _coerce_skills(cleaned["skills"])
    try:
        details = ExtractedJobDetails.model_validate(cleaned)
    except SchemaError as exc:
        raise ExtractionError(f"job description extraction returned an invalid payload: {exc}") from exc
    if not details.title.strip():
        raise ExtractionError("job description extraction returned no title")
    return details


class JobContextResolver:
    def __init__(self, jobs_repo: Optional[JobsRepository] = None,
                 extract: ExtractFn = extract_job_details_llm,
                 persist_uploaded: Optional[bool] = None):
        self._jobs = jobs_repo or JobsRepository()
        self._extract = extract
        self._persist_uploaded = (settings.PERSIST_UPLOADED_JOBS
                                  if persist_uploaded is None else persist_uploaded)

    async def resolve(self, selection: JobSelection) -> ResolvedJob:
        selection.validate()
        if selection.job_id:
            return self.resolve_from_store(selection.job_id)
        return await self.resolve_from_upload(selection.document)

    def resolve_from_store(self, job_id: str) -> ResolvedJob:
        # always re-fetch; the listing the caller picked from may be stale
        job = self._jobs.find_one(job_id)
        if not job:
            raise NotFoundError(f"job {job_id} not found")
        ctx = JobContext(
            title=job["title"],
            skills=job.get("skills") or [],
            description=job.get("description"),
            location=job.get("location"),
        )
        return ResolvedJob(context=ctx, job_id=job["id"], source=JobSource.STORE)

    async def resolve_from_upload(self, document: SourceDocument) -> ResolvedJob:
        try:
            loaded = await document.read()
            raw = await self._extract(loaded)
        except ExtractionError:
            raise
        except Exception as exc:
            logger.warning("Job description extraction failed for %s: %s", document.name, exc)
            raise ExtractionError(f"Failed to parse Job Description: {exc}") from exc

        details = _normalize_extraction(raw)
        description = f"Department: {details.department}. Type: {details.type}. {details.title}."
        ctx = JobContext(
            title=details.title,
            skills=details.skills,
            description=description,
            location=details.location,
        )

        if not self._persist_uploaded:
            return ResolvedJob(context=ctx, job_id=UPLOADED_JOB_SENTINEL, source=JobSource.UPLOAD)

        job_id = new_job_id()
        try:
            self._jobs.insert_one({
                "id": job_id,
                "title": details.title,
                "department": details.department,
                "location": details.location,
                "type": details.type,
                "skills": details.skills,
                "description": description,
            })
        except SQLAlchemyError as exc:
            raise PersistenceError(f"could not save extracted job: {exc}") from exc
        logger.info("Created job %s (%s) from uploaded description", job_id, details.title)
        return ResolvedJob(context=ctx, job_id=job_id, source=JobSource.UPLOAD)
