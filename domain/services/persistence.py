import base64
import logging
import re
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.settings import settings
from domain.errors import PersistenceError
from domain.schemas import AnalysisResult
from domain.services.intake import LoadedDocument, UploadItem
from domain.services.job_context import ResolvedJob
from infra.db.session import session_scope
from infra.repositories.candidates_repository import CandidatesRepository
from infra.repositories.jobs_repository import JobsRepository

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Analysis not available"


def _name_from_file(file_name: str) -> str:
    return re.sub(r"[_-]", " ", Path(file_name).stem).strip() or file_name


def _applied_date(d: date) -> str:
    return f"{d:%b} {d.day}, {d.year}"


class ResultPersister:
    """Turns a finished analysis into a candidate row and bumps job counters."""

    def __init__(self, candidates_repo: Optional[CandidatesRepository] = None,
                 jobs_repo: Optional[JobsRepository] = None,
                 session_factory=None,
                 max_inline_bytes: Optional[int] = None,
                 high_match_threshold: Optional[int] = None,
                 today: Callable[[], date] = date.today):
        self._candidates = candidates_repo or CandidatesRepository(session_factory)
        self._jobs = jobs_repo or JobsRepository(session_factory)
        self._factory = session_factory
        self._max_inline = settings.MAX_INLINE_RESUME_BYTES if max_inline_bytes is None else max_inline_bytes
        self._threshold = settings.HIGH_MATCH_THRESHOLD if high_match_threshold is None else high_match_threshold
        self._today = today

    def build_record(self, item: UploadItem, document: LoadedDocument,
                     result: AnalysisResult, job: ResolvedJob) -> Dict[str, Any]:
        inline = item.document.size < self._max_inline
        return {
            "id": f"cand_{uuid.uuid4().hex}",
            "associated_job_id": job.job_id,
            "name": result.candidate_name or _name_from_file(item.name),
            "role": result.current_role or job.context.title,
            "company": "Extracted Profile",
            "location": job.context.location or "Remote",
            "applied_date": _applied_date(self._today()),
            "status": "New",
            "match_score": result.match_score,
            "jd_match_score": result.jd_match_score,
            "qualification_match_score": result.qualification_match_score,
            "resume_match_score": result.resume_match_score,
            "candidate_record_score": result.candidate_record_score,
            "jd_match_reason": result.jd_match_reason or NOT_AVAILABLE,
            "qualification_match_reason": result.qualification_match_reason or NOT_AVAILABLE,
            "resume_match_reason": result.resume_match_reason or NOT_AVAILABLE,
            "candidate_record_reason": (result.candidate_record_reason or NOT_AVAILABLE)
            if result.candidate_record_score is not None else None,
            "analysis": result.analysis,
            "skills_found": list(result.skills_found),
            "experience_years": result.experience_years,
            "deep_analysis": result.deep_analysis.model_dump(),
            "source_file_name": item.name,
            "resume_base64": base64.b64encode(document.data).decode("ascii") if inline else "",
            "resume_mime_type": document.content_type,
        }

    def persist(self, item: UploadItem, document: LoadedDocument,
                result: AnalysisResult, job: ResolvedJob) -> str:
        record = self.build_record(item, document, result, job)
        try:
            with session_scope(factory=self._factory) as s:
                self._candidates.insert_one(record, session=s)
                if job.tracks_stats:
                    self._bump_counters(job.job_id, result.match_score, s)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"could not save candidate {record['name']}: {exc}") from exc
        logger.info("Saved candidate %s (%s) for job %s", record["id"], record["name"], job.job_id)
        return record["id"]

    def _bump_counters(self, job_id: str, match_score: int, session) -> None:
        current = self._jobs.find_one(job_id, session=session)
        if not current:
            logger.warning("Job %s vanished before its counters could be updated", job_id)
            return
        matches = current["matches_count"] + (1 if match_score > self._threshold else 0)
        self._jobs.update_one(job_id, {
            "applicants_count": current["applicants_count"] + 1,
            "matches_count": matches,
        }, session=session)
