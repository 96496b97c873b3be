import uuid
from typing import Optional, Dict, Any, List
from sqlalchemy import select
from infra.db.session import session_scope
from infra.db.models import JobRecord

_UPDATABLE = {
    "title", "department", "location", "type", "status", "skills",
    "description", "applicants_count", "matches_count",
}


def _to_dict(job: JobRecord) -> Dict[str, Any]:
    return {
        "id": job.id,
        "title": job.title,
        "department": job.department,
        "location": job.location,
        "type": job.type,
        "status": job.status,
        "skills": list(job.skills or []),
        "description": job.description,
        "applicants_count": job.applicants_count or 0,
        "matches_count": job.matches_count or 0,
    }


def new_job_id() -> str:
    return f"job_{uuid.uuid4().hex}"


class JobsRepository:
    def __init__(self, session_factory=None):
        self._factory = session_factory

    def find(self) -> List[Dict[str, Any]]:
        with session_scope(factory=self._factory) as s:
            rows = s.scalars(select(JobRecord).order_by(JobRecord.created_at, JobRecord.id))
            return [_to_dict(r) for r in rows]

    def find_one(self, job_id: str, session=None) -> Optional[Dict[str, Any]]:
        with session_scope(session, self._factory) as s:
            job = s.get(JobRecord, job_id)
            return _to_dict(job) if job else None

    def insert_one(self, job: Dict[str, Any], session=None) -> str:
        jid = job.get("id") or new_job_id()
        with session_scope(session, self._factory) as s:
            s.add(JobRecord(
                id=jid,
                title=job["title"],
                department=job.get("department") or "General",
                location=job.get("location") or "Remote",
                type=job.get("type") or "Full-time",
                status=job.get("status") or "Active",
                skills=list(job.get("skills") or []),
                description=job.get("description"),
                applicants_count=int(job.get("applicants_count") or 0),
                matches_count=int(job.get("matches_count") or 0),
            ))
            s.flush()
        return jid

    def update_one(self, job_id: str, fields: Dict[str, Any], session=None) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"cannot update job fields: {sorted(unknown)}")
        with session_scope(session, self._factory) as s:
            job = s.get(JobRecord, job_id)
            if not job:
                return False
            for key, value in fields.items():
                setattr(job, key, value)
            s.flush()
            return True
