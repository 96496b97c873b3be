from typing import Dict, Any, List
from sqlalchemy import select, func
from infra.db.session import session_scope
from infra.db.models import CandidateRecord

_COLUMNS = [c.name for c in CandidateRecord.__table__.columns if c.name != "created_at"]


def _to_dict(rec: CandidateRecord) -> Dict[str, Any]:
    return {name: getattr(rec, name) for name in _COLUMNS}


class CandidatesRepository:
    def __init__(self, session_factory=None):
        self._factory = session_factory

    def insert_one(self, candidate: Dict[str, Any], session=None) -> str:
        with session_scope(session, self._factory) as s:
            s.add(CandidateRecord(**{k: v for k, v in candidate.items() if k in _COLUMNS}))
            s.flush()
        return candidate["id"]

    def find(self) -> List[Dict[str, Any]]:
        with session_scope(factory=self._factory) as s:
            rows = s.scalars(select(CandidateRecord).order_by(CandidateRecord.created_at))
            return [_to_dict(r) for r in rows]

    def find_by_job(self, job_id: str) -> List[Dict[str, Any]]:
        with session_scope(factory=self._factory) as s:
            rows = s.scalars(
                select(CandidateRecord)
                .where(CandidateRecord.associated_job_id == job_id)
                .order_by(CandidateRecord.match_score.desc())
            )
            return [_to_dict(r) for r in rows]

    def count(self) -> int:
        with session_scope(factory=self._factory) as s:
            return s.scalar(select(func.count()).select_from(CandidateRecord)) or 0
