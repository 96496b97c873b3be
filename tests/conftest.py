import os
# Point the app at a throwaway database and disable real providers before any app imports.
os.environ["DATABASE_URL"] = "sqlite:///./test_scoring.db"
os.environ["STORAGE_DIR"] = "./test_storage"
os.environ["ANALYSIS_DELAY_SECONDS"] = "0"
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""

from typing import Any, Dict, List, Optional

import pytest

from infra.db.session import Base, engine
from infra.db import models  # noqa: F401  (registers tables)
from infra.repositories.candidates_repository import CandidatesRepository
from infra.repositories.jobs_repository import JobsRepository
from domain.services.analysis_gateway import AnalysisGateway
from domain.services.intake import SourceDocument
from domain.services.job_context import JobContextResolver
from domain.services.persistence import ResultPersister
from domain.services.scoring_pipeline import ScoringScheduler


def analysis_payload(score: int = 85, name: str = "Ada Lovelace", **overrides) -> Dict[str, Any]:
    payload = {
        "candidateName": name,
        "currentRole": "Backend Engineer",
        "matchScore": score,
        "analysis": "Solid backend profile.",
        "skillsFound": ["Go", "SQL"],
        "experienceYears": 6,
        "jdMatchScore": score,
        "qualificationMatchScore": 70,
        "resumeMatchScore": 75,
        "jdMatchReason": "Strong Go and SQL overlap.",
        "qualificationMatchReason": "Relevant degree.",
        "resumeMatchReason": "Clear structure.",
        "deepAnalysis": {
            "executiveSummary": "Good fit.",
            "strengths": ["Go", "SQL", "Ownership"],
            "weaknesses": ["No Kubernetes"],
            "missingSkills": ["Kubernetes"],
            "skillsMatched": ["Go", "SQL"],
            "experienceRelevance": "Built payment services.",
            "experienceMatchLevel": "High",
            "roleSimilarity": "Medium",
            "interviewQuestions": ["Describe a migration you led."],
            "culturalFit": "Collaborative.",
        },
    }
    payload.update(overrides)
    return payload


class FakeAnalyzer:
    """Stands in for the analysis capability; replays queued responses in call order."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[str] = []
        self.contexts = []

    async def __call__(self, document, job_context):
        self.calls.append(document.name)
        self.contexts.append(job_context)
        response = self.responses.pop(0) if self.responses else analysis_payload()
        if isinstance(response, Exception):
            raise response
        return response


class FakeExtractor:
    def __init__(self, response: Any = None):
        self.response = response if response is not None else {
            "title": "Data Engineer",
            "department": "Platform",
            "location": "Berlin",
            "type": "Contract",
            "skills": ["Python", "Spark"],
        }
        self.calls = 0

    async def __call__(self, document):
        self.calls += 1
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def jobs_repo(db):
    return JobsRepository()


@pytest.fixture
def candidates_repo(db):
    return CandidatesRepository()


@pytest.fixture
def stored_job(jobs_repo):
    job_id = jobs_repo.insert_one({
        "title": "Backend Engineer",
        "department": "Engineering",
        "location": "Lisbon",
        "skills": ["Go", "SQL"],
        "description": "Build and run payment services.",
    })
    return jobs_repo.find_one(job_id)


@pytest.fixture
def make_resume(tmp_path):
    def _make(name: str = "resume.pdf", size: int = 1024, content_type: str = "application/pdf") -> SourceDocument:
        path = tmp_path / name
        path.write_bytes(b"%PDF-1.4 " + b"x" * max(0, size - 9))
        return SourceDocument.from_path(path, content_type=content_type)
    return _make


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def build_scheduler(db, sleep):
    def _build(analyzer: Optional[FakeAnalyzer] = None,
               extractor: Optional[FakeExtractor] = None,
               delay_seconds: float = 3.0,
               persister: Optional[ResultPersister] = None) -> ScoringScheduler:
        return ScoringScheduler(
            resolver=JobContextResolver(extract=extractor or FakeExtractor()),
            gateway=AnalysisGateway(analyze=analyzer or FakeAnalyzer()),
            persister=persister or ResultPersister(),
            delay_seconds=delay_seconds,
            sleep=sleep,
        )
    return _build
