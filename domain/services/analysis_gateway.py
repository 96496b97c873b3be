"""Capability boundary around the external resume-scoring call.

Provider output is never trusted: scores must be JSON numbers and are clamped
to [0, 100], list fields may be absent, and every failure leaves this module
as an :class:`AnalysisError`.
"""
import logging
import math
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from domain.errors import AnalysisError
from domain.schemas import AnalysisResult, DeepAnalysis, JobContext
from domain.services.intake import LoadedDocument
from infra.llm.client import ProviderNotConfigured, QuotaExceeded, analyze_resume_llm

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[[LoadedDocument, JobContext], Awaitable[Dict[str, Any]]]

_LEVELS = {"low": "Low", "medium": "Medium", "high": "High"}


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError("score must be a number")
    return max(0, min(100, int(round(value))))


def _ensure_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    raise ValueError("must be a string or list of strings")


def _ensure_str(value: Any) -> str:
    return "" if value is None else str(value)


Score = Annotated[int, BeforeValidator(_clamp_score)]
StrList = Annotated[List[str], BeforeValidator(_ensure_list)]
Text = Annotated[str, BeforeValidator(_ensure_str)]


class DeepAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    executiveSummary: Text = ""
    strengths: StrList = Field(default_factory=list)
    weaknesses: StrList = Field(default_factory=list)
    missingSkills: StrList = Field(default_factory=list)
    skillsMatched: StrList = Field(default_factory=list)
    experienceRelevance: Text = ""
    experienceMatchLevel: Optional[str] = None
    roleSimilarity: Optional[str] = None
    interviewQuestions: StrList = Field(default_factory=list)
    culturalFit: Text = ""

    @field_validator("experienceMatchLevel", "roleSimilarity", mode="before")
    @classmethod
    def _level(cls, value):
        if not isinstance(value, str):
            return None
        return _LEVELS.get(value.strip().lower())


class ResumeAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    candidateName: Text = ""
    currentRole: Text = ""
    matchScore: Score
    jdMatchScore: Score
    qualificationMatchScore: Score
    resumeMatchScore: Score
    candidateRecordScore: Optional[int] = None
    jdMatchReason: Text = ""
    qualificationMatchReason: Text = ""
    resumeMatchReason: Text = ""
    candidateRecordReason: Text = ""
    analysis: Text = ""
    skillsFound: StrList = Field(default_factory=list)
    experienceYears: float = 0.0
    deepAnalysis: DeepAnalysisPayload = Field(default_factory=DeepAnalysisPayload)

    @field_validator("candidateRecordScore", mode="before")
    @classmethod
    def _optional_score(cls, value):
        return None if value is None else _clamp_score(value)

    @field_validator("experienceYears", mode="before")
    @classmethod
    def _years(cls, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return 0.0
        return max(0.0, float(value))

    @field_validator("deepAnalysis", mode="before")
    @classmethod
    def _deep(cls, value):
        return value if isinstance(value, dict) else {}

    def to_result(self) -> AnalysisResult:
        deep = self.deepAnalysis
        return AnalysisResult(
            candidate_name=self.candidateName.strip(),
            current_role=self.currentRole.strip(),
            match_score=self.matchScore,
            jd_match_score=self.jdMatchScore,
            qualification_match_score=self.qualificationMatchScore,
            resume_match_score=self.resumeMatchScore,
            candidate_record_score=self.candidateRecordScore,
            jd_match_reason=self.jdMatchReason,
            qualification_match_reason=self.qualificationMatchReason,
            resume_match_reason=self.resumeMatchReason,
            candidate_record_reason=self.candidateRecordReason,
            analysis=self.analysis,
            skills_found=self.skillsFound,
            experience_years=self.experienceYears,
            deep_analysis=DeepAnalysis(
                executive_summary=deep.executiveSummary,
                strengths=deep.strengths,
                weaknesses=deep.weaknesses,
                missing_skills=deep.missingSkills,
                skills_matched=deep.skillsMatched,
                experience_relevance=deep.experienceRelevance,
                experience_match_level=deep.experienceMatchLevel,
                role_similarity=deep.roleSimilarity,
                interview_questions=deep.interviewQuestions,
                cultural_fit=deep.culturalFit,
            ),
        )


def validate_analysis(raw: Dict[str, Any]) -> AnalysisResult:
    try:
        return ResumeAnalysisPayload.model_validate(raw).to_result()
    except SchemaError as exc:
        raise AnalysisError(f"analysis response failed validation: {exc}") from exc


class AnalysisGateway:
    def __init__(self, analyze: AnalyzeFn = analyze_resume_llm):
        self._analyze = analyze

    async def analyze(self, document: LoadedDocument, job_context: JobContext) -> AnalysisResult:
        try:
            raw = await self._analyze(document, job_context)
        except QuotaExceeded as exc:
            raise AnalysisError(f"quota exceeded: {exc}") from exc
        except ProviderNotConfigured as exc:
            raise AnalysisError(str(exc)) from exc
        except httpx.HTTPStatusError as exc:
            raise AnalysisError(f"provider returned HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise AnalysisError(f"network failure: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AnalysisError(f"malformed provider response: {exc}") from exc

        if not isinstance(raw, dict):
            raise AnalysisError("malformed provider response: expected a JSON object")
        result = validate_analysis(raw)
        logger.info("Analysis for %s: score=%d", document.name, result.match_score)
        return result
