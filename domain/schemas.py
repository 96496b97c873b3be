from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal

Level = Literal["Low", "Medium", "High"]


class JobContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    skills: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    location: Optional[str] = None


class DeepAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    executive_summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    skills_matched: List[str] = Field(default_factory=list)
    experience_relevance: str = ""
    experience_match_level: Optional[Level] = None
    role_similarity: Optional[Level] = None
    interview_questions: List[str] = Field(default_factory=list)
    cultural_fit: str = ""


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate_name: str = ""
    current_role: str = ""
    match_score: int = Field(..., ge=0, le=100)
    jd_match_score: int = Field(..., ge=0, le=100)
    qualification_match_score: int = Field(..., ge=0, le=100)
    resume_match_score: int = Field(..., ge=0, le=100)
    candidate_record_score: Optional[int] = Field(default=None, ge=0, le=100)
    jd_match_reason: str = ""
    qualification_match_reason: str = ""
    resume_match_reason: str = ""
    candidate_record_reason: str = ""
    analysis: str = ""
    skills_found: List[str] = Field(default_factory=list)
    experience_years: float = 0.0
    deep_analysis: DeepAnalysis = Field(default_factory=DeepAnalysis)


class ExtractedJobDetails(BaseModel):
    title: str
    department: str = "General"
    location: str = "Remote"
    type: str = "Full-time"
    skills: List[str] = Field(default_factory=list)


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1)
    department: str = "General"
    location: str = "Remote"
    type: str = "Full-time"
    skills: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class JobResponse(JobCreate):
    id: str
    status: str = "Active"
    applicants_count: int = 0
    matches_count: int = 0


class AnalyzeRequest(BaseModel):
    job_id: str = Field(..., min_length=1)


class UploadItemView(BaseModel):
    id: str
    name: str
    size: str
    status: str
    progress: int
    error: Optional[str] = None
    candidate_id: Optional[str] = None
    result: Optional[AnalysisResult] = None


class BatchReport(BaseModel):
    job_id: str
    completed: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    cancelled: bool = False
    last_error: Optional[str] = None

    @property
    def succeeded_count(self) -> int:
        return len(self.completed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class BatchStatusResponse(BaseModel):
    id: str
    running: bool
    items: List[UploadItemView]
    last_error: Optional[str] = None
    batch_error: Optional[str] = None
    report: Optional[BatchReport] = None
