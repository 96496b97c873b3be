from sqlalchemy import Column, String, Integer, Float, Text, DateTime, JSON
from sqlalchemy.sql import func
from infra.db.session import Base

class JobRecord(Base):
    __tablename__ = "jobs"
    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    department = Column(String, nullable=False, default="General")
    location = Column(String, nullable=False, default="Remote")
    type = Column(String, nullable=False, default="Full-time")
    status = Column(String, nullable=False, default="Active")
    skills = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    applicants_count = Column(Integer, nullable=False, default=0)
    matches_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

class CandidateRecord(Base):
    __tablename__ = "candidates"
    id = Column(String, primary_key=True)
    # not a foreign key: ephemeral job contexts use a sentinel id
    associated_job_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    company = Column(String, nullable=False, default="Extracted Profile")
    location = Column(String, nullable=False, default="Remote")
    applied_date = Column(String, nullable=False)
    status = Column(String, nullable=False, default="New")
    match_score = Column(Integer, nullable=False)
    jd_match_score = Column(Integer, nullable=False)
    qualification_match_score = Column(Integer, nullable=False)
    resume_match_score = Column(Integer, nullable=False)
    candidate_record_score = Column(Integer, nullable=True)
    jd_match_reason = Column(Text, nullable=False)
    qualification_match_reason = Column(Text, nullable=False)
    resume_match_reason = Column(Text, nullable=False)
    candidate_record_reason = Column(Text, nullable=True)
    analysis = Column(Text, nullable=True)
    skills_found = Column(JSON, nullable=False, default=list)
    experience_years = Column(Float, nullable=True)
    deep_analysis = Column(JSON, nullable=True)
    source_file_name = Column(String, nullable=False)
    resume_base64 = Column(Text, nullable=False, default="")
    resume_mime_type = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
