from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from autoapply.core.enums import ApplicationStatus, WorkflowStatus
from autoapply.core.models import (
    ApplicationRecord,
    CandidateProfile,
    FitAnalysis,
    JobPosting,
    LogEntry,
    SkillGapReport,
)


class JobFitRequest(BaseModel):
    profile: CandidateProfile | None = None
    job: JobPosting


class JobFitResponse(BaseModel):
    analysis: FitAnalysis
    errors: list[str] = Field(default_factory=list)


class CoverLetterResponse(BaseModel):
    cover_letter: str | None = None
    errors: list[str] = Field(default_factory=list)


class OptimizeProfileRequest(BaseModel):
    raw_text: str = ""


class ParseResumeResponse(BaseModel):
    profile: CandidateProfile
    logs: list[LogEntry] = Field(default_factory=list)


class ApplicationCreateRequest(BaseModel):
    id: str | None = None
    job_id: str
    job_title: str
    company: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    match_score: float = Field(default=0, ge=0, le=100)
    match_reason: str | None = None
    cover_letter: str | None = None
    skill_gap: SkillGapReport | None = None
    created_at: datetime | None = None


class ApplicationUpdateRequest(BaseModel):
    status: ApplicationStatus | None = None
    match_score: float | None = Field(default=None, ge=0, le=100)
    match_reason: str | None = None
    cover_letter: str | None = None


class SettingsResponse(BaseModel):
    demo_mode: bool
    api_key_configured: bool
    llm_provider: str
    llm_model: str
    llm_base_url: str
    max_applications: int
    application_gating: str


class WorkflowRunResponse(BaseModel):
    run_id: str
    status: WorkflowStatus
    profile: CandidateProfile | None = None
    jobs: list[JobPosting] = Field(default_factory=list)
    applications: list[ApplicationRecord] = Field(default_factory=list)
    current_job_index: int = 0
    errors: list[str] = Field(default_factory=list)
    logs: list[LogEntry] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: dict[str, Any]) -> "WorkflowRunResponse":
        return cls(
            run_id=state.get("run_id", ""),
            status=state.get("status", WorkflowStatus.ERROR),
            profile=state.get("profile"),
            jobs=state.get("jobs") or [],
            applications=state.get("applications") or [],
            current_job_index=state.get("current_job_index", 0),
            errors=state.get("errors") or [],
            logs=state.get("logs") or [],
        )
