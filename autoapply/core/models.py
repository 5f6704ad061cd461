from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from autoapply.core.enums import ApplicationStatus, LogLevel

MATCH_THRESHOLD = 70


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dedupe(values: list[str]) -> list[str]:
    unique: list[str] = []
    seen = set()
    for value in values:
        cleaned = str(value).strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        unique.append(cleaned)
    return unique


class JobPreferences(BaseModel):
    remote_only: bool = False
    min_salary: float = 50000


class CandidateProfile(BaseModel):
    name: str = "Candidate"
    title: str = "Professional"
    experience: str = "0-2 years"
    skills: list[str] = Field(default_factory=list)
    resume_text: str = ""
    summary: str = ""
    achievements: list[str] = Field(default_factory=list)
    preferences: JobPreferences = Field(default_factory=JobPreferences)

    model_config = {"frozen": True}

    @field_validator("skills", mode="before")
    @classmethod
    def _unique_skills(cls, value: Any) -> list[str]:
        return _dedupe(list(value or []))

    def top_skills(self, count: int = 3) -> list[str]:
        return self.skills[:count]


class JobPosting(BaseModel):
    id: str
    title: str
    company: str
    location: str = ""
    salary: str = ""
    description: str = ""
    posted_at: str = ""
    tags: list[str] = Field(default_factory=list)
    logo: str = ""

    model_config = {"frozen": True}

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value: Any) -> list[str]:
        return _dedupe(list(value or []))


class SkillGapReport(BaseModel):
    missing: list[str] = Field(default_factory=list)
    strong: list[str] = Field(default_factory=list)
    recommended: list[str] = Field(default_factory=list)
    analysis: str = ""


class FitAnalysis(BaseModel):
    score: float = 0
    reason: str = "Analysis failed"
    is_match: bool = False
    skill_gap: SkillGapReport = Field(default_factory=SkillGapReport)

    def disagrees_with(self, threshold: float = MATCH_THRESHOLD) -> bool:
        """True when the reported match flag contradicts the score threshold."""
        return self.is_match != (self.score > threshold)


class ApplicationRecord(BaseModel):
    id: str
    job_id: str
    job_title: str
    company: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    match_score: float = 0
    match_reason: str | None = None
    cover_letter: str | None = None
    skill_gap: SkillGapReport | None = None
    created_at: datetime = Field(default_factory=utcnow)


class LogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=utcnow)
    message: str
    level: LogLevel = LogLevel.INFO

    model_config = {"frozen": True}


class ProfileSummary(BaseModel):
    summary: str = ""
    skills: list[str] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def _unique_skills(cls, value: Any) -> list[str]:
        return _dedupe(list(value or []))
