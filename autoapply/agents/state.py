import operator
from dataclasses import dataclass, field
from typing import Annotated, Generic, TypedDict, TypeVar

from autoapply.core.enums import LogLevel, WorkflowStatus
from autoapply.core.models import ApplicationRecord, CandidateProfile, JobPosting, LogEntry
from autoapply.services.resume_text import ResumeFile

T = TypeVar("T")


class WorkflowState(TypedDict, total=False):
    run_id: str
    resume_file: ResumeFile | None
    max_applications: int

    profile: CandidateProfile | None
    jobs: list[JobPosting]
    applications: list[ApplicationRecord]

    current_job_index: int
    cursor: int
    status: WorkflowStatus

    # Append-only: nodes return new entries and the reducer concatenates.
    errors: Annotated[list[str], operator.add]
    logs: Annotated[list[LogEntry], operator.add]


@dataclass
class WorkflowInput:
    resume_file: ResumeFile | None = None
    jobs: list[JobPosting] = field(default_factory=list)
    max_applications: int | None = None
    profile: CandidateProfile | None = None


@dataclass
class StageOutcome(Generic[T]):
    """What a stage hands back to the orchestrator: a value plus new errors and logs."""

    value: T
    errors: list[str] = field(default_factory=list)
    logs: list[LogEntry] = field(default_factory=list)

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self.logs.append(LogEntry(message=message, level=level))

    def fail(self, message: str) -> None:
        self.errors.append(message)
        self.log(message, LogLevel.ERROR)

    def absorb(self, other: "StageOutcome") -> None:
        self.errors.extend(other.errors)
        self.logs.extend(other.logs)

    def as_update(self) -> dict:
        return {"errors": list(self.errors), "logs": list(self.logs)}
