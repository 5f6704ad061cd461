import time
from dataclasses import dataclass, field
from typing import Any, Callable

from autoapply.agents.nodes.fit_analyzer import FitAnalysisStage
from autoapply.agents.nodes.job_ranker import JobRankingStage
from autoapply.agents.state import StageOutcome, WorkflowState
from autoapply.core.enums import ApplicationGating, ApplicationStatus, LogLevel, WorkflowStatus
from autoapply.core.errors import BackendError
from autoapply.core.logging import get_logger
from autoapply.core.models import ApplicationRecord, CandidateProfile, FitAnalysis, JobPosting
from autoapply.services.llm import LLMGateway

logger = get_logger(__name__)

MISSING_INPUT_MESSAGE = "Profile and jobs required for orchestration"
SYSTEM_PROMPT = (
    "You are a strategic career advisor helping candidates decide which jobs to apply to. "
    "Always respond with valid JSON."
)


@dataclass(frozen=True)
class Decision:
    should_apply: bool
    reasoning: str
    error: str | None = None


@dataclass
class QueueResult:
    jobs: list[JobPosting] = field(default_factory=list)
    applications: list[ApplicationRecord] = field(default_factory=list)
    current_job_index: int = 0
    status: WorkflowStatus = WorkflowStatus.PROCESSING


def _build_decision_prompt(profile: CandidateProfile, job: JobPosting, match_score: float) -> str:
    return (
        "Decide whether this candidate should apply to this job.\n\n"
        f"CANDIDATE: {profile.name} ({profile.title}, {profile.experience} experience)\n"
        f"SKILLS: {', '.join(profile.skills)}\n\n"
        f"JOB: {job.title} at {job.company}\n"
        f"MATCH SCORE: {match_score:g}/100\n\n"
        "FACTORS TO CONSIDER:\n"
        "- Match score threshold (recommend applying if >70)\n"
        "- Skills alignment\n"
        "- Experience level appropriateness\n"
        "- Company and role appeal\n"
        "- Application volume strategy\n\n"
        'Return JSON: {"shouldApply": boolean, "reasoning": string}'
    )


def make_application_id(job_id: str, sequence: int) -> str:
    return f"{job_id}_{time.time_ns() // 1_000_000}_{sequence}"


class ApplicationDecisionStage:
    """Walks ranked jobs and queues application records up to a cap.

    With ``ApplicationGating.BEFORE_CAP`` every candidate job is scored and
    passed through :meth:`should_apply` first, so the cap bounds accepted
    applications. With ``ApplicationGating.NONE`` jobs are queued in ranked
    order until the cap is reached.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        ranking: JobRankingStage,
        *,
        fit_analysis: FitAnalysisStage | None = None,
        gating: ApplicationGating = ApplicationGating.NONE,
        threshold: float = 70,
        default_max_applications: int = 5,
    ) -> None:
        if gating is ApplicationGating.BEFORE_CAP and fit_analysis is None:
            raise ValueError("Gated application decisions need a fit analysis stage")
        self.gateway = gateway
        self.ranking = ranking
        self.fit_analysis = fit_analysis
        self.gating = gating
        self.threshold = threshold
        self.default_max_applications = default_max_applications
        self._decide = self._decide_with_backend if gateway.available else self._decide_by_threshold

    async def _decide_by_threshold(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        match_score: float,
    ) -> Decision:
        accepted = match_score > self.threshold
        verdict = "above" if accepted else "at or below"
        return Decision(accepted, f"Match score {match_score:g} is {verdict} {self.threshold:g}")

    async def _decide_with_backend(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        match_score: float,
    ) -> Decision:
        try:
            data = await self.gateway.invoke_json(
                SYSTEM_PROMPT,
                _build_decision_prompt(profile, job, match_score),
            )
            if not isinstance(data, dict) or not isinstance(data.get("shouldApply"), bool):
                raise BackendError("Expected a boolean shouldApply field")
        except BackendError as exc:
            fallback = await self._decide_by_threshold(profile, job, match_score)
            return Decision(fallback.should_apply, fallback.reasoning, error=str(exc))
        return Decision(data["shouldApply"], str(data.get("reasoning") or ""))

    async def should_apply(self, profile: CandidateProfile, job: JobPosting, match_score: float) -> Decision:
        return await self._decide(profile, job, match_score)

    async def _screen(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        outcome: StageOutcome,
    ) -> FitAnalysis | None:
        fit = await self.fit_analysis.run(profile, job)
        outcome.absorb(fit)
        decision = await self.should_apply(profile, job, fit.value.score)
        if decision.error:
            outcome.fail(f"Application decision failed: {decision.error}")
        if not decision.should_apply:
            outcome.log(f"Skipped {job.title} at {job.company} (score {fit.value.score:g})")
            return None
        return fit.value

    async def run(
        self,
        profile: CandidateProfile | None,
        jobs: list[JobPosting] | None,
        max_applications: int | None = None,
    ) -> StageOutcome[QueueResult]:
        outcome = StageOutcome(value=QueueResult(jobs=list(jobs or [])))
        if profile is None or not jobs:
            outcome.value.status = WorkflowStatus.ERROR
            outcome.log(MISSING_INPUT_MESSAGE, LogLevel.ERROR)
            return outcome

        limit = self.default_max_applications if max_applications is None else max(0, max_applications)
        outcome.log(f"Starting application orchestration for {len(jobs)} jobs")
        ranked = await self.ranking.rank(profile, jobs)
        outcome.value.jobs = ranked
        outcome.log("Jobs prioritized by match quality and opportunity")

        applications: list[ApplicationRecord] = []
        examined = 0
        for job in ranked:
            if len(applications) >= limit:
                break
            examined += 1

            analysis = None
            if self.gating is ApplicationGating.BEFORE_CAP:
                analysis = await self._screen(profile, job, outcome)
                if analysis is None:
                    continue

            record = ApplicationRecord(
                id=make_application_id(job.id, len(applications)),
                job_id=job.id,
                job_title=job.title,
                company=job.company,
                status=ApplicationStatus.PENDING,
            )
            if analysis is not None:
                record = record.model_copy(
                    update={
                        "match_score": analysis.score,
                        "match_reason": analysis.reason,
                        "skill_gap": analysis.skill_gap,
                    }
                )
            applications.append(record)
            outcome.log(f"Queued application for {job.title} at {job.company}")

        outcome.value.applications = applications
        outcome.value.current_job_index = examined
        outcome.value.status = WorkflowStatus.COMPLETED
        outcome.log(f"Orchestration completed. {len(applications)} applications queued.")
        logger.info(
            "Queued %s applications from %s ranked jobs",
            len(applications),
            len(ranked),
            extra={"gating": self.gating.value, "limit": limit},
        )
        return outcome


def make_node(stage: ApplicationDecisionStage) -> Callable[[WorkflowState], Any]:
    async def application_decision_node(state: WorkflowState) -> dict:
        started = StageOutcome(value=None)
        started.log("Starting application orchestration")
        outcome = await stage.run(
            state.get("profile"),
            state.get("jobs"),
            state.get("max_applications"),
        )
        started.absorb(outcome)

        update = started.as_update()
        update.update(
            {
                "jobs": outcome.value.jobs,
                "applications": outcome.value.applications,
                "current_job_index": outcome.value.current_job_index,
                "status": outcome.value.status,
                "cursor": 0,
            }
        )
        return update

    return application_decision_node
