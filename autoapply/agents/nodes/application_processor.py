from typing import Any, Callable

from autoapply.agents.nodes.cover_letter import CoverLetterStage
from autoapply.agents.nodes.fit_analyzer import FitAnalysisStage
from autoapply.agents.state import StageOutcome, WorkflowState
from autoapply.core.enums import LogLevel, WorkflowStatus
from autoapply.core.models import ApplicationRecord, CandidateProfile, JobPosting


async def process_application(
    record: ApplicationRecord,
    profile: CandidateProfile,
    job: JobPosting,
    *,
    fit_analysis: FitAnalysisStage,
    cover_letter: CoverLetterStage,
) -> StageOutcome[ApplicationRecord]:
    """Score one queued application and attach its cover letter."""
    outcome = StageOutcome(value=record)
    outcome.log(f"Processing application for {job.title} at {job.company}")

    updates: dict[str, Any] = {}
    # Records screened before queuing already carry their analysis.
    if record.skill_gap is None:
        fit = await fit_analysis.run(profile, job)
        outcome.absorb(fit)
        updates.update(
            {
                "match_score": fit.value.score,
                "match_reason": fit.value.reason,
                "skill_gap": fit.value.skill_gap,
            }
        )

    letter = await cover_letter.run(profile, job)
    outcome.absorb(letter)
    updates["cover_letter"] = letter.value

    outcome.value = record.model_copy(update=updates)
    outcome.log(f"Completed processing for {job.title}", LogLevel.SUCCESS)
    return outcome


def make_node(
    fit_analysis: FitAnalysisStage,
    cover_letter: CoverLetterStage,
) -> Callable[[WorkflowState], Any]:
    async def application_processor_node(state: WorkflowState) -> dict:
        applications = list(state.get("applications") or [])
        cursor = state.get("cursor", 0)
        update: dict[str, Any] = {"cursor": cursor + 1, "status": WorkflowStatus.PROCESSING}

        record = applications[cursor]
        jobs_by_id = {job.id: job for job in state.get("jobs") or []}
        job = jobs_by_id.get(record.job_id)
        if job is None:
            return update

        outcome = await process_application(
            record,
            state["profile"],
            job,
            fit_analysis=fit_analysis,
            cover_letter=cover_letter,
        )
        applications[cursor] = outcome.value
        update.update(outcome.as_update())
        update["applications"] = applications
        return update

    return application_processor_node
