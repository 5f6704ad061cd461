from typing import Any

from autoapply.core.errors import BackendError
from autoapply.core.logging import get_logger
from autoapply.core.models import CandidateProfile, JobPosting
from autoapply.services.llm import LLMGateway

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a career strategist specializing in job prioritization for tech professionals. "
    "Always respond with valid JSON."
)


def _job_summary(index: int, job: JobPosting) -> str:
    return (
        f"Job {index}:\n"
        f"- Title: {job.title}\n"
        f"- Company: {job.company}\n"
        f"- Location: {job.location}\n"
        f"- Salary: {job.salary}\n"
        f"- Tags: {', '.join(job.tags)}\n"
        f"- Description: {job.description[:200]}..."
    )


def _build_prioritization_prompt(profile: CandidateProfile, jobs: list[JobPosting]) -> str:
    prefs = profile.preferences
    job_lines = "\n\n".join(_job_summary(index, job) for index, job in enumerate(jobs))
    return (
        "As a career strategist, prioritize these job opportunities for this candidate.\n\n"
        "CANDIDATE PROFILE:\n"
        f"- Title: {profile.title}\n"
        f"- Experience: {profile.experience}\n"
        f"- Skills: {', '.join(profile.skills)}\n"
        f"- Preferences: Remote only: {prefs.remote_only}, Min Salary: ${prefs.min_salary:,.0f}\n\n"
        f"JOB OPPORTUNITIES:\n{job_lines}\n\n"
        "PRIORITIZATION CRITERIA:\n"
        "1. Skills match quality\n"
        "2. Experience level alignment\n"
        "3. Salary competitiveness\n"
        "4. Company reputation/culture fit\n"
        "5. Location preferences\n"
        "6. Role progression potential\n\n"
        'Return JSON: {"priorities": [job indices in priority order, 0-based, each exactly once], '
        '"reasoning": "why the top 3 were chosen"}'
    )


def is_permutation(indices: Any, size: int) -> bool:
    if not isinstance(indices, list) or len(indices) != size:
        return False
    if any(isinstance(index, bool) or not isinstance(index, int) for index in indices):
        return False
    return sorted(indices) == list(range(size))


class JobRankingStage:
    def __init__(self, gateway: LLMGateway) -> None:
        self.gateway = gateway
        self._rank = self._rank_with_backend if gateway.available else self._keep_order

    async def _keep_order(self, profile: CandidateProfile, jobs: list[JobPosting]) -> list[JobPosting]:
        return list(jobs)

    async def _rank_with_backend(
        self,
        profile: CandidateProfile,
        jobs: list[JobPosting],
    ) -> list[JobPosting]:
        if len(jobs) < 2:
            return list(jobs)
        try:
            result = await self.gateway.invoke_json(
                SYSTEM_PROMPT,
                _build_prioritization_prompt(profile, jobs),
            )
        except BackendError as exc:
            logger.debug("Job prioritization failed, keeping input order: %s", exc)
            return list(jobs)

        indices = result.get("priorities") if isinstance(result, dict) else result
        if not is_permutation(indices, len(jobs)):
            logger.debug("Ignoring invalid job priority order: %r", indices)
            return list(jobs)
        return [jobs[index] for index in indices]

    async def rank(self, profile: CandidateProfile, jobs: list[JobPosting]) -> list[JobPosting]:
        """Return ``jobs`` in priority order; always a permutation of the input."""
        return await self._rank(profile, jobs)
