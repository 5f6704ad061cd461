from typing import Any

from autoapply.agents.state import StageOutcome
from autoapply.core.enums import LogLevel
from autoapply.core.errors import BackendError
from autoapply.core.logging import get_logger
from autoapply.core.models import (
    MATCH_THRESHOLD,
    CandidateProfile,
    FitAnalysis,
    JobPosting,
    SkillGapReport,
)
from autoapply.services.llm import LLMGateway

logger = get_logger(__name__)

DEMO_SCORE = 75
DEMO_REASON = "Demo Mode: API Key missing. Estimated good fit based on basic criteria."
DEMO_RECOMMENDED = ["System Design", "Cloud Architecture"]
SYSTEM_PROMPT = (
    "You are an expert technical recruiter specializing in software engineering and tech roles. "
    "Always respond with valid JSON."
)


def _build_analysis_prompt(profile: CandidateProfile, job: JobPosting) -> str:
    return (
        "Act as a senior technical recruiter with 10+ years of experience.\n\n"
        "Evaluate this candidate's fit for this specific job:\n\n"
        "CANDIDATE PROFILE:\n"
        f"- Name: {profile.name}\n"
        f"- Title: {profile.title}\n"
        f"- Experience: {profile.experience}\n"
        f"- Skills: {', '.join(profile.skills)}\n"
        f"- Resume Summary: {profile.resume_text[:1000]}...\n\n"
        "JOB REQUIREMENTS:\n"
        f"- Title: {job.title}\n"
        f"- Company: {job.company}\n"
        f"- Description: {job.description}\n"
        f"- Required Skills/Tags: {', '.join(job.tags)}\n\n"
        "ANALYSIS REQUIREMENTS:\n"
        "1. Calculate a match score (0-100) based on:\n"
        "   - Skills alignment (40%)\n"
        "   - Experience level match (30%)\n"
        "   - Role/title compatibility (20%)\n"
        "   - Industry/company fit (10%)\n"
        "2. Provide a detailed reason explaining the score\n"
        "3. Determine if this is a good match (score > 70)\n"
        "4. Analyze skill gaps: missing skills, strong matching skills, recommended skills to develop\n\n"
        'Return JSON: {"score": number, "reason": string, "isMatch": boolean, '
        '"skillGap": {"missing": [], "strong": [], "recommended": [], "analysis": string}}'
    )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:
        return 0.0
    return max(0.0, min(100.0, score))


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def demo_skill_gap(profile: CandidateProfile, job: JobPosting) -> SkillGapReport:
    owned = {skill.lower() for skill in profile.skills}
    missing = [tag for tag in job.tags if tag.lower() not in owned]
    return SkillGapReport(
        missing=missing,
        strong=profile.top_skills(3),
        recommended=missing[:3] or list(DEMO_RECOMMENDED),
        analysis="Basic skill gap analysis in demo mode",
    )


def parse_fit_analysis(data: Any) -> FitAnalysis:
    if not isinstance(data, dict):
        raise BackendError("Expected a JSON object from job analysis")

    raw_gap = data.get("skillGap", data.get("skill_gap"))
    if isinstance(raw_gap, dict):
        skill_gap = SkillGapReport(
            missing=_string_list(raw_gap.get("missing")),
            strong=_string_list(raw_gap.get("strong")),
            recommended=_string_list(raw_gap.get("recommended")),
            analysis=str(raw_gap.get("analysis") or "Skill gap analysis not available"),
        )
    else:
        skill_gap = SkillGapReport(analysis="Skill gap analysis not available")

    return FitAnalysis(
        score=_score(data.get("score")),
        reason=str(data.get("reason") or "Analysis failed"),
        is_match=_flag(data.get("isMatch", data.get("is_match", False))),
        skill_gap=skill_gap,
    )


class FitAnalysisStage:
    def __init__(self, gateway: LLMGateway, *, threshold: float = MATCH_THRESHOLD) -> None:
        self.gateway = gateway
        self.threshold = threshold
        self._analyze = self._analyze_with_backend if gateway.available else self._demo_analysis

    async def _demo_analysis(self, profile: CandidateProfile, job: JobPosting) -> FitAnalysis:
        return FitAnalysis(
            score=DEMO_SCORE,
            reason=DEMO_REASON,
            is_match=True,
            skill_gap=demo_skill_gap(profile, job),
        )

    async def _analyze_with_backend(self, profile: CandidateProfile, job: JobPosting) -> FitAnalysis:
        data = await self.gateway.invoke_json(SYSTEM_PROMPT, _build_analysis_prompt(profile, job))
        return parse_fit_analysis(data)

    async def run(self, profile: CandidateProfile, job: JobPosting) -> StageOutcome[FitAnalysis]:
        outcome: StageOutcome[FitAnalysis] = StageOutcome(value=FitAnalysis())
        try:
            outcome.value = await self._analyze(profile, job)
        except BackendError as exc:
            logger.warning("Job analysis failed for %s: %s", job.id, exc)
            outcome.fail(f"Job analysis failed: {exc}")
            return outcome

        if outcome.value.disagrees_with(self.threshold):
            outcome.log(
                f"Match flag ({outcome.value.is_match}) disagrees with score "
                f"{outcome.value.score:g} for {job.title} at {job.company}",
                LogLevel.WARNING,
            )
        return outcome
