import asyncio

from autoapply.agents.nodes.fit_analyzer import DEMO_REASON, FitAnalysisStage, parse_fit_analysis
from autoapply.core.enums import LogLevel
from autoapply.core.models import CandidateProfile, JobPosting
from autoapply.services.llm import LLMGateway, LLMProvider


class _StaticProvider(LLMProvider):
    def __init__(self, text: str) -> None:
        self.text = text
        self.prompts: list[str] = []

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts.append(user_prompt)
        return self.text


def _profile() -> CandidateProfile:
    return CandidateProfile(
        name="Alex Carter",
        title="Backend Engineer",
        experience="3-5 years",
        skills=["Python", "FastAPI", "PostgreSQL", "Redis"],
    )


def _job() -> JobPosting:
    return JobPosting(
        id="job-1",
        title="Senior Backend Engineer",
        company="Acme Analytics",
        tags=["python", "Kubernetes", "AWS"],
    )


def test_demo_analysis_is_fixed_and_uses_profile_strengths():
    outcome = asyncio.run(FitAnalysisStage(LLMGateway.unconfigured()).run(_profile(), _job()))

    analysis = outcome.value
    assert outcome.errors == []
    assert analysis.score == 75
    assert analysis.is_match is True
    assert analysis.reason == DEMO_REASON
    assert analysis.skill_gap.strong == ["Python", "FastAPI", "PostgreSQL"]
    assert analysis.skill_gap.missing == ["Kubernetes", "AWS"]
    assert analysis.skill_gap.recommended == ["Kubernetes", "AWS"]


def test_demo_analysis_recommends_defaults_when_nothing_is_missing():
    job = JobPosting(id="job-2", title="Engineer", company="Acme", tags=["Python"])

    outcome = asyncio.run(FitAnalysisStage(LLMGateway.unconfigured()).run(_profile(), job))

    assert outcome.value.skill_gap.missing == []
    assert outcome.value.skill_gap.recommended == ["System Design", "Cloud Architecture"]


def test_backend_analysis_is_trusted_and_prompt_carries_rubric():
    provider = _StaticProvider(
        '{"score": 88, "reason": "Strong backend overlap", "isMatch": true, '
        '"skillGap": {"missing": ["Kubernetes"], "strong": ["Python"], '
        '"recommended": ["AWS"], "analysis": "Solid fit"}}'
    )

    outcome = asyncio.run(FitAnalysisStage(LLMGateway(provider)).run(_profile(), _job()))

    analysis = outcome.value
    assert analysis.score == 88
    assert analysis.reason == "Strong backend overlap"
    assert analysis.is_match is True
    assert analysis.skill_gap.missing == ["Kubernetes"]
    assert analysis.skill_gap.analysis == "Solid fit"
    assert "Skills alignment (40%)" in provider.prompts[0]
    assert "Industry/company fit (10%)" in provider.prompts[0]


def test_disagreement_between_flag_and_score_is_logged_not_raised():
    provider = _StaticProvider('{"score": 40, "reason": "Weak", "isMatch": true}')

    outcome = asyncio.run(FitAnalysisStage(LLMGateway(provider)).run(_profile(), _job()))

    assert outcome.errors == []
    assert outcome.value.is_match is True
    assert outcome.value.disagrees_with(70) is True
    assert outcome.logs[-1].level == LogLevel.WARNING


def test_disagreement_uses_the_configured_threshold():
    provider = _StaticProvider('{"score": 75, "reason": "Decent", "isMatch": true}')

    default_stage = FitAnalysisStage(LLMGateway(provider))
    strict_stage = FitAnalysisStage(LLMGateway(provider), threshold=80)

    assert all(entry.level != LogLevel.WARNING for entry in asyncio.run(default_stage.run(_profile(), _job())).logs)
    strict = asyncio.run(strict_stage.run(_profile(), _job()))
    assert strict.logs[-1].level == LogLevel.WARNING
    assert "disagrees with score 75" in strict.logs[-1].message


def test_missing_fields_default_without_raising():
    analysis = parse_fit_analysis({})

    assert analysis.score == 0
    assert analysis.reason == "Analysis failed"
    assert analysis.is_match is False
    assert analysis.skill_gap.missing == []
    assert analysis.skill_gap.analysis == "Skill gap analysis not available"


def test_out_of_range_score_is_clamped():
    assert parse_fit_analysis({"score": 140}).score == 100
    assert parse_fit_analysis({"score": "n/a"}).score == 0


def test_malformed_response_becomes_prefixed_error_with_safe_default():
    outcome = asyncio.run(FitAnalysisStage(LLMGateway(_StaticProvider("{oops"))).run(_profile(), _job()))

    assert len(outcome.errors) == 1
    assert outcome.errors[0].startswith("Job analysis failed: ")
    assert outcome.value.score == 0
    assert outcome.value.is_match is False
