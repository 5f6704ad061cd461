from typing import Any

from autoapply.agents.state import StageOutcome
from autoapply.core.enums import LogLevel
from autoapply.core.errors import BackendError
from autoapply.core.logging import get_logger
from autoapply.core.models import ProfileSummary
from autoapply.services.llm import LLMGateway

logger = get_logger(__name__)

PROMPT_TEXT_LIMIT = 3000
FALLBACK_SUMMARY_LENGTH = 200
TOP_SKILL_COUNT = 5
DEMO_SUMMARY = "Demo Summary extracted from resume..."
DEMO_SKILLS = ["Demo Skill 1", "Demo Skill 2"]
SYSTEM_PROMPT = "You are a resume optimization expert. Always respond with valid JSON."


def _build_optimization_prompt(raw_text: str) -> str:
    return (
        "Analyze the following resume text.\n"
        "1. Create a professional 2-sentence summary.\n"
        f"2. Extract the top {TOP_SKILL_COUNT} hard skills.\n\n"
        f"Resume Text:\n{raw_text[:PROMPT_TEXT_LIMIT]}\n\n"
        'Return as JSON with "summary" and "skills" fields.'
    )


def _skills(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


class ProfileOptimizationStage:
    """Condenses free-form resume text into a short summary and a top-skill list."""

    def __init__(self, gateway: LLMGateway) -> None:
        self.gateway = gateway
        self._optimize = self._optimize_with_backend if gateway.available else self._demo_summary

    async def _demo_summary(self, raw_text: str) -> ProfileSummary:
        return ProfileSummary(summary=DEMO_SUMMARY, skills=DEMO_SKILLS)

    async def _optimize_with_backend(self, raw_text: str) -> ProfileSummary:
        data = await self.gateway.invoke_json(SYSTEM_PROMPT, _build_optimization_prompt(raw_text))
        if not isinstance(data, dict):
            raise BackendError("Expected a JSON object from profile optimization")
        return ProfileSummary(
            summary=str(data.get("summary") or "").strip(),
            skills=_skills(data.get("skills")),
        )

    async def run(self, raw_text: str) -> StageOutcome[ProfileSummary]:
        outcome = StageOutcome(value=ProfileSummary())
        try:
            summary = await self._optimize(raw_text)
        except BackendError as exc:
            logger.warning("Profile optimization failed, using raw text: %s", exc)
            outcome.log(f"Profile optimization unavailable, using raw text: {exc}", LogLevel.WARNING)
            summary = ProfileSummary(summary=raw_text[:FALLBACK_SUMMARY_LENGTH])

        outcome.value = summary.model_copy(update={"skills": summary.skills[:TOP_SKILL_COUNT]})
        return outcome
