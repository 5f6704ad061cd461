import asyncio
from typing import Any, Callable

from autoapply.agents.state import StageOutcome, WorkflowState
from autoapply.core.enums import LogLevel, WorkflowStatus
from autoapply.core.errors import BackendError, UnsupportedFileType
from autoapply.core.logging import get_logger
from autoapply.core.models import CandidateProfile, JobPreferences
from autoapply.services.llm import LLMGateway
from autoapply.services.resume_text import ExtractedResume, ResumeFile, extract_resume_text

logger = get_logger(__name__)

NO_RESUME_ERROR = "No resume file provided"
SYSTEM_PROMPT = (
    "You are an expert resume analyzer. Extract and enhance professional information from resumes. "
    "Always respond with valid JSON."
)


def _build_enhancement_prompt(extracted: ExtractedResume) -> str:
    return (
        "Analyze this parsed resume data and enhance it with better categorization and insights.\n\n"
        f"Raw Resume Text:\n{extracted.text}\n\n"
        f"Extracted Skills: {', '.join(extracted.skills)}\n\n"
        "Please provide:\n"
        "1. A professional title/summary (2-3 sentences)\n"
        "2. Enhanced skills list (top 8-10 most relevant)\n"
        "3. Years of experience estimate\n"
        "4. Key achievements or highlights\n\n"
        "Return as JSON with: title, skills (array), experience, summary, achievements (array)"
    )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


class ResumeStage:
    def __init__(
        self,
        gateway: LLMGateway,
        *,
        default_min_salary: float = 50000,
        extractor: Callable[[ResumeFile], ExtractedResume] = extract_resume_text,
    ) -> None:
        self.gateway = gateway
        self.default_min_salary = default_min_salary
        self.extractor = extractor
        self._enhance = self._enhance_with_backend if gateway.available else None

    def _basic_profile(self, extracted: ExtractedResume) -> CandidateProfile:
        return CandidateProfile(
            name="Candidate",
            title="Professional",
            experience="0-2 years",
            skills=extracted.skills,
            resume_text=extracted.text,
            preferences=JobPreferences(remote_only=False, min_salary=self.default_min_salary),
        )

    async def _enhance_with_backend(
        self,
        basic: CandidateProfile,
        extracted: ExtractedResume,
        outcome: StageOutcome,
    ) -> CandidateProfile:
        try:
            data = await self.gateway.invoke_json(SYSTEM_PROMPT, _build_enhancement_prompt(extracted))
            if not isinstance(data, dict):
                raise BackendError("Expected a JSON object from resume enhancement")
        except BackendError as exc:
            logger.warning("Resume enhancement failed, using extracted data: %s", exc)
            outcome.log(f"Resume enhancement unavailable, using extracted data: {exc}", LogLevel.WARNING)
            return basic

        skills = _string_list(data.get("skills"))[:10]
        return basic.model_copy(
            update={
                "title": str(data.get("title") or basic.title).strip(),
                "experience": str(data.get("experience") or basic.experience).strip(),
                "skills": CandidateProfile(skills=skills or basic.skills).skills,
                "summary": str(data.get("summary") or "").strip(),
                "achievements": _string_list(data.get("achievements")),
            }
        )

    async def run(self, resume_file: ResumeFile | None) -> StageOutcome[CandidateProfile | None]:
        outcome: StageOutcome[CandidateProfile | None] = StageOutcome(value=None)
        if resume_file is None:
            outcome.fail(NO_RESUME_ERROR)
            return outcome

        try:
            extracted = await asyncio.to_thread(self.extractor, resume_file)
        except (UnsupportedFileType, ValueError) as exc:
            outcome.fail(f"Resume parsing failed: {exc}")
            return outcome

        profile = self._basic_profile(extracted)
        if self._enhance is not None:
            profile = await self._enhance(profile, extracted, outcome)

        outcome.value = profile
        outcome.log(f"Parsed resume: {profile.title} with {len(profile.skills)} skills", LogLevel.SUCCESS)
        return outcome


def make_node(stage: ResumeStage) -> Callable[[WorkflowState], Any]:
    async def resume_parser_node(state: WorkflowState) -> dict:
        started = StageOutcome(value=None)
        started.log("Starting resume parsing")
        outcome = await stage.run(state.get("resume_file"))
        started.absorb(outcome)

        update = started.as_update()
        update["status"] = WorkflowStatus.PROCESSING
        if outcome.value is not None:
            update["profile"] = outcome.value
        return update

    return resume_parser_node
