from autoapply.agents.state import StageOutcome
from autoapply.core.errors import BackendError
from autoapply.core.logging import get_logger
from autoapply.core.models import CandidateProfile, JobPosting
from autoapply.services.llm import LLMGateway

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a professional career counselor specializing in crafting compelling cover letters "
    "for tech professionals."
)


def demo_cover_letter(profile: CandidateProfile, job: JobPosting) -> str:
    skills = ", ".join(profile.top_skills(3)) or "my core skills"
    focus = job.tags[0] if job.tags else "technology"
    return (
        "Dear Hiring Manager,\n\n"
        f"I am writing to express my interest in the {job.title} position at {job.company}. "
        f"With my background in {skills}, I am excited about the opportunity to contribute to your team.\n\n"
        f"My experience as a {profile.title} has equipped me with the skills needed to excel in this role. "
        f"I am particularly drawn to {job.company} because of its innovative approach to {focus}.\n\n"
        "I would welcome the opportunity to discuss how my background and skills align with the needs "
        "of your team.\n\n"
        "Best regards,\n"
        f"{profile.name}"
    )


def _build_cover_letter_prompt(profile: CandidateProfile, job: JobPosting) -> str:
    return (
        "Write a compelling, professional cover letter for this candidate applying to this position.\n\n"
        "CANDIDATE INFORMATION:\n"
        f"- Name: {profile.name}\n"
        f"- Current Title: {profile.title}\n"
        f"- Experience: {profile.experience}\n"
        f"- Key Skills: {', '.join(profile.skills[:8])}\n"
        f"- Professional Summary: {(profile.summary or profile.resume_text)[:800]}...\n\n"
        "JOB DETAILS:\n"
        f"- Position: {job.title}\n"
        f"- Company: {job.company}\n"
        f"- Location: {job.location}\n"
        f"- Job Description: {job.description}\n"
        f"- Required Skills: {', '.join(job.tags)}\n\n"
        "COVER LETTER REQUIREMENTS:\n"
        "1. Professional and enthusiastic tone\n"
        "2. Highlight 2-3 most relevant skills/experiences\n"
        "3. Connect candidate's background to job requirements\n"
        "4. Keep under 250 words\n"
        "5. Include a strong opening and closing\n"
        "6. Use the candidate's name and customize for the specific company/role\n\n"
        "Format as a complete cover letter with proper salutation and sign-off."
    )


class CoverLetterStage:
    def __init__(self, gateway: LLMGateway) -> None:
        self.gateway = gateway
        self._generate = self._generate_with_backend if gateway.available else self._demo_letter

    async def _demo_letter(self, profile: CandidateProfile, job: JobPosting) -> str:
        return demo_cover_letter(profile, job)

    async def _generate_with_backend(self, profile: CandidateProfile, job: JobPosting) -> str:
        # Returned verbatim; length and tone are requested, not enforced.
        text = await self.gateway.invoke(SYSTEM_PROMPT, _build_cover_letter_prompt(profile, job))
        return text.strip()

    async def run(self, profile: CandidateProfile, job: JobPosting) -> StageOutcome[str | None]:
        outcome: StageOutcome[str | None] = StageOutcome(value=None)
        try:
            outcome.value = await self._generate(profile, job)
        except BackendError as exc:
            logger.warning("Cover letter generation failed for %s: %s", job.id, exc)
            outcome.fail(f"Cover letter generation failed: {exc}")
        return outcome
