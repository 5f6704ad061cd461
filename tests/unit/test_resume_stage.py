import asyncio

from autoapply.agents.nodes.resume_parser import NO_RESUME_ERROR, ResumeStage
from autoapply.core.enums import LogLevel
from autoapply.services.llm import LLMGateway, LLMProvider
from autoapply.services.resume_text import ResumeFile


class _StaticProvider(LLMProvider):
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls = 0

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        return self.text


class _FailingProvider(LLMProvider):
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        raise RuntimeError("simulated provider failure")


def _text_resume() -> ResumeFile:
    return ResumeFile(
        filename="resume.txt",
        content_type="text/plain",
        data=b"Backend developer. Python, Django, PostgreSQL, Docker. Led migration to Kubernetes.",
    )


def test_missing_file_records_error_and_no_profile():
    outcome = asyncio.run(ResumeStage(LLMGateway.unconfigured()).run(None))

    assert outcome.value is None
    assert outcome.errors == [NO_RESUME_ERROR]
    assert outcome.logs[-1].level == LogLevel.ERROR


def test_demo_mode_builds_placeholder_profile_from_extraction():
    outcome = asyncio.run(ResumeStage(LLMGateway.unconfigured()).run(_text_resume()))

    profile = outcome.value
    assert outcome.errors == []
    assert profile.name == "Candidate"
    assert profile.title == "Professional"
    assert profile.experience == "0-2 years"
    assert profile.skills == ["Python", "Django", "PostgreSQL", "Docker", "Kubernetes"]
    assert profile.preferences.remote_only is False
    assert profile.preferences.min_salary == 50000
    assert "Backend developer" in profile.resume_text


def test_unsupported_file_type_is_a_single_accumulated_error():
    file = ResumeFile(filename="resume.docx", content_type="application/msword", data=b"...")

    outcome = asyncio.run(ResumeStage(LLMGateway.unconfigured()).run(file))

    assert outcome.value is None
    assert len(outcome.errors) == 1
    assert "Word documents not yet supported" in outcome.errors[0]


def test_backend_enhancement_overrides_fields_and_keeps_defaults_for_missing_ones():
    provider = _StaticProvider(
        '{"title": "Senior Backend Engineer", "skills": ["Python", "Django", "AWS"], '
        '"summary": "Backend engineer focused on reliability.", "achievements": ["Cut latency 35%"]}'
    )

    outcome = asyncio.run(ResumeStage(LLMGateway(provider)).run(_text_resume()))

    profile = outcome.value
    assert provider.calls == 1
    assert profile.title == "Senior Backend Engineer"
    assert profile.skills == ["Python", "Django", "AWS"]
    assert profile.experience == "0-2 years"
    assert profile.name == "Candidate"
    assert profile.summary == "Backend engineer focused on reliability."
    assert profile.achievements == ["Cut latency 35%"]


def test_backend_failure_falls_back_to_extracted_profile():
    outcome = asyncio.run(ResumeStage(LLMGateway(_FailingProvider())).run(_text_resume()))

    assert outcome.errors == []
    assert outcome.value.title == "Professional"
    assert "Kubernetes" in outcome.value.skills
    assert any(entry.level == LogLevel.WARNING for entry in outcome.logs)


def test_malformed_enhancement_falls_back_to_extracted_profile():
    outcome = asyncio.run(ResumeStage(LLMGateway(_StaticProvider("not json"))).run(_text_resume()))

    assert outcome.value.title == "Professional"
    assert outcome.value.skills[0] == "Python"
