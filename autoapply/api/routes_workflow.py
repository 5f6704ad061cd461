from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import TypeAdapter, ValidationError

from autoapply.agents.graph import WorkflowOrchestrator
from autoapply.agents.state import WorkflowInput
from autoapply.api.deps import get_orchestrator, get_store
from autoapply.api.schemas import (
    CoverLetterResponse,
    JobFitRequest,
    JobFitResponse,
    OptimizeProfileRequest,
    ParseResumeResponse,
    WorkflowRunResponse,
)
from autoapply.core.logging import get_logger
from autoapply.core.models import CandidateProfile, JobPosting, ProfileSummary
from autoapply.services.resume_text import ResumeFile
from autoapply.services.store import InMemoryStore

logger = get_logger(__name__)
router = APIRouter(tags=["workflow"])

JOB_LIST = TypeAdapter(list[JobPosting])


async def _read_resume(upload: UploadFile, max_bytes: int) -> ResumeFile:
    # One byte past the limit is enough to reject without buffering the rest.
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail="Resume file is too large")
    return ResumeFile(
        filename=upload.filename or "resume",
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


def _resolve_profile(profile: CandidateProfile | None, store: InMemoryStore) -> CandidateProfile:
    resolved = profile or store.get_profile()
    if resolved is None:
        raise HTTPException(status_code=400, detail="A candidate profile is required")
    return resolved


@router.post("/parse-resume", response_model=ParseResumeResponse)
async def parse_resume(
    resume: UploadFile = File(...),
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
    store: InMemoryStore = Depends(get_store),
):
    resume_file = await _read_resume(resume, orchestrator.settings.max_resume_bytes)
    outcome = await orchestrator.resume_stage.run(resume_file)
    if outcome.value is None:
        raise HTTPException(status_code=400, detail="; ".join(outcome.errors) or "Failed to parse resume")
    store.save_profile(outcome.value)
    return ParseResumeResponse(profile=outcome.value, logs=outcome.logs)


@router.post("/analyze-job-fit", response_model=JobFitResponse)
async def analyze_job_fit(
    payload: JobFitRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
    store: InMemoryStore = Depends(get_store),
):
    profile = _resolve_profile(payload.profile, store)
    outcome = await orchestrator.fit_stage.run(profile, payload.job)
    return JobFitResponse(analysis=outcome.value, errors=outcome.errors)


@router.post("/generate-cover-letter", response_model=CoverLetterResponse)
async def generate_cover_letter(
    payload: JobFitRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
    store: InMemoryStore = Depends(get_store),
):
    profile = _resolve_profile(payload.profile, store)
    outcome = await orchestrator.cover_letter_stage.run(profile, payload.job)
    return CoverLetterResponse(cover_letter=outcome.value, errors=outcome.errors)


@router.post("/optimize-profile", response_model=ProfileSummary)
async def optimize_profile(
    payload: OptimizeProfileRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
):
    if not payload.raw_text.strip():
        raise HTTPException(status_code=400, detail="Raw text is required")
    outcome = await orchestrator.profile_stage.run(payload.raw_text)
    return outcome.value


@router.post("/auto-apply", response_model=WorkflowRunResponse)
async def auto_apply(
    jobs: str = Form(...),
    max_applications: int | None = Form(default=None),
    profile: str | None = Form(default=None),
    resume: UploadFile | None = File(default=None),
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
    store: InMemoryStore = Depends(get_store),
):
    try:
        job_list = JOB_LIST.validate_json(jobs)
        candidate = CandidateProfile.model_validate_json(profile) if profile else store.get_profile()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid jobs or profile data format") from exc
    if not job_list:
        raise HTTPException(status_code=400, detail="Jobs array is required")

    resume_file = None
    if resume is not None and resume.filename:
        resume_file = await _read_resume(resume, orchestrator.settings.max_resume_bytes)

    state = await orchestrator.run(
        WorkflowInput(
            resume_file=resume_file,
            jobs=job_list,
            max_applications=max_applications,
            profile=candidate,
        )
    )

    if resume_file is not None and state.get("profile") is not None:
        store.save_profile(state["profile"])
    store.add_applications(state.get("applications") or [])
    logger.info(
        "Auto-apply run finished",
        extra={"run_id": state.get("run_id"), "status": str(state.get("status"))},
    )
    return WorkflowRunResponse.from_state(state)
