import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autoapply.agents.graph import WorkflowOrchestrator
from autoapply.api import routes_applications, routes_profile, routes_workflow
from autoapply.api.deps import get_orchestrator
from autoapply.api.schemas import SettingsResponse
from autoapply.core.config import get_settings
from autoapply.core.logging import setup_logging

settings = get_settings()
setup_logging(logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz(orchestrator: WorkflowOrchestrator = Depends(get_orchestrator)):
    return {"status": "ok", "service": settings.app_name, "demo_mode": orchestrator.demo_mode}


@app.get("/settings", response_model=SettingsResponse)
def read_settings(orchestrator: WorkflowOrchestrator = Depends(get_orchestrator)):
    current = orchestrator.settings
    return SettingsResponse(
        demo_mode=orchestrator.demo_mode,
        api_key_configured=bool(current.llm_api_key),
        llm_provider=current.llm_provider,
        llm_model=current.llm_model,
        llm_base_url=current.llm_base_url,
        max_applications=current.max_applications,
        application_gating=current.application_gating.value,
    )


app.include_router(routes_profile.router)
app.include_router(routes_applications.router)
app.include_router(routes_workflow.router)
