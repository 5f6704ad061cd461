import asyncio
import io
import json

import pytest
from fastapi import HTTPException, UploadFile
from fastapi.testclient import TestClient

from autoapply.agents.graph import WorkflowOrchestrator
from autoapply.api.deps import get_orchestrator, get_store
from autoapply.api.main import app
from autoapply.api.routes_workflow import _read_resume
from autoapply.core.config import Settings
from autoapply.services.llm import LLMGateway
from autoapply.services.store import InMemoryStore

PROFILE = {
    "name": "John Doe",
    "title": "Software Engineer",
    "experience": "3-5 years",
    "skills": ["JavaScript", "React", "Node.js", "Python"],
    "resume_text": "Experienced software engineer...",
}
JOBS = [
    {
        "id": "job1",
        "title": "Senior Software Engineer",
        "company": "Tech Corp",
        "location": "San Francisco, CA",
        "tags": ["React", "Node.js", "AWS"],
    },
    {
        "id": "job2",
        "title": "Full Stack Developer",
        "company": "Startup Inc",
        "location": "Remote",
        "tags": ["JavaScript", "Python"],
    },
]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    settings = Settings(llm_api_key="", max_resume_bytes=1024)
    orchestrator = WorkflowOrchestrator(LLMGateway.unconfigured(), settings=settings)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health_reports_demo_mode(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["demo_mode"] is True


def test_settings_hide_the_api_key(client):
    body = client.get("/settings").json()

    assert body["api_key_configured"] is False
    assert "llm_api_key" not in body


def test_profile_round_trip(client):
    assert client.get("/profile").json() is None

    saved = client.post("/profile", json=PROFILE)

    assert saved.status_code == 200
    assert client.get("/profile").json()["name"] == "John Doe"


def test_parse_resume_saves_profile(client, store):
    response = client.post(
        "/parse-resume",
        files={"resume": ("resume.txt", b"React and Python developer", "text/plain")},
    )

    assert response.status_code == 200
    assert response.json()["profile"]["skills"] == ["React", "Python"]
    assert store.get_profile().skills == ["React", "Python"]


def test_parse_resume_rejects_word_documents(client):
    response = client.post(
        "/parse-resume",
        files={"resume": ("resume.docx", b"binary", "application/msword")},
    )

    assert response.status_code == 400
    assert "Word documents not yet supported" in response.json()["detail"]


def test_parse_resume_rejects_oversized_files(client):
    response = client.post(
        "/parse-resume",
        files={"resume": ("resume.txt", b"x" * 2048, "text/plain")},
    )

    assert response.status_code == 413


def test_resume_at_the_size_limit_is_accepted(client):
    response = client.post(
        "/parse-resume",
        files={"resume": ("resume.txt", b"Python " + b"x" * 1017, "text/plain")},
    )

    assert response.status_code == 200
    assert response.json()["profile"]["skills"] == ["Python"]


def test_oversized_upload_is_read_only_past_the_limit():
    upload = UploadFile(file=io.BytesIO(b"x" * 4096), filename="resume.txt")

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(_read_resume(upload, max_bytes=1024))

    assert exc_info.value.status_code == 413
    assert upload.file.tell() == 1025


def test_job_fit_needs_a_profile(client):
    response = client.post("/analyze-job-fit", json={"job": JOBS[0]})

    assert response.status_code == 400


def test_job_fit_uses_stored_profile(client, store):
    client.post("/profile", json=PROFILE)

    response = client.post("/analyze-job-fit", json={"job": JOBS[0]})

    analysis = response.json()["analysis"]
    assert analysis["score"] == 75
    assert analysis["skill_gap"]["missing"] == ["AWS"]


def test_cover_letter_endpoint(client):
    response = client.post("/generate-cover-letter", json={"profile": PROFILE, "job": JOBS[1]})

    assert response.status_code == 200
    assert "Startup Inc" in response.json()["cover_letter"]


def test_auto_apply_runs_workflow_and_records_history(client, store):
    response = client.post(
        "/auto-apply",
        data={"jobs": json.dumps(JOBS), "profile": json.dumps(PROFILE), "max_applications": "1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert len(body["applications"]) == 1
    assert body["applications"][0]["job_id"] == "job1"
    assert [record.job_id for record in store.list_applications()] == ["job1"]
    # A caller-supplied profile is not persisted.
    assert store.get_profile() is None


def test_auto_apply_requires_jobs(client):
    response = client.post("/auto-apply", data={"jobs": "[]", "profile": json.dumps(PROFILE)})

    assert response.status_code == 400


def test_auto_apply_rejects_malformed_jobs(client):
    response = client.post("/auto-apply", data={"jobs": "{not json", "profile": json.dumps(PROFILE)})

    assert response.status_code == 400


def test_application_history_crud(client):
    created = client.post(
        "/applications",
        json={"job_id": "job9", "job_title": "Engineer", "company": "Acme"},
    ).json()
    application_id = created["id"]

    updated = client.put(f"/applications/{application_id}", json={"status": "APPLIED"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "APPLIED"
    assert updated.json()["company"] == "Acme"

    assert client.delete(f"/applications/{application_id}").status_code == 200
    assert client.get("/applications").json() == []
    assert client.delete(f"/applications/{application_id}").status_code == 404


def test_optimize_profile_returns_demo_summary(client):
    response = client.post("/optimize-profile", json={"raw_text": "Backend engineer, Python and Go."})

    assert response.status_code == 200
    assert response.json() == {
        "summary": "Demo Summary extracted from resume...",
        "skills": ["Demo Skill 1", "Demo Skill 2"],
    }


@pytest.mark.parametrize("payload", [{}, {"raw_text": ""}, {"raw_text": "   "}])
def test_optimize_profile_requires_raw_text(client, payload):
    response = client.post("/optimize-profile", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Raw text is required"
