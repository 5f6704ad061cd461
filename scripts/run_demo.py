import argparse
import asyncio
from pathlib import Path

import yaml

from autoapply.agents.graph import WorkflowOrchestrator
from autoapply.agents.state import WorkflowInput
from autoapply.core.models import CandidateProfile, JobPosting
from autoapply.services.resume_text import ResumeFile


def _load_sample(path: Path) -> tuple[CandidateProfile | None, list[JobPosting]]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    profile = CandidateProfile(**data["profile"]) if data.get("profile") else None
    jobs = [JobPosting(**job) for job in data.get("jobs", [])]
    return profile, jobs


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the auto-apply workflow over sample jobs.")
    parser.add_argument("--jobs", type=Path, default=Path("data/sample_jobs.yaml"))
    parser.add_argument("--resume", type=Path, default=None)
    parser.add_argument("--max-applications", type=int, default=2)
    args = parser.parse_args()

    profile, jobs = _load_sample(args.jobs)
    resume_file = ResumeFile.from_path(args.resume) if args.resume else None

    orchestrator = WorkflowOrchestrator.from_settings()
    mode = "demo" if orchestrator.demo_mode else "llm"
    print(f"Running auto-apply workflow ({mode} mode) over {len(jobs)} jobs...")
    state = asyncio.run(
        orchestrator.run(
            WorkflowInput(
                resume_file=resume_file,
                jobs=jobs,
                max_applications=args.max_applications,
                profile=profile,
            )
        )
    )

    print(f"Status: {state['status'].value}")
    print(f"Applications created: {len(state.get('applications') or [])}")
    print(f"Errors: {len(state.get('errors') or [])}")
    for record in state.get("applications") or []:
        print(f"- {record.job_title} at {record.company}: score={record.match_score:g}")

    print("\nWorkflow logs:")
    for entry in state.get("logs") or []:
        print(f"[{entry.timestamp:%H:%M:%S}] {entry.level.value.upper()}: {entry.message}")


if __name__ == "__main__":
    main()
