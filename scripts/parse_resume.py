import asyncio
from pathlib import Path

import yaml

from autoapply.agents.nodes.resume_parser import ResumeStage
from autoapply.core.config import get_settings
from autoapply.services.llm import build_llm_gateway
from autoapply.services.resume_text import ResumeFile


def main() -> None:
    resume_dir = Path("resume")
    candidates = sorted([*resume_dir.glob("*.pdf"), *resume_dir.glob("*.txt")])
    if not candidates:
        raise SystemExit("No PDF or text resume found in resume/ directory")

    settings = get_settings()
    stage = ResumeStage(build_llm_gateway(settings), default_min_salary=settings.default_min_salary)
    resume_path = candidates[0]
    outcome = asyncio.run(stage.run(ResumeFile.from_path(resume_path)))
    if outcome.value is None:
        raise SystemExit("; ".join(outcome.errors))

    output_path = Path("data/user_profile.generated.yaml")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    profile = outcome.value.model_dump(mode="json")
    output_path.write_text(yaml.safe_dump(profile, sort_keys=False), encoding="utf-8")

    print(f"Parsed resume: {resume_path}")
    print(f"Output profile: {output_path}")
    print(f"Extracted counts: skills={len(profile['skills'])}, achievements={len(profile['achievements'])}")


if __name__ == "__main__":
    main()
