from . import (
    application_decision,
    application_processor,
    cover_letter,
    fit_analyzer,
    job_ranker,
    profile_optimizer,
    resume_parser,
)

__all__ = [
    "application_decision",
    "application_processor",
    "cover_letter",
    "fit_analyzer",
    "job_ranker",
    "profile_optimizer",
    "resume_parser",
]
