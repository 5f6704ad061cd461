"""Job-application assistant: resume parsing, job matching and cover letters."""

__version__ = "0.1.0"
