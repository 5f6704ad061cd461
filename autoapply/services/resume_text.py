import io
import mimetypes
import re
from dataclasses import dataclass, field
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from autoapply.core.errors import UnsupportedFileType
from autoapply.core.logging import get_logger
from autoapply.services.skills import extract_skills

logger = get_logger(__name__)

PDF_UNAVAILABLE_TEXT = (
    "PDF parsing is currently unavailable. Please copy and paste your resume text manually."
)
TEXT_SUFFIXES = {".txt", ".md", ".text"}
WORD_SUFFIXES = {".doc", ".docx", ".odt", ".rtf"}


@dataclass(frozen=True)
class ResumeFile:
    filename: str
    content_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path) -> "ResumeFile":
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content_type=content_type or "application/octet-stream",
            data=path.read_bytes(),
        )

    @property
    def suffix(self) -> str:
        return Path(self.filename or "").suffix.lower()


@dataclass(frozen=True)
class ExtractedResume:
    text: str
    skills: list[str] = field(default_factory=list)


def _is_text(file: ResumeFile) -> bool:
    return file.content_type.startswith("text/plain") or file.suffix in TEXT_SUFFIXES


def _is_pdf(file: ResumeFile) -> bool:
    return file.content_type == "application/pdf" or file.suffix == ".pdf"


def _is_word(file: ResumeFile) -> bool:
    content_type = file.content_type.lower()
    return "word" in content_type or "document" in content_type or file.suffix in WORD_SUFFIXES


def _extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    chunks = []
    for page in reader.pages:
        chunks.append(page.extract_text() or "")
    return "\n".join(chunks)


def _normalize_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\x00", "")
    return re.sub(r"[ \t]+", " ", text).strip()


def extract_resume_text(file: ResumeFile) -> ExtractedResume:
    if _is_text(file):
        text = _normalize_text(file.data.decode("utf-8", errors="replace"))
        return ExtractedResume(text=text, skills=extract_skills(text))

    if _is_pdf(file):
        try:
            text = _normalize_text(_extract_pdf_text(file.data))
        except (PyPdfError, ValueError, OSError) as exc:
            logger.warning("PDF extraction failed for %s: %s", file.filename, exc)
            return ExtractedResume(text=PDF_UNAVAILABLE_TEXT, skills=[])
        return ExtractedResume(text=text, skills=extract_skills(text))

    if _is_word(file):
        raise UnsupportedFileType("Word documents not yet supported. Please upload a PDF or text file.")

    raise UnsupportedFileType("Unsupported file type. Please upload a PDF or text file.")
