from enum import Enum


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    ANALYZING = "ANALYZING"
    MATCHED = "MATCHED"
    REJECTED = "REJECTED"
    APPLYING = "APPLYING"
    APPLIED = "APPLIED"
    FAILED = "FAILED"


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ApplicationGating(str, Enum):
    NONE = "none"
    BEFORE_CAP = "before_cap"
