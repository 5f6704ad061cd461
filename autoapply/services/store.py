import threading

from autoapply.core.models import ApplicationRecord, CandidateProfile


class InMemoryStore:
    """Process-local profile and application history; nothing survives a restart."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profile: CandidateProfile | None = None
        self._applications: list[ApplicationRecord] = []

    def get_profile(self) -> CandidateProfile | None:
        with self._lock:
            return self._profile

    def save_profile(self, profile: CandidateProfile) -> CandidateProfile:
        with self._lock:
            self._profile = profile
            return profile

    def list_applications(self) -> list[ApplicationRecord]:
        with self._lock:
            return list(self._applications)

    def add_applications(self, records: list[ApplicationRecord]) -> None:
        # Newest first, matching how the history view lists them.
        with self._lock:
            self._applications[:0] = list(reversed(records))

    def update_application(self, application_id: str, changes: dict) -> ApplicationRecord | None:
        with self._lock:
            for index, record in enumerate(self._applications):
                if record.id == application_id:
                    updated = record.model_copy(update=changes)
                    self._applications[index] = updated
                    return updated
            return None

    def delete_application(self, application_id: str) -> bool:
        with self._lock:
            remaining = [record for record in self._applications if record.id != application_id]
            deleted = len(remaining) != len(self._applications)
            self._applications = remaining
            return deleted

    def clear(self) -> None:
        with self._lock:
            self._profile = None
            self._applications = []


store = InMemoryStore()
