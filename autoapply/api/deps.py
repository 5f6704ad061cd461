from functools import lru_cache

from autoapply.agents.graph import WorkflowOrchestrator
from autoapply.core.config import get_settings
from autoapply.services.store import InMemoryStore, store


@lru_cache(maxsize=1)
def get_orchestrator() -> WorkflowOrchestrator:
    return WorkflowOrchestrator.from_settings(get_settings())


def get_store() -> InMemoryStore:
    return store
