from fastapi import APIRouter, Depends

from autoapply.api.deps import get_store
from autoapply.core.models import CandidateProfile
from autoapply.services.store import InMemoryStore

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=CandidateProfile | None)
def get_profile(store: InMemoryStore = Depends(get_store)):
    return store.get_profile()


@router.post("", response_model=CandidateProfile)
def save_profile(payload: CandidateProfile, store: InMemoryStore = Depends(get_store)):
    return store.save_profile(payload)
