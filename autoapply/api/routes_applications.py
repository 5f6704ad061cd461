import uuid

from fastapi import APIRouter, Depends, HTTPException

from autoapply.api.deps import get_store
from autoapply.api.schemas import ApplicationCreateRequest, ApplicationUpdateRequest
from autoapply.core.models import ApplicationRecord, utcnow
from autoapply.services.store import InMemoryStore

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("", response_model=list[ApplicationRecord])
def list_applications(store: InMemoryStore = Depends(get_store)):
    return store.list_applications()


@router.post("", response_model=ApplicationRecord)
def create_application(payload: ApplicationCreateRequest, store: InMemoryStore = Depends(get_store)):
    data = payload.model_dump(exclude_none=True)
    data.setdefault("id", uuid.uuid4().hex)
    data.setdefault("created_at", utcnow())
    record = ApplicationRecord(**data)
    store.add_applications([record])
    return record


@router.put("/{application_id}", response_model=ApplicationRecord)
def update_application(
    application_id: str,
    payload: ApplicationUpdateRequest,
    store: InMemoryStore = Depends(get_store),
):
    updated = store.update_application(application_id, payload.model_dump(exclude_none=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return updated


@router.delete("/{application_id}")
def delete_application(application_id: str, store: InMemoryStore = Depends(get_store)):
    if not store.delete_application(application_id):
        raise HTTPException(status_code=404, detail="Application not found")
    return {"deleted": application_id}
