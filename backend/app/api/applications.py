from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, Field

from job_copilot.errors import ApplicationNotFound, InvalidApplication
from job_copilot.storage.applications import ApplicationStore
from backend.app.deps import get_store

router = APIRouter()


class ApplicationIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company: str = ""
    role: str = ""
    status: Optional[str] = None
    applied_date: Optional[str] = Field(None, alias="appliedDate")
    notes: str = ""
    link: str = ""
    # Set when the record comes from an accepted Gmail suggestion.
    thread_id: str = Field("", alias="threadId")
    message_id: str = Field("", alias="messageId")


class ApplicationPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    applied_date: Optional[str] = Field(None, alias="appliedDate")
    notes: Optional[str] = None
    link: Optional[str] = None


@router.get("/applications")
def list_applications(status: Optional[str] = None, store: ApplicationStore = Depends(get_store)) -> list[dict]:
    return store.as_dicts(status)


@router.get("/applications/{app_id}")
def get_application(app_id: str, store: ApplicationStore = Depends(get_store)) -> dict:
    try:
        return store.get(app_id).to_dict()
    except ApplicationNotFound as exc:
        raise HTTPException(status_code=404, detail="Not found") from exc


@router.post("/applications", status_code=201)
def create_application(body: ApplicationIn, store: ApplicationStore = Depends(get_store)) -> dict:
    try:
        app = store.create(**body.model_dump())
    except InvalidApplication as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return app.to_dict()


@router.patch("/applications/{app_id}")
def update_application(app_id: str, body: ApplicationPatch, store: ApplicationStore = Depends(get_store)) -> dict:
    try:
        return store.update(app_id, **body.model_dump(exclude_none=True)).to_dict()
    except ApplicationNotFound as exc:
        raise HTTPException(status_code=404, detail="Not found") from exc


@router.delete("/applications/{app_id}", status_code=204)
def delete_application(app_id: str, store: ApplicationStore = Depends(get_store)) -> Response:
    try:
        store.delete(app_id)
    except ApplicationNotFound as exc:
        raise HTTPException(status_code=404, detail="Not found") from exc
    return Response(status_code=204)
