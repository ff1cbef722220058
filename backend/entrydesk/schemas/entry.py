from __future__ import annotations
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime


class StageState(BaseModel):
    exists: bool
    complete: bool
    status: str
    missing: list[str] = Field(default_factory=list)
    missing_labels: list[str] = Field(default_factory=list)
    editable: bool = True
    open: bool = True
    deadline: dict | None = None


class EntryPublic(BaseModel):
    id: UUID
    status: str
    display_status: str
    created_at: datetime
    updated_at: datetime


class Dashboard(BaseModel):
    entry: EntryPublic | None = None
    stages: dict[str, StageState]


class StageView(BaseModel):
    stage: str
    record: dict | None = None
    state: StageState


class SyncStatus(BaseModel):
    status: str              # none|applied|failed
    targets: list[str] = Field(default_factory=list)
    fields: list[str] = Field(default_factory=list)
    error: str | None = None


class StageSaved(BaseModel):
    saved: bool = True
    entry_id: UUID
    stage: str
    record: dict
    state: StageState
    sync: SyncStatus
    warnings: list[str] = Field(default_factory=list)


class EntryFilePublic(BaseModel):
    id: UUID
    file_type: str
    purpose: str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str | None = None
    uploaded_at: datetime
    url: str | None = None   # short-lived signed URL


class FileUploaded(BaseModel):
    file: EntryFilePublic
    replaced: int = 0
    warnings: list[str] = Field(default_factory=list)
