from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal
from uuid import UUID
from datetime import datetime
from entrydesk.schemas.entry import EntryFilePublic


class TargetsIn(BaseModel):
    entryIds: list[str] = Field(default_factory=list)
    participantIds: list[str] = Field(default_factory=list)


class StatusChangeIn(TargetsIn):
    status: str | None = None


class MailIn(TargetsIn):
    subject: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1)


class SelectionIn(BaseModel):
    score: int | None = Field(default=None, ge=1, le=10)
    comments: str | None = None
    status: str


class SelectionPublic(BaseModel):
    id: UUID
    entry_id: UUID
    admin_id: UUID | None = None
    score: int | None = None
    comments: str | None = None
    status: str
    created_at: datetime


class StageBadge(BaseModel):
    exists: bool
    complete: bool
    status: str


class AdminRowPublic(BaseModel):
    kind: Literal["entry", "placeholder"]
    entry_id: UUID | None = None
    user_id: UUID
    email: str | None = None
    name: str | None = None
    status: str | None = None
    display_status: str
    genre: str
    created_at: datetime
    file_count: int = 0
    stages: dict[str, StageBadge]


class AdminListing(BaseModel):
    total: int
    rows: list[AdminRowPublic]
    genres: list[str]


class EntryDetail(BaseModel):
    entry_id: UUID
    user_id: UUID
    email: str | None = None
    name: str | None = None
    status: str
    display_status: str
    created_at: datetime
    stages: dict[str, StageBadge]
    records: dict[str, dict | None]
    files: list[EntryFilePublic]
    selection: SelectionPublic | None = None
    selection_history: list[SelectionPublic] = Field(default_factory=list)


class SettingPublic(BaseModel):
    key: str
    value: str | None = None
    description: str | None = None


class SettingsIn(BaseModel):
    settings: dict[str, str | None]
