from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, BigInteger, DateTime, ForeignKey, Uuid, func
from entrydesk.db import Base, utcnow


class Entry(Base):
    __tablename__ = "entries"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending|submitted|selected|rejected

    # cached completion per stage: not_started|in_progress|complete
    basic_info_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    preliminary_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    program_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    semifinals_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    finals_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    sns_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")
    applications_status: Mapped[str] = mapped_column(String(16), nullable=False, default="not_started")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)


class EntryFile(Base):
    __tablename__ = "entry_files"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    entry_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("entries.id", ondelete="CASCADE"), index=True, nullable=False)
    file_type: Mapped[str] = mapped_column(String(16), nullable=False)  # music|audio|video|photo
    purpose: Mapped[str] = mapped_column(String(64), nullable=False)     # preliminary|sns_practice_video|payment_slip|scene1_image|...
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(Text(), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mime_type: Mapped[str | None] = mapped_column(String(128))
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class Selection(Base):
    __tablename__ = "selections"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    entry_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("entries.id", ondelete="CASCADE"), index=True, nullable=False)
    admin_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"))
    score: Mapped[int | None] = mapped_column(Integer)
    comments: Mapped[str | None] = mapped_column(Text())
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
