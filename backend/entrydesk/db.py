from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from entrydesk.config import settings

class Base(DeclarativeBase):
    pass

def utcnow() -> datetime:
    return datetime.now(dt_tz.utc)

engine = create_async_engine(settings.database_url, future=True, echo=False)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session
