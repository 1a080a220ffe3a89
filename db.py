from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import Result, CursorResult
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import Session

import config
from models import Base

"""
Importing the models package registers every table on Base.metadata.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""

sql_echo = False

url = config.DB_URL
engine = create_async_engine(url, echo=sql_echo)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

if url.startswith("sqlite") and "///data/" in url:
    data_folder = Path("data")
    if data_folder.exists() is False:
        data_folder.mkdir()


@asynccontextmanager
async def get_db_session() -> AsyncSession:
    async with session_maker() as async_session:
        try:
            yield async_session
        finally:
            await async_session.close()


async def session_execute(stmt, session: AsyncSession | Session) -> Result[Any] | CursorResult[Any]:
    if isinstance(session, AsyncSession):
        query_result = await session.execute(stmt)
        return query_result
    else:
        query_result = session.execute(stmt)
        return query_result


async def session_flush(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.flush()
    else:
        session.flush()


async def session_commit(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.commit()
    else:
        session.commit()


async def session_rollback(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.rollback()
    else:
        session.rollback()


async def create_db_and_tables(target_engine: AsyncEngine | None = None) -> None:
    """
    Create the carts and promo_codes tables if they do not exist.

    Call once at application startup, before the database adapters are used.
    Existing tables are left untouched.
    """
    async with (target_engine or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
