from contextlib import asynccontextmanager
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from planboard.db.models import Base
from planboard.load_env import db_string, SQL_ECHO

logger = logging.getLogger(__name__)


def create_engine_for(url: str, echo: bool = False):
    """Создать асинхронный движок SQLAlchemy"""
    if url.startswith('sqlite'):
        # соединения aiosqlite привязаны к циклу событий, который их открыл
        return create_async_engine(url, echo=echo, poolclass=NullPool)
    return create_async_engine(url, echo=echo, pool_recycle=100, pool_size=10, max_overflow=3)


engine = create_engine_for(db_string, echo=SQL_ECHO)

# Создаем фабрику асинхронных сессий
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@asynccontextmanager
async def get_session() -> AsyncSession:
    """Получить асинхронную сессию базы данных"""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Create the tables locally; in production the schema belongs to the hosted database"""
    logger.debug(f"Creating tables for {engine.url.render_as_string(hide_password=True)}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
