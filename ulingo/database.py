from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from ulingo.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


# Создание асинхронного движка
engine = create_async_engine(settings.DATABASE_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency: one session per request"""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db(bind=None) -> None:
    """Create all tables that do not exist yet"""
    # Models must be imported so their tables are registered on Base.metadata
    import ulingo.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
