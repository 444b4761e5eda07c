from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from .config import DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10}


engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        yield session


async def init_db():
    from . import models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
        if conn.dialect.name == "postgresql":
            # Tables created before the membership constraint existed still need it,
            # otherwise ON CONFLICT has nothing to conflict on.
            await conn.execute(
                text(
                    f"CREATE UNIQUE INDEX IF NOT EXISTS {models.USER_MEDIA_UNIQUE} "
                    "ON user_media (user_id, media_id, list_type)"
                )
            )


async def close_db():
    await engine.dispose()
