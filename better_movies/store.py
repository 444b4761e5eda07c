"""Persistence for list memberships.

Uniqueness of ``(user_id, media_id, list_type)`` is enforced by the table's
unique constraint. Inserts use ``ON CONFLICT DO NOTHING`` so a duplicate add
never raises and concurrent adds of the same triple store exactly one row.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ListType, MediaType, UserMedia

_CONFLICT_COLUMNS = ["user_id", "media_id", "list_type"]
_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Unsupported database dialect for list storage: {dialect}")


async def insert_entry(
    db: AsyncSession,
    *,
    user_id: str,
    media_id: str,
    media_type: MediaType,
    title: str,
    poster_url: str | None,
    list_type: ListType,
) -> UserMedia | None:
    """Insert a membership row; returns None when the triple already exists."""
    insert = _insert_for(db)
    stmt = (
        insert(UserMedia)
        .values(
            user_id=user_id,
            media_id=media_id,
            media_type=media_type,
            title=title,
            poster_url=poster_url,
            list_type=list_type,
        )
        .on_conflict_do_nothing(index_elements=_CONFLICT_COLUMNS)
        .returning(UserMedia)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def delete_entry(
    db: AsyncSession,
    *,
    user_id: str,
    media_id: str,
    list_type: ListType,
) -> UserMedia | None:
    stmt = (
        delete(UserMedia)
        .where(
            UserMedia.user_id == user_id,
            UserMedia.media_id == media_id,
            UserMedia.list_type == list_type,
        )
        .returning(UserMedia)
    )
    return (await db.execute(stmt)).scalars().first()


def total_pages_for(total: int, page_size: int) -> int:
    return -(-total // page_size)


async def query_entries(
    db: AsyncSession,
    *,
    user_id: str,
    list_type: ListType,
    page: int,
    page_size: int,
) -> tuple[list[UserMedia], int]:
    """Return one page of a user's list, newest first, and the page count."""
    conditions = (
        UserMedia.user_id == user_id,
        UserMedia.list_type == list_type,
    )
    total = await db.scalar(select(func.count(UserMedia.id)).where(*conditions))
    rows = (
        await db.execute(
            select(UserMedia)
            .where(*conditions)
            .order_by(UserMedia.created_at.desc(), UserMedia.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()
    return list(rows), total_pages_for(int(total or 0), page_size)
