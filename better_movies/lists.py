"""Add, remove and page through a user's favorites, watched and watchlist.

Every call takes the caller's ``SessionContext`` explicitly; a missing
session is an authorization error. Adding an item that is already on the
list and removing one that is not are both successful no-ops.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import store
from .auth import SessionContext
from .config import LIST_DEFAULT_PAGE_SIZE, LIST_MAX_PAGE_SIZE
from .errors import AuthorizationError, InternalError, ValidationError
from .models import ListType, MediaType, UserMedia

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddResult:
    entry: UserMedia | None

    @property
    def created(self) -> bool:
        return self.entry is not None


@dataclass(frozen=True)
class RemoveResult:
    entry: UserMedia | None

    @property
    def removed(self) -> bool:
        return self.entry is not None


@dataclass(frozen=True)
class ListPage:
    page: int
    total_pages: int
    results: list[UserMedia]


def _clean(value) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _require_session(session: SessionContext | None) -> str:
    if session is None or not session.user_id:
        raise AuthorizationError()
    return session.user_id


def _require_fields(**fields) -> None:
    missing = [name for name, value in fields.items() if value is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _choices(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def parse_list_type(value: str, field: str = "listType") -> ListType:
    try:
        return ListType(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}. Must be one of: {_choices(ListType)}")


def parse_media_type(value: str) -> MediaType:
    try:
        return MediaType(value)
    except ValueError:
        raise ValidationError(f"Invalid mediaType. Must be one of: {_choices(MediaType)}")


def check_media_id(media_id: str, media_type: MediaType) -> None:
    prefix, sep, external_id = media_id.partition(":")
    if not sep or not external_id.strip():
        raise ValidationError('Invalid mediaId. Expected "<mediaType>:<id>", e.g. "movie:299536"')
    if prefix != media_type.value:
        raise ValidationError(
            f'Invalid mediaId. Prefix "{prefix}" does not match mediaType "{media_type.value}"'
        )


async def add_to_list(
    db: AsyncSession,
    session: SessionContext | None,
    *,
    media_id: str | None,
    media_type: str | None,
    title: str | None,
    list_type: str | None,
    poster_url: str | None = None,
) -> AddResult:
    user_id = _require_session(session)
    media_id = _clean(media_id)
    media_type = _clean(media_type)
    title = _clean(title)
    list_type = _clean(list_type)
    _require_fields(mediaId=media_id, mediaType=media_type, title=title, listType=list_type)
    parsed_media_type = parse_media_type(media_type)
    parsed_list_type = parse_list_type(list_type)
    check_media_id(media_id, parsed_media_type)

    try:
        entry = await store.insert_entry(
            db,
            user_id=user_id,
            media_id=media_id,
            media_type=parsed_media_type,
            title=title,
            poster_url=_clean(poster_url),
            list_type=parsed_list_type,
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Add to list failed (user=%s, media=%s, list=%s)", user_id, media_id, parsed_list_type.value
        )
        raise InternalError("Could not save item")

    if entry is None:
        logger.debug("Already on list (user=%s, media=%s, list=%s)", user_id, media_id, parsed_list_type.value)
    else:
        logger.info("Added to list (user=%s, media=%s, list=%s)", user_id, media_id, parsed_list_type.value)
    return AddResult(entry=entry)


async def remove_from_list(
    db: AsyncSession,
    session: SessionContext | None,
    *,
    media_id: str | None,
    list_type: str | None,
) -> RemoveResult:
    user_id = _require_session(session)
    media_id = _clean(media_id)
    list_type = _clean(list_type)
    _require_fields(mediaId=media_id, listType=list_type)
    parsed_list_type = parse_list_type(list_type)

    try:
        entry = await store.delete_entry(
            db,
            user_id=user_id,
            media_id=media_id,
            list_type=parsed_list_type,
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Remove from list failed (user=%s, media=%s, list=%s)", user_id, media_id, parsed_list_type.value
        )
        raise InternalError("Could not remove item")

    if entry is None:
        logger.debug("Not on list (user=%s, media=%s, list=%s)", user_id, media_id, parsed_list_type.value)
    else:
        logger.info("Removed from list (user=%s, media=%s, list=%s)", user_id, media_id, parsed_list_type.value)
    return RemoveResult(entry=entry)


async def get_list(
    db: AsyncSession,
    session: SessionContext | None,
    *,
    list_type: str | None,
    page: int = 1,
    page_size: int = LIST_DEFAULT_PAGE_SIZE,
) -> ListPage:
    user_id = _require_session(session)
    list_type = _clean(list_type)
    if list_type is None:
        raise ValidationError("Missing required parameter: type")
    parsed_list_type = parse_list_type(list_type, field="type")
    if page < 1 or page_size < 1 or page_size > LIST_MAX_PAGE_SIZE:
        raise ValidationError(
            f"Invalid pagination parameters: page must be >= 1 and limit between 1 and {LIST_MAX_PAGE_SIZE}"
        )

    try:
        rows, total_pages = await store.query_entries(
            db,
            user_id=user_id,
            list_type=parsed_list_type,
            page=page,
            page_size=page_size,
        )
    except SQLAlchemyError:
        logger.exception("Get list failed (user=%s, list=%s)", user_id, parsed_list_type.value)
        raise InternalError("Could not fetch list")
    return ListPage(page=page, total_pages=total_pages, results=rows)
