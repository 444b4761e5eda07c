from datetime import timezone

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as BodyValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from . import lists
from .auth import SessionContext, require_session
from .config import LIST_DEFAULT_PAGE_SIZE
from .database import get_db
from .errors import ValidationError, invalid_fields_message
from .models import UserMedia

router = APIRouter(prefix="/api/list", tags=["lists"])


class AddToListRequest(BaseModel):
    # Presence and enum checks happen in the list service so the 400
    # message can name every missing field at once.
    model_config = ConfigDict(populate_by_name=True)

    media_id: str | None = Field(default=None, alias="mediaId", max_length=100)
    media_type: str | None = Field(default=None, alias="mediaType", max_length=20)
    title: str | None = Field(default=None, max_length=500)
    poster_url: str | None = Field(default=None, alias="posterUrl", max_length=1000)
    list_type: str | None = Field(default=None, alias="listType", max_length=20)


class RemoveFromListRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    media_id: str | None = Field(default=None, alias="mediaId", max_length=100)
    list_type: str | None = Field(default=None, alias="listType", max_length=20)


async def _read_body(request: Request, model: type[BaseModel]):
    # Parsed here rather than as an endpoint parameter: FastAPI decodes the
    # body before dependencies run, which would answer 400 ahead of the 401.
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body must be a JSON object")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except BodyValidationError as exc:
        raise ValidationError(invalid_fields_message(exc.errors()))


def _serialize_entry(entry: UserMedia | None) -> dict | None:
    if entry is None:
        return None
    created_at = entry.created_at
    if created_at is not None and created_at.tzinfo is None:
        # SQLite drops the offset; stored values are always UTC.
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        "id": int(entry.id),
        "userId": entry.user_id,
        "mediaId": entry.media_id,
        "mediaType": entry.media_type.value,
        "title": entry.title,
        "posterUrl": entry.poster_url,
        "listType": entry.list_type.value,
        "createdAt": created_at.isoformat() if created_at else None,
    }


@router.post("/add")
async def add_to_list(
    request: Request,
    session: SessionContext = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    body = await _read_body(request, AddToListRequest)
    result = await lists.add_to_list(
        db,
        session,
        media_id=body.media_id,
        media_type=body.media_type,
        title=body.title,
        poster_url=body.poster_url,
        list_type=body.list_type,
    )
    list_type = body.list_type.strip()
    return {
        "success": True,
        "message": f"Added to {list_type}" if result.created else f"Already in {list_type}",
        "data": _serialize_entry(result.entry),
    }


@router.post("/remove")
async def remove_from_list(
    request: Request,
    session: SessionContext = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    body = await _read_body(request, RemoveFromListRequest)
    result = await lists.remove_from_list(
        db,
        session,
        media_id=body.media_id,
        list_type=body.list_type,
    )
    return {
        "success": True,
        "message": f"Removed from {body.list_type.strip()}",
        "data": _serialize_entry(result.entry),
    }


@router.get("")
async def get_list(
    session: SessionContext = Depends(require_session),
    type: str | None = Query(None, max_length=20),
    page: int = Query(1),
    limit: int = Query(LIST_DEFAULT_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    result = await lists.get_list(
        db,
        session,
        list_type=type,
        page=page,
        page_size=limit,
    )
    return {
        "page": result.page,
        "totalPages": result.total_pages,
        "results": [_serialize_entry(row) for row in result.results],
    }
