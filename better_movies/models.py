import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

USER_MEDIA_UNIQUE = "user_media_user_id_media_id_list_type_unique"


class Base(DeclarativeBase):
    pass


class MediaType(str, enum.Enum):
    MOVIE = "movie"
    TV = "tv"


class ListType(str, enum.Enum):
    FAVORITE = "FAVORITE"
    WATCHED = "WATCHED"
    WATCHLIST = "WATCHLIST"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class UserMedia(Base):
    """One membership of a media item in one of a user's lists."""

    __tablename__ = "user_media"
    __table_args__ = (
        UniqueConstraint("user_id", "media_id", "list_type", name=USER_MEDIA_UNIQUE),
        Index("user_media_user_list_created_idx", "user_id", "list_type", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    media_id: Mapped[str] = mapped_column(String, nullable=False)
    media_type: Mapped[MediaType] = mapped_column(
        Enum(MediaType, name="media_type", values_callable=_enum_values),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    poster_url: Mapped[str | None] = mapped_column(String, nullable=True)
    list_type: Mapped[ListType] = mapped_column(
        Enum(ListType, name="list_type", values_callable=_enum_values),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
