"""
SQLAlchemy models for the ACDA site: admins, events, gallery photos.
"""
import json
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class Base(DeclarativeBase):
    pass


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Stored lower-cased and trimmed
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    def to_summary(self) -> dict:
        return {"id": self.id, "username": self.username, "createdAt": _iso(self.created_at)}


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # JSON arrays, index-aligned: image_urls[i] was uploaded as public_ids[i]
    image_urls: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    public_ids: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    is_upcoming: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    def get_image_urls(self) -> list[str]:
        return json.loads(self.image_urls or "[]")

    def get_public_ids(self) -> list[str]:
        return json.loads(self.public_ids or "[]")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": _iso(self.date),
            "location": self.location,
            "imageUrls": self.get_image_urls(),
            "publicIds": self.get_public_ids(),
            "isUpcoming": self.is_upcoming,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class EventPhoto(Base):
    __tablename__ = "event_photos"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    public_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    format: Mapped[str | None] = mapped_column(String(16), nullable=True)
    uploaded_by: Mapped[str] = mapped_column(String(50), nullable=False, default="Admin")
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, index=True)

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "eventName": self.event_name,
            "year": self.year,
            "imageUrl": self.image_url,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_summary(),
            "publicId": self.public_id,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "createdAt": _iso(self.created_at),
        }
