"""
Event endpoints.
POST /api/events/create (admin, multipart with images), DELETE /api/events/delete (admin),
GET /api/events/list (public).
"""
import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from acda_site.config import CLOUDINARY_FOLDER
from acda_site.database import get_db
from acda_site.errors import InternalError, NotFound, UpstreamFailure, ValidationFailed
from acda_site.image_host import CloudinaryClient, ImageHostError, UploadedImage, destroy_all, get_image_host
from acda_site.models import Event
from acda_site.session import Principal, RequireAdmin
from acda_site.uploads import ValidatedBatch, read_upload_files, validate_batch

logger = logging.getLogger(__name__)
router = APIRouter()

EVENT_IMAGE_FOLDER = f"{CLOUDINARY_FOLDER}/events"


def utc_now() -> datetime:
    """Naive UTC now; datetimes are stored naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_event_date(value: str) -> datetime:
    """Accept YYYY-MM-DD or a full ISO 8601 datetime; return naive UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationFailed("Date must be in YYYY-MM-DD format")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def upload_batch(image_host: CloudinaryClient, batch: ValidatedBatch, folder: str) -> list[UploadedImage]:
    """
    Upload every file in order. On the first failure, delete what this call already
    uploaded and raise UpstreamFailure; nothing is persisted by the caller.
    """
    uploaded: list[UploadedImage] = []
    for f in batch.files:
        try:
            uploaded.append(image_host.upload(f.read(), f.filename, f.content_type, folder=folder))
        except ImageHostError as e:
            logger.error("Image upload failed for %s: %s", f.filename, e)
            destroy_all(image_host, [u.public_id for u in uploaded])
            raise UpstreamFailure("Failed to upload images. Please try again later.")
    return uploaded


@router.post("/api/events/create")
def create_event(
    principal: Principal = RequireAdmin,
    title: str | None = Form(None),
    description: str | None = Form(None),
    date: str | None = Form(None),
    location: str | None = Form(None),
    images: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    image_host: CloudinaryClient = Depends(get_image_host),
):
    """
    Create an event with optional images. Images go to the image host first, then the event
    row is written referencing them. If the write fails, the uploaded images are deleted again.
    """
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description or not date or not date.strip():
        raise ValidationFailed("Title, description, and date are required")
    if len(title) > 200:
        raise ValidationFailed("Title cannot exceed 200 characters")
    event_date = parse_event_date(date)

    batch = validate_batch(read_upload_files(images))
    uploaded = upload_batch(image_host, batch, EVENT_IMAGE_FOLDER) if len(batch) else []

    event = Event(
        title=title,
        description=description,
        date=event_date,
        location=(location or "").strip() or None,
        image_urls=json.dumps([u.url for u in uploaded]),
        public_ids=json.dumps([u.public_id for u in uploaded]),
        is_upcoming=event_date >= utc_now(),
    )
    try:
        db.add(event)
        db.commit()
        db.refresh(event)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error creating event: %s", e)
        failed = destroy_all(image_host, [u.public_id for u in uploaded])
        if failed:
            logger.error("Orphaned images after failed event create: %s", ", ".join(failed))
        raise InternalError("Failed to create event")

    logger.info("Event %s created by %s with %d image(s)", event.id, principal.name, len(uploaded))
    return {"success": True, "message": "Event created successfully", "event": event.to_dict()}


@router.delete("/api/events/delete")
def delete_event(
    principal: Principal = RequireAdmin,
    id: str | None = None,
    db: Session = Depends(get_db),
    image_host: CloudinaryClient = Depends(get_image_host),
):
    """Delete an event and, best effort, its images. A missing event is a 404, not an error."""
    if not id or not id.strip():
        raise ValidationFailed("Event ID is required")
    try:
        event_id = int(id)
    except ValueError:
        raise ValidationFailed("Invalid event ID")

    try:
        event = db.get(Event, event_id)
    except SQLAlchemyError as e:
        logger.error("Error loading event %s: %s", event_id, e)
        raise InternalError("Failed to delete event")
    if event is None:
        raise NotFound("Event not found")

    # Image cleanup never blocks the delete
    destroy_all(image_host, event.get_public_ids())

    try:
        deleted = db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error deleting event %s: %s", event_id, e)
        raise InternalError("Failed to delete event")
    if deleted == 0:
        # Removed by a concurrent request between the lookup and the delete
        raise NotFound("Event not found")

    logger.info("Event %s deleted by %s", event_id, principal.name)
    return {"success": True, "message": "Event deleted successfully"}


@router.get("/api/events/list")
def list_events(response: Response, type: str | None = None, db: Session = Depends(get_db)):
    """List events, newest date first. type: upcoming | past | all (default)."""
    now = utc_now()
    q = db.query(Event)
    if type == "upcoming":
        q = q.filter(Event.date >= now)
    elif type == "past":
        q = q.filter(Event.date < now)
    try:
        events = q.order_by(Event.date.desc()).all()
    except SQLAlchemyError as e:
        logger.error("Error fetching events: %s", e)
        raise InternalError("Failed to fetch events")
    response.headers["Cache-Control"] = "public, s-maxage=60, stale-while-revalidate=30"
    return {"success": True, "count": len(events), "events": [e.to_dict() for e in events]}
