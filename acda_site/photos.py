"""
Gallery photo endpoints.
GET /api/events/photos (public), POST /api/events/upload (admin, register an already-hosted image),
POST /api/events/photos/upload (admin, multipart upload through the server).
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from acda_site.config import CLOUDINARY_FOLDER
from acda_site.database import get_db
from acda_site.errors import Conflict, InternalError, UpstreamFailure, ValidationFailed
from acda_site.image_host import CloudinaryClient, ImageHostError, destroy_all, get_image_host
from acda_site.models import EventPhoto
from acda_site.schemas import MIN_PHOTO_YEAR, PhotoRegistration
from acda_site.session import Principal, RequireAdmin
from acda_site.uploads import read_upload_files, validate_batch

logger = logging.getLogger(__name__)
router = APIRouter()

GALLERY_FOLDER = f"{CLOUDINARY_FOLDER}/gallery"


def validate_year(value: str | None) -> int:
    """Year from a form field."""
    if value is None or not value.strip():
        raise ValidationFailed("Year is required")
    try:
        year = int(value)
    except ValueError:
        raise ValidationFailed("Year must be a whole number")
    max_year = datetime.now(timezone.utc).year + 1
    if year < MIN_PHOTO_YEAR or year > max_year:
        raise ValidationFailed(f"Year must be between {MIN_PHOTO_YEAR} and {max_year}")
    return year


def validate_event_name(value: str | None) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationFailed("Please enter an event name")
    if len(name) > 200:
        raise ValidationFailed("Event name cannot exceed 200 characters")
    return name


@router.get("/api/events/photos")
def list_photos(year: int | None = None, db: Session = Depends(get_db)):
    """Gallery photos, newest first; optionally only one year."""
    q = db.query(EventPhoto)
    if year is not None:
        q = q.filter(EventPhoto.year == year)
    try:
        photos = q.order_by(EventPhoto.created_at.desc(), EventPhoto.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error("Fetch photos error: %s", e)
        raise InternalError("Failed to fetch photos")
    return {"success": True, "count": len(photos), "photos": [p.to_dict() for p in photos]}


@router.post("/api/events/upload", status_code=201)
def register_photo(
    body: PhotoRegistration,
    principal: Principal = RequireAdmin,
    db: Session = Depends(get_db),
):
    """Record a photo the client already uploaded to the image host."""
    photo = EventPhoto(
        event_name=body.eventName,
        year=body.year,
        image_url=body.imageUrl,
        public_id=body.publicId,
        width=body.width,
        height=body.height,
        format=body.format or None,
        uploaded_by=principal.name or "Admin",
    )
    try:
        db.add(photo)
        db.commit()
        db.refresh(photo)
    except IntegrityError:
        db.rollback()
        raise Conflict("Photo already registered")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Upload API error: %s", e)
        raise InternalError("Failed to save photo")

    return {"success": True, "message": "Photo uploaded successfully", "photo": photo.to_summary()}


@router.post("/api/events/photos/upload", status_code=201)
def upload_photos(
    principal: Principal = RequireAdmin,
    eventName: str | None = Form(None),
    year: str | None = Form(None),
    images: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    image_host: CloudinaryClient = Depends(get_image_host),
):
    """
    Upload a batch of gallery photos. Each file is uploaded and recorded on its own; the
    response lists which files failed. Fails with 502 only when no file made it.
    """
    event_name = validate_event_name(eventName)
    photo_year = validate_year(year)
    files = read_upload_files(images)
    if not files:
        raise ValidationFailed("Please select at least one image")
    batch = validate_batch(files)

    saved: list[EventPhoto] = []
    failed: list[dict] = []
    for f in batch.files:
        try:
            image = image_host.upload(f.read(), f.filename, f.content_type, folder=GALLERY_FOLDER)
        except ImageHostError as e:
            logger.error("Gallery upload failed for %s: %s", f.filename, e)
            failed.append({"file": f.filename, "message": "Failed to upload to image host"})
            continue
        photo = EventPhoto(
            event_name=event_name,
            year=photo_year,
            image_url=image.url,
            public_id=image.public_id,
            width=image.width,
            height=image.height,
            format=image.format,
            uploaded_by=principal.name or "Admin",
        )
        try:
            db.add(photo)
            db.commit()
            db.refresh(photo)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to save photo %s: %s", image.public_id, e)
            destroy_all(image_host, [image.public_id])
            failed.append({"file": f.filename, "message": "Failed to save to database"})
            continue
        saved.append(photo)

    if not saved:
        raise UpstreamFailure(f"Failed to upload all {len(failed)} photo(s)", details=failed)
    if failed:
        message = f"Uploaded {len(saved)} photo(s), but {len(failed)} failed"
    else:
        message = f"All {len(saved)} photo(s) uploaded successfully!"
    logger.info("%s uploaded %d gallery photo(s) for %s %s", principal.name, len(saved), event_name, photo_year)
    return {
        "success": True,
        "message": message,
        "photos": [p.to_summary() for p in saved],
        "failed": failed,
    }
