"""
Admin account endpoints.
POST /api/admin/create requires an admin session; the first admin is seeded from env or the CLI.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from acda_site.database import get_db
from acda_site.errors import Conflict, InternalError, ValidationFailed
from acda_site.models import Admin
from acda_site.schemas import AdminCredentials
from acda_site.seed import AdminExists, create_admin, credential_errors
from acda_site.session import Principal, RequireAdmin

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/admin/create", status_code=201)
def admin_create(
    body: AdminCredentials,
    principal: Principal = RequireAdmin,
    db: Session = Depends(get_db),
):
    username, password = body.username, body.password
    problem = credential_errors(username, password)
    if problem:
        raise ValidationFailed(problem)
    try:
        admin = create_admin(db, username, password)
    except (AdminExists, IntegrityError):
        db.rollback()
        raise Conflict("Admin user already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error creating admin: %s", e)
        raise InternalError("Failed to create admin user")
    logger.info("Admin %s created by %s", admin.username, principal.name)
    return {"success": True, "message": "Admin user created successfully", "admin": admin.to_summary()}


@router.get("/api/admin/create")
def admin_count(db: Session = Depends(get_db)):
    """Number of admins; setupNeeded tells whether the first admin still has to be seeded."""
    try:
        count = db.query(Admin).count()
    except SQLAlchemyError as e:
        logger.error("Error checking admin count: %s", e)
        raise InternalError("Failed to check admin count")
    return {"success": True, "count": count, "setupNeeded": count == 0}
