"""
ACDA site API.
Public reads (events, gallery), admin-only writes behind a session cookie, rate-limited contact form.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from acda_site.admin import router as admin_router
from acda_site.auth import router as auth_router
from acda_site.contact import router as contact_router
from acda_site.database import SessionLocal, init_db, ping_db
from acda_site.errors import error_body, register_error_handlers
from acda_site.events import router as events_router
from acda_site.photos import router as photos_router
from acda_site.seed import seed_from_env


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the first admin from env on startup."""
    init_db()
    db = SessionLocal()
    try:
        seed_from_env(db)
    finally:
        db.close()
    yield


app = FastAPI(title="ACDA Site", version="1.0.0", lifespan=lifespan)
register_error_handlers(app)
app.include_router(auth_router, tags=["auth"])
app.include_router(events_router, tags=["events"])
app.include_router(photos_router, tags=["photos"])
app.include_router(admin_router, tags=["admin"])
app.include_router(contact_router, tags=["contact"])


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "acda_site"}


@app.get("/api/test-db")
def test_db():
    """Database connectivity check."""
    timestamp = datetime.now(timezone.utc).isoformat()
    if not ping_db():
        return JSONResponse(
            status_code=500,
            content={**error_body("Database connection failed", "INTERNAL_ERROR"), "timestamp": timestamp},
        )
    return {"success": True, "message": "Database connection test successful", "timestamp": timestamp}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "acda_site.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
