"""
Pytest configuration for acda_site. In-memory SQLite and a fixed session secret, set before
acda_site modules are imported; fakes for the image host and the mailer.
"""
import os

# In-memory SQLite; database.py uses StaticPool so all connections share the same DB
os.environ["ACDA_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ACDA_SESSION_SECRET"] = "test-session-secret-0123456789abcdef"
# Avoid seed_from_env picking up real credentials during tests
os.environ.pop("ACDA_SEED_ADMIN_USER", None)
os.environ.pop("ACDA_SEED_ADMIN_PASSWORD", None)

import pytest
from fastapi.testclient import TestClient

from acda_site.database import SessionLocal, engine
from acda_site.image_host import ImageHostError, UploadedImage, get_image_host
from acda_site.mailer import EmailError, get_mailer
from acda_site.main import app
from acda_site.models import Base
from acda_site.rate_limit import contact_limiter, login_limiter
from acda_site.seed import create_admin

ADMIN_USER = "admin"
ADMIN_PASSWORD = "correct-horse-battery"


class FakeImageHost:
    """Records uploads and deletes; can be told to fail."""

    def __init__(self):
        self.uploads: list[tuple[str, str]] = []
        self.destroyed: list[str] = []
        self.fail_upload_after: int | None = None
        self.fail_destroy = False

    def upload(self, data, filename, content_type, folder="acda"):
        if self.fail_upload_after is not None and len(self.uploads) >= self.fail_upload_after:
            raise ImageHostError("upload refused")
        public_id = f"{folder}/img{len(self.uploads) + 1}"
        self.uploads.append((filename, public_id))
        return UploadedImage(
            url=f"https://res.example.com/{public_id}.jpg",
            public_id=public_id,
            width=800,
            height=600,
            format="jpg",
        )

    def destroy(self, public_id):
        if self.fail_destroy:
            raise ImageHostError("destroy refused")
        self.destroyed.append(public_id)


class FakeMailer:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def send(self, *, sender, to, subject, html_body, reply_to=None):
        if self.fail:
            raise EmailError("mail provider down")
        self.sent.append({"from": sender, "to": to, "subject": subject, "html": html_body, "reply_to": reply_to})
        return f"email-{len(self.sent)}"


@pytest.fixture(autouse=True)
def fresh_state():
    """Empty tables and rate limiters for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    contact_limiter.reset()
    login_limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def image_host():
    fake = FakeImageHost()
    app.dependency_overrides[get_image_host] = lambda: fake
    return fake


@pytest.fixture
def mailer():
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    return fake


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin_client(client):
    """TestClient holding a valid admin session cookie."""
    session = SessionLocal()
    try:
        create_admin(session, ADMIN_USER, ADMIN_PASSWORD)
    finally:
        session.close()
    r = client.post("/api/auth/login", json={"username": ADMIN_USER, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    return client
