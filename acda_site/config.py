"""
ACDA site backend configuration.
No secrets in this file; credentials come from env.
"""
import os

# SQLite for development; any SQLAlchemy URL works in production
DATABASE_URL = os.environ.get("ACDA_DATABASE_URL", "sqlite:///./acda_site.db")

# Session cookie (HS256 JWT). The secret must be set in production.
SESSION_SECRET = os.environ.get("ACDA_SESSION_SECRET", "")
SESSION_COOKIE_NAME = os.environ.get("ACDA_SESSION_COOKIE", "acda_session")
SESSION_MAX_AGE = int(os.environ.get("ACDA_SESSION_MAX_AGE", str(30 * 24 * 60 * 60)))  # 30 days
SESSION_COOKIE_SECURE = os.environ.get("ACDA_SESSION_COOKIE_SECURE", "false").lower() == "true"

# Image host (Cloudinary)
CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME", "")
CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY", "")
CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET", "")
CLOUDINARY_FOLDER = os.environ.get("CLOUDINARY_FOLDER", "acda")

# Outbound e-mail (Resend)
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "")
CONTACT_FROM_EMAIL = os.environ.get("CONTACT_FROM_EMAIL", "ACDA Website <noreply@acdacon.org>")

# Timeout (seconds) for calls to the image host and the mail API
HTTP_TIMEOUT = float(os.environ.get("ACDA_HTTP_TIMEOUT", "30"))

# Rate limiting: per client IP, sliding window
RATE_LIMIT_CONTACT_MAX = int(os.environ.get("ACDA_RATE_LIMIT_CONTACT_MAX", "5"))
RATE_LIMIT_CONTACT_WINDOW_SECONDS = int(os.environ.get("ACDA_RATE_LIMIT_CONTACT_WINDOW", "3600"))  # 1 hour
RATE_LIMIT_LOGIN_PER_MINUTE = int(os.environ.get("ACDA_RATE_LIMIT_LOGIN_PER_MINUTE", "20"))
# Upper bound on tracked identifiers; least recently seen are evicted first
RATE_LIMIT_MAX_KEYS = int(os.environ.get("ACDA_RATE_LIMIT_MAX_KEYS", "10000"))

# Upload limits for event images and gallery photos
MAX_IMAGE_COUNT = int(os.environ.get("ACDA_MAX_IMAGE_COUNT", "15"))
MAX_IMAGE_BYTES = int(os.environ.get("ACDA_MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))  # 10 MB per image
MAX_TOTAL_UPLOAD_BYTES = int(os.environ.get("ACDA_MAX_TOTAL_UPLOAD_BYTES", str(100 * 1024 * 1024)))  # 100 MB
ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/avif")
