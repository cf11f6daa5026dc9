"""
Request body models. Type and shape errors surface as 400 VALIDATION_ERROR through the
request validation handler in errors.py.
"""
import re
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from acda_site.errors import validation_error_details

PHONE_RE = re.compile(r"^[0-9]{10}$")
MIN_PHOTO_YEAR = 1900


class ContactForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str | None = None
    subject: str = Field(min_length=3, max_length=200)
    message: str = Field(min_length=10, max_length=1000)

    @field_validator("phone")
    @classmethod
    def _valid_phone(cls, v: str | None) -> str | None:
        if not v:
            return None
        if not PHONE_RE.match(v):
            raise ValueError("Phone number must be exactly 10 digits")
        return v


class PhotoRegistration(BaseModel):
    """A gallery photo already uploaded to the image host by the client."""

    model_config = ConfigDict(str_strip_whitespace=True)

    eventName: str = Field(min_length=1, max_length=200)
    year: int
    imageUrl: str = Field(min_length=1)
    publicId: str = Field(min_length=1, max_length=255)
    width: int | None = None
    height: int | None = None
    format: str | None = Field(default=None, max_length=16)

    @field_validator("year")
    @classmethod
    def _valid_year(cls, v: int) -> int:
        max_year = datetime.now(timezone.utc).year + 1
        if v < MIN_PHOTO_YEAR or v > max_year:
            raise ValueError(f"Year must be between {MIN_PHOTO_YEAR} and {max_year}")
        return v


class AdminCredentials(BaseModel):
    username: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


def validation_details(exc: ValidationError) -> list[dict]:
    return validation_error_details(exc.errors())
