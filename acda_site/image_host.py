"""
Image host client (Cloudinary upload API over httpx).
Requests are signed: SHA-1 of the sorted request params followed by the API secret.
"""
import hashlib
import logging
import time
from dataclasses import dataclass

import httpx

from acda_site.config import (
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_FOLDER,
    HTTP_TIMEOUT,
)

logger = logging.getLogger(__name__)

API_BASE = "https://api.cloudinary.com/v1_1"


class ImageHostError(Exception):
    pass


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None


def _json_object(r: httpx.Response) -> dict:
    """Response body as a JSON object; anything else is an ImageHostError."""
    try:
        body = r.json()
    except ValueError as e:
        raise ImageHostError(f"Unreadable response ({r.status_code}): {r.text[:200]}") from e
    if not isinstance(body, dict):
        raise ImageHostError(f"Unexpected response ({r.status_code}): {r.text[:200]}")
    return body


def sign_params(params: dict, api_secret: str) -> str:
    """Cloudinary signature: sha1("a=1&b=2" + secret) over non-empty params sorted by name."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


class CloudinaryClient:
    def __init__(
        self,
        cloud_name: str = CLOUDINARY_CLOUD_NAME,
        api_key: str = CLOUDINARY_API_KEY,
        api_secret: str = CLOUDINARY_API_SECRET,
        timeout: float = HTTP_TIMEOUT,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    def _check_configured(self) -> None:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise ImageHostError("Cloudinary configuration is missing")

    def _signed(self, params: dict) -> dict:
        params = {**params, "timestamp": int(time.time())}
        return {**params, "api_key": self.api_key, "signature": sign_params(params, self.api_secret)}

    def upload(self, data: bytes, filename: str, content_type: str, folder: str = CLOUDINARY_FOLDER) -> UploadedImage:
        """Upload one image; returns its durable URL and public id."""
        self._check_configured()
        try:
            r = httpx.post(
                f"{API_BASE}/{self.cloud_name}/image/upload",
                data=self._signed({"folder": folder}),
                files={"file": (filename, data, content_type)},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ImageHostError(f"Upload request failed: {e}") from e
        if r.status_code != 200:
            raise ImageHostError(f"Upload rejected ({r.status_code}): {r.text[:200]}")
        body = _json_object(r)
        if not body.get("secure_url") or not body.get("public_id"):
            raise ImageHostError("Upload response missing secure_url or public_id")
        return UploadedImage(
            url=body["secure_url"],
            public_id=body["public_id"],
            width=body.get("width"),
            height=body.get("height"),
            format=body.get("format"),
        )

    def destroy(self, public_id: str) -> None:
        """Delete one image. An already-deleted image ("not found") is not an error."""
        self._check_configured()
        try:
            r = httpx.post(
                f"{API_BASE}/{self.cloud_name}/image/destroy",
                data=self._signed({"public_id": public_id}),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ImageHostError(f"Destroy request failed: {e}") from e
        if r.status_code != 200:
            raise ImageHostError(f"Destroy rejected ({r.status_code}): {r.text[:200]}")
        result = _json_object(r).get("result")
        if result not in ("ok", "not found"):
            raise ImageHostError(f"Destroy returned {result!r}")


def destroy_all(image_host: CloudinaryClient, public_ids: list[str]) -> list[str]:
    """Best-effort delete; failures are logged, never raised. Returns the ids that failed."""
    failed = []
    for public_id in public_ids:
        try:
            image_host.destroy(public_id)
        except ImageHostError as e:
            logger.error("Error deleting image %s from image host: %s", public_id, e)
            failed.append(public_id)
    return failed


_client: CloudinaryClient | None = None


def get_image_host() -> CloudinaryClient:
    """Dependency: shared image host client."""
    global _client
    if _client is None:
        _client = CloudinaryClient()
    return _client
