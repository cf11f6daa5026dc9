"""
Upload validation for image batches (event images, gallery photos).
Runs before any call to the image host and before any file contents are read.
Per-file problems are collected and reported together.
"""
import os
from dataclasses import dataclass, field
from typing import BinaryIO

from fastapi import UploadFile

from acda_site import config
from acda_site.errors import ApiError

TOO_MANY_FILES = "TOO_MANY_FILES"
INVALID_TYPE = "INVALID_TYPE"
FILE_TOO_LARGE = "FILE_TOO_LARGE"
INVALID_FILES = "INVALID_FILES"
TOTAL_TOO_LARGE = "TOTAL_TOO_LARGE"


@dataclass(frozen=True)
class UploadLimits:
    max_count: int = config.MAX_IMAGE_COUNT
    max_item_bytes: int = config.MAX_IMAGE_BYTES
    max_aggregate_bytes: int = config.MAX_TOTAL_UPLOAD_BYTES
    allowed_types: tuple[str, ...] = config.ACCEPTED_IMAGE_TYPES

    @classmethod
    def from_config(cls) -> "UploadLimits":
        """Limits as currently configured (read at call time, not import time)."""
        return cls(
            max_count=config.MAX_IMAGE_COUNT,
            max_item_bytes=config.MAX_IMAGE_BYTES,
            max_aggregate_bytes=config.MAX_TOTAL_UPLOAD_BYTES,
            allowed_types=config.ACCEPTED_IMAGE_TYPES,
        )


@dataclass
class CandidateFile:
    filename: str
    content_type: str
    size: int
    data: bytes | None = field(default=None, repr=False)
    # Spooled multipart file; read only after the batch is validated
    source: BinaryIO | None = field(default=None, repr=False, compare=False)

    def read(self) -> bytes:
        if self.data is None:
            if self.source is None:
                return b""
            self.source.seek(0)
            self.data = self.source.read()
        return self.data


@dataclass
class ValidatedBatch:
    files: list[CandidateFile]

    @property
    def total_bytes(self) -> int:
        return sum(f.size for f in self.files)

    def __len__(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class FileIssue:
    filename: str
    code: str
    message: str


class UploadValidationError(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, code: str, message: str, issues: list[FileIssue] | None = None, **extra):
        self.issues = issues or []
        details = [{"file": i.filename, "code": i.code, "message": i.message} for i in self.issues] or None
        super().__init__(message, code=code, details=details)
        # Numbers behind the message (excess, current_bytes, total_bytes, remaining_bytes)
        for name, value in extra.items():
            setattr(self, name, value)


def format_file_size(size: int) -> str:
    """Size with one decimal in KB below 1 MB, in MB otherwise (1 KB = 1024 bytes)."""
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_bytes(size: int, decimals: int = 2) -> str:
    """General human-readable size, e.g. 2.5 MB."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB", "PB"]
    i = 0
    while size >= 1024 ** (i + 1) and i < len(units) - 1:
        i += 1
    value = round(size / 1024 ** i, max(decimals, 0))
    return f"{value:g} {units[i]}"


def validate_batch(files: list[CandidateFile], limits: UploadLimits | None = None) -> ValidatedBatch:
    """
    Validate count, then each file's type and size (all issues collected), then aggregate size.
    Files are taken in order; on overflow, "Current" is the size of the files before the one
    that breaks the aggregate limit and "Remaining" is what was left for it.
    Returns the batch unchanged; raises UploadValidationError on the first failing step.
    """
    limits = limits or UploadLimits.from_config()
    if len(files) > limits.max_count:
        excess = len(files) - limits.max_count
        raise UploadValidationError(
            TOO_MANY_FILES,
            f"Maximum {limits.max_count} images allowed. "
            f"You selected {len(files)}; up to {limits.max_count} can be added ({excess} over the limit).",
            excess=excess,
        )

    issues: list[FileIssue] = []
    for f in files:
        if f.content_type not in limits.allowed_types:
            issues.append(FileIssue(f.filename, INVALID_TYPE, f"{f.filename}: Not an allowed image type ({f.content_type or 'unknown'})"))
        if f.size > limits.max_item_bytes:
            issues.append(
                FileIssue(
                    f.filename,
                    FILE_TOO_LARGE,
                    f"{f.filename}: Exceeds {format_file_size(limits.max_item_bytes)} limit ({format_file_size(f.size)})",
                )
            )
    if issues:
        codes = {i.code for i in issues}
        code = issues[0].code if len(codes) == 1 else INVALID_FILES
        raise UploadValidationError(code, "; ".join(i.message for i in issues), issues)

    current = 0
    for f in files:
        if current + f.size > limits.max_aggregate_bytes:
            remaining = limits.max_aggregate_bytes - current
            raise UploadValidationError(
                TOTAL_TOO_LARGE,
                f"Total size would exceed {format_file_size(limits.max_aggregate_bytes)} limit. "
                f"Current: {format_file_size(current)}, Remaining: {format_file_size(remaining)} "
                f"({f.filename} is {format_file_size(f.size)})",
                current_bytes=current,
                total_bytes=sum(c.size for c in files),
                remaining_bytes=remaining,
            )
        current += f.size
    return ValidatedBatch(files=list(files))


def _part_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def read_upload_files(uploads: list[UploadFile] | None) -> list[CandidateFile]:
    """
    Describe multipart parts as CandidateFile without reading their contents.
    Empty parts (no file chosen in the form) are skipped.
    """
    files = []
    for upload in uploads or []:
        size = _part_size(upload)
        if not upload.filename and not size:
            continue
        files.append(
            CandidateFile(
                filename=upload.filename or "upload",
                content_type=(upload.content_type or "").lower(),
                size=size,
                source=upload.file,
            )
        )
    return files
