"""
File Upload Utility - validate uploads before they reach storage.

Upload kinds:
- image     (company logos/covers): JPEG, PNG, GIF, WebP
- resume    (student CV): PDF, DOC, DOCX
- document  (transcripts, certificates, ...): .pdf .doc .docx .jpg .jpeg .png

Max file size: settings.max_upload_size_mb (10MB by default)
"""

import re
from dataclasses import dataclass
from fastapi import UploadFile, HTTPException

from careerconnect.core.config import get_settings

settings = get_settings()

MAX_FILE_SIZE_MB = settings.max_upload_size_mb
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

IMAGE_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
RESUME_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
DOCUMENT_EXTENSIONS = {".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"}

UPLOAD_RULES = {
    "image": "Please select a valid image file (JPEG, PNG, GIF, WebP)",
    "resume": "Please upload a PDF or Word document",
    "document": "Invalid file type. Please upload PDF, DOC, DOCX, JPG, or PNG files.",
}


@dataclass
class UploadedFile:
    content: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def safe_filename(filename: str) -> str:
    """Replace everything outside [A-Za-z0-9.-] with underscores."""
    return re.sub(r"[^a-zA-Z0-9.\-]", "_", filename)


def is_allowed(kind: str, filename: str, content_type: str) -> bool:
    if kind == "image":
        return content_type in IMAGE_CONTENT_TYPES
    if kind == "resume":
        return content_type in RESUME_CONTENT_TYPES
    if kind == "document":
        return get_file_extension(filename) in DOCUMENT_EXTENSIONS
    raise ValueError(f"Unknown upload kind: {kind}")


async def read_upload(file: UploadFile, kind: str) -> UploadedFile:
    """
    Read and validate an uploaded file.

    Raises:
        HTTPException 400 on missing name / wrong type, 413 when too large
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    content_type = (file.content_type or "").lower()
    if not is_allowed(kind, file.filename, content_type):
        raise HTTPException(status_code=400, detail=UPLOAD_RULES[kind])

    content = await file.read()

    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    if len(content) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB"
        )

    return UploadedFile(content=content, filename=file.filename, content_type=content_type)


def get_supported_formats() -> dict:
    """Return upload rules per kind."""
    return {
        "image": sorted(IMAGE_CONTENT_TYPES),
        "resume": sorted(RESUME_CONTENT_TYPES),
        "document": sorted(DOCUMENT_EXTENSIONS),
        "max_size_mb": MAX_FILE_SIZE_MB,
    }
