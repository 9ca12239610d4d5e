from __future__ import annotations

from pathlib import PurePosixPath

from adops.core.exceptions import ValidationFailed
from adops.models.file import File

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}
DOC_EXTENSIONS = {".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".txt"}
DOC_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
}

CONTENT_FILTERS = ("all", "images", "videos", "docs")


def normalize_content_filter(value: str | None) -> str:
    content_filter = (value or "all").strip().lower()
    if content_filter not in CONTENT_FILTERS:
        raise ValidationFailed(
            "Invalid type. Must be one of: " + ", ".join(CONTENT_FILTERS),
            details={"type": value},
        )
    return content_filter


def matches_content_filter(node: File, content_filter: str) -> bool:
    """Match on the stored name's extension or the recorded content type."""
    if content_filter == "all":
        return True
    ext = PurePosixPath(node.name or "").suffix.lower()
    content_type = node.content_type or ""
    if content_filter == "images":
        return ext in IMAGE_EXTENSIONS or content_type.startswith("image/")
    if content_filter == "videos":
        return ext in VIDEO_EXTENSIONS or content_type.startswith("video/")
    if content_filter == "docs":
        return ext in DOC_EXTENSIONS or content_type in DOC_CONTENT_TYPES
    return True
