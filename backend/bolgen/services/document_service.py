import enum
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import UploadFile

from bolgen.config import Settings
from bolgen.exceptions import InputValidationError

REFERENCE_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,50}$")


class UploadMode(str, enum.Enum):
    SEPARATE = "separate"
    COMBINED = "combined"
    DANGEROUS = "dangerous"


# Form field -> human label used in validation messages
UPLOAD_FIELDS = {
    "packing_list": "Packing List",
    "invoice": "Commercial Invoice",
    "combined_document": "Combined Document",
    "dangerous_goods_declaration": "Dangerous Goods Declaration",
}

REQUIRED_FIELDS = {
    UploadMode.SEPARATE: ("packing_list", "invoice"),
    UploadMode.COMBINED: ("combined_document",),
    UploadMode.DANGEROUS: ("packing_list", "invoice", "dangerous_goods_declaration"),
}


@dataclass(frozen=True)
class UploadedDocument:
    """An uploaded file held in memory for the duration of one request."""

    field_name: str
    filename: str
    content_type: str
    content: bytes

    @property
    def label(self) -> str:
        return UPLOAD_FIELDS.get(self.field_name, self.field_name)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


def get_file_extension(filename: str) -> str:
    """Extract the file extension without the dot, lowercased."""
    _, ext = os.path.splitext(filename)
    return ext.lstrip(".").lower()


def get_mime_type(filename: str) -> str:
    """Map file extension to MIME type."""
    ext = get_file_extension(filename)
    mime_map = {
        "pdf": "application/pdf",
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "webp": "image/webp",
    }
    return mime_map.get(ext, "application/octet-stream")


async def read_upload(field_name: str, file: UploadFile | None) -> UploadedDocument | None:
    """Read a multipart upload into memory. Browsers sometimes send no usable content type."""
    if file is None or not file.filename:
        return None
    content = await file.read()
    content_type = (file.content_type or "").lower()
    if not content_type or content_type == "application/octet-stream":
        content_type = get_mime_type(file.filename)
    return UploadedDocument(
        field_name=field_name,
        filename=file.filename,
        content_type=content_type,
        content=content,
    )


def required_fields(mode: UploadMode) -> tuple[str, ...]:
    return REQUIRED_FIELDS[mode]


def validate_upload(document: UploadedDocument | None, field_name: str, settings: Settings) -> UploadedDocument:
    """Reject missing, empty, oversized or unsupported uploads.

    Raises:
        InputValidationError: with a message naming the offending field.
    """
    label = UPLOAD_FIELDS.get(field_name, field_name)
    if document is None:
        raise InputValidationError(f"{label} is required")
    if document.size == 0:
        raise InputValidationError(f"{label} is empty")
    if document.size > settings.max_upload_size_mb * 1024 * 1024:
        raise InputValidationError(
            f"{label} exceeds maximum size of {settings.max_upload_size_mb}MB"
        )
    if document.content_type not in settings.allowed_mime_types:
        raise InputValidationError(f"{label} must be PDF, JPG, PNG, or WebP format")
    return document


def validate_reference_number(value: str | None, label: str) -> str | None:
    """Validate a caller-supplied BOL or booking number. Blank means not supplied."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not REFERENCE_NUMBER_PATTERN.match(value):
        raise InputValidationError(
            f"{label} must be 3-50 characters and contain only letters, numbers, hyphens and underscores"
        )
    return value


def generate_bol_number(now: datetime) -> str:
    """``BOL-`` followed by the last 8 digits of the epoch time in milliseconds."""
    epoch_ms = int(now.timestamp() * 1000)
    return f"BOL-{str(epoch_ms)[-8:]}"


def resolve_bol_number(custom: str | None, now: datetime) -> str:
    return custom or generate_bol_number(now)


def build_pdf_filename(now: datetime) -> str:
    """e.g. ``bill-of-lading-2026-10-19T08-30-00-123Z.pdf``."""
    utc = now.astimezone(timezone.utc)
    stamp = utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"
    return f"bill-of-lading-{re.sub(r'[:.]', '-', stamp)}.pdf"


def format_issue_date(now: datetime) -> str:
    """Long US date, e.g. ``October 19, 2026``."""
    return f"{now.strftime('%B')} {now.day}, {now.year}"


async def collect_documents(
    mode: UploadMode, uploads: dict[str, UploadFile | None], settings: Settings
) -> dict[str, UploadedDocument]:
    """Read and validate exactly the files ``mode`` needs. Other uploads are ignored."""
    documents: dict[str, UploadedDocument] = {}
    for field_name in required_fields(mode):
        document = await read_upload(field_name, uploads.get(field_name))
        documents[field_name] = validate_upload(document, field_name, settings)
    return documents


def parse_upload_mode(value: str | None) -> UploadMode:
    try:
        return UploadMode((value or UploadMode.SEPARATE.value).strip().lower())
    except ValueError:
        raise InputValidationError(
            f"Invalid upload mode '{value}'. Expected one of: separate, combined, dangerous"
        ) from None
