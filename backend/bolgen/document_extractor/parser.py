"""
Document parser: turns an uploaded file into OCR'd pages.

Supports:
- PDF: text extraction via pdfplumber per page; scanned pages (too little
  text) are rendered to PNG and transcribed with Claude vision
- Images (PNG/JPG/WebP): resized, converted to PNG and transcribed as one page
"""

import base64
import io
import logging

import pdfplumber
from PIL import Image

from bolgen.exceptions import InputValidationError
from bolgen.schemas.pages import Page
from bolgen.services.claude_service import ClaudeService
from bolgen.services.document_service import UploadedDocument

logger = logging.getLogger("bolgen.parser")

# Minimum chars per page to consider a PDF page "text-based" vs "scanned"
SCANNED_THRESHOLD = 50

# Max image dimension before resizing (Claude vision has limits)
MAX_IMAGE_DIMENSION = 2048

PAGE_RENDER_RESOLUTION = 200

IMAGE_MIME_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}


def _encode_png(img: Image.Image) -> str:
    if max(img.size) > MAX_IMAGE_DIMENSION:
        ratio = MAX_IMAGE_DIMENSION / max(img.size)
        new_size = (int(img.size[0] * ratio), int(img.size[1] * ratio))
        img = img.resize(new_size, Image.Resampling.LANCZOS)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    img_bytes = io.BytesIO()
    img.save(img_bytes, format="PNG")
    return base64.standard_b64encode(img_bytes.getvalue()).decode("utf-8")


class DocumentParser:
    """Routes documents to the appropriate extraction strategy."""

    def __init__(self, claude_service: ClaudeService, scanned_threshold: int = SCANNED_THRESHOLD):
        self.claude_service = claude_service
        self.scanned_threshold = scanned_threshold

    async def extract_pages(self, document: UploadedDocument) -> list[Page]:
        """Extract the text of every page of ``document``, in order.

        Args:
            document: The uploaded file, held in memory.

        Returns:
            Pages numbered from 1.
        """
        if document.content_type == "application/pdf":
            return await self._parse_pdf(document)
        if document.content_type in IMAGE_MIME_TYPES:
            return await self._parse_image(document)
        raise InputValidationError(f"{document.label} must be PDF, JPG, PNG, or WebP format")

    async def _parse_pdf(self, document: UploadedDocument) -> list[Page]:
        pages: list[Page] = []
        scanned_pages = 0

        with pdfplumber.open(io.BytesIO(document.content)) as pdf:
            for number, page in enumerate(pdf.pages, start=1):
                page_text = page.extract_text() or ""

                if len(page_text.strip()) < self.scanned_threshold:
                    scanned_pages += 1
                    page_image = page.to_image(resolution=PAGE_RENDER_RESOLUTION)
                    page_text = await self.claude_service.transcribe_image(_encode_png(page_image.original))

                pages.append(Page(page_number=number, text=page_text))

        logger.info(
            "Parsed PDF %s: %d pages, %d scanned, %d chars text",
            document.filename,
            len(pages),
            scanned_pages,
            sum(len(p.text) for p in pages),
        )
        return pages

    async def _parse_image(self, document: UploadedDocument) -> list[Page]:
        with Image.open(io.BytesIO(document.content)) as img:
            img_b64 = _encode_png(img)

        text = await self.claude_service.transcribe_image(img_b64)
        logger.info("Parsed image %s: %d chars text", document.filename, len(text))
        return [Page(page_number=1, text=text)]
