"""
Bill of Lading generation pipeline.

Flow:
  1. OCR the uploaded documents (concurrently in separate/dangerous mode)
  2. Combined mode: classify pages and split into packing list + invoice
  3. Extract structured BOLData with the LLM
  4. Two-pass layout into a render tree
  5. Render the tree to PDF bytes
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from bolgen.config import Settings
from bolgen.document_extractor.classifier import PageClassifier
from bolgen.document_extractor.splitter import DocumentSplitter, format_pages
from bolgen.exceptions import (
    BOLGenerationError,
    ExtractionError,
    ProcessingError,
    ProcessingTimeoutError,
)
from bolgen.layout_engine import DEFAULT_GEOMETRY, PageGeometry, RenderTree, layout_document
from bolgen.renderer import PDFRenderer
from bolgen.schemas.bol import BOLData
from bolgen.schemas.pages import Page
from bolgen.services.base import StructuredExtractor, TextExtractor
from bolgen.services.document_service import (
    UploadedDocument,
    UploadMode,
    build_pdf_filename,
    format_issue_date,
    resolve_bol_number,
)

logger = logging.getLogger("bolgen.pipeline")

OCR_FAILURE_MESSAGE = "Failed to extract text from documents. Please ensure your files are clear and readable."


@dataclass
class BOLRequest:
    """One validated generation request."""

    mode: UploadMode
    documents: dict[str, UploadedDocument]
    bol_number: str | None = None
    booking_number: str | None = None


@dataclass
class SourceTexts:
    packing_list_text: str
    invoice_text: str
    dangerous_goods_text: str | None = None


@dataclass
class BOLResult:
    """Complete result of the generation pipeline."""

    pdf_bytes: bytes
    filename: str
    bol_number: str
    bol_data: BOLData
    page_count: int
    rider_pages: int
    processing_time_ms: int = 0
    metadata: dict = field(default_factory=dict)


class BOLPipeline:
    """Orchestrates the full upload-to-PDF flow."""

    def __init__(
        self,
        settings: Settings,
        text_extractor: TextExtractor,
        structured_extractor: StructuredExtractor,
        renderer: PDFRenderer | None = None,
        geometry: PageGeometry | None = None,
    ):
        self.settings = settings
        self.text_extractor = text_extractor
        self.structured_extractor = structured_extractor
        self.renderer = renderer or PDFRenderer()
        self.geometry = geometry or DEFAULT_GEOMETRY
        self.classifier = PageClassifier()
        self.splitter = DocumentSplitter(min_chars=settings.min_document_chars)

    async def _ocr_pages(self, document: UploadedDocument) -> list[Page]:
        try:
            return await self.text_extractor.extract_pages(document)
        except BOLGenerationError:
            raise
        except Exception as e:
            logger.exception("Text extraction failed for %s", document.label)
            raise ExtractionError(OCR_FAILURE_MESSAGE) from e

    def _require_text(self, pages: list[Page], document: UploadedDocument) -> None:
        text = "".join(p.text for p in pages)
        if len(text.strip()) < self.settings.min_document_chars:
            raise ExtractionError(f"Could not extract meaningful text from {document.label.lower()}")

    async def extract_texts(self, request: BOLRequest) -> SourceTexts:
        """OCR the request's documents into packing list / invoice (/ DG) text.

        Raises:
            ExtractionError: OCR failed or produced too little text.
        """
        docs = request.documents

        if request.mode == UploadMode.COMBINED:
            combined = docs["combined_document"]
            pages = await self._ocr_pages(combined)
            self._require_text(pages, combined)
            split = self.splitter.split(self.classifier.classify(pages))
            return SourceTexts(split.packing_list_text, split.invoice_text)

        ordered = [docs["packing_list"], docs["invoice"]]
        if request.mode == UploadMode.DANGEROUS:
            ordered.append(docs["dangerous_goods_declaration"])

        results = await asyncio.gather(*(self._ocr_pages(doc) for doc in ordered))
        for pages, doc in zip(results, ordered):
            self._require_text(pages, doc)
        texts = [format_pages(pages) for pages in results]

        logger.info(
            "Extracted text: %s",
            ", ".join(f"{doc.field_name}={len(text)} chars" for doc, text in zip(ordered, texts)),
        )
        return SourceTexts(
            packing_list_text=texts[0],
            invoice_text=texts[1],
            dangerous_goods_text=texts[2] if len(texts) > 2 else None,
        )

    async def extract_bol_data(self, request: BOLRequest) -> BOLData:
        """OCR + structured extraction, without layout or rendering."""
        texts = await self.extract_texts(request)
        try:
            return await self.structured_extractor.extract(
                texts.packing_list_text,
                texts.invoice_text,
                texts.dangerous_goods_text,
            )
        except BOLGenerationError:
            raise
        except Exception as e:
            logger.exception("Structured extraction failed")
            raise ProcessingError("Failed to process shipping information") from e

    def build_layout(self, bol: BOLData, bol_number: str, now: datetime, booking_number: str | None = None) -> RenderTree:
        return layout_document(
            bol,
            self.geometry,
            bol_number=bol_number,
            issue_date=format_issue_date(now),
            booking_number=booking_number,
            carrier_name=self.settings.carrier_name,
        )

    async def _generate(self, request: BOLRequest) -> BOLResult:
        start_time = time.monotonic()
        now = datetime.now(timezone.utc)
        bol_number = resolve_bol_number(request.bol_number, now)

        logger.info("Generating B/L %s (mode=%s)", bol_number, request.mode.value)
        bol = await self.extract_bol_data(request)

        try:
            tree = self.build_layout(bol, bol_number, now, request.booking_number)
            pdf_bytes = self.renderer.render(tree)
        except Exception as e:
            logger.exception("Layout/render failed for B/L %s", bol_number)
            raise ProcessingError("Failed to generate PDF document. Please try again.") from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info("B/L %s complete in %d ms", bol_number, elapsed_ms)

        return BOLResult(
            pdf_bytes=pdf_bytes,
            filename=build_pdf_filename(now),
            bol_number=bol_number,
            bol_data=bol,
            page_count=tree.page_count,
            rider_pages=tree.rider_pages,
            processing_time_ms=elapsed_ms,
            metadata={"mode": request.mode.value, "cargo_rows": len(bol.cargo)},
        )

    async def run(self, request: BOLRequest) -> BOLResult:
        """Run the whole pipeline under the processing deadline.

        Raises:
            ProcessingTimeoutError: the deadline passed.
            BOLGenerationError: any other classified failure.
        """
        try:
            return await asyncio.wait_for(
                self._generate(request), timeout=self.settings.processing_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            if isinstance(e, ProcessingTimeoutError):
                raise
            logger.error(
                "B/L generation exceeded %.0fs deadline", self.settings.processing_timeout_seconds
            )
            raise ProcessingTimeoutError(
                "Processing timeout. Please try again with smaller files or simpler documents."
            ) from e
