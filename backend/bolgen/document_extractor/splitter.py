"""
Reassembles classified pages of a combined document into two text blobs.

Fallback order when classification leaves a side empty:
  1. both sides empty  -> split at ceil(n/2)
  2. packing empty     -> pages before the first invoice page
  3. invoice empty     -> pages after the last packing page
"""

import logging
import math
from collections.abc import Sequence

from bolgen.exceptions import ExtractionError
from bolgen.schemas.pages import ClassifiedPage, DocumentKind, Page, SplitDocuments

logger = logging.getLogger("bolgen.splitter")

MIN_DOCUMENT_CHARS = 10


def page_marker(page_number: int) -> str:
    return f"\n\n--- PAGE {page_number} ---\n\n"


def format_pages(pages: Sequence[Page]) -> str:
    """Join pages in page-number order, each prefixed with its page marker."""
    ordered = sorted(pages, key=lambda p: p.page_number)
    return "".join(page_marker(p.page_number) + p.text for p in ordered)


def _content_length(pages: Sequence[Page]) -> int:
    return len("".join(p.text for p in pages).strip())


class DocumentSplitter:
    def __init__(self, min_chars: int = MIN_DOCUMENT_CHARS):
        self.min_chars = min_chars

    def partition(
        self, pages: Sequence[ClassifiedPage]
    ) -> tuple[list[ClassifiedPage], list[ClassifiedPage]]:
        """Assign every page to a side, applying the positional fallbacks."""
        packing = [p for p in pages if p.document_type == DocumentKind.PACKING]
        invoice = [p for p in pages if p.document_type == DocumentKind.INVOICE]

        if not packing and not invoice:
            ordered = sorted(pages, key=lambda p: p.page_number)
            midpoint = math.ceil(len(ordered) / 2)
            packing, invoice = ordered[:midpoint], ordered[midpoint:]
            logger.warning("No page classified, splitting at midpoint (page %d)", midpoint)
        elif not packing:
            first_invoice = min(p.page_number for p in invoice)
            packing = [p for p in pages if p.page_number < first_invoice]
            logger.info("Packing list inferred from %d pages before page %d", len(packing), first_invoice)
        elif not invoice:
            last_packing = max(p.page_number for p in packing)
            invoice = [p for p in pages if p.page_number > last_packing]
            logger.info("Invoice inferred from %d pages after page %d", len(invoice), last_packing)

        return (
            sorted(packing, key=lambda p: p.page_number),
            sorted(invoice, key=lambda p: p.page_number),
        )

    def split(self, pages: Sequence[ClassifiedPage]) -> SplitDocuments:
        """Split a classified combined document into packing list and invoice text.

        Raises:
            ExtractionError: if either side ends up shorter than ``min_chars``
                after trimming.
        """
        if not pages:
            raise ExtractionError("The combined document contains no pages")

        packing, invoice = self.partition(pages)
        packing_text = format_pages(packing)
        invoice_text = format_pages(invoice)

        logger.info(
            "Split combined document: packing pages=%s (%d chars), invoice pages=%s (%d chars)",
            [p.page_number for p in packing],
            len(packing_text),
            [p.page_number for p in invoice],
            len(invoice_text),
        )

        if _content_length(packing) < self.min_chars:
            raise ExtractionError("Could not identify packing list content in the combined document")
        if _content_length(invoice) < self.min_chars:
            raise ExtractionError("Could not identify commercial invoice content in the combined document")

        return SplitDocuments(
            packing_list_text=packing_text,
            invoice_text=invoice_text,
            packing_pages=tuple(p.page_number for p in packing),
            invoice_pages=tuple(p.page_number for p in invoice),
        )
