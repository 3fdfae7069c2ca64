"""
Keyword page classifier for combined uploads.

A combined upload is one scanned file holding the packing list followed by
the commercial invoice. Each page is scored independently by the presence
of marker phrases; inconclusive pages fall back to their position (page 1
opens the packing list, everything else is treated as invoice).
"""

import logging
from collections.abc import Iterable, Sequence

from bolgen.schemas.pages import ClassifiedPage, DocumentKind, Page

logger = logging.getLogger("bolgen.classifier")

PACKING_LIST_MARKERS: tuple[str, ...] = ("packing list",)
INVOICE_MARKERS: tuple[str, ...] = ("commercial invoice",)


def _marker_score(text: str, markers: Iterable[str]) -> int:
    # presence, not frequency: each marker counts at most once
    return sum(1 for marker in markers if marker in text)


class PageClassifier:
    """Assigns each OCR'd page of a combined document to packing list or invoice."""

    def __init__(
        self,
        packing_markers: Sequence[str] = PACKING_LIST_MARKERS,
        invoice_markers: Sequence[str] = INVOICE_MARKERS,
    ):
        self.packing_markers = tuple(m.lower() for m in packing_markers)
        self.invoice_markers = tuple(m.lower() for m in invoice_markers)

    def classify_page(self, page: Page) -> ClassifiedPage:
        text = page.text.lower()
        packing_score = _marker_score(text, self.packing_markers)
        invoice_score = _marker_score(text, self.invoice_markers)

        if packing_score > invoice_score:
            document_type = DocumentKind.PACKING
        elif invoice_score > packing_score:
            document_type = DocumentKind.INVOICE
        elif page.page_number == 1:
            document_type = DocumentKind.PACKING
        else:
            document_type = DocumentKind.INVOICE

        return ClassifiedPage(
            page_number=page.page_number,
            text=page.text,
            document_type=document_type,
            packing_score=packing_score,
            invoice_score=invoice_score,
        )

    def classify(self, pages: Sequence[Page]) -> list[ClassifiedPage]:
        """Classify every page, preserving input order.

        Args:
            pages: OCR'd pages of one combined document.

        Returns:
            One ClassifiedPage per input page, in the same order.
        """
        classified = [self.classify_page(page) for page in pages]

        logger.info(
            "Classified %d pages: %s",
            len(classified),
            ", ".join(
                f"p{p.page_number}={p.document_type.value}({p.packing_score}/{p.invoice_score})"
                for p in classified
            ),
        )
        return classified
