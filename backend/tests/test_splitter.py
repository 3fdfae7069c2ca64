"""Tests for DocumentSplitter and page formatting."""

import pytest

from bolgen.document_extractor.classifier import PageClassifier
from bolgen.document_extractor.splitter import DocumentSplitter, format_pages, page_marker
from bolgen.exceptions import ExtractionError
from bolgen.schemas.pages import ClassifiedPage, DocumentKind, Page


def _page(number: int, kind: DocumentKind, text: str | None = None) -> ClassifiedPage:
    return ClassifiedPage(
        page_number=number,
        text=text if text is not None else f"content of page {number}",
        document_type=kind,
    )


@pytest.fixture
def splitter():
    return DocumentSplitter()


class TestFormatPages:
    def test_marker_format(self):
        assert page_marker(3) == "\n\n--- PAGE 3 ---\n\n"

    def test_joins_in_page_order(self):
        pages = [Page(page_number=2, text="two"), Page(page_number=1, text="one")]
        assert format_pages(pages) == "\n\n--- PAGE 1 ---\n\none\n\n--- PAGE 2 ---\n\ntwo"

    def test_empty(self):
        assert format_pages([]) == ""


class TestPartition:
    def test_every_page_assigned_once(self, splitter):
        kinds = [DocumentKind.PACKING, DocumentKind.INVOICE, DocumentKind.PACKING, DocumentKind.INVOICE]
        pages = [_page(i + 1, kind) for i, kind in enumerate(kinds)]
        packing, invoice = splitter.partition(pages)

        assigned = [p.page_number for p in packing] + [p.page_number for p in invoice]
        assert sorted(assigned) == [1, 2, 3, 4]
        assert len(set(assigned)) == 4

    def test_sides_sorted_by_page_number(self, splitter):
        pages = [_page(3, DocumentKind.PACKING), _page(1, DocumentKind.PACKING), _page(2, DocumentKind.INVOICE)]
        packing, invoice = splitter.partition(pages)
        assert [p.page_number for p in packing] == [1, 3]
        assert [p.page_number for p in invoice] == [2]

    def test_invoice_inferred_after_last_packing_page(self, splitter):
        pages = [_page(1, DocumentKind.PACKING), _page(2, DocumentKind.PACKING)]
        packing, invoice = splitter.partition(pages)
        assert [p.page_number for p in packing] == [1, 2]
        assert invoice == []

    def test_midpoint_fallback_when_nothing_classified(self, splitter):
        pages = [_page(n, DocumentKind.UNKNOWN) for n in range(1, 6)]
        packing, invoice = splitter.partition(pages)
        assert [p.page_number for p in packing] == [1, 2, 3]
        assert [p.page_number for p in invoice] == [4, 5]


class TestSplit:
    def test_split_two_sided_document(self, splitter):
        pages = PageClassifier().classify([
            Page(page_number=1, text="PACKING LIST\n400 bags basmati rice"),
            Page(page_number=2, text="COMMERCIAL INVOICE\nUSD 28,400"),
        ])
        result = splitter.split(pages)
        assert result.packing_pages == (1,)
        assert result.invoice_pages == (2,)
        assert result.packing_list_text.startswith("\n\n--- PAGE 1 ---\n\nPACKING LIST")
        assert "USD 28,400" in result.invoice_text

    def test_page_order_preserved_within_side(self, splitter):
        pages = [
            _page(3, DocumentKind.INVOICE, "third"),
            _page(1, DocumentKind.PACKING, "first"),
            _page(2, DocumentKind.INVOICE, "second"),
        ]
        result = splitter.split(pages)
        assert result.invoice_text.index("second") < result.invoice_text.index("third")

    def test_all_invoice_pages_fails_on_packing_list(self, splitter):
        pages = PageClassifier().classify([
            Page(page_number=n, text=f"COMMERCIAL INVOICE page {n}") for n in (1, 2, 3)
        ])
        with pytest.raises(ExtractionError, match="packing list"):
            splitter.split(pages)

    def test_missing_invoice_fails(self, splitter):
        pages = [_page(1, DocumentKind.PACKING), _page(2, DocumentKind.PACKING)]
        with pytest.raises(ExtractionError, match="commercial invoice"):
            splitter.split(pages)

    def test_no_pages(self, splitter):
        with pytest.raises(ExtractionError):
            splitter.split([])

    def test_min_chars_threshold(self):
        splitter = DocumentSplitter(min_chars=200)
        pages = [_page(1, DocumentKind.PACKING, "short"), _page(2, DocumentKind.INVOICE, "x" * 300)]
        with pytest.raises(ExtractionError, match="packing list"):
            splitter.split(pages)

    def test_blank_page_side_fails(self, splitter):
        pages = [_page(1, DocumentKind.PACKING, "   "), _page(2, DocumentKind.INVOICE, "x" * 300)]
        with pytest.raises(ExtractionError, match="packing list"):
            splitter.split(pages)
