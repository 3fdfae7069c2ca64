"""Tests for the BOL generation pipeline with fake extractors."""

import asyncio
import io

import pdfplumber
import pytest

from bolgen.document_extractor.pipeline import BOLPipeline, BOLRequest
from bolgen.exceptions import ExtractionError, ProcessingError, ProcessingTimeoutError
from bolgen.schemas.pages import Page
from bolgen.services.document_service import UploadedDocument, UploadMode

from conftest import DG_TEXT, FakeStructuredExtractor, FakeTextExtractor


def _doc(field_name: str) -> UploadedDocument:
    return UploadedDocument(field_name, f"{field_name}.pdf", "application/pdf", b"%PDF-1.4")


def _request(mode: UploadMode, bol_number=None, booking_number=None) -> BOLRequest:
    fields = {
        UploadMode.SEPARATE: ("packing_list", "invoice"),
        UploadMode.COMBINED: ("combined_document",),
        UploadMode.DANGEROUS: ("packing_list", "invoice", "dangerous_goods_declaration"),
    }[mode]
    return BOLRequest(
        mode=mode,
        documents={name: _doc(name) for name in fields},
        bol_number=bol_number,
        booking_number=booking_number,
    )


class TestExtractTexts:
    async def test_separate_mode(self, pipeline, text_extractor):
        texts = await pipeline.extract_texts(_request(UploadMode.SEPARATE))
        assert sorted(text_extractor.calls) == ["invoice", "packing_list"]
        assert texts.packing_list_text.startswith("\n\n--- PAGE 1 ---\n\nPACKING LIST")
        assert "COMMERCIAL INVOICE" in texts.invoice_text
        assert texts.dangerous_goods_text is None

    async def test_dangerous_mode_includes_declaration(self, pipeline, text_extractor):
        texts = await pipeline.extract_texts(_request(UploadMode.DANGEROUS))
        assert len(text_extractor.calls) == 3
        assert DG_TEXT in texts.dangerous_goods_text

    async def test_combined_mode_splits_pages(self, pipeline, text_extractor):
        texts = await pipeline.extract_texts(_request(UploadMode.COMBINED))
        assert text_extractor.calls == ["combined_document"]
        assert "PACKING LIST" in texts.packing_list_text
        assert "COMMERCIAL INVOICE" in texts.invoice_text
        assert "COMMERCIAL INVOICE" not in texts.packing_list_text

    async def test_combined_all_invoice_pages(self, test_settings, structured_extractor):
        extractor = FakeTextExtractor({
            "combined_document": [
                Page(page_number=n, text=f"COMMERCIAL INVOICE page {n}") for n in (1, 2, 3)
            ]
        })
        pipeline = BOLPipeline(test_settings, extractor, structured_extractor)
        with pytest.raises(ExtractionError, match="packing list"):
            await pipeline.extract_texts(_request(UploadMode.COMBINED))

    async def test_blank_combined_document(self, test_settings, structured_extractor):
        extractor = FakeTextExtractor({"combined_document": [Page(page_number=1, text=" ")]})
        pipeline = BOLPipeline(test_settings, extractor, structured_extractor)
        with pytest.raises(ExtractionError, match="combined document"):
            await pipeline.extract_texts(_request(UploadMode.COMBINED))

    async def test_too_little_text(self, test_settings, structured_extractor):
        extractor = FakeTextExtractor({
            "packing_list": [Page(page_number=1, text="")],
            "invoice": [Page(page_number=1, text="COMMERCIAL INVOICE total 100")],
        })
        pipeline = BOLPipeline(test_settings, extractor, structured_extractor)
        with pytest.raises(ExtractionError, match="meaningful text from packing list"):
            await pipeline.extract_texts(_request(UploadMode.SEPARATE))

    async def test_blank_declaration_in_dangerous_mode(self, test_settings, structured_extractor):
        extractor = FakeTextExtractor({
            "packing_list": [Page(page_number=1, text="PACKING LIST 400 bags basmati rice")],
            "invoice": [Page(page_number=1, text="COMMERCIAL INVOICE total 100")],
            "dangerous_goods_declaration": [Page(page_number=1, text=""), Page(page_number=2, text="  ")],
        })
        pipeline = BOLPipeline(test_settings, extractor, structured_extractor)
        with pytest.raises(ExtractionError, match="meaningful text from dangerous goods declaration"):
            await pipeline.extract_bol_data(_request(UploadMode.DANGEROUS))
        assert structured_extractor.calls == []

    async def test_ocr_failure_becomes_extraction_error(self, test_settings, structured_extractor):
        extractor = FakeTextExtractor({
            "packing_list": RuntimeError("ocr backend down"),
            "invoice": [Page(page_number=1, text="COMMERCIAL INVOICE total 100")],
        })
        pipeline = BOLPipeline(test_settings, extractor, structured_extractor)
        with pytest.raises(ExtractionError, match="Failed to extract text") as exc_info:
            await pipeline.extract_texts(_request(UploadMode.SEPARATE))
        assert "ocr backend down" not in exc_info.value.message


class TestExtractBOLData:
    async def test_passes_texts_to_extractor(self, pipeline, structured_extractor, sample_bol):
        result = await pipeline.extract_bol_data(_request(UploadMode.DANGEROUS))
        assert result is sample_bol
        packing, invoice, dg = structured_extractor.calls[0]
        assert "PACKING LIST" in packing
        assert "COMMERCIAL INVOICE" in invoice
        assert "UN1263" in dg

    async def test_unexpected_extractor_error(self, test_settings, text_extractor):
        pipeline = BOLPipeline(test_settings, text_extractor, FakeStructuredExtractor(KeyError("boom")))
        with pytest.raises(ProcessingError):
            await pipeline.extract_bol_data(_request(UploadMode.SEPARATE))

    async def test_extraction_error_passes_through(self, test_settings, text_extractor):
        error = ExtractionError("Missing required fields in the extracted shipping information")
        pipeline = BOLPipeline(test_settings, text_extractor, FakeStructuredExtractor(error))
        with pytest.raises(ExtractionError) as exc_info:
            await pipeline.extract_bol_data(_request(UploadMode.SEPARATE))
        assert exc_info.value is error


class TestRun:
    async def test_produces_pdf(self, pipeline):
        result = await pipeline.run(_request(UploadMode.SEPARATE, bol_number="BOL-CUSTOM-9"))

        assert result.bol_number == "BOL-CUSTOM-9"
        assert result.filename.startswith("bill-of-lading-")
        assert result.filename.endswith("Z.pdf")
        assert result.page_count == 1
        assert result.rider_pages == 0
        with pdfplumber.open(io.BytesIO(result.pdf_bytes)) as pdf:
            assert len(pdf.pages) == result.page_count
            assert "BOL-CUSTOM-9" in pdf.pages[0].extract_text()

    async def test_generates_bol_number(self, pipeline):
        result = await pipeline.run(_request(UploadMode.COMBINED))
        assert result.bol_number.startswith("BOL-")
        assert len(result.bol_number) == 12

    async def test_multi_page_result(self, test_settings, text_extractor, make_bol):
        pipeline = BOLPipeline(test_settings, text_extractor, FakeStructuredExtractor(make_bol(60)))
        result = await pipeline.run(_request(UploadMode.SEPARATE))
        assert result.page_count > 1
        assert result.rider_pages == result.page_count - 1

    async def test_render_failure(self, test_settings, text_extractor, structured_extractor):
        class BrokenRenderer:
            def render(self, tree):
                raise RuntimeError("disk full")

        pipeline = BOLPipeline(test_settings, text_extractor, structured_extractor, renderer=BrokenRenderer())
        with pytest.raises(ProcessingError, match="Failed to generate PDF"):
            await pipeline.run(_request(UploadMode.SEPARATE))

    async def test_timeout(self, test_settings, sample_bol):
        class SlowExtractor(FakeTextExtractor):
            async def extract_pages(self, document):
                await asyncio.sleep(5)
                return await super().extract_pages(document)

        settings = test_settings.model_copy(update={"processing_timeout_seconds": 0.05})
        pipeline = BOLPipeline(settings, SlowExtractor(), FakeStructuredExtractor(sample_bol))
        with pytest.raises(ProcessingTimeoutError):
            await pipeline.run(_request(UploadMode.SEPARATE))
