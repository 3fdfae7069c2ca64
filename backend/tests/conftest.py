import io

import pytest
from httpx import ASGITransport, AsyncClient
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from bolgen.config import Settings
from bolgen.document_extractor.pipeline import BOLPipeline
from bolgen.schemas.bol import BOLData
from bolgen.schemas.pages import Page
from bolgen.services.rate_limiter import RateLimiter

PACKING_LIST_TEXT = """PACKING LIST
Exporter: Sunrise Agro Exports Pvt Ltd, 14 Marine Drive, Mumbai 400002, India
Consignee: Gulf Foods Trading LLC, PO Box 1123, Dubai, UAE
| Item | Bags | Net Wt |
| Basmati Rice 1121 | 400 | 20000 kg |"""

INVOICE_TEXT = """COMMERCIAL INVOICE
Invoice No: SAE/2026/118 dt 12.10.2026
Terms of delivery: CIF Jebel Ali
Total value: USD 28,400.00"""

DG_TEXT = """DANGEROUS GOODS DECLARATION
UN1263 PAINT, Class 3, PG III, Flash point 23C"""


def make_bol_payload(rows: int = 2, **overrides) -> dict:
    payload = {
        "shipper": {
            "name": "Sunrise Agro Exports Pvt Ltd",
            "address": "14 Marine Drive",
            "city": "Mumbai 400002",
            "country": "India",
            "phone": "+91 22 5555 0101",
        },
        "consignee": {
            "name": "Gulf Foods Trading LLC",
            "address": "PO Box 1123",
            "city": "Dubai",
            "country": "UAE",
            "is_negotiable": False,
        },
        "notify_party": {"name": "Same as consignee", "address": ""},
        "booking_ref": "MSKU-BK-7781",
        "shipper_ref": "SAE/2026/118",
        "vessel_details": {"vessel_name": "MAERSK KOLKATA", "voyage_number": "241W"},
        "ports": {"loading": "Nhava Sheva, India", "discharge": "Jebel Ali, UAE"},
        "transport_type": "Port-To-Port",
        "cargo": [
            {
                "container_numbers": f"MSKU{1000000 + i}",
                "seal_numbers": f"SL{500 + i}",
                "marks": "SAE/GFT",
                "description": f"Basmati Rice 1121, lot {i + 1}",
                "gross_weight": f"{1000 + i} kg",
                "measurement": "1.5 CBM",
            }
            for i in range(rows)
        ],
        "totals": {"packages": 400, "gross_weight": "20000 kg", "measurement": "30 CBM"},
        "freight_terms": "CIF",
        "payment_terms": "LC at sight",
        "invoice_details": {"number": "SAE/2026/118", "date": "12.10.2026", "value": "28400", "currency": "USD"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def bol_payload() -> dict:
    return make_bol_payload()


@pytest.fixture
def make_bol():
    """Factory for BOLData with ``rows`` cargo lines."""

    def _make(rows: int = 2, **overrides) -> BOLData:
        return BOLData.model_validate(make_bol_payload(rows, **overrides))

    return _make


@pytest.fixture
def sample_bol(make_bol) -> BOLData:
    return make_bol(2)


def build_pdf(pages: list[str]) -> bytes:
    """Build a text PDF with one page per entry (lines split on newlines)."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    for text in pages:
        y = A4[1] - 72
        c.setFont("Helvetica", 11)
        for line in text.splitlines():
            c.drawString(72, y, line)
            y -= 14
        c.showPage()
    c.save()
    return buffer.getvalue()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf([PACKING_LIST_TEXT, INVOICE_TEXT])


class FakeTextExtractor:
    """Returns canned pages per upload field; records which fields were OCR'd."""

    def __init__(self, pages_by_field: dict[str, list[Page] | Exception] | None = None):
        self.pages_by_field = pages_by_field or {
            "packing_list": [Page(page_number=1, text=PACKING_LIST_TEXT)],
            "invoice": [Page(page_number=1, text=INVOICE_TEXT)],
            "dangerous_goods_declaration": [Page(page_number=1, text=DG_TEXT)],
            "combined_document": [
                Page(page_number=1, text=PACKING_LIST_TEXT),
                Page(page_number=2, text=INVOICE_TEXT),
            ],
        }
        self.calls: list[str] = []

    async def extract_pages(self, document) -> list[Page]:
        self.calls.append(document.field_name)
        result = self.pages_by_field[document.field_name]
        if isinstance(result, Exception):
            raise result
        return result


class FakeStructuredExtractor:
    """Returns a fixed BOLData (or raises); records the texts it was given."""

    def __init__(self, result: BOLData | Exception):
        self.result = result
        self.calls: list[tuple[str, str, str | None]] = []

    async def extract(self, packing_list_text, invoice_text, dangerous_goods_text=None) -> BOLData:
        self.calls.append((packing_list_text, invoice_text, dangerous_goods_text))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        processing_timeout_seconds=5.0,
        _env_file=None,
    )


@pytest.fixture
def text_extractor() -> FakeTextExtractor:
    return FakeTextExtractor()


@pytest.fixture
def structured_extractor(sample_bol) -> FakeStructuredExtractor:
    return FakeStructuredExtractor(sample_bol)


@pytest.fixture
def pipeline(test_settings, text_extractor, structured_extractor) -> BOLPipeline:
    return BOLPipeline(test_settings, text_extractor, structured_extractor)


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter(limit=3, window_seconds=3600)


@pytest.fixture
async def client(pipeline, rate_limiter):
    from bolgen.dependencies import get_bol_pipeline, get_rate_limiter
    from bolgen.main import app

    app.dependency_overrides[get_bol_pipeline] = lambda: pipeline
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
