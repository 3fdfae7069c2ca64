"""Capabilities the pipeline depends on. Production wiring lives in dependencies.py."""

from typing import TYPE_CHECKING, Protocol

from bolgen.schemas.bol import BOLData
from bolgen.schemas.pages import Page

if TYPE_CHECKING:
    from bolgen.services.document_service import UploadedDocument


class TextExtractor(Protocol):
    async def extract_pages(self, document: "UploadedDocument") -> list[Page]:
        """Return the document's pages in order, 1-based."""
        ...


class StructuredExtractor(Protocol):
    async def extract(
        self,
        packing_list_text: str,
        invoice_text: str,
        dangerous_goods_text: str | None = None,
    ) -> BOLData:
        """Turn the source texts into a validated BOLData."""
        ...
