import enum

from pydantic import BaseModel, ConfigDict, Field


class DocumentKind(str, enum.Enum):
    """Which source document a page of a combined upload belongs to."""

    PACKING = "packing"
    INVOICE = "invoice"
    UNKNOWN = "unknown"


class Page(BaseModel):
    """One OCR'd page. Produced once by text extraction, never mutated."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(..., ge=1, description="1-based page number within the source file")
    text: str = Field("", description="Markdown-ish OCR output for the page")


class ClassifiedPage(Page):
    document_type: DocumentKind = Field(..., description="Assigned source document")
    packing_score: int = Field(0, ge=0, description="Packing list markers present on the page")
    invoice_score: int = Field(0, ge=0, description="Commercial invoice markers present on the page")


class SplitDocuments(BaseModel):
    """The two text blobs reassembled from a combined document."""

    model_config = ConfigDict(frozen=True)

    packing_list_text: str
    invoice_text: str
    packing_pages: tuple[int, ...] = ()
    invoice_pages: tuple[int, ...] = ()
