import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from bolgen.config import settings
from bolgen.dependencies import enforce_rate_limit, get_bol_pipeline
from bolgen.document_extractor.pipeline import BOLPipeline, BOLRequest
from bolgen.exceptions import BOLGenerationError
from bolgen.schemas.bol import BOLData
from bolgen.services.document_service import (
    collect_documents,
    parse_upload_mode,
    validate_reference_number,
)

logger = logging.getLogger("bolgen.api")

router = APIRouter()

UNEXPECTED_ERROR = "An unexpected error occurred while generating the Bill of Lading. Please try again."

PDF_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


async def _build_request(
    upload_mode: str | None,
    uploads: dict[str, UploadFile | None],
    bol_number: str | None,
    booking_number: str | None,
) -> BOLRequest:
    mode = parse_upload_mode(upload_mode)
    return BOLRequest(
        mode=mode,
        documents=await collect_documents(mode, uploads, settings),
        bol_number=validate_reference_number(bol_number, "BOL Number"),
        booking_number=validate_reference_number(booking_number, "Booking Number"),
    )


@router.post("", response_class=Response)
async def generate_bill_of_lading(
    _client: str = Depends(enforce_rate_limit),
    pipeline: BOLPipeline = Depends(get_bol_pipeline),
    upload_mode: str = Form("separate"),
    packing_list: UploadFile | None = File(None),
    invoice: UploadFile | None = File(None),
    combined_document: UploadFile | None = File(None),
    dangerous_goods_declaration: UploadFile | None = File(None),
    bol_number: str | None = Form(None),
    booking_number: str | None = Form(None),
) -> Response:
    """Generate a Bill of Lading PDF from the uploaded shipping documents."""
    uploads = {
        "packing_list": packing_list,
        "invoice": invoice,
        "combined_document": combined_document,
        "dangerous_goods_declaration": dangerous_goods_declaration,
    }
    try:
        request = await _build_request(upload_mode, uploads, bol_number, booking_number)
        result = await pipeline.run(request)
    except BOLGenerationError as e:
        logger.warning("B/L generation failed (%s): %s", type(e).__name__, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except Exception as e:
        logger.exception("Unexpected error during B/L generation")
        raise HTTPException(status_code=500, detail=UNEXPECTED_ERROR) from e

    headers = {
        **PDF_HEADERS,
        "Content-Disposition": f'attachment; filename="{result.filename}"',
        "X-BOL-Number": result.bol_number,
        "X-Page-Count": str(result.page_count),
    }
    return Response(content=result.pdf_bytes, media_type="application/pdf", headers=headers)


@router.post("/preview", response_model=BOLData)
async def preview_bill_of_lading(
    _client: str = Depends(enforce_rate_limit),
    pipeline: BOLPipeline = Depends(get_bol_pipeline),
    upload_mode: str = Form("separate"),
    packing_list: UploadFile | None = File(None),
    invoice: UploadFile | None = File(None),
    combined_document: UploadFile | None = File(None),
    dangerous_goods_declaration: UploadFile | None = File(None),
) -> BOLData:
    """Return the extracted, normalised BOL data as JSON without rendering a PDF."""
    uploads = {
        "packing_list": packing_list,
        "invoice": invoice,
        "combined_document": combined_document,
        "dangerous_goods_declaration": dangerous_goods_declaration,
    }
    try:
        request = await _build_request(upload_mode, uploads, None, None)
        return await pipeline.extract_bol_data(request)
    except BOLGenerationError as e:
        logger.warning("B/L preview failed (%s): %s", type(e).__name__, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except Exception as e:
        logger.exception("Unexpected error during B/L preview")
        raise HTTPException(status_code=500, detail=UNEXPECTED_ERROR) from e
