"""
Claude API service for Bill of Lading extraction.

Supports:
- Structured extraction of BOLData from packing list + commercial invoice text
- Optional dangerous goods declaration section
- Vision transcription of scanned pages and images (OCR)
"""

import json
import logging

import anthropic
from pydantic import ValidationError

from bolgen.config import Settings
from bolgen.exceptions import (
    ExtractionError,
    ProcessingError,
    ProcessingTimeoutError,
    ServiceUnavailableError,
)
from bolgen.schemas.bol import BOLData
from bolgen.services.bol_normalizer import missing_required_fields, normalize_bol_payload

logger = logging.getLogger("bolgen.claude")

EXTRACTION_SYSTEM_PROMPT = """You are an expert shipping document processor specializing in Bills of Lading for ocean freight. Your task is to extract and organize information from shipping documents into a structured JSON format for generating a professional Bill of Lading.

CRITICAL REQUIREMENTS:
1. Return ONLY a valid JSON object: no markdown, no explanations, no additional text
2. Use the EXACT field names and structure specified in the instructions
3. Extract ALL relevant information systematically from every document provided
4. Cross-reference information between documents for accuracy and completeness
5. Use standard shipping industry terminology and formatting"""

EXTRACTION_GUIDELINES = """EXTRACTION GUIDELINES:
- Use exporter/seller as shipper, buyer/consignee as consignee
- Extract container numbers, seal numbers, and shipping marks from either document
- Identify all reference numbers (booking, shipper's reference, etc.)
- Find port information, vessel details, and shipping dates
- Calculate accurate totals for packages, weights, and measurements
- Extract commercial terms (freight, payment, incoterms)
- Look for special instructions, handling requirements, or shipping marks
- Create ONE cargo entry per line item on the packing list, in document order. Never merge or summarise line items"""

BOL_SCHEMA = """{
  "shipper": {
    "name": "full company name",
    "address": "street address",
    "city": "city, state/province, postal code",
    "country": "country name",
    "phone": "phone number if available"
  },
  "consignee": {
    "name": "full company name",
    "address": "street address",
    "city": "city, state/province, postal code",
    "country": "country name",
    "phone": "phone number if available",
    "is_negotiable": false
  },
  "notify_party": {"name": "company name if different from consignee", "address": "full address"},
  "booking_ref": "booking reference number",
  "shipper_ref": "shipper's reference number",
  "imo_number": "IMO vessel number if available",
  "rider_pages": 0,
  "bl_sequence": "3 (Three) Original Bills of Lading",
  "hs_code": "HS code if a single one applies to the shipment",
  "vessel_details": {"vessel_name": "vessel name or TBN", "voyage_number": "voyage number or TBN"},
  "ports": {"loading": "port of loading", "discharge": "port of discharge", "delivery": "final delivery location"},
  "place_of_receipt": "place where goods received by carrier",
  "place_of_delivery": "final delivery location",
  "shipped_on_board_date": "date goods loaded on vessel",
  "place_and_date_of_issue": "where and when B/L issued",
  "discharge_agent": "port agent at discharge port",
  "transport_type": "Port-To-Port or Combined Transport",
  "cargo": [
    {
      "container_numbers": "container numbers if available",
      "seal_numbers": "seal numbers if available",
      "marks": "shipping marks and numbers",
      "description": "detailed description of goods",
      "gross_weight": "weight with unit (kg/lbs)",
      "measurement": "volume/measurement if available",
      "hs_code": "HS code for this line if available",
      "quantity": "number of packages on this line"
    }
  ],
  "totals": {"packages": 0, "gross_weight": "total weight with unit", "measurement": "total volume/CBM"},
  "freight_charges": "freight amount or terms",
  "declared_value": "declared value if any",
  "carrier_receipt": "receipt statement for goods",
  "invoice_details": {"number": "invoice number", "date": "invoice date", "value": "total invoice value", "currency": "currency code (USD/EUR/etc)"},
  "freight_terms": "FOB/CIF/EXW/etc",
  "payment_terms": "payment terms",
  "special_instructions": "special handling instructions",
  "date_of_shipment": "shipment date",
  "carrier_endorsements": "",
  "signed_by": ""
}"""

DANGEROUS_GOODS_SCHEMA = """DANGEROUS GOODS:
A dangerous goods declaration is included. Add one entry per declared substance, in declaration order:
"dangerous_goods": [
  {
    "un_number": "UN number, e.g. UN1263",
    "proper_shipping_name": "proper shipping name",
    "hazard_class": "IMDG class, e.g. 3",
    "packing_group": "I, II or III",
    "marine_pollutant": false,
    "subsidiary_risk": "subsidiary risk class if any",
    "flash_point": "flash point with unit if stated",
    "emergency_contact": "24/7 emergency contact",
    "special_provisions": "special provisions if any",
    "limited_quantity": false,
    "ems_number": "EmS schedule, e.g. F-E, S-E",
    "segregation_group": "segregation group if any"
  }
],
"has_dangerous_goods": true"""

OCR_SYSTEM_PROMPT = """You are an OCR engine for shipping documents. Transcribe the page image exactly as written, as markdown. Keep tables as markdown tables and keep the reading order of the page. Do not summarise, translate, correct or add anything. If the page is blank, return an empty response."""


def parse_json_response(response_text: str) -> dict:
    """Parse JSON from Claude response, handling markdown code blocks."""
    text = response_text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    try:
        result = json.loads(text)
    except (json.JSONDecodeError, IndexError) as e:
        logger.error("Failed to parse Claude response as JSON: %s", e)
        raise ExtractionError("Failed to parse the extracted shipping information") from e

    if not isinstance(result, dict):
        logger.error("Claude response was JSON %s, expected an object", type(result).__name__)
        raise ExtractionError("Failed to parse the extracted shipping information")
    return result


def build_extraction_prompt(
    packing_list_text: str, invoice_text: str, dangerous_goods_text: str | None = None
) -> str:
    sections = [
        "Extract and organize information from these shipping documents to create a comprehensive Bill of Lading.",
        f"PACKING LIST:\n{packing_list_text}",
        f"COMMERCIAL INVOICE:\n{invoice_text}",
    ]
    if dangerous_goods_text:
        sections.append(f"DANGEROUS GOODS DECLARATION:\n{dangerous_goods_text}")
    sections.append(EXTRACTION_GUIDELINES)
    sections.append(
        "Return a JSON object with this EXACT structure "
        "(all fields are optional except shipper, consignee and cargo):\n\n" + BOL_SCHEMA
    )
    if dangerous_goods_text:
        sections.append(DANGEROUS_GOODS_SCHEMA)
    return "\n\n".join(sections)


def _build_content(
    text: str = "", images: list[dict] | None = None, extra_text: str = ""
) -> list[dict]:
    """Build Claude message content array supporting text and vision."""
    content: list[dict] = []

    if images:
        for img in images:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": img["media_type"],
                    "data": img["base64"],
                },
            })

    text_parts = []
    if text.strip():
        text_parts.append(text)
    if extra_text.strip():
        text_parts.append(extra_text)

    if text_parts:
        content.append({"type": "text", "text": "\n\n".join(text_parts)})

    return content


def _response_text(message) -> str:
    return message.content[0].text if message.content else ""


class ClaudeService:
    def __init__(self, settings: Settings):
        self.client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.model = settings.claude_model
        self.ocr_model = settings.claude_ocr_model
        self.max_tokens = settings.claude_max_tokens
        self.temperature = settings.claude_temperature

    async def _create(self, model: str, system: str, content: list[dict]):
        """Call the Messages API, mapping client errors onto the pipeline taxonomy."""
        try:
            return await self.client.messages.create(
                model=model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APITimeoutError as e:
            logger.error("Claude request timed out: %s", e)
            raise ProcessingTimeoutError(
                "Processing timeout. Please try again with smaller files or simpler documents."
            ) from e
        except (anthropic.RateLimitError, anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            logger.error("Claude refused the request (%s): %s", type(e).__name__, e)
            raise ServiceUnavailableError(
                "Service temporarily unavailable due to high demand. Please try again later."
            ) from e
        except anthropic.APIError as e:
            logger.error("Claude API error: %s", e)
            raise ProcessingError("Failed to process shipping information") from e

    async def extract(
        self,
        packing_list_text: str,
        invoice_text: str,
        dangerous_goods_text: str | None = None,
    ) -> BOLData:
        """Extract a validated BOLData from the source document texts.

        Args:
            packing_list_text: OCR text of the packing list.
            invoice_text: OCR text of the commercial invoice.
            dangerous_goods_text: OCR text of the DG declaration, if any.

        Returns:
            BOLData after schema repair and validation.
        """
        prompt = build_extraction_prompt(packing_list_text, invoice_text, dangerous_goods_text)
        logger.info(
            "Extracting BOL data: packing=%d chars, invoice=%d chars, dg=%d chars",
            len(packing_list_text),
            len(invoice_text),
            len(dangerous_goods_text or ""),
        )
        message = await self._create(self.model, EXTRACTION_SYSTEM_PROMPT, _build_content(text=prompt))

        payload = normalize_bol_payload(parse_json_response(_response_text(message)))
        missing = missing_required_fields(payload)
        if missing:
            logger.error("LLM output is missing required fields: %s", ", ".join(missing))
            raise ExtractionError("Missing required fields in the extracted shipping information")

        try:
            bol = BOLData.model_validate(payload)
        except ValidationError as e:
            logger.error("LLM output failed validation: %d errors", e.error_count())
            raise ExtractionError("The extracted shipping information is incomplete or malformed") from e

        logger.info(
            "Extracted BOL data: %d cargo rows, %d dangerous goods entries",
            len(bol.cargo),
            len(bol.dangerous_goods),
        )
        return bol

    async def transcribe_image(self, image_b64: str, media_type: str = "image/png") -> str:
        """OCR a single page image into markdown text."""
        content = _build_content(
            images=[{"base64": image_b64, "media_type": media_type}],
            extra_text="Transcribe this page.",
        )
        message = await self._create(self.ocr_model, OCR_SYSTEM_PROMPT, content)
        return _response_text(message).strip()
