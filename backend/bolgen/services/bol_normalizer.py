"""
Schema repair for LLM output.

The model is asked for the flat ``BOLData`` shape but sometimes answers with
a wrapper object, occasionally in the PascalCase layout of an export
document (``{"BillOfLading": {"Exporter": {...}, ...}}``). This module
turns whatever came back into the canonical dict before validation.
"""

import logging
from typing import Any

logger = logging.getLogger("bolgen.claude")

WRAPPER_KEYS = ("BillOfLading", "billOfLading", "bill_of_lading", "BILL_OF_LADING", "bol")

# Any of these marks a dict as already being in the canonical shape
CANONICAL_KEYS = {"shipper", "consignee", "cargo", "ports", "totals"}

# Any of these marks the nested PascalCase export layout
EXPORT_LAYOUT_KEYS = {"Exporter", "Consignee", "CargoDescription", "ShipmentDetails"}

REQUIRED_FIELDS = ("shipper", "consignee", "cargo")


def _is_canonical(payload: dict) -> bool:
    return bool(CANONICAL_KEYS & payload.keys())


def _is_export_layout(payload: dict) -> bool:
    return bool(EXPORT_LAYOUT_KEYS & payload.keys())


def _unwrap(payload: dict) -> dict:
    """Strip a known wrapper key, or a single key wrapping a recognisable shape."""
    for key in WRAPPER_KEYS:
        inner = payload.get(key)
        if isinstance(inner, dict):
            logger.info("Unwrapping LLM payload from '%s'", key)
            return inner
    if len(payload) == 1 and not _is_canonical(payload):
        (key, inner), = payload.items()
        if isinstance(inner, dict) and (_is_canonical(inner) or _is_export_layout(inner)):
            logger.info("Unwrapping LLM payload from '%s'", key)
            return inner
    return payload


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _split_address(address: Any) -> tuple[str, str]:
    """'12 Dock Rd, Mumbai 400001' -> ('12 Dock Rd', 'Mumbai 400001')."""
    street, _, rest = _text(address).partition(",")
    return street.strip(), rest.strip()


def _with_unit(value: Any, unit: str = "kg") -> str:
    return f"{_text(value) or 0} {unit}"


def _remap_party(source: dict) -> dict:
    address, city = _split_address(source.get("Address"))
    return {
        "name": _text(source.get("Name")),
        "address": address,
        "city": city,
        "country": _text(source.get("Country")),
        "phone": source.get("Phone"),
    }


def _remap_invoice(source: dict, exporter: dict) -> dict | None:
    number_and_date = _text(exporter.get("InvoiceNoAndDate") or source.get("InvoiceNoAndDate"))
    value = source.get("InvoiceValue")
    if not number_and_date and value is None:
        return None
    _, _, date = number_and_date.partition(" dt ")
    return {
        "number": number_and_date.split(" ")[0] if number_and_date else "",
        "date": date.strip(),
        "value": _text(value),
        "currency": _text(source.get("Currency")) or "USD",
    }


def remap_export_layout(source: dict) -> dict:
    """Map the nested PascalCase export document layout onto the BOLData shape."""
    exporter = source.get("Exporter") or {}
    consignee = source.get("Consignee") or {}
    notify = source.get("NotifyParty") or {}
    vessel = source.get("VesselAndShippingLine") or {}
    shipment = source.get("ShipmentDetails") or {}
    cargo_section = source.get("CargoDescription")
    terms = source.get("FreightAndPaymentTerms") or {}

    # Usually a list with totals beside it; some answers nest items and totals in one object
    if isinstance(cargo_section, dict):
        items = cargo_section.get("Items") or []
        totals_source = {**cargo_section, **source}
    else:
        items = cargo_section or []
        totals_source = source

    cargo = [
        {
            "description": _text(item.get("ItemDescription")),
            "hs_code": item.get("HSNCode"),
            "quantity": item.get("NumberOfBags"),
            "gross_weight": _with_unit(item.get("NetWeightKgs")),
            "measurement": item.get("Volume"),
        }
        for item in items
        if isinstance(item, dict)
    ]

    instructions = source.get("SpecialInstructions")
    if isinstance(instructions, list):
        instructions = ", ".join(_text(i) for i in instructions if _text(i))

    remapped = {
        "shipper": _remap_party(exporter),
        "consignee": _remap_party(consignee),
        "notify_party": {
            "name": _text(notify.get("Name")),
            "address": _text(notify.get("Address")),
        }
        if notify
        else None,
        "vessel_details": {
            "vessel_name": _text(vessel.get("VesselName")) or "TBN",
            "voyage_number": _text(vessel.get("VoyageNumber")) or "TBN",
        },
        "ports": {
            "loading": _text(shipment.get("PortOfLoading")),
            "discharge": _text(shipment.get("PortOfDischarge")),
            "delivery": shipment.get("CountryOfDestination"),
        },
        "cargo": cargo,
        "totals": {
            "packages": totals_source.get("TotalBags"),
            "gross_weight": _with_unit(totals_source.get("TotalGrossWeightKgs")),
            "measurement": totals_source.get("TotalMeasurement"),
        },
        "invoice_details": _remap_invoice(source, exporter),
        "freight_terms": terms.get("TermsOfDelivery"),
        "payment_terms": terms.get("TermsOfPayment"),
        "special_instructions": instructions or None,
        "date_of_shipment": source.get("DateOfShipment"),
    }
    if cargo_section is None:
        # Leave cargo absent so the required-field check reports it
        del remapped["cargo"]
    return remapped


def _repair_dangerous_goods(payload: dict) -> None:
    goods = payload.get("dangerous_goods")
    if goods is None:
        payload["dangerous_goods"] = []
    elif isinstance(goods, dict):
        payload["dangerous_goods"] = [goods]
    payload["has_dangerous_goods"] = bool(payload["dangerous_goods"])


def normalize_bol_payload(payload: dict) -> dict:
    """Return a copy of ``payload`` in the canonical BOLData shape.

    Unknown wrappers are stripped, the export layout is remapped, and
    ``dangerous_goods`` is coerced to a list with ``has_dangerous_goods``
    mirroring it. Only the optional ``ports`` and ``totals`` sections are
    defaulted; required fields are left for the caller to check.
    """
    data = _unwrap(dict(payload))
    if _is_export_layout(data) and not _is_canonical(data):
        logger.info("Remapping export-layout LLM payload")
        data = remap_export_layout(data)
    else:
        data = dict(data)
    data.setdefault("ports", {})
    data.setdefault("totals", {})
    _repair_dangerous_goods(data)
    return data


def missing_required_fields(payload: dict) -> list[str]:
    return [name for name in REQUIRED_FIELDS if payload.get(name) in (None, "", {})]
