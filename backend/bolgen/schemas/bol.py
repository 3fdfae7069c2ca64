import enum
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class TransportType(str, enum.Enum):
    PORT_TO_PORT = "Port-To-Port"
    COMBINED_TRANSPORT = "Combined Transport"


class PackingGroup(str, enum.Enum):
    I = "I"  # noqa: E741
    II = "II"
    III = "III"


class LLMModel(BaseModel):
    """Base for models parsed from LLM output.

    Numbers are accepted where text is expected, and a JSON ``null`` in a
    plain ``str`` field becomes an empty string.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)

    @field_validator("*", mode="before")
    @classmethod
    def null_text_to_empty(cls, value, info: ValidationInfo):
        if value is None and cls.model_fields[info.field_name].annotation is str:
            return ""
        return value


# --- Parties ---


class Party(LLMModel):
    name: str = Field(..., description="Company or person name")
    address: str = Field("", description="Street address")
    city: str = Field("", description="City, state/province, postal code")
    country: str = Field("", description="Country name")
    phone: str | None = Field(None, description="Phone number")


class ConsigneeParty(Party):
    is_negotiable: bool | None = Field(None, description='Consigned "To Order"')


class NotifyParty(LLMModel):
    name: str = Field("", description="Company name if different from consignee")
    address: str = Field("", description="Full address")
    phone: str | None = Field(None, description="Phone number")


# --- Transport ---


class VesselDetails(LLMModel):
    vessel_name: str = Field("", description="Vessel name or TBN")
    voyage_number: str = Field("", description="Voyage number or TBN")


class Ports(LLMModel):
    loading: str = Field("", description="Port of loading")
    discharge: str = Field("", description="Port of discharge")
    delivery: str | None = Field(None, description="Final delivery location")


# --- Cargo ---


class CargoItem(LLMModel):
    """One cargo line. Weights and measurements are opaque text, never parsed."""

    container_numbers: str | None = Field(None, description="Container numbers")
    seal_numbers: str | None = Field(None, description="Seal numbers")
    marks: str | None = Field(None, description="Shipping marks and numbers")
    description: str = Field(..., description="Description of packages and goods")
    gross_weight: str = Field(..., description="Weight with unit, e.g. '1000 kg'")
    measurement: str | None = Field(None, description="Volume/measurement with unit")
    hs_code: str | None = Field(None, description="HS/HSN tariff code")
    quantity: str | None = Field(None, description="Number of packages on this line")


class Totals(LLMModel):
    packages: int = Field(0, ge=0, description="Total number of packages")
    gross_weight: str = Field("", description="Total gross weight with unit")
    measurement: str | None = Field(None, description="Total volume/CBM")

    @field_validator("packages", mode="before")
    @classmethod
    def parse_package_count(cls, value):
        """Accept '120 bags', '1,200' or 120.0 for the package count."""
        if value is None or value == "":
            return 0
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            match = re.search(r"\d[\d,]*", value)
            return int(match.group().replace(",", "")) if match else 0
        return value


class InvoiceDetails(LLMModel):
    number: str = ""
    date: str = ""
    value: str = ""
    currency: str = ""


# --- Dangerous goods ---


class DangerousGoodsEntry(LLMModel):
    un_number: str = Field("", description="UN number, e.g. UN1263")
    proper_shipping_name: str = Field("", description="Proper shipping name")
    hazard_class: str = Field("", description="IMDG hazard class")
    packing_group: PackingGroup | None = Field(None, description="Packing group I, II or III")
    marine_pollutant: bool = Field(False, description="Marine pollutant mark required")
    subsidiary_risk: str | None = None
    flash_point: str | None = None
    emergency_contact: str | None = Field(None, description="24/7 emergency contact")
    special_provisions: str | None = None
    limited_quantity: bool = False
    ems_number: str | None = Field(None, description="EmS fire and spillage schedules")
    segregation_group: str | None = None

    @field_validator("packing_group", mode="before")
    @classmethod
    def normalize_packing_group(cls, value):
        if value is None:
            return None
        text = str(value).strip().upper().removeprefix("PG").strip()
        return text if text in {"I", "II", "III"} else None

    @field_validator("marine_pollutant", "limited_quantity", mode="before")
    @classmethod
    def parse_flag(cls, value):
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip().lower() in {"yes", "y", "true", "p", "1"}
        return value


# --- Bill of Lading ---


class BOLData(LLMModel):
    """Canonical Bill of Lading document, built once per request from LLM output."""

    # Parties
    shipper: Party
    consignee: ConsigneeParty
    notify_party: NotifyParty | None = None

    # References
    booking_ref: str | None = None
    shipper_ref: str | None = None
    imo_number: str | None = None
    rider_pages: int | None = Field(None, ge=0, description="Recomputed by the layout engine")
    bl_sequence: str | None = Field(None, description="Number and sequence of original B/Ls")
    hs_code: str | None = None

    # Transport
    vessel_details: VesselDetails | None = None
    ports: Ports
    place_of_receipt: str | None = None
    place_of_delivery: str | None = None
    shipped_on_board_date: str | None = None
    place_and_date_of_issue: str | None = None
    discharge_agent: str | None = None
    transport_type: TransportType | None = None

    # Cargo (display order, one row per source line item)
    cargo: list[CargoItem] = Field(default_factory=list)
    totals: Totals

    # Commercial
    freight_charges: str | None = None
    declared_value: str | None = None
    carrier_receipt: str | None = None
    invoice_details: InvoiceDetails | None = None
    freight_terms: str | None = None
    payment_terms: str | None = None
    special_instructions: str | None = None
    date_of_shipment: str | None = None

    # Dangerous goods
    dangerous_goods: list[DangerousGoodsEntry] = Field(default_factory=list)
    has_dangerous_goods: bool = False

    # Authentication
    carrier_endorsements: str | None = None
    signed_by: str | None = None

    @field_validator("transport_type", mode="before")
    @classmethod
    def normalize_transport_type(cls, value):
        if not value:
            return None
        key = re.sub(r"[^a-z]", "", str(value).lower())
        if key.startswith("combined"):
            return TransportType.COMBINED_TRANSPORT
        if key.startswith("porttoport"):
            return TransportType.PORT_TO_PORT
        return None

    @field_validator("dangerous_goods", mode="before")
    @classmethod
    def wrap_single_entry(cls, value):
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return value

    @model_validator(mode="after")
    def sync_dangerous_goods_flag(self) -> "BOLData":
        self.has_dangerous_goods = bool(self.dangerous_goods)
        return self
