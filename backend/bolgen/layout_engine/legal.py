"""Fixed Bill of Lading wording. Reproduced verbatim on every document."""

COMPANY_LOGO = "LOGO"
DOCUMENT_TITLE = "BILL OF LADING No."
DRAFT_STATUS = "DRAFT"
TRANSPORT_OPTIONS = ('"Port-To-Port" or', '"Combined Transport"')
RIDER_PAGE_TITLE = "BILL OF LADING RIDER PAGE"

# Tracking
BL_SEQUENCE_LABEL = "NO.& SEQUENCE OF ORIGINAL B/L's"
DEFAULT_BL_SEQUENCE = "3 (Three) Original Bills of Lading"
RIDER_PAGES_LABEL = "NO. OF RIDER PAGES"

# Parties
SHIPPER_LABEL = "SHIPPER:"
CONSIGNEE_LABEL = "CONSIGNEE:"
CONSIGNEE_NOTE = 'This B/L is not negotiable unless marked "To Order" or "To Order of ..." here.'
NOTIFY_LABEL = "NOTIFY PARTIES:"
NOTIFY_NOTE = "(No responsibility shall attach to Carrier or to his Agent for failure to notify)"
ENDORSEMENTS_LABEL = "CARRIER'S AGENTS ENDORSEMENTS:"
IMO_LABEL = "IMO Number:"
CUSTOMS_LIABILITY_CLAUSE = (
    "\"Carrier's liability ceases after discharge of goods into Customs custody and Carrier "
    "shall not be responsible for delivery of cargo without the presentation of the Original "
    "Bill of Lading, as per Customs Regulations\"."
)
HS_CODE_MISDECLARATION_CLAUSE = (
    "CARRIER WILL NOT BE LIABLE FOR ANY MISDECLARATION OF H.S.CODE/NCM AND ALL COSTS AND "
    "CONSEQUENCES ARISING OUT OF THE MISDECLARATION WILL BE ON ACCOUNT OF SHIPPERS."
)
DISCHARGE_AGENT_LABEL = "PORT OF DISCHARGE AGENT:"

# Transport
VESSEL_LABEL = "VESSEL AND VOYAGE NO"
BOOKING_LABEL = "BOOKING REF."
PORT_OF_LOADING_LABEL = "PORT OF LOADING"
SHIPPER_REF_LABEL = "SHIPPER'S REF."
PLACE_OF_RECEIPT_LABEL = "PLACE OF RECEIPT:"
PORT_OF_DISCHARGE_LABEL = "PORT OF DISCHARGE"
PLACE_OF_DELIVERY_LABEL = "PLACE OF DELIVERY:"
TO_BE_NOMINATED = "TBN"

# Dangerous goods
DANGEROUS_GOODS_TITLE = "DANGEROUS GOODS DECLARATION"
DG_UN_NUMBER_LABEL = "UN Number:"
DG_CLASS_LABEL = "Class:"
DG_PACKING_GROUP_LABEL = "Packing Group:"
DG_MARINE_POLLUTANT_LABEL = "Marine Pollutant:"
DG_SHIPPING_NAME_LABEL = "Proper Shipping Name:"
DG_SUBSIDIARY_RISK_LABEL = "Subsidiary Risk:"
DG_FLASH_POINT_LABEL = "Flash Point:"
DG_EMS_LABEL = "EMS Number:"
DG_EMERGENCY_CONTACT_LABEL = "24/7 Emergency Contact:"
DG_SPECIAL_PROVISIONS_LABEL = "Special Provisions:"
DG_LIMITED_QUANTITY_LABEL = "Limited Quantity:"
DG_SEGREGATION_LABEL = "Segregation Group:"
NOT_APPLICABLE = "N/A"

# Cargo
CARGO_DISCLAIMER = "PARTICULARS FURNISHED BY THE SHIPPER - NOT CHECKED BY CARRIER - CARRIER NOT RESPONSIBLE"
CARGO_COLUMN_TITLES = (
    "Container Numbers, Seal Numbers and Marks",
    "Description of Packages and Goods",
    "Gross Cargo",
    "Measurement",
)
CARGO_CONTINUATION_NOTE = "(Continued on attached Bill of Lading Rider pages(s), if applicable)"
TOTAL_LABEL = "Total:"

# Commercial
FREIGHT_LABEL = "FREIGHT & CHARGES"
FREIGHT_AGREEMENT = "AS PER AGREEMENT"
FREIGHT_NOTE = "Cargo shall not be delivered unless Freight & Charges are paid"
RECEIVED_LABEL = "RECEIVED"
RECEIVED_CLAUSE = (
    "by the Carrier in apparent good order and condition (unless otherwise stated herein) the "
    "total number or quantity of Containers or other packages or units indicated in the box "
    "entitled Carrier's Receipt for carriage subject to all the terms and conditions hereof "
    "from the Place of Receipt or Port of Loading to the Port of Discharge or Place of "
    "Delivery, whichever is applicable."
)
ACCEPTANCE_CLAUSE = (
    "IN ACCEPTING THIS BILL OF LADING THE MERCHANT EXPRESSLY ACCEPTS AND AGREES TO ALL THE "
    "TERMS AND CONDITIONS, WHETHER PRINTED, STAMPED OR OTHERWISE INCORPORATED ON THIS SIDE AND "
    "ON THE REVERSE SIDE OF THIS BILL OF LADING AND THE TERMS AND CONDITIONS OF THE CARRIER'S "
    "APPLICABLE TARIFF AS IF THEY WERE ALL SIGNED BY THE MERCHANT."
)

# Footer
SURRENDER_CLAUSE = (
    "If this is a negotiable (To Order / of) Bill of Lading, one original Bill of Lading, duly "
    "endorsed must be surrendered by the Merchant to the Carrier (together with outstanding "
    "Freight and charges) in exchange for the Goods or a Delivery Order. If this is a "
    "non-negotiable (straight) Bill of Lading, the Carrier shall deliver the Goods or issue a "
    "Delivery Order (after payment of outstanding Freight and charges) against the surrender of "
    "one original Bill of Lading or in accordance with the national law at the Port of "
    "Discharge or Place of Delivery whichever is applicable."
)
WITNESS_CLAUSE = (
    "IN WITNESS WHEREOF the Carrier or their Agent has signed the number of Bills of Lading "
    "stated at the top, all of this tenor and date, and wherever one original Bill of Lading "
    "has been surrendered all other Bills of Lading shall be void."
)
DECLARED_VALUE_LABEL = "DECLARED VALUE"
CARRIERS_RECEIPT_LABEL = "CARRIER'S RECEIPT"
SIGNED_LABEL = "SIGNED"
SIGNED_ON_BEHALF = "on behalf of the Carrier"
PLACE_AND_DATE_LABEL = "PLACE AND DATE OF ISSUE"
SHIPPED_ON_BOARD_LABEL = "SHIPPED ON BOARD DATE"
FINAL_NOTICE = "TERMS CONTINUED ON REVERSE"
