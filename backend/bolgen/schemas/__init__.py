from bolgen.schemas.bol import BOLData, CargoItem, DangerousGoodsEntry, Totals
from bolgen.schemas.health import HealthResponse
from bolgen.schemas.pages import ClassifiedPage, DocumentKind, Page, SplitDocuments

__all__ = [
    "BOLData",
    "CargoItem",
    "ClassifiedPage",
    "DangerousGoodsEntry",
    "DocumentKind",
    "HealthResponse",
    "Page",
    "SplitDocuments",
    "Totals",
]
