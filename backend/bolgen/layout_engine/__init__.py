from bolgen.layout_engine.geometry import DEFAULT_GEOMETRY, PageGeometry
from bolgen.layout_engine.paginator import LayoutEngine, fit_rows, layout_document
from bolgen.layout_engine.text import ELLIPSIS, fit_text
from bolgen.layout_engine.tree import RenderPage, RenderTree

__all__ = [
    "DEFAULT_GEOMETRY",
    "ELLIPSIS",
    "LayoutEngine",
    "PageGeometry",
    "RenderPage",
    "RenderTree",
    "fit_rows",
    "fit_text",
    "layout_document",
]
