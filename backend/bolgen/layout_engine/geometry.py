from dataclasses import dataclass

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm


@dataclass(frozen=True)
class PageGeometry:
    """Fixed page grid the layout engine fills. All lengths are PDF points.

    Y coordinates grow upwards from the bottom edge of the page, so a block
    whose ``top`` is ``y`` occupies the band ``[y - height, y]``.
    """

    page_width: float = A4[0]
    page_height: float = A4[1]
    margin_top: float = 10 * mm
    margin_bottom: float = 10 * mm
    margin_left: float = 10 * mm
    margin_right: float = 10 * mm

    font_name: str = "Helvetica"
    bold_font_name: str = "Helvetica-Bold"
    italic_font_name: str = "Helvetica-Oblique"
    font_size: float = 7.0
    label_font_size: float = 6.0
    small_font_size: float = 5.5
    line_height: float = 8.5
    small_line_height: float = 6.8

    box_padding: float = 3.0
    field_gap: float = 2.0
    section_gap: float = 4.0

    header_height: float = 54.0
    continuation_header_height: float = 34.0
    banner_height: float = 12.0

    # Cargo table
    table_header_height: float = 20.0
    table_note_height: float = 11.0
    cargo_row_height: float = 30.0
    cargo_row_lines: int = 3
    cargo_column_ratios: tuple[float, ...] = (0.24, 0.40, 0.18, 0.18)

    # Bottom margins used by row fitting: the large one keeps room for the
    # totals/legal/signature group on what is probably the last page.
    footer_reserve: float = 280.0
    continuation_reserve: float = 12 * mm
    last_page_threshold: int = 10
    min_row_batch: int = 5

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def content_top(self) -> float:
        return self.page_height - self.margin_top

    @property
    def continuation_body_top(self) -> float:
        """First free y on a rider page, below its continuation header."""
        return self.content_top - self.continuation_header_height - self.section_gap


DEFAULT_GEOMETRY = PageGeometry()
