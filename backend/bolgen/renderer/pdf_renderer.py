"""
PDF renderer: draws a positioned RenderTree with the reportlab canvas.

The renderer makes no layout decisions. Block positions, wrapped lines and
page breaks all come from the layout engine; this module only paints them.
"""

import io
import logging

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from bolgen.layout_engine.geometry import PageGeometry
from bolgen.layout_engine.tree import (
    BannerBlock,
    Block,
    Box,
    BoxRowBlock,
    CargoTableBlock,
    ContinuationHeaderBlock,
    HeaderBlock,
    RenderTree,
    TextBlock,
    TotalsBlock,
)

logger = logging.getLogger("bolgen.renderer")

HEADER_FILL = colors.HexColor("#e6e6e6")
ROW_SHADE = colors.HexColor("#f4f4f4")
FLAG_STROKE = colors.HexColor("#cc0000")
FLAG_FILL = colors.HexColor("#fff0f0")
TEXT_COLOR = colors.black

# distance from the top of a text line to its baseline, as a fraction of the leading
BASELINE_RATIO = 0.78


def _baseline(y: float, leading: float) -> float:
    return y - leading * BASELINE_RATIO


class PDFRenderer:
    """Renders a RenderTree to PDF bytes."""

    def __init__(self, title: str = "Bill of Lading", author: str = "bolgen"):
        self.title = title
        self.author = author
        self._handlers = {
            HeaderBlock: self._draw_header,
            ContinuationHeaderBlock: self._draw_continuation_header,
            BoxRowBlock: self._draw_box_row,
            BannerBlock: self._draw_banner,
            CargoTableBlock: self._draw_cargo_table,
            TotalsBlock: self._draw_totals,
            TextBlock: self._draw_text,
        }

    def render(self, tree: RenderTree) -> bytes:
        """Draw every page of ``tree`` and return the finished PDF."""
        g = tree.geometry
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=(g.page_width, g.page_height))
        c.setTitle(f"{self.title} {tree.bol_number}")
        c.setSubject(self.title)
        c.setAuthor(self.author)

        for page in tree.pages:
            for block in page.blocks:
                self._draw_block(c, block, g)
            self._draw_page_footer(c, tree.bol_number, page.number, tree.page_count, g)
            c.showPage()

        c.save()
        pdf_bytes = buffer.getvalue()
        logger.info(
            "Rendered B/L %s: %d pages, %d bytes", tree.bol_number, tree.page_count, len(pdf_bytes)
        )
        return pdf_bytes

    def _draw_block(self, c: canvas.Canvas, block: Block, g: PageGeometry) -> None:
        handler = self._handlers.get(type(block))
        if handler is None:
            raise TypeError(f"No renderer for block type {type(block).__name__}")
        handler(c, block, g)

    # --- primitives ---

    def _frame(
        self,
        c: canvas.Canvas,
        x: float,
        y: float,
        width: float,
        height: float,
        fill=None,
        stroke=TEXT_COLOR,
    ) -> None:
        c.saveState()
        c.setStrokeColor(stroke)
        c.setLineWidth(0.6)
        if fill is not None:
            c.setFillColor(fill)
        c.rect(x, y, width, height, stroke=1, fill=1 if fill is not None else 0)
        c.restoreState()

    def _draw_lines(
        self,
        c: canvas.Canvas,
        lines: tuple[str, ...],
        x: float,
        y: float,
        font_name: str,
        font_size: float,
        leading: float,
        align: str = "left",
        width: float = 0.0,
    ) -> float:
        """Draw ``lines`` from the top edge ``y`` downwards; return the y below the last line."""
        c.setFont(font_name, font_size)
        for line in lines:
            baseline = _baseline(y, leading)
            if align == "right":
                c.drawRightString(x + width, baseline, line)
            elif align == "center":
                c.drawCentredString(x + width / 2, baseline, line)
            else:
                c.drawString(x, baseline, line)
            y -= leading
        return y

    # --- blocks ---

    def _draw_header(self, c: canvas.Canvas, block: HeaderBlock, g: PageGeometry) -> None:
        half = g.content_width / 2
        left = g.margin_left
        self._frame(c, left, block.bottom, half, block.height)
        self._frame(c, left + half, block.bottom, half, block.height)

        company, *rest = block.company_lines
        y = block.top - g.box_padding
        y = self._draw_lines(c, (company,), left + g.box_padding, y, g.bold_font_name, 12, 16)
        self._draw_lines(c, tuple(rest), left + g.box_padding, y, g.font_name, g.font_size, g.line_height)

        x = left + half + g.box_padding
        inner = half - 2 * g.box_padding
        y = block.top - g.box_padding
        y = self._draw_lines(c, (block.title,), x, y, g.bold_font_name, 9, 11)
        y = self._draw_lines(c, (block.bol_number,), x, y, g.bold_font_name, 12, 15)

        c.saveState()
        c.setFillColor(FLAG_STROKE)
        self._draw_lines(c, (block.status,), x, block.top - g.box_padding, g.bold_font_name, 10, 12, "right", inner)
        c.restoreState()

        for option in block.transport_options:
            selected = block.selected_transport is not None and block.selected_transport in option
            font = g.bold_font_name if selected else g.font_name
            y = self._draw_lines(c, (option,), x, y, font, g.label_font_size, g.small_line_height)

    def _draw_continuation_header(
        self, c: canvas.Canvas, block: ContinuationHeaderBlock, g: PageGeometry
    ) -> None:
        self._frame(c, g.margin_left, block.bottom, g.content_width, block.height, fill=HEADER_FILL)
        x = g.margin_left + g.box_padding
        inner = g.content_width - 2 * g.box_padding
        y = block.top - g.box_padding
        self._draw_lines(c, (block.title,), x, y, g.bold_font_name, 10, 13)
        self._draw_lines(c, (f"B/L No. {block.bol_number}",), x, y, g.bold_font_name, 10, 13, "right", inner)
        self._draw_lines(
            c,
            (f"Rider page {block.page_number - 1} (continued from previous page)",),
            x,
            y - 15,
            g.italic_font_name,
            g.font_size,
            g.line_height,
        )

    def _draw_box_row(self, c: canvas.Canvas, block: BoxRowBlock, g: PageGeometry) -> None:
        stroke = FLAG_STROKE if block.flagged else TEXT_COLOR
        y = block.top
        if block.title:
            c.saveState()
            c.setFillColor(stroke)
            self._draw_lines(
                c, (block.title,), g.margin_left + g.box_padding, y, g.bold_font_name, g.label_font_size, g.line_height
            )
            c.restoreState()
            y -= g.line_height

        for box in block.boxes:
            self._frame(
                c,
                box.x,
                block.bottom,
                box.width,
                y - block.bottom,
                fill=FLAG_FILL if block.flagged else None,
                stroke=stroke,
            )
            self._draw_fields(c, box, y - g.box_padding, g)

    def _draw_fields(self, c: canvas.Canvas, box: Box, top: float, g: PageGeometry) -> None:
        x = box.x + g.box_padding
        y = top
        for i, field in enumerate(box.fields):
            if i:
                y -= g.field_gap
            if field.label:
                y = self._draw_lines(c, (field.label,), x, y, g.bold_font_name, g.label_font_size, g.line_height)
            y = self._draw_lines(
                c, field.note_lines, x, y, g.italic_font_name, g.small_font_size, g.small_line_height
            )
            y = self._draw_lines(
                c,
                field.lines,
                x,
                y,
                g.bold_font_name if field.bold else g.font_name,
                g.small_font_size if field.small else g.font_size,
                g.small_line_height if field.small else g.line_height,
            )

    def _draw_banner(self, c: canvas.Canvas, block: BannerBlock, g: PageGeometry) -> None:
        if block.flagged:
            self._frame(c, g.margin_left, block.bottom, g.content_width, block.height, fill=FLAG_STROKE, stroke=FLAG_STROKE)
            color = colors.white
        else:
            self._frame(c, g.margin_left, block.bottom, g.content_width, block.height, fill=HEADER_FILL)
            color = TEXT_COLOR
        c.saveState()
        c.setFillColor(color)
        self._draw_lines(
            c,
            (block.text,),
            g.margin_left,
            block.top - (block.height - g.line_height) / 2,
            g.bold_font_name,
            g.label_font_size,
            g.line_height,
            "center",
            g.content_width,
        )
        c.restoreState()

    def _draw_cargo_table(self, c: canvas.Canvas, block: CargoTableBlock, g: PageGeometry) -> None:
        left = block.columns[0].x
        width = sum(col.width for col in block.columns)

        # repeated header row
        self._frame(c, left, block.top - block.header_height, width, block.header_height, fill=HEADER_FILL)
        for col in block.columns:
            self._draw_lines(
                c,
                col.title,
                col.x + g.box_padding,
                block.top - g.box_padding / 2,
                g.bold_font_name,
                g.label_font_size,
                g.line_height,
            )

        y = block.top - block.header_height
        if block.note_lines:
            note_col = block.columns[1]
            self._draw_lines(
                c,
                block.note_lines,
                note_col.x + g.box_padding,
                y - (block.note_height - g.small_line_height) / 2,
                g.italic_font_name,
                g.small_font_size,
                g.small_line_height,
            )
            y -= block.note_height

        for row in block.rows:
            if row.index % 2 == 1:
                c.saveState()
                c.setFillColor(ROW_SHADE)
                c.rect(left, y - block.row_height, width, block.row_height, stroke=0, fill=1)
                c.restoreState()
            for col, cell in zip(block.columns, row.cells):
                self._draw_lines(
                    c,
                    cell,
                    col.x + g.box_padding,
                    y - g.box_padding,
                    g.font_name,
                    g.font_size,
                    g.line_height,
                    col.align,
                    col.width - 2 * g.box_padding,
                )
            y -= block.row_height

        self._frame(c, left, block.bottom, width, block.height)
        c.saveState()
        c.setLineWidth(0.6)
        for col in block.columns[1:]:
            c.line(col.x, block.top, col.x, block.bottom)
        c.restoreState()

    def _draw_totals(self, c: canvas.Canvas, block: TotalsBlock, g: PageGeometry) -> None:
        left = block.columns[0].x
        width = sum(col.width for col in block.columns)
        self._frame(c, left, block.top - block.label_height, width, block.label_height, fill=HEADER_FILL)
        self._frame(c, left, block.bottom, width, block.height)

        for col, label, value in zip(block.columns, block.labels, block.values):
            inner = col.width - 2 * g.box_padding
            if label:
                self._draw_lines(
                    c, (label,), col.x + g.box_padding, block.top - g.box_padding / 2,
                    g.bold_font_name, g.label_font_size, g.line_height, col.align, inner,
                )
            self._draw_lines(
                c, value, col.x + g.box_padding, block.top - block.label_height - g.box_padding,
                g.bold_font_name, g.font_size, g.line_height, col.align, inner,
            )

    def _draw_text(self, c: canvas.Canvas, block: TextBlock, g: PageGeometry) -> None:
        if block.boxed:
            self._frame(c, g.margin_left, block.bottom, g.content_width, block.height)
        font_name = g.bold_font_name if block.bold else g.font_name
        font_size = g.small_font_size if block.small else g.font_size
        leading = g.small_line_height if block.small else g.line_height
        x = g.margin_left + g.box_padding
        inner = g.content_width - 2 * g.box_padding
        y = block.top - g.box_padding
        for i, paragraph in enumerate(block.paragraphs):
            if i:
                y -= g.field_gap
            y = self._draw_lines(
                c, paragraph, x, y, font_name, font_size, leading,
                "center" if block.centered else "left", inner,
            )

    def _draw_page_footer(
        self, c: canvas.Canvas, bol_number: str, number: int, total: int, g: PageGeometry
    ) -> None:
        c.setFont(g.font_name, g.label_font_size)
        c.setFillColor(TEXT_COLOR)
        baseline = g.margin_bottom / 2
        c.drawString(g.margin_left, baseline, f"B/L No. {bol_number}")
        c.drawRightString(g.page_width - g.margin_right, baseline, f"Page {number} of {total}")
