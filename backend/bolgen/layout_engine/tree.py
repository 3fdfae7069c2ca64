"""
Render tree produced by the layout engine and consumed by the renderer.

Everything here is immutable and fully positioned: the renderer draws what
it is given and makes no layout decisions of its own.
"""

import enum
from collections.abc import Iterator
from dataclasses import dataclass

from bolgen.layout_engine.geometry import PageGeometry


class BlockKind(str, enum.Enum):
    TRACKING = "tracking"
    PARTIES = "parties"
    TRANSPORT = "transport"
    DANGEROUS_GOODS = "dangerous_goods"
    COMMERCIAL = "commercial"
    SIGNATURE = "signature"
    ISSUE_DATE = "issue_date"
    LEGAL = "legal"
    FINAL_NOTICE = "final_notice"


@dataclass(frozen=True)
class Field:
    """A labelled value inside a box. ``lines`` are already wrapped to the box width."""

    label: str = ""
    lines: tuple[str, ...] = ()
    note_lines: tuple[str, ...] = ()
    bold: bool = False
    small: bool = False

    def height(self, geometry: PageGeometry) -> float:
        value_line = geometry.small_line_height if self.small else geometry.line_height
        return (
            (geometry.line_height if self.label else 0.0)
            + len(self.note_lines) * geometry.small_line_height
            + len(self.lines) * value_line
        )


@dataclass(frozen=True)
class Box:
    x: float
    width: float
    fields: tuple[Field, ...]

    def height(self, geometry: PageGeometry) -> float:
        if not self.fields:
            return 2 * geometry.box_padding
        return (
            2 * geometry.box_padding
            + sum(f.height(geometry) for f in self.fields)
            + geometry.field_gap * (len(self.fields) - 1)
        )


@dataclass(frozen=True)
class Block:
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top - self.height


@dataclass(frozen=True)
class HeaderBlock(Block):
    """First-page header: company cell plus B/L number, status and transport type."""

    company_lines: tuple[str, ...]
    title: str
    bol_number: str
    status: str
    transport_options: tuple[str, ...]
    selected_transport: str | None = None


@dataclass(frozen=True)
class ContinuationHeaderBlock(Block):
    bol_number: str
    page_number: int
    title: str


@dataclass(frozen=True)
class BoxRowBlock(Block):
    """Fixed-width multi-column boxed section; every box spans the full block height."""

    kind: BlockKind
    boxes: tuple[Box, ...]
    title: str | None = None
    flagged: bool = False


@dataclass(frozen=True)
class BannerBlock(Block):
    text: str
    flagged: bool = False


@dataclass(frozen=True)
class CargoColumn:
    title: tuple[str, ...]
    x: float
    width: float
    align: str = "left"


@dataclass(frozen=True)
class CargoRow:
    index: int  # position in BOLData.cargo, drives row shading
    cells: tuple[tuple[str, ...], ...]


@dataclass(frozen=True)
class CargoTableBlock(Block):
    """One page's segment of the cargo table. Every segment repeats the header."""

    columns: tuple[CargoColumn, ...]
    header_height: float
    row_height: float
    rows: tuple[CargoRow, ...]
    note_lines: tuple[str, ...] = ()
    note_height: float = 0.0


@dataclass(frozen=True)
class TotalsBlock(Block):
    columns: tuple[CargoColumn, ...]
    labels: tuple[str, ...]
    values: tuple[tuple[str, ...], ...]
    label_height: float


@dataclass(frozen=True)
class TextBlock(Block):
    kind: BlockKind
    paragraphs: tuple[tuple[str, ...], ...]
    bold: bool = False
    centered: bool = False
    small: bool = True
    boxed: bool = True


@dataclass(frozen=True)
class RenderPage:
    number: int
    blocks: tuple[Block, ...]

    @property
    def is_first(self) -> bool:
        return self.number == 1

    def find(self, block_type: type) -> list:
        return [b for b in self.blocks if isinstance(b, block_type)]


@dataclass(frozen=True)
class RenderTree:
    bol_number: str
    geometry: PageGeometry
    pages: tuple[RenderPage, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def rider_pages(self) -> int:
        return max(0, self.page_count - 1)

    def cargo_segments(self) -> Iterator[tuple[int, CargoTableBlock]]:
        """(page number, segment) for every cargo table segment, in page order."""
        for page in self.pages:
            for block in page.blocks:
                if isinstance(block, CargoTableBlock):
                    yield page.number, block

    def cargo_rows(self) -> list[CargoRow]:
        return [row for _, segment in self.cargo_segments() for row in segment.rows]

    def field_value(self, label: str) -> tuple[str, ...] | None:
        """Lines of the first boxed field carrying ``label``, searching pages in order."""
        for page in self.pages:
            for block in page.blocks:
                if not isinstance(block, BoxRowBlock):
                    continue
                for box in block.boxes:
                    for field in box.fields:
                        if field.label == label:
                            return field.lines
        return None
