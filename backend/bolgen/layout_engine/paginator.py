"""
Layout engine: lays a BOLData document out onto a fixed page grid.

Flow per document:
  1. First-page sections (header, tracking, parties, transport)
  2. Dangerous goods declaration, when present (flows onto rider pages)
  3. Cargo disclaimer + cargo table, split into per-page segments
  4. Footer group (totals, commercial, legal, signature, dates), kept whole

The "NO. OF RIDER PAGES" value printed on page 1 depends on the final page
count, so ``layout_document`` runs the engine twice.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

from bolgen.layout_engine import legal
from bolgen.layout_engine.geometry import DEFAULT_GEOMETRY, PageGeometry
from bolgen.layout_engine.text import fit_text
from bolgen.layout_engine.tree import (
    BannerBlock,
    Block,
    BlockKind,
    Box,
    BoxRowBlock,
    CargoColumn,
    CargoRow,
    CargoTableBlock,
    ContinuationHeaderBlock,
    Field,
    HeaderBlock,
    RenderPage,
    RenderTree,
    TextBlock,
    TotalsBlock,
)
from bolgen.schemas.bol import BOLData, CargoItem, DangerousGoodsEntry, Party

logger = logging.getLogger("bolgen.layout")

DEFAULT_CARRIER_NAME = "SHIPPING COMPANY"


def fit_rows(
    top: float,
    remaining: int,
    geometry: PageGeometry,
    header_height: float | None = None,
) -> int:
    """How many cargo rows a table segment starting at ``top`` may hold.

    The bottom margin is the large footer reserve when the remaining rows are
    few enough that this is probably the last page, the small one otherwise.
    One row of slack is always kept back, but never below a single row.
    """
    header = geometry.table_header_height if header_height is None else header_height
    if remaining <= geometry.last_page_threshold:
        bottom = geometry.footer_reserve
    else:
        bottom = geometry.continuation_reserve
    available = top - bottom - header
    max_rows = math.floor(available / geometry.cargo_row_height)
    return max(1, max_rows - 1)


@dataclass(frozen=True)
class _FieldSpec:
    label: str = ""
    text: str | None = None
    max_lines: int | None = 2
    note: str | None = None
    bold: bool = False
    small: bool = False


class _Flow:
    """Page list plus the current y cursor."""

    def __init__(self, geometry: PageGeometry, bol_number: str):
        self.geometry = geometry
        self.bol_number = bol_number
        self.pages: list[list[Block]] = [[]]
        self.y = geometry.content_top
        self.fresh = False

    def place(self, block: Block) -> None:
        self.pages[-1].append(block)
        self.y = block.bottom - self.geometry.section_gap
        self.fresh = False

    def add(self, block: Block) -> None:
        """Place ``block``, starting a rider page first if it would cross the bottom margin."""
        if block.bottom < self.geometry.continuation_reserve and not self.fresh:
            self.break_page()
            block = replace(block, top=self.y)
        self.place(block)

    def break_page(self) -> None:
        g = self.geometry
        number = len(self.pages) + 1
        header = ContinuationHeaderBlock(
            top=g.content_top,
            height=g.continuation_header_height,
            bol_number=self.bol_number,
            page_number=number,
            title=legal.RIDER_PAGE_TITLE,
        )
        self.pages.append([header])
        self.y = header.bottom - g.section_gap
        self.fresh = True

    def tree(self) -> RenderTree:
        return RenderTree(
            bol_number=self.bol_number,
            geometry=self.geometry,
            pages=tuple(
                RenderPage(number=i, blocks=tuple(blocks))
                for i, blocks in enumerate(self.pages, start=1)
            ),
        )


def _join(*parts: str | None, sep: str = "\n") -> str:
    return sep.join(p for p in parts if p)


def _party_text(party: Party | None) -> str:
    if party is None:
        return ""
    return _join(party.name, party.address, _join(party.city, party.country, sep=", "), party.phone)


class LayoutEngine:
    """Single deterministic layout pass. Use ``layout_document`` for the final tree."""

    def __init__(
        self,
        geometry: PageGeometry = DEFAULT_GEOMETRY,
        carrier_name: str = DEFAULT_CARRIER_NAME,
    ):
        self.geometry = geometry
        self.carrier_name = carrier_name

    def layout(
        self,
        doc: BOLData,
        *,
        bol_number: str,
        issue_date: str,
        booking_number: str | None = None,
    ) -> RenderTree:
        """Lay ``doc`` out with its ``rider_pages`` value taken as given.

        Args:
            doc: Validated document.
            bol_number: B/L number printed in every page header.
            issue_date: Fallback for the issue and shipped-on-board dates.
            booking_number: Used when the document carries no booking reference.

        Returns:
            The positioned render tree.
        """
        flow = _Flow(self.geometry, bol_number)

        flow.place(self._header(flow.y, doc, bol_number))
        flow.place(self._tracking(flow.y, doc))
        flow.place(self._parties(flow.y, doc))
        flow.place(self._transport_legs(flow.y, doc, booking_number))
        flow.place(self._transport_places(flow.y, doc))

        if doc.dangerous_goods:
            self._place_dangerous_goods(flow, doc.dangerous_goods)

        self._place_cargo(flow, doc.cargo)
        self._place_footer(flow, doc, issue_date)

        tree = flow.tree()
        logger.debug(
            "Layout pass: %d cargo rows, %d pages (rider_pages=%s)",
            len(doc.cargo),
            tree.page_count,
            doc.rider_pages,
        )
        return tree

    # --- building blocks ---

    def _field(self, spec: _FieldSpec, width: float) -> Field:
        g = self.geometry
        font_size = g.small_font_size if spec.small else g.font_size
        font_name = g.bold_font_name if spec.bold else g.font_name
        return Field(
            label=spec.label,
            lines=fit_text(spec.text, width, spec.max_lines, font_name, font_size),
            note_lines=fit_text(spec.note, width, 3, g.italic_font_name, g.small_font_size),
            bold=spec.bold,
            small=spec.small,
        )

    def _box_row(
        self,
        top: float,
        kind: BlockKind,
        columns: Sequence[tuple[float, Sequence[_FieldSpec]]],
        title: str | None = None,
        flagged: bool = False,
    ) -> BoxRowBlock:
        g = self.geometry
        x = g.margin_left
        boxes: list[Box] = []
        for ratio, specs in columns:
            width = g.content_width * ratio
            inner = width - 2 * g.box_padding
            boxes.append(Box(x=x, width=width, fields=tuple(self._field(s, inner) for s in specs)))
            x += width
        title_height = g.line_height if title else 0.0
        height = title_height + max(box.height(g) for box in boxes)
        return BoxRowBlock(
            top=top, height=height, kind=kind, boxes=tuple(boxes), title=title, flagged=flagged
        )

    def _text_block(
        self,
        top: float,
        kind: BlockKind,
        paragraphs: Sequence[str],
        bold: bool = False,
        centered: bool = False,
        small: bool = True,
        boxed: bool = True,
    ) -> TextBlock:
        g = self.geometry
        font_name = g.bold_font_name if bold else g.font_name
        font_size = g.small_font_size if small else g.font_size
        line_height = g.small_line_height if small else g.line_height
        width = g.content_width - 2 * g.box_padding
        wrapped = tuple(fit_text(p, width, None, font_name, font_size) for p in paragraphs)
        height = (
            2 * g.box_padding
            + sum(len(lines) for lines in wrapped) * line_height
            + g.field_gap * (len(wrapped) - 1)
        )
        return TextBlock(
            top=top,
            height=height,
            kind=kind,
            paragraphs=wrapped,
            bold=bold,
            centered=centered,
            small=small,
            boxed=boxed,
        )

    def _header(self, top: float, doc: BOLData, bol_number: str) -> HeaderBlock:
        return HeaderBlock(
            top=top,
            height=self.geometry.header_height,
            company_lines=(self.carrier_name, legal.COMPANY_LOGO),
            title=legal.DOCUMENT_TITLE,
            bol_number=bol_number,
            status=legal.DRAFT_STATUS,
            transport_options=legal.TRANSPORT_OPTIONS,
            selected_transport=doc.transport_type.value if doc.transport_type else None,
        )

    def _tracking(self, top: float, doc: BOLData) -> BoxRowBlock:
        return self._box_row(
            top,
            BlockKind.TRACKING,
            [
                (0.5, [_FieldSpec(legal.BL_SEQUENCE_LABEL, doc.bl_sequence or legal.DEFAULT_BL_SEQUENCE)]),
                (0.5, [_FieldSpec(legal.RIDER_PAGES_LABEL, str(doc.rider_pages or 0), 1)]),
            ],
        )

    def _parties(self, top: float, doc: BOLData) -> BoxRowBlock:
        notify = doc.notify_party
        notify_text = _join(notify.name, notify.address, notify.phone) if notify else ""
        return self._box_row(
            top,
            BlockKind.PARTIES,
            [
                (
                    0.5,
                    [
                        _FieldSpec(legal.SHIPPER_LABEL, _party_text(doc.shipper), 5),
                        _FieldSpec(
                            legal.CONSIGNEE_LABEL,
                            _party_text(doc.consignee),
                            5,
                            note=legal.CONSIGNEE_NOTE,
                        ),
                        _FieldSpec(legal.NOTIFY_LABEL, notify_text, 4, note=legal.NOTIFY_NOTE),
                    ],
                ),
                (
                    0.5,
                    [
                        _FieldSpec(legal.ENDORSEMENTS_LABEL, doc.carrier_endorsements, 3),
                        _FieldSpec(legal.IMO_LABEL, doc.imo_number, 1),
                        _FieldSpec(text=legal.CUSTOMS_LIABILITY_CLAUSE, max_lines=None, small=True),
                        _FieldSpec(
                            text=legal.HS_CODE_MISDECLARATION_CLAUSE,
                            max_lines=None,
                            bold=True,
                            small=True,
                        ),
                        _FieldSpec(legal.DISCHARGE_AGENT_LABEL, doc.discharge_agent, 3),
                    ],
                ),
            ],
        )

    def _transport_legs(self, top: float, doc: BOLData, booking_number: str | None) -> BoxRowBlock:
        vessel = doc.vessel_details
        vessel_text = "{} / {}".format(
            (vessel.vessel_name if vessel else "") or legal.TO_BE_NOMINATED,
            (vessel.voyage_number if vessel else "") or legal.TO_BE_NOMINATED,
        )
        return self._box_row(
            top,
            BlockKind.TRANSPORT,
            [
                (0.25, [_FieldSpec(legal.VESSEL_LABEL, vessel_text)]),
                (0.25, [_FieldSpec(legal.BOOKING_LABEL, doc.booking_ref or booking_number)]),
                (0.25, [_FieldSpec(legal.PORT_OF_LOADING_LABEL, doc.ports.loading)]),
                (0.25, [_FieldSpec(legal.SHIPPER_REF_LABEL, doc.shipper_ref)]),
            ],
        )

    def _transport_places(self, top: float, doc: BOLData) -> BoxRowBlock:
        third = 1 / 3
        return self._box_row(
            top,
            BlockKind.TRANSPORT,
            [
                (third, [_FieldSpec(legal.PLACE_OF_RECEIPT_LABEL, doc.place_of_receipt)]),
                (third, [_FieldSpec(legal.PORT_OF_DISCHARGE_LABEL, doc.ports.discharge)]),
                (
                    third,
                    [_FieldSpec(legal.PLACE_OF_DELIVERY_LABEL, doc.place_of_delivery or doc.ports.delivery)],
                ),
            ],
        )

    # --- dangerous goods ---

    def _dangerous_goods_entry(
        self, top: float, entry: DangerousGoodsEntry, number: int, total: int
    ) -> BoxRowBlock:
        na = legal.NOT_APPLICABLE
        left = [
            _FieldSpec(legal.DG_UN_NUMBER_LABEL, entry.un_number or na, 1),
            _FieldSpec(legal.DG_CLASS_LABEL, entry.hazard_class or na, 1),
            _FieldSpec(
                legal.DG_PACKING_GROUP_LABEL,
                entry.packing_group.value if entry.packing_group else na,
                1,
            ),
            _FieldSpec(legal.DG_MARINE_POLLUTANT_LABEL, "YES - P" if entry.marine_pollutant else "NO", 1),
        ]
        right = [_FieldSpec(legal.DG_SHIPPING_NAME_LABEL, entry.proper_shipping_name or na, 3, bold=True)]
        if entry.subsidiary_risk and entry.subsidiary_risk != "NA":
            right.append(_FieldSpec(legal.DG_SUBSIDIARY_RISK_LABEL, entry.subsidiary_risk, 1))
        if entry.flash_point and entry.flash_point != "NA":
            right.append(_FieldSpec(legal.DG_FLASH_POINT_LABEL, entry.flash_point, 1))
        if entry.ems_number:
            right.append(_FieldSpec(legal.DG_EMS_LABEL, entry.ems_number, 1))
        if entry.emergency_contact:
            right.append(_FieldSpec(legal.DG_EMERGENCY_CONTACT_LABEL, entry.emergency_contact, 2, bold=True))
        if entry.special_provisions:
            right.append(_FieldSpec(legal.DG_SPECIAL_PROVISIONS_LABEL, entry.special_provisions, 2))
        if entry.limited_quantity:
            right.append(_FieldSpec(legal.DG_LIMITED_QUANTITY_LABEL, "YES", 1))
        if entry.segregation_group:
            right.append(_FieldSpec(legal.DG_SEGREGATION_LABEL, entry.segregation_group, 1))

        return self._box_row(
            top,
            BlockKind.DANGEROUS_GOODS,
            [(0.4, left), (0.6, right)],
            title=f"Entry {number} of {total}",
            flagged=True,
        )

    def _place_dangerous_goods(self, flow: _Flow, entries: Sequence[DangerousGoodsEntry]) -> None:
        g = self.geometry
        total = len(entries)
        banner = BannerBlock(
            top=flow.y,
            height=g.banner_height,
            text=f"{legal.DANGEROUS_GOODS_TITLE} ({total} {'Entry' if total == 1 else 'Entries'})",
            flagged=True,
        )
        # the banner never sits alone at the bottom of a page
        first = self._dangerous_goods_entry(banner.bottom - g.section_gap, entries[0], 1, total)
        if first.bottom < g.continuation_reserve and not flow.fresh:
            flow.break_page()
            banner = replace(banner, top=flow.y)
        flow.place(banner)

        for number, entry in enumerate(entries, start=1):
            flow.add(self._dangerous_goods_entry(flow.y, entry, number, total))

    # --- cargo table ---

    def _cargo_columns(self) -> tuple[CargoColumn, ...]:
        g = self.geometry
        columns: list[CargoColumn] = []
        x = g.margin_left
        for title, ratio in zip(legal.CARGO_COLUMN_TITLES, g.cargo_column_ratios):
            width = g.content_width * ratio
            columns.append(
                CargoColumn(
                    title=fit_text(title, width - 2 * g.box_padding, 2, g.bold_font_name, g.label_font_size),
                    x=x,
                    width=width,
                    align="left" if len(columns) < 2 else "right",
                )
            )
            x += width
        return tuple(columns)

    def _cargo_row(self, index: int, item: CargoItem, columns: Sequence[CargoColumn]) -> CargoRow:
        g = self.geometry
        container_text = _join(
            item.container_numbers,
            f"Seal: {item.seal_numbers}" if item.seal_numbers else None,
            f"Marks: {item.marks}" if item.marks else None,
        )
        texts = (container_text, item.description, item.gross_weight, item.measurement)
        return CargoRow(
            index=index,
            cells=tuple(
                fit_text(text, column.width - 2 * g.box_padding, g.cargo_row_lines, g.font_name, g.font_size)
                for text, column in zip(texts, columns)
            ),
        )

    def _needs_break(self, top: float, remaining: int, header_height: float) -> bool:
        g = self.geometry
        if remaining == 0:
            return top - header_height < g.continuation_reserve
        return fit_rows(top, remaining, g, header_height) < g.min_row_batch

    def _place_cargo(self, flow: _Flow, cargo: Sequence[CargoItem]) -> None:
        g = self.geometry
        columns = self._cargo_columns()
        rows = [self._cargo_row(i, item, columns) for i, item in enumerate(cargo)]
        note = fit_text(
            legal.CARGO_CONTINUATION_NOTE,
            columns[1].width - 2 * g.box_padding,
            1,
            g.italic_font_name,
            g.small_font_size,
        )

        # The disclaimer travels with the first segment. A too-small first
        # batch moves both to a rider page instead.
        first_header = g.table_header_height + g.table_note_height
        table_top = flow.y - g.banner_height - g.section_gap
        if not flow.fresh and self._needs_break(table_top, len(rows), first_header):
            flow.break_page()
        flow.place(BannerBlock(top=flow.y, height=g.banner_height, text=legal.CARGO_DISCLAIMER))

        index = 0
        first = True
        while True:
            remaining = len(rows) - index
            header_height = first_header if first else g.table_header_height
            capacity = fit_rows(flow.y, remaining, g, header_height)
            batch = rows[index:index + capacity]
            flow.place(
                CargoTableBlock(
                    top=flow.y,
                    height=header_height + len(batch) * g.cargo_row_height,
                    columns=columns,
                    header_height=g.table_header_height,
                    row_height=g.cargo_row_height,
                    rows=tuple(batch),
                    note_lines=note if first else (),
                    note_height=g.table_note_height if first else 0.0,
                )
            )
            index += len(batch)
            first = False
            if index >= len(rows):
                return
            flow.break_page()

    # --- footer group ---

    def _totals(self, top: float, doc: BOLData) -> TotalsBlock:
        g = self.geometry
        columns = self._cargo_columns()
        texts = (
            "",
            f"{doc.totals.packages} PACKAGES",
            doc.totals.gross_weight or legal.NOT_APPLICABLE,
            doc.totals.measurement or "",
        )
        values = tuple(
            fit_text(text, column.width - 2 * g.box_padding, 2, g.bold_font_name, g.font_size)
            for text, column in zip(texts, columns)
        )
        label_height = g.line_height + g.box_padding
        height = label_height + max(len(v) for v in values) * g.line_height + 2 * g.box_padding
        return TotalsBlock(
            top=top,
            height=height,
            columns=columns,
            labels=("", "", legal.TOTAL_LABEL, legal.TOTAL_LABEL),
            values=values,
            label_height=label_height,
        )

    def _commercial(self, top: float, doc: BOLData) -> BoxRowBlock:
        return self._box_row(
            top,
            BlockKind.COMMERCIAL,
            [
                (
                    0.4,
                    [
                        _FieldSpec(legal.FREIGHT_LABEL, legal.FREIGHT_AGREEMENT, 1, bold=True),
                        _FieldSpec(
                            text=doc.freight_charges or doc.freight_terms,
                            max_lines=3,
                            note=legal.FREIGHT_NOTE,
                        ),
                    ],
                ),
                (
                    0.6,
                    [
                        _FieldSpec(legal.RECEIVED_LABEL, legal.RECEIVED_CLAUSE, None, small=True),
                        _FieldSpec(text=legal.ACCEPTANCE_CLAUSE, max_lines=None, small=True),
                    ],
                ),
            ],
        )

    def _signature(self, top: float, doc: BOLData) -> BoxRowBlock:
        third = 1 / 3
        return self._box_row(
            top,
            BlockKind.SIGNATURE,
            [
                (third, [_FieldSpec(legal.DECLARED_VALUE_LABEL, doc.declared_value)]),
                (third, [_FieldSpec(legal.CARRIERS_RECEIPT_LABEL, doc.carrier_receipt)]),
                (third, [_FieldSpec(legal.SIGNED_LABEL, _join(legal.SIGNED_ON_BEHALF, doc.signed_by), 3)]),
            ],
        )

    def _issue_dates(self, top: float, doc: BOLData, issue_date: str) -> BoxRowBlock:
        return self._box_row(
            top,
            BlockKind.ISSUE_DATE,
            [
                (0.5, [_FieldSpec(legal.PLACE_AND_DATE_LABEL, doc.place_and_date_of_issue or issue_date)]),
                (0.5, [_FieldSpec(legal.SHIPPED_ON_BOARD_LABEL, doc.shipped_on_board_date or issue_date)]),
            ],
        )

    def _footer_blocks(self, top: float, doc: BOLData, issue_date: str) -> list[Block]:
        gap = self.geometry.section_gap
        builders = (
            lambda y: self._totals(y, doc),
            lambda y: self._commercial(y, doc),
            lambda y: self._text_block(
                y, BlockKind.LEGAL, (legal.SURRENDER_CLAUSE, legal.WITNESS_CLAUSE)
            ),
            lambda y: self._signature(y, doc),
            lambda y: self._issue_dates(y, doc, issue_date),
            lambda y: self._text_block(
                y,
                BlockKind.FINAL_NOTICE,
                (legal.FINAL_NOTICE,),
                bold=True,
                centered=True,
                small=False,
                boxed=False,
            ),
        )
        blocks: list[Block] = []
        y = top
        for build in builders:
            block = build(y)
            blocks.append(block)
            y = block.bottom - gap
        return blocks

    def _place_footer(self, flow: _Flow, doc: BOLData, issue_date: str) -> None:
        blocks = self._footer_blocks(flow.y, doc, issue_date)
        if blocks[-1].bottom < self.geometry.continuation_reserve and not flow.fresh:
            flow.break_page()
            blocks = self._footer_blocks(flow.y, doc, issue_date)
        for block in blocks:
            flow.place(block)


def layout_document(
    doc: BOLData,
    geometry: PageGeometry = DEFAULT_GEOMETRY,
    *,
    bol_number: str,
    issue_date: str,
    booking_number: str | None = None,
    carrier_name: str = DEFAULT_CARRIER_NAME,
) -> RenderTree:
    """Two-pass layout that resolves the rider page count printed on page 1.

    Pass 1 runs with ``rider_pages=0``; pass 2 reruns with
    ``rider_pages = pages - 1`` from pass 1. There is no third pass.
    """
    engine = LayoutEngine(geometry, carrier_name)

    draft = engine.layout(
        doc.model_copy(update={"rider_pages": 0}),
        bol_number=bol_number,
        issue_date=issue_date,
        booking_number=booking_number,
    )
    rider_pages = max(0, draft.page_count - 1)

    tree = engine.layout(
        doc.model_copy(update={"rider_pages": rider_pages}),
        bol_number=bol_number,
        issue_date=issue_date,
        booking_number=booking_number,
    )
    if tree.page_count != draft.page_count:
        logger.warning(
            "Rider page count drifted between passes (%d -> %d pages); printed value %d",
            draft.page_count,
            tree.page_count,
            rider_pages,
        )

    logger.info(
        "Laid out B/L %s: %d cargo rows on %d pages (%d rider pages)",
        bol_number,
        len(doc.cargo),
        tree.page_count,
        rider_pages,
    )
    return tree
