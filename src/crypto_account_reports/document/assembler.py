"""Document assembler turning report data into a printable document model.

The document is a flat list of typed blocks (heading, paragraph, bullet list,
table) plus page setup. Rendering it to PDF or any other format is left to a
presentation layer.
"""

import re
from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from crypto_account_reports.core.models import (
    ADDRESS_FLOW_TITLE,
    AddressBreakdown,
    AddressDetailsSection,
    AddressEntry,
    AddressFlow,
    AddressFlowAnalysis,
    ListSection,
    ReportData,
    ReportSection,
    SummarySection,
    TableSection,
    TextSection,
    TransactionIO,
    TransactionsSection,
    XpubDetail,
    XpubDetailsSection,
)
from crypto_account_reports.generators.common import format_amount


class PageSetup(BaseModel):
    size: str = "LETTER"
    orientation: Literal["portrait", "landscape"] = "landscape"
    margins: tuple[int, int, int, int] = (40, 60, 40, 60)


class HeadingBlock(BaseModel):
    kind: Literal["heading"] = "heading"
    text: str
    level: int = 2


class ParagraphBlock(BaseModel):
    kind: Literal["paragraph"] = "paragraph"
    text: str
    style: str = "body"


class BulletListBlock(BaseModel):
    kind: Literal["bullet_list"] = "bullet_list"
    items: list[str] = Field(default_factory=list)
    style: str = "list"


class TableBlock(BaseModel):
    kind: Literal["table"] = "table"
    headers: list[str]
    rows: list[list[str]] = Field(default_factory=list)
    widths: list[str] = Field(default_factory=list)
    footer: str | None = None


Block = Annotated[HeadingBlock | ParagraphBlock | BulletListBlock | TableBlock, Field(discriminator="kind")]


class Document(BaseModel):
    """
    Printable document model.

    Attributes
    ----------
    title : str
        Document title
    subtitle : str
        Document subtitle
    generated_line : str
        ``Generated on <date>`` line under the title
    page : PageSetup
        Page size, orientation and margins
    blocks : list[Block]
        Content blocks in reading order

    """

    title: str
    subtitle: str
    generated_line: str
    page: PageSetup = Field(default_factory=PageSetup)
    blocks: list[Block] = Field(default_factory=list)


def footer_text(page: int, total: int) -> str:
    """Footer printed on every page."""
    return f"Page {page} of {total}"


def suggested_filename(report: ReportData, today: date | None = None) -> str:
    """File name for the exported report (``<Title_with_underscores>_<YYYY-MM-DD>.pdf``)."""
    today = today or date.today()
    stem = re.sub(r"\s+", "_", report.title)
    return f"{stem}_{today.isoformat()}.pdf"


def _io_line(entry: TransactionIO) -> str:
    tags = []
    if entry.is_own:
        tags.append("own")
    if entry.is_change:
        tags.append("change")
    if entry.path:
        tags.append(entry.path)
    suffix = f" [{', '.join(tags)}]" if tags else ""
    return f"{entry.address or 'Unknown'} ({format_amount(entry.value)}){suffix}"


def _address_table(entries: list[AddressEntry]) -> TableBlock:
    return TableBlock(
        headers=["Address", "Path", "Balance", "TXs", "Used"],
        rows=[
            [
                entry.address,
                entry.path or "",
                format_amount(entry.balance),
                str(entry.tx_count),
                "Yes" if entry.is_used else "No",
            ]
            for entry in entries
        ],
    )


class DocumentAssembler:
    """
    Builds a :class:`Document` from :class:`ReportData`.

    Every section becomes a heading followed by blocks chosen by section type.
    When the report carries an address-flow analysis, the section titled
    ``Address Flow Analysis`` is expanded into totals and counterparty tables.

    """

    def assemble(self, report: ReportData) -> Document:
        """
        Assemble the document for a report.

        Parameters
        ----------
        report : ReportData
            Report document produced by a generator

        Returns
        -------
        Document
            Printable document model

        """
        blocks = []
        for section in report.sections:
            blocks.append(HeadingBlock(text=section.title))
            if section.title == ADDRESS_FLOW_TITLE and report.address_flow is not None:
                blocks.extend(self.address_flow_blocks(report.address_flow, report.chain or "BTC"))
            else:
                blocks.extend(self.section_blocks(section))

        return Document(
            title=report.title,
            subtitle=report.subtitle,
            generated_line=f"Generated on {report.generated_date}",
            blocks=blocks,
        )

    def section_blocks(self, section: ReportSection) -> list:
        if isinstance(section, TableSection):
            data = section.data
            return [
                TableBlock(
                    headers=data.headers,
                    rows=data.rows,
                    widths=data.widths or ["*"] * len(data.headers),
                    footer=data.footer,
                )
            ]
        if isinstance(section, SummarySection):
            return [BulletListBlock(items=section.data, style="summary")]
        if isinstance(section, ListSection):
            return [BulletListBlock(items=section.data)]
        if isinstance(section, TextSection):
            return [ParagraphBlock(text=section.data)]
        if isinstance(section, TransactionsSection):
            return self._transaction_blocks(section)
        if isinstance(section, XpubDetailsSection):
            return [block for detail in section.data for block in self._xpub_blocks(detail)]
        if isinstance(section, AddressDetailsSection):
            return self._address_breakdown_blocks(section.data)
        msg = f"Unsupported section type: {type(section).__name__}"
        raise TypeError(msg)

    def address_flow_blocks(self, analysis: AddressFlowAnalysis, symbol: str) -> list:
        """Totals plus the sent-to and received-from counterparty tables."""
        return [
            BulletListBlock(
                style="summary",
                items=[
                    f"{symbol} SENT TO EXTERNAL: {format_amount(analysis.total_sent_to)} {symbol} "
                    f"({analysis.unique_sent_to_count} unique addresses)",
                    f"{symbol} RECEIVED FROM EXTERNAL: {format_amount(analysis.total_received_from)} {symbol} "
                    f"({analysis.unique_received_from_count} unique addresses)",
                ],
            ),
            HeadingBlock(text=f"Addresses We Sent {symbol} TO", level=3),
            self._flow_table(analysis.sent_to, symbol),
            HeadingBlock(text=f"Addresses That Sent {symbol} TO Us", level=3),
            self._flow_table(analysis.received_from, symbol),
        ]

    @staticmethod
    def _flow_table(flows: list[AddressFlow], symbol: str) -> TableBlock | ParagraphBlock:
        if not flows:
            return ParagraphBlock(text="No external addresses found", style="notes")
        return TableBlock(
            headers=["#", "Address", f"Amount ({symbol})", "TX Count", "Type"],
            widths=["30", "*", "80", "50", "60"],
            rows=[
                [str(index), flow.address, format_amount(flow.amount), str(flow.tx_count), "External"]
                for index, flow in enumerate(flows, start=1)
            ],
        )

    @staticmethod
    def _transaction_blocks(section: TransactionsSection) -> list:
        if not section.data:
            return [ParagraphBlock(text="No transactions found")]
        return [
            TableBlock(
                headers=["TXID", "Category", "Block", "Timestamp", "Value", "Fee", "Inputs", "Outputs"],
                rows=[
                    [
                        tx.txid,
                        tx.category.value,
                        str(tx.block_height),
                        tx.timestamp,
                        format_amount(tx.value),
                        format_amount(tx.fee),
                        "\n".join(_io_line(entry) for entry in tx.inputs),
                        "\n".join(_io_line(entry) for entry in tx.outputs),
                    ]
                    for tx in section.data
                ],
            )
        ]

    @staticmethod
    def _xpub_blocks(detail: XpubDetail) -> list:
        blocks = [
            HeadingBlock(text=f"{detail.label} ({detail.type or 'unknown'})", level=3),
            BulletListBlock(
                style="summary",
                items=[
                    f"XPUB: {detail.xpub}",
                    f"Path: {detail.path or 'Unknown'}",
                    f"Balance: {format_amount(detail.balance)}",
                    f"Total Received: {format_amount(detail.total_received)}",
                    f"Total Sent: {format_amount(detail.total_sent)}",
                    f"Transactions: {detail.tx_count}",
                    f"Receive Index: {detail.receive_index}",
                    f"Change Index: {detail.change_index}",
                ],
            ),
        ]
        if detail.addresses:
            blocks.append(_address_table(detail.addresses))
        return blocks

    @staticmethod
    def _address_breakdown_blocks(breakdown: AddressBreakdown) -> list:
        blocks = [ParagraphBlock(text=f"Total Addresses: {breakdown.total}")]
        for label, entries in (
            ("Receive Addresses", breakdown.receive_addresses),
            ("Change Addresses", breakdown.change_addresses),
        ):
            if entries:
                blocks.append(HeadingBlock(text=label, level=3))
                blocks.append(_address_table(entries))
        return blocks
