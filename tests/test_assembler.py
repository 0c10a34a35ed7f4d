"""Tests for the document assembler."""

from datetime import date

import pytest

from crypto_account_reports.core.models import (
    ADDRESS_FLOW_TITLE,
    AddressFlow,
    AddressFlowAnalysis,
    ListSection,
    ReportData,
    SummarySection,
    TableData,
    TableSection,
    TextSection,
)
from crypto_account_reports.document import DocumentAssembler, footer_text, suggested_filename
from crypto_account_reports.document.assembler import BulletListBlock, HeadingBlock, ParagraphBlock, TableBlock
from crypto_account_reports.generators.lod import build_sections
from crypto_account_reports.integrations.schemas import UtxoReportPayload


def _report(sections, address_flow=None):
    return ReportData(
        title="Vault Report LOD:5",
        subtitle="BTC Wallet Analysis - 3 Accounts",
        generated_date="October 19, 2026",
        chain="BTC",
        sections=sections,
        address_flow=address_flow,
    )


def test_header_and_page_setup():
    document = DocumentAssembler().assemble(_report([]))

    assert document.title == "Vault Report LOD:5"
    assert document.generated_line == "Generated on October 19, 2026"
    assert document.page.orientation == "landscape"
    assert document.page.size == "LETTER"
    assert document.blocks == []


def test_basic_sections():
    sections = [
        TableSection(title="Accounts", data=TableData(headers=["A", "B"], rows=[["1", "2"]], footer="Total: 1")),
        SummarySection(title="Summary", data=["line"]),
        ListSection(title="Notes", data=["note"]),
        TextSection(title="Empty", data="No XPUBs found"),
    ]

    blocks = DocumentAssembler().assemble(_report(sections)).blocks

    assert [type(b) for b in blocks] == [
        HeadingBlock,
        TableBlock,
        HeadingBlock,
        BulletListBlock,
        HeadingBlock,
        BulletListBlock,
        HeadingBlock,
        ParagraphBlock,
    ]
    assert blocks[1].widths == ["*", "*"]
    assert blocks[1].footer == "Total: 1"
    assert blocks[3].style == "summary"
    assert blocks[7].text == "No XPUBs found"


def test_address_flow_section_is_expanded():
    analysis = AddressFlowAnalysis(
        sent_to=[AddressFlow(address="3ExternalPayee", amount="0.3", tx_count=1)],
        total_sent_to="0.3",
        unique_sent_to_count=1,
    )
    section = SummarySection(title=ADDRESS_FLOW_TITLE, data=["summary line"])

    blocks = DocumentAssembler().assemble(_report([section], analysis)).blocks

    assert blocks[1].items[0] == "BTC SENT TO EXTERNAL: 0.30000000 BTC (1 unique addresses)"
    assert blocks[2].text == "Addresses We Sent BTC TO"
    assert blocks[3].rows == [["1", "3ExternalPayee", "0.30000000", "1", "External"]]
    assert blocks[4].text == "Addresses That Sent BTC TO Us"
    assert blocks[5] == ParagraphBlock(text="No external addresses found", style="notes")


def test_address_flow_summary_without_analysis():
    section = SummarySection(title=ADDRESS_FLOW_TITLE, data=["summary line"])

    blocks = DocumentAssembler().assemble(_report([section])).blocks

    assert blocks[1] == BulletListBlock(items=["summary line"], style="summary")


def test_full_detail_report(utxo_payload):
    """Every section type produced by the detail levels can be assembled."""
    sections = build_sections(UtxoReportPayload.model_validate(utxo_payload), 5)

    blocks = DocumentAssembler().assemble(_report(sections)).blocks
    headings = [b.text for b in blocks if isinstance(b, HeadingBlock) and b.level == 2]

    assert headings == [s.title for s in sections]
    assert "Account 0 (p2wpkh)" in [b.text for b in blocks if isinstance(b, HeadingBlock)]
    transactions = next(b for b in blocks if isinstance(b, TableBlock) and b.headers[0] == "TXID")
    assert transactions.rows[0][1] == "SELF"
    assert "[own, change, m/84'/0'/0'/1/0]" in transactions.rows[0][7]


def test_unsupported_section_raises():
    with pytest.raises(TypeError, match="Unsupported section type"):
        DocumentAssembler().section_blocks(object())


def test_footer_and_filename():
    report = _report([])

    assert footer_text(2, 5) == "Page 2 of 5"
    assert suggested_filename(report, today=date(2026, 10, 19)) == "Vault_Report_LOD:5_2026-10-19.pdf"


def test_filename_collapses_whitespace():
    report = _report([]).model_copy(update={"title": "Vault  Report\tLOD:1"})

    assert suggested_filename(report, today=date(2026, 10, 19)) == "Vault_Report_LOD:1_2026-10-19.pdf"
