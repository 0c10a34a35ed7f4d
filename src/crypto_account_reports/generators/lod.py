"""Level-of-detail section pipeline for UTXO report payloads.

The sections for level ``L`` are the concatenation of the builders for levels
``0..L`` in ascending order, so every level is a superset of the one below it.
Builders are pure: they read only the payload and never consult the clock.
"""

from collections.abc import Callable, Iterable, Sequence

from crypto_account_reports.core.models import (
    ADDRESS_FLOW_TITLE,
    MAX_LOD,
    AddressBreakdown,
    AddressDetailsSection,
    AddressEntry,
    ReportSection,
    SummarySection,
    TableData,
    TableSection,
    TextSection,
    TransactionCategory,
    TransactionDetail,
    TransactionIO,
    TransactionsSection,
    XpubDetail,
    XpubDetailsSection,
)
from crypto_account_reports.generators.common import format_amount
from crypto_account_reports.generators.flow import address_flow_summary, analyze_address_flow
from crypto_account_reports.integrations.schemas import (
    UtxoAddress,
    UtxoAddressTransaction,
    UtxoReportPayload,
    UtxoTransaction,
)

SectionBuilder = Callable[[UtxoReportPayload, str], list[ReportSection]]


def categorize_transaction(inputs: Sequence[TransactionIO], outputs: Sequence[TransactionIO]) -> TransactionCategory:
    """
    Categorize a transaction relative to the wallet.

    Parameters
    ----------
    inputs : Sequence[TransactionIO]
        Transaction inputs
    outputs : Sequence[TransactionIO]
        Transaction outputs

    Returns
    -------
    TransactionCategory
        ``SELF`` if an own input and an own output exist, ``SEND`` if only an
        own input exists, ``RECEIVE`` otherwise

    """
    own_inputs = any(entry.is_own for entry in inputs)
    own_outputs = any(entry.is_own for entry in outputs)
    if own_inputs and own_outputs:
        return TransactionCategory.SELF
    if own_inputs:
        return TransactionCategory.SEND
    return TransactionCategory.RECEIVE


def _address_entry(address: UtxoAddress) -> AddressEntry:
    return AddressEntry(
        address=address.address,
        path=address.path,
        type=address.type,
        balance=address.balance,
        tx_count=address.tx_count,
        is_change=address.type == "change",
        is_used=address.is_used,
        txids=list(address.txids),
    )


def _by_block_height(transactions: Iterable[UtxoAddressTransaction | UtxoTransaction]) -> list:
    unique = {}
    for tx in transactions:
        unique.setdefault(tx.txid, tx)
    return sorted(unique.values(), key=lambda tx: tx.block_height, reverse=True)


def overview_section(payload: UtxoReportPayload, symbol: str) -> list[ReportSection]:
    return [
        SummarySection(
            title="Portfolio Overview (LOD 0)",
            data=[
                f"Total Balance: {format_amount(payload.total_balance_btc)} {symbol}",
                f"USD Value: ${format_amount(payload.total_balance_usd, 2)}",
                f"Total XPUBs: {payload.total_xpubs}",
                f"Last Updated: {payload.last_updated or 'Unknown'}",
            ],
        )
    ]


def xpub_summary_section(payload: UtxoReportPayload, symbol: str) -> list[ReportSection]:
    title = "XPUB Summaries (LOD 1)"
    if not payload.xpubs:
        return [TextSection(title=title, data="No XPUBs found")]

    rows = [
        [
            xpub.label or "Unknown",
            xpub.type or "",
            xpub.path or "",
            xpub.xpub,
            format_amount(xpub.balance),
            str(xpub.address_count),
            str(xpub.tx_count),
        ]
        for xpub in payload.xpubs
    ]
    return [
        TableSection(
            title=title,
            data=TableData(
                headers=["Label", "Type", "Path", "XPUB", f"Balance ({symbol})", "Addresses", "TXs"],
                rows=rows,
            ),
        )
    ]


def used_addresses_section(payload: UtxoReportPayload, symbol: str) -> list[ReportSection]:
    details = [
        XpubDetail(
            label=xpub.label or "Unknown",
            type=xpub.type,
            xpub=xpub.xpub,
            path=xpub.path,
            balance=xpub.balance,
            total_received=xpub.total_received,
            total_sent=xpub.total_sent,
            tx_count=xpub.tx_count,
            receive_index=xpub.receive_index,
            change_index=xpub.change_index,
            addresses=[_address_entry(address) for address in xpub.addresses if address.is_used],
        )
        for xpub in payload.xpubs
    ]
    return [XpubDetailsSection(title="XPUB Details with Used Addresses (LOD 2)", data=details)]


def all_addresses_section(payload: UtxoReportPayload, symbol: str) -> list[ReportSection]:
    entries = [_address_entry(address) for xpub in payload.xpubs for address in xpub.addresses]
    # Untyped addresses are listed with the receive addresses.
    breakdown = AddressBreakdown(
        total=len(entries),
        receive_addresses=[entry for entry in entries if not entry.is_change],
        change_addresses=[entry for entry in entries if entry.is_change],
    )
    return [AddressDetailsSection(title="All Addresses - Used and Unused (LOD 3)", data=breakdown)]


def transaction_summary_section(payload: UtxoReportPayload, symbol: str) -> list[ReportSection]:
    title = "Transaction Summary (LOD 4)"
    transactions = _by_block_height(
        tx for xpub in payload.xpubs for address in xpub.addresses for tx in address.transactions
    )
    if not transactions:
        return [TextSection(title=title, data="No transactions found")]

    rows = [
        [
            str(index),
            f"{tx.txid[:16]}...",
            str(tx.block_height),
            tx.timestamp or "Pending",
            format_amount(tx.value),
            str(tx.confirmations),
        ]
        for index, tx in enumerate(transactions, start=1)
    ]
    heights = [tx.block_height for tx in transactions]
    footer = f"Total Transactions: {len(transactions)}\nBlock Range: {min(heights)} - {max(heights)}"
    return [
        TableSection(
            title=title,
            data=TableData(
                headers=["#", "TXID", "Block", "Timestamp", f"Value ({symbol})", "Confirmations"],
                rows=rows,
                footer=footer,
            ),
        )
    ]


def collect_transaction_details(payload: UtxoReportPayload) -> list[TransactionDetail]:
    """
    Detailed transactions of all extended keys, deduplicated by txid.

    Parameters
    ----------
    payload : UtxoReportPayload
        Server report payload

    Returns
    -------
    list[TransactionDetail]
        Categorized transactions sorted by block height (highest first)

    """
    transactions = _by_block_height(tx for xpub in payload.xpubs for tx in xpub.transactions)
    return [
        TransactionDetail(
            txid=tx.txid,
            block_height=tx.block_height,
            timestamp=tx.timestamp or "Pending",
            confirmations=tx.confirmations,
            value=tx.value,
            fee=tx.fee,
            category=categorize_transaction(tx.inputs, tx.outputs),
            inputs=[entry.model_copy() for entry in tx.inputs],
            outputs=[entry.model_copy() for entry in tx.outputs],
        )
        for tx in transactions
    ]


def transaction_details_section(payload: UtxoReportPayload, symbol: str) -> list[ReportSection]:
    details = collect_transaction_details(payload)
    return [
        TransactionsSection(title="Full Transaction Details with Paths (LOD 5)", data=details),
        SummarySection(title=ADDRESS_FLOW_TITLE, data=address_flow_summary(analyze_address_flow(details), symbol)),
    ]


LOD_BUILDERS: tuple[SectionBuilder, ...] = (
    overview_section,
    xpub_summary_section,
    used_addresses_section,
    all_addresses_section,
    transaction_summary_section,
    transaction_details_section,
)


def build_sections(payload: UtxoReportPayload, lod: int, symbol: str = "BTC") -> list[ReportSection]:
    """
    Build the report sections for a detail level.

    Parameters
    ----------
    payload : UtxoReportPayload
        Server report payload
    lod : int
        Level of detail, clamped to ``0..MAX_LOD``
    symbol : str
        Coin ticker used in labels

    Returns
    -------
    list[ReportSection]
        Sections of levels ``0..lod`` in ascending order

    """
    level = max(0, min(lod, MAX_LOD))
    sections: list[ReportSection] = []
    for builder in LOD_BUILDERS[: level + 1]:
        sections.extend(builder(payload, symbol))
    return sections
