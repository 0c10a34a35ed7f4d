"""Address flow analysis over detailed UTXO transactions.

Collects the external counterparties of a wallet: addresses it sent coins to
(foreign outputs) and addresses that sent coins to it (foreign inputs).
"""

from collections.abc import Iterable
from decimal import Decimal

from crypto_account_reports.core.models import AddressFlow, AddressFlowAnalysis, TransactionDetail, TransactionIO
from crypto_account_reports.generators.common import format_amount

TOP_COUNTERPARTIES = 5


def _collect(flows: dict[str, AddressFlow], txid: str, entries: Iterable[TransactionIO]) -> None:
    for entry in entries:
        if entry.is_own or not entry.address:
            continue
        flow = flows.get(entry.address)
        if flow is None:
            flows[entry.address] = AddressFlow(address=entry.address, amount=entry.value, tx_count=1, txids=[txid])
            continue
        flow.amount += entry.value
        if txid not in flow.txids:
            flow.txids.append(txid)
            flow.tx_count += 1


def analyze_address_flow(transactions: Iterable[TransactionDetail]) -> AddressFlowAnalysis:
    """
    Aggregate value moved to and from external addresses.

    Parameters
    ----------
    transactions : Iterable[TransactionDetail]
        Transactions with own/foreign tagged inputs and outputs

    Returns
    -------
    AddressFlowAnalysis
        Counterparties sorted by amount (highest first) with totals

    """
    sent_to: dict[str, AddressFlow] = {}
    received_from: dict[str, AddressFlow] = {}

    for tx in transactions:
        _collect(sent_to, tx.txid, tx.outputs)
        _collect(received_from, tx.txid, tx.inputs)

    sent = sorted(sent_to.values(), key=lambda flow: flow.amount, reverse=True)
    received = sorted(received_from.values(), key=lambda flow: flow.amount, reverse=True)

    return AddressFlowAnalysis(
        sent_to=sent,
        received_from=received,
        total_sent_to=sum((flow.amount for flow in sent), Decimal("0")),
        total_received_from=sum((flow.amount for flow in received), Decimal("0")),
        unique_sent_to_count=len(sent),
        unique_received_from_count=len(received),
    )


def _top_lines(flows: list[AddressFlow], symbol: str) -> list[str]:
    lines = []
    for index, flow in enumerate(flows[:TOP_COUNTERPARTIES], start=1):
        plural = "s" if flow.tx_count > 1 else ""
        lines.append(
            f"  {index}. {flow.address[:40]}... -> {format_amount(flow.amount)} {symbol} ({flow.tx_count} tx{plural})"
        )
    return lines


def address_flow_summary(analysis: AddressFlowAnalysis, symbol: str = "BTC") -> list[str]:
    """Summary lines for an address flow analysis (totals plus top counterparties)."""
    return [
        f"Total {symbol} Sent to External Addresses: {format_amount(analysis.total_sent_to)} {symbol}",
        f"Total {symbol} Received from External Addresses: {format_amount(analysis.total_received_from)} {symbol}",
        f"Unique External Addresses Sent To: {analysis.unique_sent_to_count}",
        f"Unique External Addresses Received From: {analysis.unique_received_from_count}",
        "",
        f"Top {TOP_COUNTERPARTIES} Addresses We Sent To:",
        *_top_lines(analysis.sent_to, symbol),
        "",
        f"Top {TOP_COUNTERPARTIES} Addresses That Sent To Us:",
        *_top_lines(analysis.received_from, symbol),
    ]
