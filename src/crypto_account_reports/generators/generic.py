"""Fallback report generator for networks without a dedicated strategy."""

import logging
from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, Field

from crypto_account_reports.core.dedupe import dedupe_balances, dedupe_pubkeys
from crypto_account_reports.core.errors import ConfigurationError
from crypto_account_reports.core.models import (
    AssetContext,
    BalanceRecord,
    ListSection,
    Pubkey,
    ReportData,
    ReportOptions,
    ReportSection,
    SummarySection,
    TableData,
    TableSection,
)
from crypto_account_reports.core.registry import ReportGeneratorRegistry
from crypto_account_reports.core.session import WalletSession
from crypto_account_reports.data import get_known_decimals
from crypto_account_reports.generators.common import current_date, format_amount, resolve_options

logger = logging.getLogger(__name__)


class GenericAccount(BaseModel):
    address: str
    path: str
    balance: Decimal = Decimal("0")
    holdings: list[BalanceRecord] = Field(default_factory=list)


def shorten(address: str) -> str:
    """Shorten an address using a format suited to its family."""
    if not address or address == "Unknown" or len(address) <= 20:
        return address
    if address.startswith("0x"):
        return f"{address[:10]}...{address[-8:]}"
    if len(address) > 50:
        return f"{address[:12]}...{address[-8:]}"
    return f"{address[:8]}...{address[-6:]}"


@ReportGeneratorRegistry.register_fallback
class GenericReportGenerator:
    """Best-effort account and asset summary for any network."""

    name: ClassVar[str] = "generic"
    precedence: ClassVar[int] = 1000

    def is_supported(self, asset: AssetContext) -> bool:
        return True

    def get_default_options(self) -> ReportOptions:
        return ReportOptions(account_count=1, include_transactions=False, include_addresses=True, lod=0)

    def build_account(self, pubkey: Pubkey, asset: AssetContext, records: list[BalanceRecord]) -> GenericAccount:
        holdings = [record for record in records if not record.is_staking and record.matches(pubkey)]
        account = GenericAccount(
            address=pubkey.address or pubkey.master or pubkey.pubkey or "Unknown",
            path=pubkey.path or pubkey.path_master or "N/A",
            holdings=holdings,
        )
        native = next(
            (
                record
                for record in holdings
                if (asset.caip and record.caip == asset.caip) or (record.symbol or record.ticker) == asset.symbol
            ),
            None,
        )
        if native is not None:
            account.balance = native.balance
        return account

    async def generate_report(
        self,
        asset: AssetContext,
        session: WalletSession | None,
        options: ReportOptions | None = None,
    ) -> ReportData:
        """
        Generate a minimal account report.

        Raises
        ------
        ConfigurationError
            If no wallet session is supplied

        """
        if session is None:
            msg = "Wallet session not available. Cannot generate report."
            raise ConfigurationError(msg)

        options = resolve_options(options, self.get_default_options())
        records = dedupe_balances(session.balances)
        pubkeys = dedupe_pubkeys(asset.pubkeys)[: options.account_count]
        accounts = [self.build_account(pubkey, asset, records) for pubkey in pubkeys]
        logger.info("Building generic report for %s with %d accounts", asset.symbol or "asset", len(accounts))

        generated = current_date()
        return ReportData(
            title=f"{asset.name or 'Asset'} Report",
            subtitle=f"{asset.symbol or 'Token'} Account Analysis",
            generated_date=generated,
            chain=asset.symbol or None,
            lod=options.lod,
            sections=self.build_sections(accounts, asset, generated),
        )

    def build_sections(self, accounts: list[GenericAccount], asset: AssetContext, generated: str) -> list[ReportSection]:
        places = asset.decimals if asset.decimals is not None else get_known_decimals(asset.symbol)
        total = sum((account.balance for account in accounts), Decimal("0"))

        sections: list[ReportSection] = [
            TableSection(
                title="Account Summary",
                data=TableData(
                    headers=["Address", "Balance", "Network", "Path"],
                    widths=["35%", "20%", "20%", "25%"],
                    rows=[
                        [
                            shorten(account.address),
                            f"{format_amount(account.balance, places)} {asset.symbol}",
                            asset.network_id or "Unknown",
                            account.path,
                        ]
                        for account in accounts
                    ],
                ),
            ),
            SummarySection(
                title="Asset Information",
                data=[
                    f"Asset Name: {asset.name or 'Unknown'}",
                    f"Symbol: {asset.symbol or 'Unknown'}",
                    f"Network: {asset.network_id or 'Unknown'}",
                    f"Chain: {asset.chain or 'Unknown'}",
                    f"Total Accounts: {len(accounts)}",
                    f"Total Balance: {format_amount(total, 6)} {asset.symbol}",
                ],
            ),
        ]

        if any(len(account.holdings) > 1 for account in accounts):
            rows = []
            for account in accounts:
                for record in account.holdings:
                    symbol = record.symbol or record.ticker or "Unknown"
                    decimals = record.decimals if record.decimals is not None else get_known_decimals(symbol)
                    rows.append([shorten(account.address), symbol, format_amount(record.balance, decimals)])
            sections.append(
                TableSection(
                    title="Token Balances",
                    data=TableData(headers=["Address", "Token", "Balance"], widths=["40%", "30%", "30%"], rows=rows),
                )
            )

        sections.append(
            ListSection(
                title="Additional Information",
                data=[
                    f"Report Generated: {generated}",
                    "This is a generic report format",
                    "Some features may not be available for this network",
                    "For detailed information, check your wallet interface",
                ],
            )
        )
        return sections
