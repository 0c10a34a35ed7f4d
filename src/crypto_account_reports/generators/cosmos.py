"""Report generator for Cosmos SDK chains."""

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, Field

from crypto_account_reports.core.dedupe import dedupe_balances, dedupe_pubkeys
from crypto_account_reports.core.errors import DataUnavailableError
from crypto_account_reports.core.models import (
    AssetContext,
    BalanceRecord,
    ListSection,
    ReportData,
    ReportOptions,
    ReportSection,
    SummarySection,
    TableData,
    TableSection,
)
from crypto_account_reports.core.registry import ReportGeneratorRegistry, matches_family
from crypto_account_reports.core.session import WalletSession
from crypto_account_reports.data import get_family_config
from crypto_account_reports.generators.common import current_date, format_amount, resolve_options, truncate_address

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

STAKING_NOTES = [
    "Staked amounts are delegated to validators and earn rewards",
    "Unbonding period typically takes 21 days",
    "Rewards should be claimed periodically to compound earnings",
    "Redelegation allows moving stake between validators without unbonding",
]


class Delegation(BaseModel):
    validator: str
    amount: Decimal
    address: str


class CosmosAccount(BaseModel):
    """Liquid and staked holdings of one Cosmos address."""

    address: str
    available: Decimal = Decimal("0")
    staked: Decimal = Decimal("0")
    rewards: Decimal = Decimal("0")
    unbonding: Decimal = Decimal("0")
    delegations: list[Delegation] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.available + self.staked + self.rewards + self.unbonding


def staking_ratio(staked: Decimal, total: Decimal) -> Decimal:
    """Share of the total held in delegations, in percent (0 when total is 0)."""
    if total <= 0:
        return Decimal("0")
    return staked / total * HUNDRED


def _holds(record: BalanceRecord, address: str) -> bool:
    return address in (record.address, record.pubkey)


def _same_asset(record: BalanceRecord, asset: AssetContext) -> bool:
    if asset.caip and record.caip:
        return record.caip == asset.caip
    return (record.symbol or record.ticker) == asset.symbol


def build_account(address: str, asset: AssetContext, records: Sequence[BalanceRecord]) -> CosmosAccount:
    """
    Derive the holdings of one address from the session's balance records.

    Parameters
    ----------
    address : str
        Account address
    asset : AssetContext
        Selected asset
    records : Sequence[BalanceRecord]
        Deduplicated balance records

    Returns
    -------
    CosmosAccount
        Available balance plus delegated, reward and unbonding amounts

    """
    account = CosmosAccount(address=address)

    for record in records:
        if not _holds(record, address):
            continue

        if not record.is_staking:
            if _same_asset(record, asset):
                account.available += record.balance
            continue

        if record.network_id and record.network_id != asset.network_id:
            continue

        if record.type == "delegation":
            account.staked += record.balance
            account.delegations.append(
                Delegation(validator=record.validator or "Unknown Validator", amount=record.balance, address=address)
            )
        elif record.type == "reward":
            account.rewards += record.balance
        elif record.type == "unbonding":
            account.unbonding += record.balance
        else:
            logger.debug("Ignoring staking record of type %s for %s", record.type, address)

    return account


@ReportGeneratorRegistry.register
class CosmosReportGenerator:
    """Staking report with balances, delegations, rewards and unbonding amounts."""

    name: ClassVar[str] = "cosmos"
    precedence: ClassVar[int] = 30
    family: ClassVar[str] = "cosmos"

    def is_supported(self, asset: AssetContext) -> bool:
        return matches_family(asset, self.family)

    def get_default_options(self) -> ReportOptions:
        return ReportOptions(account_count=1, include_transactions=True, include_addresses=True, lod=1)

    async def generate_report(
        self,
        asset: AssetContext,
        session: WalletSession,
        options: ReportOptions | None = None,
    ) -> ReportData:
        """
        Generate the staking report from balance records already in the session.

        Raises
        ------
        DataUnavailableError
            If the asset has no addresses

        """
        options = resolve_options(options, self.get_default_options())
        addresses = [pubkey.address for pubkey in dedupe_pubkeys(asset.pubkeys) if pubkey.address]
        if not addresses:
            msg = f"No {asset.symbol} addresses found in loaded wallet data."
            raise DataUnavailableError(msg)

        records = dedupe_balances(session.balances)
        accounts = [build_account(address, asset, records) for address in addresses]
        logger.info("Building %s staking report for %d accounts", asset.symbol, len(accounts))

        generated = current_date()
        return ReportData(
            title=f"{asset.name or 'Cosmos'} Staking Report",
            subtitle=f"{asset.symbol} Account Analysis",
            generated_date=generated,
            chain=asset.symbol,
            lod=options.lod,
            sections=self.build_sections(accounts, asset, generated),
        )

    def build_sections(self, accounts: list[CosmosAccount], asset: AssetContext, generated: str) -> list[ReportSection]:
        symbol = asset.symbol
        places = get_family_config(self.family)["default_decimals"]

        def amount(value: Decimal) -> str:
            return f"{format_amount(value, places)} {symbol}"

        sections: list[ReportSection] = [
            TableSection(
                title="Account Overview",
                data=TableData(
                    headers=["Address", "Available", "Staked", "Rewards", "Unbonding", "Total Value"],
                    widths=["25%", "15%", "15%", "15%", "15%", "15%"],
                    rows=[
                        [
                            truncate_address(account.address, head=12),
                            amount(account.available),
                            amount(account.staked),
                            amount(account.rewards),
                            amount(account.unbonding),
                            amount(account.total),
                        ]
                        for account in accounts
                    ],
                ),
            ),
            SummarySection(title="Staking Summary", data=self.staking_summary(accounts, symbol, places)),
        ]

        delegations = [delegation for account in accounts for delegation in account.delegations]
        if delegations:
            sections.append(
                TableSection(
                    title="Delegation Details",
                    data=TableData(
                        headers=["Validator", "Amount", "Address"],
                        widths=["40%", "30%", "30%"],
                        rows=[
                            [d.validator, amount(d.amount), truncate_address(d.address, head=12)]
                            for d in delegations
                        ],
                    ),
                )
            )

        sections.append(
            ListSection(
                title="Chain Information",
                data=[
                    f"Chain: {asset.name or 'Cosmos'}",
                    f"Network ID: {asset.network_id}",
                    f"Native Token: {symbol}",
                    f"Total Accounts: {len(accounts)}",
                    f"Report Generated: {generated}",
                ],
            )
        )
        sections.append(ListSection(title="Staking Notes", data=list(STAKING_NOTES)))
        return sections

    @staticmethod
    def staking_summary(accounts: list[CosmosAccount], symbol: str, places: int = 6) -> list[str]:
        zero = Decimal("0")
        available = sum((a.available for a in accounts), zero)
        staked = sum((a.staked for a in accounts), zero)
        rewards = sum((a.rewards for a in accounts), zero)
        unbonding = sum((a.unbonding for a in accounts), zero)
        total = available + staked + rewards + unbonding

        return [
            f"Total Available: {format_amount(available, places)} {symbol}",
            f"Total Staked: {format_amount(staked, places)} {symbol}",
            f"Total Rewards: {format_amount(rewards, places)} {symbol}",
            f"Total Unbonding: {format_amount(unbonding, places)} {symbol}",
            f"Total Portfolio Value: {format_amount(total, places)} {symbol}",
            f"Staking Ratio: {format_amount(staking_ratio(staked, total), 2)}%",
        ]
