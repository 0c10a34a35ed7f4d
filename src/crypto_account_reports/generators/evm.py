"""Report generator for EVM chains."""

import logging
from typing import ClassVar

from crypto_account_reports.core.dedupe import dedupe_pubkeys
from crypto_account_reports.core.errors import DataUnavailableError
from crypto_account_reports.core.models import (
    AssetContext,
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
from crypto_account_reports.generators.common import (
    current_date,
    extract_chain_id,
    fetch_report,
    format_amount,
    resolve_options,
    truncate_address,
)
from crypto_account_reports.integrations.schemas import EvmReportPayload

logger = logging.getLogger(__name__)

TOKEN_DETAIL_LOD = 2


@ReportGeneratorRegistry.register
class EvmReportGenerator:
    """Account report with addresses, balances, token holdings and nonces."""

    name: ClassVar[str] = "evm"
    precedence: ClassVar[int] = 20
    family: ClassVar[str] = "evm"

    def is_supported(self, asset: AssetContext) -> bool:
        return matches_family(asset, self.family)

    def get_default_options(self) -> ReportOptions:
        return ReportOptions(account_count=5, include_transactions=True, include_addresses=True, lod=1)

    async def generate_report(
        self,
        asset: AssetContext,
        session: WalletSession,
        options: ReportOptions | None = None,
    ) -> ReportData:
        """
        Generate the EVM account report.

        Parameters
        ----------
        asset : AssetContext
            Selected asset
        session : WalletSession
            Wallet snapshot and reporting service
        options : ReportOptions | None
            Caller options; unset fields use :meth:`get_default_options`

        Returns
        -------
        ReportData
            Statistics, account table and (LOD >= 2) token holdings

        Raises
        ------
        ConfigurationError
            If the reporting service is unavailable
        DataUnavailableError
            If the asset has no addresses

        """
        options = resolve_options(options, self.get_default_options())
        lod = options.lod
        session.require_reporting()

        if not asset.pubkeys:
            msg = "No pubkeys available in asset context. Ensure wallet is initialized."
            raise DataUnavailableError(msg)

        addresses = [
            {"address": pubkey.address, "path": pubkey.path or pubkey.path_master or "Unknown"}
            for pubkey in dedupe_pubkeys(asset.pubkeys)
            if pubkey.address
        ][: options.account_count]
        if not addresses:
            msg = f"No {asset.symbol} addresses found in loaded wallet data."
            raise DataUnavailableError(msg)

        body = {
            "networkId": asset.network_id,
            "addresses": addresses,
            "lod": lod,
            "options": {"includeTokens": options.include_addresses is not False, "includeNFTs": False},
        }
        chain = get_family_config(self.family)["report_endpoint"]
        logger.info("Requesting %s report for %d addresses at LOD %d", chain, len(addresses), lod)
        payload = await fetch_report(session, chain, body, EvmReportPayload)

        return ReportData(
            title=f"{asset.display_name} Account Report",
            subtitle=f"{asset.symbol} Wallet Analysis",
            generated_date=current_date(),
            chain=asset.symbol,
            lod=lod,
            sections=self.build_sections(payload, asset, lod),
        )

    def build_sections(self, payload: EvmReportPayload, asset: AssetContext, lod: int) -> list[ReportSection]:
        symbol = asset.symbol
        sections: list[ReportSection] = [
            SummarySection(
                title="Portfolio Statistics",
                data=[
                    f"Total Addresses: {payload.total_addresses}",
                    f"Total Balance: {payload.total_balance_eth} {symbol}",
                    f"Total USD Value: ${format_amount(payload.total_balance_usd, 2)}",
                    f"Network: {asset.display_name}",
                    f"Chain ID: {extract_chain_id(asset.network_id)}",
                    f"Last Updated: {payload.last_updated or 'Unknown'}",
                ],
            )
        ]

        if payload.addresses:
            sections.append(
                TableSection(
                    title="Account Summary",
                    data=TableData(
                        headers=["Address", "Balance", "USD Value", "Nonce", "Tokens"],
                        widths=["35%", "15%", "15%", "10%", "25%"],
                        rows=[
                            [
                                truncate_address(account.address),
                                f"{account.balance_eth} {symbol}",
                                f"${format_amount(account.balance_usd, 2)}",
                                str(account.nonce),
                                f"{account.token_count} tokens" if account.token_count else "No tokens",
                            ]
                            for account in payload.addresses
                        ],
                    ),
                )
            )

        served_lod = payload.lod if payload.lod is not None else lod
        tokens = [token for account in payload.addresses for token in account.tokens]
        if served_lod >= TOKEN_DETAIL_LOD and tokens:
            sections.append(
                TableSection(
                    title="Token Holdings Detail",
                    data=TableData(
                        headers=["Token", "Balance", "USD Value", "Contract"],
                        widths=["25%", "20%", "20%", "35%"],
                        rows=[
                            [
                                token.symbol or "Unknown",
                                token.balance or "0",
                                f"${format_amount(token.value_usd, 2)}",
                                truncate_address(token.contract_address),
                            ]
                            for token in tokens
                        ],
                    ),
                )
            )
        return sections
