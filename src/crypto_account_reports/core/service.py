"""End-to-end report generation: strategy dispatch, generation and assembly."""

import logging

# Import all generators to trigger auto-registration
from crypto_account_reports import generators  # noqa: F401
from crypto_account_reports.core.aggregator import BalanceAggregator
from crypto_account_reports.core.models import AggregatedBalance, AssetContext, ReportData, ReportOptions
from crypto_account_reports.core.registry import ReportGeneratorRegistry
from crypto_account_reports.core.session import WalletSession
from crypto_account_reports.document import Document, DocumentAssembler

logger = logging.getLogger(__name__)


class ReportService:
    """
    Facade over the report pipeline for one wallet session.

    Workflow:
    1. Pick the generator for the asset (fixed precedence, generic fallback)
    2. Generate the report with the caller's options merged over the defaults
    3. Assemble the printable document

    Parameters
    ----------
    session : WalletSession
        Wallet snapshot and services
    assembler : DocumentAssembler | None
        Document assembler

    """

    def __init__(self, session: WalletSession, assembler: DocumentAssembler | None = None) -> None:
        self.session = session
        self.assembler = assembler or DocumentAssembler()
        self.aggregator = BalanceAggregator()

    async def generate(self, asset: AssetContext, options: ReportOptions | None = None) -> ReportData:
        """
        Generate a report for an asset.

        Parameters
        ----------
        asset : AssetContext
            Selected asset
        options : ReportOptions | None
            Caller options; unset fields use the generator defaults

        Returns
        -------
        ReportData
            Report document

        Raises
        ------
        ReportError
            Any generation failure; no partial report is returned

        """
        generator = ReportGeneratorRegistry.get_generator(asset)
        logger.info(
            "Generating %s report for %s (%s)",
            generator.name,
            asset.symbol,
            ReportGeneratorRegistry.get_network_type(asset),
        )
        return await generator.generate_report(asset, self.session, options)

    async def generate_document(
        self, asset: AssetContext, options: ReportOptions | None = None
    ) -> tuple[ReportData, Document]:
        """Generate a report and assemble its printable document."""
        report = await self.generate(asset, options)
        return report, self.assembler.assemble(report)

    def aggregate(self, asset: AssetContext, show_all: bool = True) -> AggregatedBalance | None:
        """Aggregate the session's balances for an asset."""
        return self.aggregator.aggregate_for_asset(asset, self.session.balances, show_all=show_all)
