"""Report generators; importing this package registers every strategy."""

from crypto_account_reports.generators.cosmos import CosmosReportGenerator
from crypto_account_reports.generators.evm import EvmReportGenerator
from crypto_account_reports.generators.generic import GenericReportGenerator
from crypto_account_reports.generators.utxo import UtxoReportGenerator

__all__ = [
    "CosmosReportGenerator",
    "EvmReportGenerator",
    "GenericReportGenerator",
    "UtxoReportGenerator",
]
