"""Core functionality including models, dedupe, aggregator, registry and session."""

from crypto_account_reports.core.aggregator import BalanceAggregator, get_address_type
from crypto_account_reports.core.dedupe import dedupe_balances, dedupe_pubkeys
from crypto_account_reports.core.errors import (
    ConfigurationError,
    DataUnavailableError,
    JobFailedError,
    JobTimeoutError,
    RemoteServiceError,
    ReportError,
)
from crypto_account_reports.core.models import (
    AggregatedBalance,
    AssetContext,
    BalanceDetail,
    BalanceRecord,
    Pubkey,
    ReportData,
    ReportOptions,
)
from crypto_account_reports.core.registry import ReportGeneratorRegistry

__all__ = [
    "AggregatedBalance",
    "AssetContext",
    "BalanceAggregator",
    "BalanceDetail",
    "BalanceRecord",
    "ConfigurationError",
    "DataUnavailableError",
    "JobFailedError",
    "JobTimeoutError",
    "Pubkey",
    "RemoteServiceError",
    "ReportData",
    "ReportError",
    "ReportGeneratorRegistry",
    "ReportOptions",
    "dedupe_balances",
    "dedupe_pubkeys",
    "get_address_type",
]
