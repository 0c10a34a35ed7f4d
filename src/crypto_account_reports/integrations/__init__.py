"""Remote reporting service client and async job polling."""

from crypto_account_reports.integrations.polling import JobPoller, PollConfig, PollOutcome
from crypto_account_reports.integrations.reporting import ReportingClient

__all__ = ["JobPoller", "PollConfig", "PollOutcome", "ReportingClient"]
