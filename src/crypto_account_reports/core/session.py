"""Collaborator handle passed to report strategies."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from crypto_account_reports.core.errors import ConfigurationError
from crypto_account_reports.core.models import AssetContext, BalanceRecord, DeviceFeatures, Job, Pubkey
from crypto_account_reports.integrations.polling import JobPoller, PollConfig

logger = logging.getLogger(__name__)


class ReportingService(Protocol):
    """Endpoints of the remote reporting service used by strategies."""

    async def submit_report(self, chain: str, body: dict[str, Any], schema: type[Any]) -> Any: ...

    async def get_job(self, chain: str, job_id: str) -> Job: ...

    async def get_job_result(self, chain: str, job_id: str, schema: type[Any]) -> Any: ...


class DeviceInfoProvider(Protocol):
    """Source of hardware wallet metadata."""

    async def get_features(self) -> dict[str, Any] | DeviceFeatures | None: ...


class StaticDeviceInfo:
    """Device info provider returning a fixed feature snapshot."""

    def __init__(self, features: dict[str, Any] | DeviceFeatures | None) -> None:
        self.features = features

    async def get_features(self) -> dict[str, Any] | DeviceFeatures | None:
        return self.features


class WalletSession:
    """
    Read-only snapshot of wallet state plus the services a report needs.

    Parameters
    ----------
    balances : Sequence[BalanceRecord]
        Balance records loaded by the balance provider
    pubkeys : Sequence[Pubkey]
        Pubkeys known for the wallet
    device : DeviceInfoProvider | None
        Hardware wallet metadata source
    reporting : ReportingService | None
        Remote reporting service client
    poll_config : PollConfig | None
        Job polling interval and attempt ceiling
    sleep : Callable[[float], Awaitable[None]]
        Coroutine used by the job poller between checks

    """

    def __init__(
        self,
        balances: Sequence[BalanceRecord] = (),
        pubkeys: Sequence[Pubkey] = (),
        device: DeviceInfoProvider | None = None,
        reporting: ReportingService | None = None,
        poll_config: PollConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.balances = tuple(balances)
        self.pubkeys = tuple(pubkeys)
        self.device = device
        self.reporting = reporting
        self.poll_config = poll_config or PollConfig()
        self.sleep = sleep

    def require_reporting(self) -> ReportingService:
        """
        Return the reporting service.

        Raises
        ------
        ConfigurationError
            If no reporting service is configured

        """
        if self.reporting is None:
            msg = "Remote reporting service not configured. Cannot generate report."
            raise ConfigurationError(msg)
        return self.reporting

    async def require_device_features(self) -> DeviceFeatures:
        """
        Fetch device features, failing fast when they are unavailable.

        Returns
        -------
        DeviceFeatures
            Validated device metadata

        Raises
        ------
        ConfigurationError
            If no device is connected, the query fails or returns nothing

        """
        if self.device is None:
            msg = "Device info not available. Cannot generate report without device information."
            raise ConfigurationError(msg)

        try:
            features = await self.device.get_features()
        except Exception as e:
            msg = f"Cannot get device features: {e}. Report generation aborted."
            raise ConfigurationError(msg) from e

        if features is None:
            msg = "Device features returned nothing. Ensure the device is connected and unlocked."
            raise ConfigurationError(msg)

        if isinstance(features, DeviceFeatures):
            return features

        try:
            return DeviceFeatures.model_validate(features)
        except ValidationError as e:
            msg = f"Malformed device features: {e.error_count()} validation errors"
            raise ConfigurationError(msg) from e

    def job_poller(self) -> JobPoller:
        """Build a job poller bound to the reporting service."""
        return JobPoller(self.require_reporting(), self.poll_config, sleep=self.sleep)

    def records_for_asset(self, asset: AssetContext) -> list[BalanceRecord]:
        """
        Balance records of the asset (by CAIP, or by symbol when no CAIP matches).

        Parameters
        ----------
        asset : AssetContext
            Selected asset

        Returns
        -------
        list[BalanceRecord]
            Matching records in provider order

        """
        if asset.caip:
            by_caip = [record for record in self.balances if record.caip == asset.caip]
            if by_caip:
                return by_caip
        return [record for record in self.balances if (record.symbol or record.ticker) == asset.symbol]
