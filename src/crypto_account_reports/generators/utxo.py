"""Report generator for Bitcoin-family (UTXO) chains."""

import logging
from typing import ClassVar

from crypto_account_reports.core.dedupe import dedupe_pubkeys
from crypto_account_reports.core.errors import DataUnavailableError
from crypto_account_reports.core.models import (
    DEFAULT_DEVICE_NAME,
    MAX_LOD,
    AssetContext,
    DeviceFeatures,
    ReportData,
    ReportOptions,
    ScriptType,
    SummarySection,
)
from crypto_account_reports.core.registry import ReportGeneratorRegistry, matches_family
from crypto_account_reports.core.session import WalletSession
from crypto_account_reports.data import get_family_config
from crypto_account_reports.generators.common import current_date, fetch_report, resolve_options
from crypto_account_reports.generators.flow import analyze_address_flow
from crypto_account_reports.generators.lod import build_sections, collect_transaction_details
from crypto_account_reports.integrations.schemas import UtxoPubkeyRequest, UtxoReportPayload

logger = logging.getLogger(__name__)

# Legacy, SegWit and Native SegWit keys per account
KEYS_PER_ACCOUNT = 3

_PREFIX_SCRIPT_TYPES = (
    ("zpub", ScriptType.P2WPKH),
    ("ypub", ScriptType.P2SH_P2WPKH),
    ("xpub", ScriptType.P2PKH),
)


def classify_extended_key(key: str, fallback: str | None = None) -> ScriptType:
    """
    Derive the script type implied by an extended key prefix.

    Parameters
    ----------
    key : str
        Extended public key
    fallback : str | None
        Script type hint used for unknown prefixes

    Returns
    -------
    ScriptType
        ``p2wpkh`` for zpub, ``p2sh-p2wpkh`` for ypub, ``p2pkh`` for xpub;
        unknown prefixes use ``fallback`` when it is a valid script type,
        else ``p2pkh``

    """
    for prefix, script_type in _PREFIX_SCRIPT_TYPES:
        if key.startswith(prefix):
            return script_type
    try:
        return ScriptType(fallback)
    except ValueError:
        return ScriptType.P2PKH


def device_summary(features: DeviceFeatures) -> SummarySection:
    """Summary section describing the signing device."""

    def enabled(flag: bool) -> str:
        return "Enabled" if flag else "Disabled"

    return SummarySection(
        title="Device Features",
        data=[
            f"Vendor: {features.vendor or 'Unknown'}",
            f"Model: {features.model or DEFAULT_DEVICE_NAME}",
            f"Device ID: {features.device_id or 'Unknown'}",
            f"Label: {features.label or 'Not set'}",
            f"Firmware: {features.firmware_version or 'Unknown'}",
            f"Bootloader: {features.bootloader_version or 'Unknown'}",
            f"Initialized: {'Yes' if features.initialized else 'No'}",
            f"PIN Protection: {enabled(features.pin_protection)}",
            f"Passphrase Protection: {enabled(features.passphrase_protection)}",
            f"Supported Coins: {features.supported_coin_count}",
        ],
    )


@ReportGeneratorRegistry.register
class UtxoReportGenerator:
    """
    XPUB report with derivation paths, balances and transaction history.

    The extended keys of the wallet are sent to the remote ``bitcoin`` report
    endpoint; the returned payload is expanded by the level-of-detail
    pipeline. A device must be connected: the report header identifies it.

    """

    name: ClassVar[str] = "utxo"
    precedence: ClassVar[int] = 10
    family: ClassVar[str] = "utxo"

    def is_supported(self, asset: AssetContext) -> bool:
        return matches_family(asset, self.family)

    def get_default_options(self) -> ReportOptions:
        return ReportOptions(
            account_count=3,
            include_transactions=False,
            include_addresses=False,
            lod=1,
            gap_limit=20,
        )

    def build_pubkey_requests(
        self, asset: AssetContext, session: WalletSession, account_count: int
    ) -> list[UtxoPubkeyRequest]:
        """
        Collect the extended keys to scan.

        Uses the asset's deduplicated pubkeys, falling back to the balance
        records of the asset when the asset carries none.

        Parameters
        ----------
        asset : AssetContext
            Selected asset
        session : WalletSession
            Wallet snapshot
        account_count : int
            Accounts to include (three keys each)

        Returns
        -------
        list[UtxoPubkeyRequest]
            At most ``account_count * 3`` key descriptors

        """
        candidates = [
            (pubkey.extended_key, pubkey.script_type, pubkey.path or pubkey.path_master)
            for pubkey in dedupe_pubkeys(asset.pubkeys)
            if pubkey.extended_key
        ]
        if not candidates:
            logger.debug("Asset %s has no pubkeys, using balance records", asset.symbol)
            seen = set()
            for record in session.records_for_asset(asset):
                key = record.pubkey or record.master or record.address
                if key and key not in seen:
                    seen.add(key)
                    candidates.append((key, None, record.path))

        return [
            UtxoPubkeyRequest(
                xpub=key,
                type=classify_extended_key(key, script_type),
                path=path or "Unknown",
                label=f"Account {index}",
            )
            for index, (key, script_type, path) in enumerate(candidates[: account_count * KEYS_PER_ACCOUNT])
        ]

    async def generate_report(
        self,
        asset: AssetContext,
        session: WalletSession,
        options: ReportOptions | None = None,
    ) -> ReportData:
        """
        Generate the XPUB report.

        Parameters
        ----------
        asset : AssetContext
            Selected asset
        session : WalletSession
            Wallet snapshot, device and reporting service
        options : ReportOptions | None
            Caller options; unset fields use :meth:`get_default_options`

        Returns
        -------
        ReportData
            Device section followed by the level-of-detail sections

        Raises
        ------
        ConfigurationError
            If device features or the reporting service are unavailable
        DataUnavailableError
            If the wallet has no extended keys for the asset

        """
        options = resolve_options(options, self.get_default_options())
        lod = min(options.lod, MAX_LOD)
        account_count = options.account_count

        logger.info(
            "Starting %s report: %d accounts, LOD %d, gap limit %d",
            asset.symbol,
            account_count,
            lod,
            options.gap_limit,
        )

        features = await session.require_device_features()
        session.require_reporting()

        pubkeys = self.build_pubkey_requests(asset, session, account_count)
        if not pubkeys:
            msg = f"No {asset.symbol} pubkeys found in loaded wallet data."
            raise DataUnavailableError(msg)

        body = {
            "pubkeys": [pubkey.model_dump() for pubkey in pubkeys],
            "lod": lod,
            "options": {"gapLimit": options.gap_limit, "includeEmpty": True},
        }
        chain = get_family_config(self.family)["report_endpoint"]
        logger.info("Requesting %s report for %d pubkeys at LOD %d", chain, len(pubkeys), lod)
        payload = await fetch_report(session, chain, body, UtxoReportPayload)

        sections = [device_summary(features), *build_sections(payload, lod, asset.symbol)]
        address_flow = analyze_address_flow(collect_transaction_details(payload)) if lod >= MAX_LOD else None

        return ReportData(
            title=f"{features.display_name} Report LOD:{lod}",
            subtitle=f"{asset.symbol} Wallet Analysis - {account_count} Accounts",
            generated_date=current_date(),
            chain=asset.symbol,
            lod=lod,
            sections=sections,
            address_flow=address_flow,
        )
