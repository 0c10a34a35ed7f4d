"""Balance aggregator merging many pubkeys of one asset into a single summary."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from crypto_account_reports.core.dedupe import dedupe_balances, dedupe_pubkeys
from crypto_account_reports.core.models import (
    AggregatedBalance,
    AssetContext,
    BalanceDetail,
    BalanceRecord,
    Pubkey,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

_PATH_ADDRESS_TYPES = (
    ("44'", "Legacy (P2PKH)"),
    ("49'", "SegWit (P2SH)"),
    ("84'", "Native SegWit (Bech32)"),
)

_SCRIPT_ADDRESS_TYPES = {
    "p2pkh": "Legacy (P2PKH)",
    "p2sh-p2wpkh": "SegWit (P2SH)",
    "p2wpkh": "Native SegWit (Bech32)",
}


def get_address_type(pubkey: Pubkey) -> str:
    """
    Derive a display address type for a pubkey.

    Parameters
    ----------
    pubkey : Pubkey
        Pubkey record

    Returns
    -------
    str
        Explicit ``type`` if set, else a BIP44/49/84 label from the path or
        script type, else ``"Standard"``

    """
    if pubkey.type:
        return pubkey.type

    if pubkey.path:
        for marker, label in _PATH_ADDRESS_TYPES:
            if marker in pubkey.path:
                return label

    if pubkey.script_type in _SCRIPT_ADDRESS_TYPES:
        return _SCRIPT_ADDRESS_TYPES[pubkey.script_type]

    return "Standard"


class BalanceAggregator:
    """
    Merges balances for all known pubkeys of one asset into one summary.

    Workflow:
    1. Dedupe pubkeys and balance records
    2. Match each pubkey to a liquid (non-staking) balance record, or synthesize
       a zero-balance entry so every known pubkey is represented
    3. Optionally drop zero-balance entries
    4. Total balances and USD values
    5. Compute each entry's share of the total USD value

    The aggregator never mutates its inputs and keeps insertion order; sorting
    for display is up to the caller.

    """

    def aggregate(
        self,
        pubkeys: Sequence[Pubkey],
        balances: Sequence[BalanceRecord],
        network_id: str,
        symbol: str,
        price_usd: Decimal | int | str = Decimal("0"),
        caip: str | None = None,
        show_all: bool = True,
    ) -> AggregatedBalance | None:
        """
        Aggregate balances for a set of pubkeys.

        Parameters
        ----------
        pubkeys : Sequence[Pubkey]
            Known pubkeys for the asset's network
        balances : Sequence[BalanceRecord]
            All balance records known to the provider (filtered here)
        network_id : str
            Network id of the asset
        symbol : str
            Asset ticker
        price_usd : Decimal | int | str
            USD unit price used when a record carries no pre-computed value
        caip : str | None
            CAIP asset id; when given, records are matched on it instead of
            network id and symbol
        show_all : bool
            Keep zero-balance entries (True) or only the non-zero subset (False)

        Returns
        -------
        AggregatedBalance | None
            Aggregate, or None when there are no pubkeys to aggregate

        """
        known = dedupe_pubkeys(pubkeys)
        if not known:
            return None

        price = Decimal(str(price_usd))
        asset_records = [
            record
            for record in dedupe_balances(balances)
            if not record.is_staking and self._belongs_to_asset(record, network_id, symbol, caip)
        ]

        matched = [(pubkey, next((r for r in asset_records if r.matches(pubkey)), None)) for pubkey in known]
        if not show_all:
            matched = [(pubkey, record) for pubkey, record in matched if record is not None and record.balance > 0]

        # Labels count positions in the filtered list.
        details = [
            self._build_detail(index, pubkey, record, network_id, symbol, price)
            for index, (pubkey, record) in enumerate(matched)
        ]

        total_balance = sum((detail.balance for detail in details), Decimal("0"))
        total_value_usd = sum((detail.value_usd for detail in details), Decimal("0"))

        for detail in details:
            if total_value_usd > 0:
                detail.percentage = detail.value_usd / total_value_usd * HUNDRED
            else:
                detail.percentage = Decimal("0")

        logger.debug(
            "Aggregated %d of %d pubkeys for %s: %s (%s USD)",
            len(details),
            len(known),
            symbol,
            total_balance,
            total_value_usd,
        )

        return AggregatedBalance(
            symbol=symbol,
            network_id=network_id,
            total_balance=total_balance,
            total_value_usd=total_value_usd,
            balances=details,
            pubkeys=known,
        )

    def aggregate_for_asset(
        self,
        asset: AssetContext,
        balances: Sequence[BalanceRecord],
        show_all: bool = True,
    ) -> AggregatedBalance | None:
        """
        Aggregate balances for an asset context snapshot.

        Parameters
        ----------
        asset : AssetContext
            Asset snapshot providing pubkeys, ids and unit price
        balances : Sequence[BalanceRecord]
            All balance records
        show_all : bool
            Keep zero-balance entries

        Returns
        -------
        AggregatedBalance | None
            Aggregate, or None when the asset has no pubkeys

        """
        if not asset.network_id or not asset.symbol:
            return None
        return self.aggregate(
            asset.pubkeys,
            balances,
            network_id=asset.network_id,
            symbol=asset.symbol,
            price_usd=asset.price_usd,
            caip=asset.caip or None,
            show_all=show_all,
        )

    @staticmethod
    def _belongs_to_asset(record: BalanceRecord, network_id: str, symbol: str, caip: str | None) -> bool:
        if caip and record.caip:
            return record.caip == caip
        if record.network_id and record.network_id != network_id:
            return False
        record_symbol = record.symbol or record.ticker
        return not record_symbol or record_symbol == symbol

    @staticmethod
    def _build_detail(
        index: int,
        pubkey: Pubkey,
        record: BalanceRecord | None,
        network_id: str,
        symbol: str,
        price: Decimal,
    ) -> BalanceDetail:
        address_type = get_address_type(pubkey)
        label = pubkey.note or f"{address_type} Account {index}"

        if record is None:
            return BalanceDetail(
                address=pubkey.address or pubkey.pubkey or pubkey.master or "",
                pubkey=pubkey.pubkey,
                path=pubkey.path,
                master=pubkey.master,
                balance=Decimal("0"),
                value_usd=Decimal("0"),
                address_type=address_type,
                label=label,
                network_id=network_id,
                symbol=symbol,
            )

        # Pre-supplied values win; only missing values are priced here.
        value_usd = record.value_usd if record.value_usd is not None else record.balance * price
        return BalanceDetail(
            address=record.address or record.master or pubkey.address or pubkey.pubkey or "",
            pubkey=record.pubkey or pubkey.pubkey,
            path=record.path or pubkey.path,
            master=record.master or pubkey.master,
            balance=record.balance,
            value_usd=value_usd,
            address_type=address_type,
            label=label,
            network_id=record.network_id or network_id,
            symbol=record.symbol or symbol,
        )
