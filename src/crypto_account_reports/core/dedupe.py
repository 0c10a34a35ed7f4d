"""Deduplication of pubkeys and balance records exposed under multiple aliases."""

import logging
from collections.abc import Iterable

from crypto_account_reports.core.models import BalanceRecord, Pubkey

logger = logging.getLogger(__name__)


def pubkey_identity(pubkey: Pubkey) -> str | None:
    """
    Build the dedupe key for a pubkey.

    Parameters
    ----------
    pubkey : Pubkey
        Pubkey record

    Returns
    -------
    str | None
        ``address``, ``pubkey`` or ``master`` (first non-empty), or a
        ``path:<path_master>:<script_type>`` key for path-only records.
        None when the record carries no identity at all.

    """
    key = pubkey.canonical_key
    if key:
        return key
    if pubkey.path_master:
        return f"path:{pubkey.path_master}:{pubkey.script_type or 'default'}"
    return None


def dedupe_pubkeys(pubkeys: Iterable[Pubkey] | None) -> list[Pubkey]:
    """
    Remove pubkeys sharing a canonical key, preserving first-seen order.

    Records without any identity cannot be joined with balances and are dropped.

    Parameters
    ----------
    pubkeys : Iterable[Pubkey] | None
        Pubkeys that may contain duplicates

    Returns
    -------
    list[Pubkey]
        New list of unique pubkeys (input is not modified)

    """
    if not pubkeys:
        return []

    seen: dict[str, Pubkey] = {}
    for pubkey in pubkeys:
        key = pubkey_identity(pubkey)
        if key is None:
            logger.debug("Dropping pubkey without identity: %s", pubkey)
            continue
        if key in seen:
            logger.debug("Duplicate pubkey filtered: %s", key)
            continue
        seen[key] = pubkey
    return list(seen.values())


def dedupe_balances(records: Iterable[BalanceRecord] | None) -> list[BalanceRecord]:
    """
    Remove balance records reported twice for the same asset and holder.

    Records are keyed by ``caip:identity``; on collision the record with the
    larger balance wins and keeps the position of the first occurrence.
    Staking records are additionally keyed by chart, type and validator so that
    separate delegations of one address never collapse into each other.

    Parameters
    ----------
    records : Iterable[BalanceRecord] | None
        Raw balance records

    Returns
    -------
    list[BalanceRecord]
        New list of unique balance records

    """
    if not records:
        return []

    seen: dict[str, BalanceRecord] = {}
    for record in records:
        key = f"{record.caip}:{record.identity}"
        if record.is_staking:
            key = f"{key}:{record.chart}:{record.type or ''}:{record.validator or ''}"

        existing = seen.get(key)
        if existing is None:
            seen[key] = record
        elif record.balance > existing.balance:
            logger.warning(
                "Duplicate balance for %s updated from %s to %s", key, existing.balance, record.balance
            )
            seen[key] = record
        else:
            logger.debug("Duplicate balance filtered: %s", key)
    return list(seen.values())
