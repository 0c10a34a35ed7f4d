"""Chain-family registry loader."""

from functools import cache
from pathlib import Path
from typing import Any

import yaml


@cache
def load_networks() -> dict[str, Any]:
    """
    Load the chain-family registry from networks.yaml.

    Returns
    -------
    dict[str, Any]
        Registry with ``families``, ``network_labels``, ``generic_description`` and
        ``known_decimals`` keys

    """
    path = Path(__file__).parent / "networks.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_family_config(family: str) -> dict[str, Any]:
    """
    Get configuration for a chain family.

    Parameters
    ----------
    family : str
        Family name (``utxo``, ``evm``, ``cosmos``)

    Returns
    -------
    dict[str, Any]
        Family configuration

    Raises
    ------
    KeyError
        If the family is not defined

    """
    return load_networks()["families"][family]


def get_all_families() -> list[str]:
    """
    Get the names of all configured chain families.

    Returns
    -------
    list[str]
        Family names in file order

    """
    return list(load_networks()["families"].keys())


def get_network_labels() -> list[dict[str, Any]]:
    """Get label rules for networks without a dedicated strategy."""
    return load_networks().get("network_labels", [])


def get_known_decimals(symbol: str | None, default: int = 18) -> int:
    """
    Guess the native decimals of an asset from its ticker.

    Parameters
    ----------
    symbol : str | None
        Asset ticker
    default : int
        Decimals returned for unknown tickers

    Returns
    -------
    int
        Number of decimals

    """
    if not symbol:
        return default
    return load_networks().get("known_decimals", {}).get(symbol.upper(), default)


def get_generic_description() -> str:
    return load_networks().get("generic_description", "")
