"""Chain-family registry and configuration loading."""

from crypto_account_reports.data.loader import (
    get_all_families,
    get_family_config,
    get_generic_description,
    get_known_decimals,
    get_network_labels,
    load_networks,
)

__all__ = [
    "get_all_families",
    "get_family_config",
    "get_generic_description",
    "get_known_decimals",
    "get_network_labels",
    "load_networks",
]
