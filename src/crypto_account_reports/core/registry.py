"""Report generator registry with auto-registration pattern."""

import logging
from typing import Any, ClassVar, Protocol

from crypto_account_reports.core.models import AssetContext, NetworkType, ReportData, ReportOptions
from crypto_account_reports.data import get_family_config, get_generic_description, get_network_labels

logger = logging.getLogger(__name__)


class ReportGenerator(Protocol):
    """
    Interface that all report generators must implement.

    Attributes
    ----------
    name : str
        Unique generator identifier (e.g. 'utxo', 'evm')
    precedence : int
        Evaluation rank; lower values are tried first

    Methods
    -------
    is_supported(asset)
        Check if the generator handles the asset
    get_default_options()
        Options used for fields the caller leaves unset
    generate_report(asset, session, options)
        Build the report document

    """

    name: ClassVar[str]
    precedence: ClassVar[int]

    def is_supported(self, asset: AssetContext) -> bool:
        """
        Check if this generator can report on the asset.

        Parameters
        ----------
        asset : AssetContext
            Selected asset

        Returns
        -------
        bool
            True if the generator handles this asset

        """
        ...

    def get_default_options(self) -> ReportOptions:
        """Return the generator's default report options."""
        ...

    async def generate_report(self, asset: AssetContext, session: Any, options: ReportOptions) -> ReportData:
        """
        Generate the report for an asset.

        Parameters
        ----------
        asset : AssetContext
            Selected asset
        session : WalletSession
            Wallet snapshot and services
        options : ReportOptions
            Caller options merged with the generator defaults

        Returns
        -------
        ReportData
            Report document

        """
        ...


def matches_family(asset: AssetContext, family: str) -> bool:
    """
    Check whether an asset belongs to a configured chain family.

    Parameters
    ----------
    asset : AssetContext
        Selected asset
    family : str
        Family name in networks.yaml

    Returns
    -------
    bool
        True if the network id has one of the family namespaces, the symbol is
        listed, or the chain name contains one of the family keywords

    """
    config = get_family_config(family)
    network_id = asset.network_id or ""
    symbol = (asset.symbol or "").upper()
    chain = (asset.chain or "").lower()

    if any(network_id.startswith(namespace) for namespace in config.get("namespaces", [])):
        return True
    if symbol in config.get("symbols", []):
        return True
    return any(keyword in chain for keyword in config.get("chain_keywords", []))


class ReportGeneratorRegistry:
    """
    Registry for report generators with auto-registration.

    Generators register themselves using the @ReportGeneratorRegistry.register
    decorator and are evaluated in ascending ``precedence``. The fallback
    generator registered with :meth:`register_fallback` always comes last.

    """

    _generators: ClassVar[list[Any]] = []
    _fallback: ClassVar[Any | None] = None

    @classmethod
    def register(cls, generator_class: type) -> type:
        """
        Decorator to register a report generator.

        Parameters
        ----------
        generator_class : type
            Generator class to register

        Returns
        -------
        type
            The generator class (for decorator chaining)

        Examples
        --------
        >>> @ReportGeneratorRegistry.register
        ... class UtxoReportGenerator:
        ...     name = "utxo"
        ...     precedence = 10

        """
        if not getattr(generator_class, "name", ""):
            msg = f"Generator {generator_class.__name__} must define 'name' attribute"
            raise ValueError(msg)

        generator = generator_class()
        generators = [g for g in cls._generators if g.name != generator.name]
        # Insert without re-sorting so custom generators keep their slot.
        position = next(
            (i for i, g in enumerate(generators) if getattr(g, "precedence", 0) > generator.precedence),
            len(generators),
        )
        generators.insert(position, generator)
        cls._generators = generators
        return generator_class

    @classmethod
    def register_fallback(cls, generator_class: type) -> type:
        """Decorator to register the generator used when no other one matches."""
        cls._fallback = generator_class()
        return generator_class

    @classmethod
    def register_generator(cls, generator: Any, priority: int = -1) -> None:
        """
        Insert a custom generator instance.

        Parameters
        ----------
        generator : ReportGenerator
            Generator instance
        priority : int
            Position in the evaluation order; out-of-range values append the
            generator after the registered ones (the fallback stays last)

        Notes
        -----
        The position is kept when more generators are registered later. A
        generator without a ``precedence`` attribute is ranked as 0 when later
        registrations look for their slot.

        """
        if 0 <= priority < len(cls._generators):
            cls._generators.insert(priority, generator)
        else:
            cls._generators.append(generator)

    @classmethod
    def get_generator(cls, asset: AssetContext) -> Any:
        """
        Get the first generator supporting the asset.

        Parameters
        ----------
        asset : AssetContext
            Selected asset

        Returns
        -------
        ReportGenerator
            Matching generator, or the fallback

        Raises
        ------
        LookupError
            If nothing matches and no fallback is registered

        """
        for generator in cls._generators:
            if generator.is_supported(asset):
                logger.info("Using %s generator for %s", generator.name, asset.symbol)
                return generator

        if cls._fallback is None:
            msg = f"No report generator registered for {asset.symbol or asset.network_id}"
            raise LookupError(msg)

        logger.info("No specific generator found for %s, using %s", asset.symbol, cls._fallback.name)
        return cls._fallback

    @classmethod
    def list_generators(cls) -> list[str]:
        """
        Get names of all registered generators in evaluation order.

        Returns
        -------
        list[str]
            Generator names, fallback last

        """
        names = [generator.name for generator in cls._generators]
        if cls._fallback is not None:
            names.append(cls._fallback.name)
        return names

    @classmethod
    def clear(cls) -> None:
        """Clear all registered generators (useful for testing)."""
        cls._generators = []
        cls._fallback = None

    @staticmethod
    def get_network_type(asset: AssetContext) -> NetworkType:
        """
        Derive the display network type of an asset.

        Parameters
        ----------
        asset : AssetContext
            Selected asset

        Returns
        -------
        NetworkType
            Chain family label, ``GENERIC`` when nothing matches

        """
        for family, network_type in (
            ("utxo", NetworkType.UTXO),
            ("evm", NetworkType.EVM),
            ("cosmos", NetworkType.COSMOS),
        ):
            if matches_family(asset, family):
                return network_type

        network_id = asset.network_id or ""
        symbol = (asset.symbol or "").upper()
        for rule in get_network_labels():
            if any(keyword in network_id for keyword in rule.get("network_keywords", [])):
                return NetworkType(rule["label"])
            if symbol in rule.get("symbols", []):
                return NetworkType(rule["label"])
        return NetworkType.GENERIC

    @classmethod
    def get_report_description(cls, asset: AssetContext) -> str:
        """Describe what the report for this asset will contain."""
        network_type = cls.get_network_type(asset)
        for family in ("utxo", "evm", "cosmos"):
            config = get_family_config(family)
            if config["label"] == network_type:
                return config["description"]

        for rule in get_network_labels():
            if rule["label"] == network_type and rule.get("description"):
                return rule["description"]
        return get_generic_description()

    @staticmethod
    def is_report_supported(asset: AssetContext) -> bool:
        """Reports are available for every asset; the fallback covers the rest."""
        return True
