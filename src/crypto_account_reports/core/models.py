"""Data models for wallet pubkeys, balances, report options and report documents."""

from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_DEVICE_NAME = "KeepKey"
MAX_LOD = 5


class CamelModel(BaseModel):
    """Base model accepting both snake_case field names and camelCase wire keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _zero_if_blank(value: Any) -> Any:
    if value is None or value == "":
        return "0"
    return value


def _zero_if_null(value: Any) -> Any:
    return 0 if value is None else value


def _text_or_none(value: Any) -> Any:
    return None if value is None else str(value)


# Remote payloads send null for missing numbers; these coerce to zero.
Amount = Annotated[Decimal, BeforeValidator(_zero_if_blank)]
Count = Annotated[int, BeforeValidator(_zero_if_null)]
Text = Annotated[str | None, BeforeValidator(_text_or_none)]

ADDRESS_FLOW_TITLE = "Address Flow Analysis"


class ScriptType(StrEnum):
    """Bitcoin-style script type implied by an extended key prefix."""

    P2PKH = "p2pkh"
    P2SH_P2WPKH = "p2sh-p2wpkh"
    P2WPKH = "p2wpkh"


class NetworkType(StrEnum):
    """Display label for the chain family of an asset."""

    UTXO = "UTXO"
    EVM = "EVM"
    COSMOS = "Cosmos"
    THORCHAIN = "THORChain"
    MAYA = "Maya"
    RIPPLE = "Ripple"
    GENERIC = "Generic"


class Pubkey(CamelModel):
    """
    A wallet's exposed public identity for one network.

    Attributes
    ----------
    address : str | None
        Plain address (account-based chains, single UTXO addresses)
    pubkey : str | None
        Public key or extended public key (xpub/ypub/zpub)
    master : str | None
        Master address or extended key reported by the wallet
    path : str | None
        Derivation path (e.g. ``m/84'/0'/0'``)
    path_master : str | None
        Derivation path of the master key
    script_type : str | None
        Script type hint (``p2pkh``, ``p2sh-p2wpkh``, ``p2wpkh``)
    networks : list[str]
        Network ids this pubkey is valid for
    note : str | None
        User supplied label

    """

    address: str | None = None
    pubkey: str | None = None
    master: str | None = None
    path: str | None = None
    path_master: str | None = None
    script_type: str | None = None
    networks: list[str] = Field(default_factory=list)
    note: str | None = None
    type: str | None = None

    @property
    def canonical_key(self) -> str | None:
        """First non-empty of address, pubkey, master."""
        return self.address or self.pubkey or self.master or None

    @property
    def extended_key(self) -> str | None:
        """Key sent to the UTXO report endpoint (extended key preferred over address)."""
        return self.pubkey or self.master or self.address or None


class BalanceRecord(CamelModel):
    """
    Raw holding supplied by the balance provider.

    Attributes
    ----------
    caip : str
        CAIP asset identifier
    address, pubkey, master : str | None
        Identity of the holder
    balance : Decimal
        Holding amount in display units
    value_usd : Decimal | None
        Pre-computed USD value, if the provider supplies one
    chart : str | None
        ``"staking"`` for staking positions
    type : str | None
        Staking position kind (``delegation``, ``reward``, ``unbonding``)
    validator : str | None
        Validator a staking position is bound to

    """

    caip: str = ""
    address: str | None = None
    pubkey: str | None = None
    master: str | None = None
    network_id: str | None = None
    symbol: str | None = None
    ticker: str | None = None
    balance: Decimal = Decimal("0")
    value_usd: Decimal | None = None
    decimals: int | None = None
    chart: str | None = None
    type: str | None = None
    validator: str | None = None
    path: str | None = None

    @field_validator("balance", mode="before")
    @classmethod
    def _blank_balance(cls, value: Any) -> Any:
        return _zero_if_blank(value)

    @field_validator("value_usd", mode="before")
    @classmethod
    def _blank_value(cls, value: Any) -> Any:
        return None if value == "" else value

    @property
    def identity(self) -> str:
        """Holder identity used to join records with pubkeys."""
        return self.pubkey or self.address or self.master or ""

    @property
    def is_staking(self) -> bool:
        return self.chart == "staking"

    def matches(self, pubkey: Pubkey) -> bool:
        """Check whether this record belongs to ``pubkey`` (non-empty equality only)."""
        return bool(
            (self.address and self.address == pubkey.address)
            or (self.pubkey and self.pubkey == pubkey.pubkey)
            or (self.master and self.master == pubkey.master)
        )


class AssetContext(CamelModel):
    """
    Immutable snapshot of the selected chain/asset.

    Attributes
    ----------
    network_id : str
        CAIP-2 network id (e.g. ``bip122:000000000019d6689c085ae165831e93``)
    symbol : str
        Asset ticker
    caip : str
        CAIP-19 asset id
    name : str | None
        Display name
    chain : str | None
        Chain display name
    decimals : int | None
        Native decimals
    price_usd : Decimal
        USD unit price
    pubkeys : tuple[Pubkey, ...]
        Known pubkeys for this asset's network

    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    network_id: str = ""
    symbol: str = ""
    caip: str = ""
    name: str | None = None
    chain: str | None = None
    decimals: int | None = None
    price_usd: Decimal = Decimal("0")
    icon: str | None = None
    pubkeys: tuple[Pubkey, ...] = ()

    @property
    def display_name(self) -> str:
        return self.name or self.symbol or "Asset"


class DeviceFeatures(CamelModel):
    """Hardware wallet metadata; both snake_case and camelCase keys are accepted."""

    label: str | None = Field(default=None, validation_alias=AliasChoices("label", "device_label", "deviceLabel"))
    device_id: str | None = Field(default=None, validation_alias=AliasChoices("device_id", "deviceId"))
    vendor: str | None = None
    model: str | None = None
    firmware_version: str | None = Field(
        default=None, validation_alias=AliasChoices("firmware_version", "firmwareVersion")
    )
    bootloader_version: str | None = Field(
        default=None, validation_alias=AliasChoices("bootloader_version", "bootloaderVersion")
    )
    initialized: bool = False
    pin_protection: bool = Field(default=False, validation_alias=AliasChoices("pin_protection", "pinProtection"))
    passphrase_protection: bool = Field(
        default=False, validation_alias=AliasChoices("passphrase_protection", "passphraseProtection")
    )
    coins: list[Any] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.label or self.device_id or DEFAULT_DEVICE_NAME

    @property
    def supported_coin_count(self) -> int:
        return len(self.coins)


class BalanceDetail(CamelModel):
    """Normalized, presentation-ready balance for one pubkey."""

    address: str
    pubkey: str | None = None
    path: str | None = None
    master: str | None = None
    balance: Decimal = Decimal("0")
    value_usd: Decimal = Decimal("0")
    percentage: Decimal = Decimal("0")
    address_type: str = "Standard"
    label: str = ""
    network_id: str = ""
    symbol: str = ""


class AggregatedBalance(CamelModel):
    """
    Merged, multi-address view of one asset's holdings.

    Attributes
    ----------
    symbol : str
        Asset ticker
    network_id : str
        Network id
    total_balance : Decimal
        Sum of all balances
    total_value_usd : Decimal
        Sum of all USD values
    balances : list[BalanceDetail]
        Per-pubkey details in insertion order
    pubkeys : list[Pubkey]
        Deduplicated pubkeys the aggregate was built from

    """

    symbol: str
    network_id: str
    total_balance: Decimal = Decimal("0")
    total_value_usd: Decimal = Decimal("0")
    balances: list[BalanceDetail] = Field(default_factory=list)
    pubkeys: list[Pubkey] = Field(default_factory=list)


class ReportOptions(CamelModel):
    """
    Caller options for a report.

    ``lod`` is canonical; the legacy ``lodLevel`` key is accepted and only used
    when ``lod`` is absent. Unset fields are filled from the strategy defaults
    via :meth:`with_defaults`.

    """

    account_count: int | None = Field(default=None, ge=1)
    lod: int | None = Field(default=None, ge=0, le=MAX_LOD)
    lod_level: int | None = Field(default=None, ge=0, le=MAX_LOD)
    gap_limit: int | None = Field(default=None, ge=1)
    include_transactions: bool | None = None
    include_addresses: bool | None = None

    @model_validator(mode="after")
    def _resolve_lod(self) -> "ReportOptions":
        if self.lod is None and self.lod_level is not None:
            self.lod = self.lod_level
        return self

    def with_defaults(self, defaults: "ReportOptions") -> "ReportOptions":
        """Return a new options object with unset fields taken from ``defaults``."""
        merged = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            merged[name] = value if value is not None else getattr(defaults, name)
        return ReportOptions(**merged)


class TableData(CamelModel):
    headers: list[str]
    rows: list[list[str]] = Field(default_factory=list)
    widths: list[str] | None = None
    footer: str | None = None


class AddressEntry(CamelModel):
    """One derived address of an extended key."""

    address: str
    path: str | None = None
    type: str | None = None
    balance: Decimal = Decimal("0")
    tx_count: int = 0
    is_change: bool = False
    is_used: bool = False
    txids: list[str] = Field(default_factory=list)


class XpubDetail(CamelModel):
    label: str
    type: str | None = None
    xpub: str
    path: str | None = None
    balance: Decimal = Decimal("0")
    total_received: Decimal = Decimal("0")
    total_sent: Decimal = Decimal("0")
    tx_count: int = 0
    receive_index: int = 0
    change_index: int = 0
    addresses: list[AddressEntry] = Field(default_factory=list)


class AddressBreakdown(CamelModel):
    total: int = 0
    receive_addresses: list[AddressEntry] = Field(default_factory=list)
    change_addresses: list[AddressEntry] = Field(default_factory=list)


class TransactionCategory(StrEnum):
    """Direction of a transaction relative to the wallet."""

    SEND = "SEND"
    RECEIVE = "RECEIVE"
    SELF = "SELF"


class TransactionIO(CamelModel):
    """Transaction input or output with ownership tagging."""

    address: str | None = None
    value: Decimal = Decimal("0")
    is_own: bool = False
    path: str | None = None
    is_change: bool = False

    @field_validator("value", mode="before")
    @classmethod
    def _blank_value(cls, value: Any) -> Any:
        return _zero_if_blank(value)

    @field_validator("is_own", "is_change", mode="before")
    @classmethod
    def _null_flag(cls, value: Any) -> Any:
        return bool(value)


class TransactionDetail(CamelModel):
    txid: str
    block_height: int = 0
    timestamp: str = "Pending"
    confirmations: int = 0
    value: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    category: TransactionCategory
    inputs: list[TransactionIO] = Field(default_factory=list)
    outputs: list[TransactionIO] = Field(default_factory=list)


class AddressFlow(CamelModel):
    """Aggregated value moved to or from one external address."""

    address: str
    amount: Decimal = Decimal("0")
    tx_count: int = 0
    txids: list[str] = Field(default_factory=list)


class AddressFlowAnalysis(CamelModel):
    sent_to: list[AddressFlow] = Field(default_factory=list)
    received_from: list[AddressFlow] = Field(default_factory=list)
    total_sent_to: Decimal = Decimal("0")
    total_received_from: Decimal = Decimal("0")
    unique_sent_to_count: int = 0
    unique_received_from_count: int = 0


class _Section(CamelModel):
    title: str

    @property
    def identity(self) -> tuple[str, str]:
        """Section identity used when comparing section sets across detail levels."""
        return (self.type, self.title)  # type: ignore[attr-defined]


class TableSection(_Section):
    type: Literal["table"] = "table"
    data: TableData


class SummarySection(_Section):
    type: Literal["summary"] = "summary"
    data: list[str] = Field(default_factory=list)


class ListSection(_Section):
    type: Literal["list"] = "list"
    data: list[str] = Field(default_factory=list)


class TextSection(_Section):
    type: Literal["text"] = "text"
    data: str = ""


class TransactionsSection(_Section):
    type: Literal["transactions"] = "transactions"
    data: list[TransactionDetail] = Field(default_factory=list)


class XpubDetailsSection(_Section):
    type: Literal["xpub_details"] = "xpub_details"
    data: list[XpubDetail] = Field(default_factory=list)


class AddressDetailsSection(_Section):
    type: Literal["address_details"] = "address_details"
    data: AddressBreakdown = Field(default_factory=AddressBreakdown)


ReportSection = Annotated[
    TableSection
    | SummarySection
    | ListSection
    | TextSection
    | TransactionsSection
    | XpubDetailsSection
    | AddressDetailsSection,
    Field(discriminator="type"),
]


class ReportData(CamelModel):
    """
    Language-agnostic report document handed to the presentation layer.

    Attributes
    ----------
    title : str
        Report title
    subtitle : str
        Report subtitle
    generated_date : str
        Human readable generation date
    chain : str | None
        Asset symbol the report was generated for
    lod : int | None
        Level of detail used
    sections : list[ReportSection]
        Ordered report sections
    address_flow : AddressFlowAnalysis | None
        External counterparty analysis (UTXO reports at the highest detail level)

    """

    title: str
    subtitle: str
    generated_date: str
    chain: str | None = None
    lod: int | None = None
    sections: list[ReportSection] = Field(default_factory=list)
    address_flow: AddressFlowAnalysis | None = None


class JobStatus(StrEnum):
    """Lifecycle state of an async report job."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _JOB_STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_JOB_STATUS_RANK = {
    JobStatus.QUEUED: 0,
    JobStatus.RUNNING: 1,
    JobStatus.COMPLETED: 2,
    JobStatus.FAILED: 2,
}


class JobProgress(CamelModel):
    current: int = 0
    total: int = 0
    message: str | None = None

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.current / self.total * 100)


class Job(CamelModel):
    """Status of an async report job as reported by the remote service."""

    id: str = Field(default="", validation_alias=AliasChoices("id", "jobId", "job_id"))
    status: JobStatus
    progress: JobProgress | None = None
    error: str | None = None
