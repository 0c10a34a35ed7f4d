"""Request and response schemas for the remote reporting service.

Responses are validated against these models at the network boundary before
any report logic touches them.
"""

from decimal import Decimal

from pydantic import Field

from crypto_account_reports.core.models import Amount, CamelModel, Count, Text, TransactionIO


class JobHandle(CamelModel):
    """Response returned instead of a report when computation was queued."""

    job_id: str


class UtxoPubkeyRequest(CamelModel):
    xpub: str
    type: str
    path: str
    label: str


class UtxoAddressTransaction(CamelModel):
    txid: str
    block_height: Count = 0
    timestamp: Text = None
    value: Amount = Decimal("0")
    confirmations: Count = 0


class UtxoAddress(CamelModel):
    address: str
    path: Text = None
    type: Text = None
    balance: Amount = Decimal("0")
    tx_count: Count = 0
    txids: list[str] = Field(default_factory=list)
    transactions: list[UtxoAddressTransaction] = Field(default_factory=list)

    @property
    def is_used(self) -> bool:
        return self.tx_count > 0 or self.balance > 0


class UtxoTransaction(CamelModel):
    txid: str
    block_height: Count = 0
    timestamp: Text = None
    confirmations: Count = 0
    value: Amount = Decimal("0")
    fee: Amount = Decimal("0")
    inputs: list[TransactionIO] = Field(default_factory=list)
    outputs: list[TransactionIO] = Field(default_factory=list)


class UtxoXpub(CamelModel):
    label: Text = None
    type: Text = None
    path: Text = None
    xpub: str
    balance: Amount = Decimal("0")
    address_count: Count = 0
    tx_count: Count = 0
    total_received: Amount = Decimal("0")
    total_sent: Amount = Decimal("0")
    receive_index: Count = 0
    change_index: Count = 0
    addresses: list[UtxoAddress] = Field(default_factory=list)
    transactions: list[UtxoTransaction] = Field(default_factory=list)


class UtxoReportPayload(CamelModel):
    """
    Bitcoin-family report payload.

    Attributes
    ----------
    lod : int | None
        Detail level the server computed
    total_balance_btc : Decimal
        Total balance in coin units
    total_balance_usd : Decimal
        Total USD value
    total_xpubs : int
        Number of extended keys scanned
    last_updated : str | None
        Server-side timestamp of the data
    xpubs : list[UtxoXpub]
        Per extended key breakdown

    """

    lod: int | None = None
    total_balance_btc: Amount = Field(default=Decimal("0"), alias="totalBalanceBTC")
    total_balance_usd: Amount = Field(default=Decimal("0"), alias="totalBalanceUSD")
    total_xpubs: Count = 0
    last_updated: Text = None
    xpubs: list[UtxoXpub] = Field(default_factory=list)


class EvmToken(CamelModel):
    symbol: Text = None
    balance: Text = "0"
    value_usd: Amount = Field(default=Decimal("0"), alias="valueUSD")
    contract_address: Text = None


class EvmAddressReport(CamelModel):
    address: str
    balance_eth: Amount = Field(default=Decimal("0"), alias="balanceETH")
    balance_usd: Amount = Field(default=Decimal("0"), alias="balanceUSD")
    nonce: Count = 0
    token_count: Count = 0
    tokens: list[EvmToken] = Field(default_factory=list)


class EvmReportPayload(CamelModel):
    """Ethereum-family report payload."""

    lod: int | None = None
    total_addresses: Count = 0
    total_balance_eth: Amount = Field(default=Decimal("0"), alias="totalBalanceETH")
    total_balance_usd: Amount = Field(default=Decimal("0"), alias="totalBalanceUSD")
    last_updated: Text = None
    addresses: list[EvmAddressReport] = Field(default_factory=list)
