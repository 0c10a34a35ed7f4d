"""Pytest configuration and shared fixtures for crypto-account-reports tests."""

from decimal import Decimal

import pytest

from crypto_account_reports.core.errors import RemoteServiceError
from crypto_account_reports.core.models import AssetContext, BalanceRecord, Job, Pubkey
from crypto_account_reports.integrations.schemas import JobHandle

BTC_NETWORK = "bip122:000000000019d6689c085ae165831e93"
BTC_CAIP = f"{BTC_NETWORK}/slip44:0"
ETH_NETWORK = "eip155:1"
COSMOS_NETWORK = "cosmos:cosmoshub-4"

XPUB = "xpub6BosfCnifzxcFwrSzQiqu2DBVTshkCXacvNsWGYJVVhhawA7d4R5WSWGFNbi8Aw6ZRc1brxMyWMzG3DSSSSoekkudhUd9yLb6qx39T9nMdj"
YPUB = "ypub6Ww3ibxVfGzLrAH1PNcjyAWenMTbbAosGNB6VvmSEgytSER9azLDWCxoJwW7Ke7icmizBMXrzBx9979FfaHxHcrArf3zbeJJJUZPf663zsP"
ZPUB = "zpub6rFR7y4Q2AijBEqTUquhVz398htDFrtymD9xYYfG1m4wAcvPhXNfE3EfH1r1ADqtfSdVCToUG868RvUUkgDKf31mGDtKsAYz2oz2AGutZYs"


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class FakeReportingService:
    """
    Scripted reporting service.

    ``submit_response`` is returned by ``submit_report``; ``statuses`` are
    consumed one per ``get_job`` call (exceptions are raised); ``result`` is
    returned by ``get_job_result``.
    """

    def __init__(self, submit_response=None, statuses=(), result=None, error=None):
        self.submit_response = submit_response
        self.statuses = list(statuses)
        self.result = result
        self.error = error
        self.submitted = []
        self.polls = 0
        self.result_fetches = 0

    async def submit_report(self, chain, body, schema):
        self.submitted.append((chain, body))
        if isinstance(self.submit_response, dict):
            if "jobId" in self.submit_response:
                return JobHandle.model_validate(self.submit_response)
            return schema.model_validate(self.submit_response)
        return self.submit_response

    async def get_job(self, chain, job_id):
        self.polls += 1
        status = self.statuses.pop(0) if self.statuses else "running"
        if isinstance(status, Exception):
            raise status
        return Job(id=job_id, status=status, error=self.error)

    async def get_job_result(self, chain, job_id, schema):
        self.result_fetches += 1
        if isinstance(self.result, Exception):
            raise self.result
        return schema.model_validate(self.result)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def remote_error():
    return RemoteServiceError("Server returned 503: unavailable", status_code=503, body="unavailable")


@pytest.fixture
def btc_pubkeys():
    return [
        Pubkey(pubkey=XPUB, path="m/44'/0'/0'", script_type="p2pkh", networks=[BTC_NETWORK]),
        Pubkey(pubkey=YPUB, path="m/49'/0'/0'", script_type="p2sh-p2wpkh", networks=[BTC_NETWORK]),
        Pubkey(pubkey=ZPUB, path="m/84'/0'/0'", script_type="p2wpkh", networks=[BTC_NETWORK]),
    ]


@pytest.fixture
def btc_asset(btc_pubkeys):
    return AssetContext(
        network_id=BTC_NETWORK,
        symbol="BTC",
        caip=BTC_CAIP,
        name="Bitcoin",
        chain="Bitcoin",
        decimals=8,
        price_usd=Decimal("50000"),
        pubkeys=tuple(btc_pubkeys),
    )


@pytest.fixture
def btc_balances():
    return [
        BalanceRecord(caip=BTC_CAIP, pubkey=XPUB, network_id=BTC_NETWORK, symbol="BTC", balance="0.1"),
        BalanceRecord(caip=BTC_CAIP, pubkey=YPUB, network_id=BTC_NETWORK, symbol="BTC", balance="0.2"),
        BalanceRecord(caip=BTC_CAIP, pubkey=ZPUB, network_id=BTC_NETWORK, symbol="BTC", balance="0"),
    ]


@pytest.fixture
def device_features():
    return {
        "vendor": "keepkey.com",
        "model": "K1-14AM",
        "deviceId": "343737340F4736331F003B00",
        "label": "Vault",
        "firmwareVersion": "7.10.0",
        "bootloaderVersion": "2.1.4",
        "initialized": True,
        "pinProtection": True,
        "passphrase_protection": False,
        "coins": [{"coinName": "Bitcoin"}, {"coinName": "Ethereum"}],
    }


@pytest.fixture
def utxo_payload():
    """Bitcoin report payload as returned by the reporting service."""
    return {
        "lod": 5,
        "totalBalanceBTC": 0.3,
        "totalBalanceUSD": 15000,
        "totalXpubs": 2,
        "lastUpdated": "2026-10-01T12:00:00Z",
        "xpubs": [
            {
                "label": "Account 0",
                "type": "p2wpkh",
                "path": "m/84'/0'/0'",
                "xpub": ZPUB,
                "balance": 0.3,
                "addressCount": 3,
                "txCount": 2,
                "totalReceived": 0.5,
                "totalSent": 0.2,
                "receiveIndex": 2,
                "changeIndex": 1,
                "addresses": [
                    {
                        "address": "bc1qreceive0",
                        "path": "m/84'/0'/0'/0/0",
                        "type": "receive",
                        "balance": 0.1,
                        "txCount": 1,
                        "txids": ["aa" * 32],
                        "transactions": [
                            {"txid": "aa" * 32, "blockHeight": 800000, "value": 0.5, "confirmations": 10},
                        ],
                    },
                    {
                        "address": "bc1qreceive1",
                        "path": "m/84'/0'/0'/0/1",
                        "type": "receive",
                        "balance": 0,
                        "txCount": 0,
                    },
                    {
                        "address": "bc1qchange0",
                        "path": "m/84'/0'/0'/1/0",
                        "type": "change",
                        "balance": 0.2,
                        "txCount": 1,
                        "txids": ["bb" * 32],
                        "transactions": [
                            {"txid": "bb" * 32, "blockHeight": 800100, "value": 0.2, "confirmations": 1},
                            {"txid": "aa" * 32, "blockHeight": 800000, "value": 0.5, "confirmations": 10},
                        ],
                    },
                ],
                "transactions": [
                    {
                        "txid": "aa" * 32,
                        "blockHeight": 800000,
                        "timestamp": "2026-09-01T00:00:00Z",
                        "confirmations": 10,
                        "value": 0.5,
                        "fee": 0.0001,
                        "inputs": [{"address": "1ExternalSender", "value": 0.5001, "isOwn": False}],
                        "outputs": [
                            {"address": "bc1qreceive0", "value": 0.5, "isOwn": True, "path": "m/84'/0'/0'/0/0"},
                        ],
                    },
                    {
                        "txid": "bb" * 32,
                        "blockHeight": 800100,
                        "confirmations": 1,
                        "value": 0.3,
                        "fee": 0.0002,
                        "inputs": [
                            {"address": "bc1qreceive0", "value": 0.5, "isOwn": True, "path": "m/84'/0'/0'/0/0"},
                        ],
                        "outputs": [
                            {"address": "3ExternalPayee", "value": 0.3, "isOwn": False},
                            {
                                "address": "bc1qchange0",
                                "value": 0.1998,
                                "isOwn": True,
                                "isChange": True,
                                "path": "m/84'/0'/0'/1/0",
                            },
                        ],
                    },
                ],
            },
            {
                "label": "Account 1",
                "type": "p2pkh",
                "path": "m/44'/0'/0'",
                "xpub": XPUB,
                "balance": 0,
                "addressCount": 0,
                "txCount": 0,
                "addresses": [],
                "transactions": [],
            },
        ],
    }
