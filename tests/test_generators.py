"""Tests for the chain-family report generators."""

import asyncio
from decimal import Decimal

import pytest

from crypto_account_reports.core.errors import ConfigurationError, DataUnavailableError, JobFailedError
from crypto_account_reports.core.models import (
    ADDRESS_FLOW_TITLE,
    AssetContext,
    BalanceRecord,
    DeviceFeatures,
    Pubkey,
    ReportOptions,
    ScriptType,
)
from crypto_account_reports.core.service import ReportService
from crypto_account_reports.core.session import StaticDeviceInfo, WalletSession
from crypto_account_reports.generators.cosmos import CosmosReportGenerator, build_account, staking_ratio
from crypto_account_reports.generators.evm import EvmReportGenerator
from crypto_account_reports.generators.generic import GenericReportGenerator, shorten
from crypto_account_reports.generators.utxo import UtxoReportGenerator, classify_extended_key, device_summary
from tests.conftest import COSMOS_NETWORK, ETH_NETWORK, XPUB, YPUB, ZPUB, FakeReportingService

COSMOS_CAIP = f"{COSMOS_NETWORK}/slip44:118"
COSMOS_ADDRESS = "cosmos1qypqxpq9qcrsszg2pvxq6rs0zqg3yyc5lzv7xu"
XRP_NETWORK = "ripple:4109c6f2045fc7eff4cde8f9905d19c2"
XRP_ADDRESS = "rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe"


class FailingDevice:
    async def get_features(self):
        raise RuntimeError("device locked")


class TestUtxoReportGenerator:
    """Tests for the XPUB report."""

    def test_synchronous_report(self, btc_asset, device_features, utxo_payload):
        service = FakeReportingService(submit_response=utxo_payload)
        session = WalletSession(device=StaticDeviceInfo(device_features), reporting=service)

        report = asyncio.run(ReportService(session).generate(btc_asset, ReportOptions(lod=5)))

        assert report.title == "Vault Report LOD:5"
        assert report.subtitle == "BTC Wallet Analysis - 3 Accounts"
        assert report.chain == "BTC"
        assert report.lod == 5
        assert report.sections[0].title == "Device Features"
        assert report.sections[-1].title == ADDRESS_FLOW_TITLE
        assert report.address_flow.unique_sent_to_count == 1
        assert report.address_flow.received_from[0].address == "1ExternalSender"

        chain, body = service.submitted[0]
        assert chain == "bitcoin"
        assert body["lod"] == 5
        assert body["options"] == {"gapLimit": 20, "includeEmpty": True}
        assert [p["type"] for p in body["pubkeys"]] == ["p2pkh", "p2sh-p2wpkh", "p2wpkh"]
        assert [p["label"] for p in body["pubkeys"]] == ["Account 0", "Account 1", "Account 2"]
        assert body["pubkeys"][2] == {"xpub": ZPUB, "type": "p2wpkh", "path": "m/84'/0'/0'", "label": "Account 2"}

    def test_default_lod_has_no_address_flow(self, btc_asset, device_features, utxo_payload):
        session = WalletSession(
            device=StaticDeviceInfo(device_features),
            reporting=FakeReportingService(submit_response=utxo_payload),
        )

        report = asyncio.run(UtxoReportGenerator().generate_report(btc_asset, session))

        assert report.lod == 1
        assert report.address_flow is None
        assert [s.title for s in report.sections] == [
            "Device Features",
            "Portfolio Overview (LOD 0)",
            "XPUB Summaries (LOD 1)",
        ]

    def test_queued_job_is_polled(self, btc_asset, device_features, utxo_payload, fake_sleep):
        service = FakeReportingService(
            submit_response={"jobId": "job-7"},
            statuses=["queued", "running", "completed"],
            result=utxo_payload,
        )
        session = WalletSession(device=StaticDeviceInfo(device_features), reporting=service, sleep=fake_sleep)

        report = asyncio.run(UtxoReportGenerator().generate_report(btc_asset, session, ReportOptions(lod=4)))

        assert report.sections[-1].title == "Transaction Summary (LOD 4)"
        assert service.polls == 3
        assert fake_sleep.calls == [1.0, 1.0]

    def test_failed_job_raises(self, btc_asset, device_features, fake_sleep):
        service = FakeReportingService(submit_response={"jobId": "job-7"}, statuses=["failed"], error="scan failed")
        session = WalletSession(device=StaticDeviceInfo(device_features), reporting=service, sleep=fake_sleep)

        with pytest.raises(JobFailedError, match="scan failed"):
            asyncio.run(UtxoReportGenerator().generate_report(btc_asset, session))

    @pytest.mark.parametrize("device", [None, StaticDeviceInfo(None), FailingDevice()])
    def test_device_is_required(self, btc_asset, device):
        service = FakeReportingService()
        session = WalletSession(device=device, reporting=service)

        with pytest.raises(ConfigurationError):
            asyncio.run(UtxoReportGenerator().generate_report(btc_asset, session))
        assert service.submitted == []

    def test_reporting_service_is_required(self, btc_asset, device_features):
        session = WalletSession(device=StaticDeviceInfo(device_features))

        with pytest.raises(ConfigurationError, match="reporting service"):
            asyncio.run(UtxoReportGenerator().generate_report(btc_asset, session))

    def test_no_pubkeys(self, device_features):
        asset = AssetContext(network_id="bip122:000000000019d6689c085ae165831e93", symbol="BTC")
        session = WalletSession(device=StaticDeviceInfo(device_features), reporting=FakeReportingService())

        with pytest.raises(DataUnavailableError, match="No BTC pubkeys"):
            asyncio.run(UtxoReportGenerator().generate_report(asset, session))

    def test_pubkeys_from_balance_records(self, btc_asset, btc_balances):
        asset = btc_asset.model_copy(update={"pubkeys": ()})
        session = WalletSession(balances=btc_balances)

        requests = UtxoReportGenerator().build_pubkey_requests(asset, session, account_count=1)

        assert [r.xpub for r in requests] == [XPUB, YPUB, ZPUB]
        assert all(r.path == "Unknown" for r in requests)

    def test_pubkey_requests_are_capped(self, btc_asset):
        requests = UtxoReportGenerator().build_pubkey_requests(btc_asset, WalletSession(), account_count=1)
        assert len(requests) == 3

        pubkeys = tuple(Pubkey(pubkey=f"zpub{i}") for i in range(5))
        asset = btc_asset.model_copy(update={"pubkeys": pubkeys})
        assert len(UtxoReportGenerator().build_pubkey_requests(asset, WalletSession(), account_count=1)) == 3


@pytest.mark.parametrize(
    ("key", "fallback", "expected"),
    [
        (ZPUB, None, ScriptType.P2WPKH),
        (YPUB, "p2pkh", ScriptType.P2SH_P2WPKH),
        (XPUB, "p2wpkh", ScriptType.P2PKH),
        ("tpubD6NzVbkrYhZ4", "p2wpkh", ScriptType.P2WPKH),
        ("tpubD6NzVbkrYhZ4", "taproot", ScriptType.P2PKH),
        ("Ltub2SSUS19CirucW", None, ScriptType.P2PKH),
    ],
)
def test_classify_extended_key(key, fallback, expected):
    assert classify_extended_key(key, fallback) == expected


def test_device_summary(device_features):
    lines = device_summary(DeviceFeatures.model_validate(device_features)).data

    assert lines[:2] == ["Vendor: keepkey.com", "Model: K1-14AM"]
    assert "Label: Vault" in lines
    assert "PIN Protection: Enabled" in lines
    assert "Passphrase Protection: Disabled" in lines
    assert lines[-1] == "Supported Coins: 2"
    assert "Label: Not set" in device_summary(DeviceFeatures()).data


class TestEvmReportGenerator:
    """Tests for the EVM account report."""

    ADDRESSES = [f"0x{i:040x}" for i in range(1, 8)]

    @pytest.fixture
    def eth_asset(self):
        return AssetContext(
            network_id=ETH_NETWORK,
            symbol="ETH",
            name="Ethereum",
            caip=f"{ETH_NETWORK}/slip44:60",
            pubkeys=tuple(Pubkey(address=a, path=f"m/44'/60'/{i}'/0/0") for i, a in enumerate(self.ADDRESSES)),
        )

    @pytest.fixture
    def evm_payload(self):
        return {
            "lod": 2,
            "totalAddresses": 1,
            "totalBalanceETH": "1.5",
            "totalBalanceUSD": "4500",
            "addresses": [
                {
                    "address": "0x1234567890abcdef1234567890abcdef12345678",
                    "balanceETH": "1.5",
                    "balanceUSD": "4500",
                    "nonce": 7,
                    "tokenCount": 1,
                    "tokens": [
                        {
                            "symbol": "USDC",
                            "balance": "100",
                            "valueUSD": "100",
                            "contractAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
                        }
                    ],
                }
            ],
        }

    def test_report_sections(self, eth_asset, evm_payload):
        service = FakeReportingService(submit_response=evm_payload)

        report = asyncio.run(EvmReportGenerator().generate_report(eth_asset, WalletSession(reporting=service)))

        assert report.title == "Ethereum Account Report"
        assert [s.title for s in report.sections] == ["Portfolio Statistics", "Account Summary", "Token Holdings Detail"]
        assert "Chain ID: 1" in report.sections[0].data
        assert report.sections[1].data.rows[0] == ["0x12345678...12345678", "1.5 ETH", "$4500.00", "7", "1 tokens"]
        assert report.sections[2].data.rows[0][:3] == ["USDC", "100", "$100.00"]

    def test_request_body(self, eth_asset, evm_payload):
        service = FakeReportingService(submit_response=evm_payload)

        asyncio.run(EvmReportGenerator().generate_report(eth_asset, WalletSession(reporting=service)))

        chain, body = service.submitted[0]
        assert chain == "ethereum"
        assert body["networkId"] == ETH_NETWORK
        assert body["lod"] == 1
        assert len(body["addresses"]) == 5
        assert body["addresses"][0] == {"address": self.ADDRESSES[0], "path": "m/44'/60'/0'/0/0"}
        assert body["options"] == {"includeTokens": True, "includeNFTs": False}

    def test_queued_job_is_polled(self, eth_asset, evm_payload, fake_sleep):
        service = FakeReportingService(
            submit_response={"jobId": "job-9"},
            statuses=["queued", "running", "completed"],
            result=evm_payload,
        )
        session = WalletSession(reporting=service, sleep=fake_sleep)

        report = asyncio.run(EvmReportGenerator().generate_report(eth_asset, session))

        assert report.sections[-1].title == "Token Holdings Detail"
        assert service.polls == 3
        assert service.result_fetches == 1
        assert fake_sleep.calls == [1.0, 1.0]

    def test_token_detail_needs_level_two(self, eth_asset, evm_payload):
        evm_payload["lod"] = None
        service = FakeReportingService(submit_response=evm_payload)

        report = asyncio.run(EvmReportGenerator().generate_report(eth_asset, WalletSession(reporting=service)))

        assert "Token Holdings Detail" not in [s.title for s in report.sections]

    def test_no_addresses(self, eth_asset):
        asset = eth_asset.model_copy(update={"pubkeys": (Pubkey(pubkey="xpub-only"),)})
        session = WalletSession(reporting=FakeReportingService())

        with pytest.raises(DataUnavailableError):
            asyncio.run(EvmReportGenerator().generate_report(asset, session))

    def test_reporting_service_is_required(self, eth_asset):
        with pytest.raises(ConfigurationError):
            asyncio.run(EvmReportGenerator().generate_report(eth_asset, WalletSession()))


class TestCosmosReportGenerator:
    """Tests for the staking report."""

    @pytest.fixture
    def atom_asset(self):
        return AssetContext(
            network_id=COSMOS_NETWORK,
            symbol="ATOM",
            caip=COSMOS_CAIP,
            name="Cosmos Hub",
            pubkeys=(Pubkey(address=COSMOS_ADDRESS),),
        )

    @pytest.fixture
    def atom_balances(self):
        def staking(kind, amount, validator=None, network_id=COSMOS_NETWORK):
            return BalanceRecord(
                caip=COSMOS_CAIP,
                address=COSMOS_ADDRESS,
                network_id=network_id,
                symbol="ATOM",
                balance=amount,
                chart="staking",
                type=kind,
                validator=validator,
            )

        return [
            BalanceRecord(caip=COSMOS_CAIP, address=COSMOS_ADDRESS, network_id=COSMOS_NETWORK, balance="40"),
            staking("delegation", "30", "Cosmostation"),
            staking("delegation", "20"),
            staking("reward", "5", "Cosmostation"),
            staking("unbonding", "5", "Figment"),
            staking("delegation", "99", "Osmo Validator", network_id="cosmos:osmosis-1"),
        ]

    def test_build_account(self, atom_asset, atom_balances):
        account = build_account(COSMOS_ADDRESS, atom_asset, atom_balances)

        assert account.available == Decimal("40")
        assert account.staked == Decimal("50")
        assert account.rewards == Decimal("5")
        assert account.unbonding == Decimal("5")
        assert account.total == Decimal("100")
        assert [d.validator for d in account.delegations] == ["Cosmostation", "Unknown Validator"]

    def test_report_sections(self, atom_asset, atom_balances):
        session = WalletSession(balances=atom_balances)

        report = asyncio.run(CosmosReportGenerator().generate_report(atom_asset, session))

        assert report.title == "Cosmos Hub Staking Report"
        assert [s.title for s in report.sections] == [
            "Account Overview",
            "Staking Summary",
            "Delegation Details",
            "Chain Information",
            "Staking Notes",
        ]
        summary = report.sections[1].data
        assert "Total Staked: 50.000000 ATOM" in summary
        assert summary[-1] == "Staking Ratio: 50.00%"
        assert report.sections[0].data.rows[0][0] == f"{COSMOS_ADDRESS[:12]}...{COSMOS_ADDRESS[-8:]}"

    def test_no_delegations(self, atom_asset):
        report = asyncio.run(CosmosReportGenerator().generate_report(atom_asset, WalletSession()))

        assert "Delegation Details" not in [s.title for s in report.sections]
        assert report.sections[1].data[-1] == "Staking Ratio: 0.00%"

    def test_no_addresses(self, atom_asset):
        asset = atom_asset.model_copy(update={"pubkeys": ()})

        with pytest.raises(DataUnavailableError):
            asyncio.run(CosmosReportGenerator().generate_report(asset, WalletSession()))

    @pytest.mark.parametrize(
        ("staked", "total", "expected"),
        [("50", "100", Decimal("50")), ("1", "0", Decimal("0")), ("0", "10", Decimal("0"))],
    )
    def test_staking_ratio(self, staked, total, expected):
        assert staking_ratio(Decimal(staked), Decimal(total)) == expected


class TestGenericReportGenerator:
    """Tests for the fallback report."""

    @pytest.fixture
    def xrp_asset(self):
        return AssetContext(
            network_id=XRP_NETWORK,
            symbol="XRP",
            caip=f"{XRP_NETWORK}/slip44:144",
            name="Ripple",
            chain="Ripple",
            pubkeys=(Pubkey(address=XRP_ADDRESS, path="m/44'/144'/0'/0/0"),),
        )

    def test_report_sections(self, xrp_asset):
        balances = [BalanceRecord(caip=xrp_asset.caip, address=XRP_ADDRESS, symbol="XRP", balance="25")]

        report = asyncio.run(ReportService(WalletSession(balances=balances)).generate(xrp_asset))

        assert report.title == "Ripple Report"
        assert [s.title for s in report.sections] == ["Account Summary", "Asset Information", "Additional Information"]
        assert report.sections[0].data.rows[0] == ["rPT1Sjq2...zbpAYe", "25.000000 XRP", XRP_NETWORK, "m/44'/144'/0'/0/0"]
        assert "Total Balance: 25.000000 XRP" in report.sections[1].data

    def test_token_balances_for_multiple_holdings(self, xrp_asset):
        balances = [
            BalanceRecord(caip=xrp_asset.caip, address=XRP_ADDRESS, symbol="XRP", balance="25"),
            BalanceRecord(caip=f"{XRP_NETWORK}/token:USD", address=XRP_ADDRESS, symbol="USD", decimals=2, balance="3"),
        ]

        report = asyncio.run(GenericReportGenerator().generate_report(xrp_asset, WalletSession(balances=balances)))

        tokens = next(s for s in report.sections if s.title == "Token Balances")
        assert [row[1:] for row in tokens.data.rows] == [["XRP", "25.000000"], ["USD", "3.00"]]

    def test_session_is_required(self, xrp_asset):
        with pytest.raises(ConfigurationError):
            asyncio.run(GenericReportGenerator().generate_report(xrp_asset, None))

    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("short", "short"),
            ("Unknown", "Unknown"),
            ("0x1234567890abcdef1234567890abcdef12345678", "0x12345678...12345678"),
            (XRP_ADDRESS, "rPT1Sjq2...zbpAYe"),
        ],
    )
    def test_shorten(self, address, expected):
        assert shorten(address) == expected


def test_generate_document(btc_asset, device_features, utxo_payload):
    session = WalletSession(
        device=StaticDeviceInfo(device_features),
        reporting=FakeReportingService(submit_response=utxo_payload),
    )

    report, document = asyncio.run(ReportService(session).generate_document(btc_asset, ReportOptions(lod=0)))

    assert document.title == report.title
    assert document.blocks[0].text == "Device Features"
