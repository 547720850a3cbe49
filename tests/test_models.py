"""Seal parsing, summary and configuration tests."""

import pytest

from conftest import DATA_HASH, ROOT, make_anchor, make_seal, make_sign_invite, make_signature

from seal_validate import (
    Protocol,
    Seal,
    SealStatus,
    ValidationOptions,
    format_seal_summary,
    seal_summary,
)
from seal_validate.errors import MalformedSeal, UnsupportedProtocol


def _full_seal() -> dict:
    return make_seal(
        anchors={
            "ethereum": {"1": make_anchor()},
            "bitcoin": {"mainnet": make_anchor(tx="bb" * 32, node_url="")},
        },
        signatures={"ethereum": {"0x1234": make_signature(status="pending")}},
        signinvites={"anchors": {"ethereum": {"1": make_sign_invite()}}},
    )


class TestSealParsing:

    def test_parses_anchors_in_document_order(self):
        seal = Seal.from_dict(_full_seal())
        assert [a.key for a in seal.anchors] == ["ethereum/1", "bitcoin/mainnet"]
        assert seal.anchors[0].protocol == Protocol.ETHEREUM
        assert seal.anchors[0].merkle_root == ROOT
        assert seal.data_hash == DATA_HASH

    def test_parses_signatures_and_invites(self):
        seal = Seal.from_dict(_full_seal())
        assert seal.signatures[0].address == "0x1234"
        assert seal.signatures[0].transaction_status == SealStatus.PENDING
        assert len(seal.sign_invites) == 1
        assert [inv.invite_id for inv in seal.sign_invites[0].invites] == ["invite-1", "invite-2"]

    def test_round_trip_wire_format(self):
        data = _full_seal()
        assert Seal.from_dict(data).to_dict() == data

    def test_unknown_anchor_protocol(self):
        with pytest.raises(UnsupportedProtocol):
            Seal.from_dict(make_seal(anchors={"litecoin": {"mainnet": make_anchor()}}))

    def test_unknown_bitcoin_network(self):
        with pytest.raises(MalformedSeal):
            Seal.from_dict(make_seal(anchors={"bitcoin": {"regtest": make_anchor()}}))

    @pytest.mark.parametrize("field", ["id", "dataHash", "anchors"])
    def test_missing_required_field(self, field):
        data = make_seal()
        del data[field]
        with pytest.raises(MalformedSeal):
            Seal.from_dict(data)

    def test_anchor_missing_merkle_root(self):
        anchor = make_anchor()
        del anchor["merkleRoot"]
        with pytest.raises(MalformedSeal):
            Seal.from_dict(make_seal(anchors={"ethereum": {"1": anchor}}))

    def test_signatures_on_other_protocols_are_kept(self):
        seal = Seal.from_dict(make_seal(signatures={"bitcoin": {"addr": make_signature()}}))
        assert seal.signatures[0].protocol == "bitcoin"

    def test_unknown_cached_status_is_dropped(self):
        seal = Seal.from_dict(make_seal(
            signatures={"ethereum": {"0x1234": make_signature(status="bogus")}},
        ))
        assert seal.signatures[0].transaction_status is None


class TestSummary:

    def test_summary_fields(self):
        summary = seal_summary(_full_seal())
        assert summary["seal_id"] == "seal-001"
        assert summary["anchors"] == ["bitcoin/mainnet", "ethereum/1"]
        assert summary["signer_count"] == 1
        assert summary["invite_count"] == 1
        assert summary["invitee_count"] == 2

    def test_format_summary(self):
        line = format_seal_summary(_full_seal())
        assert line.startswith("seal-001 | bitcoin/mainnet, ethereum/1 | 1 signer | ")
        assert line.endswith(DATA_HASH[:12] + "...")


class TestValidationOptions:

    def test_defaults(self):
        options = ValidationOptions()
        assert options.explorer_url_for("mainnet") == "https://api.blockcypher.com/v1/btc/main"
        assert options.explorer_url_for("testnet") == "https://api.blockcypher.com/v1/btc/test3"
        assert options.skip_retired_networks

    def test_explorer_override_applies_to_all_networks(self):
        options = ValidationOptions(bitcoin_explorer_url="https://explorer.local/api/")
        assert options.explorer_url_for("testnet") == "https://explorer.local/api"

    def test_from_dict_camel_case(self):
        options = ValidationOptions.from_dict({
            "bitcoinUrl": "https://legacy.local",
            "bitcoinApiKey": "btc-key",
            "ethereumApiKey": "eth-key",
            "maxWorkers": 4,
        })
        assert options.bitcoin_explorer_url == "https://legacy.local"
        assert options.bitcoin_api_key == "btc-key"
        assert options.ethereum_api_key == "eth-key"
        assert options.max_workers == 4

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SEAL_BITCOIN_API_KEY", "env-key")
        monkeypatch.setenv("SEAL_HTTP_TIMEOUT", "5")
        monkeypatch.setenv("SEAL_SKIP_RETIRED_NETWORKS", "false")
        options = ValidationOptions.from_env(str(tmp_path / "missing.env"))
        assert options.bitcoin_api_key == "env-key"
        assert options.timeout == 5.0
        assert options.skip_retired_networks is False

    def test_from_env_reads_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SEAL_ETHEREUM_API_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("SEAL_ETHEREUM_API_KEY=from-dotenv\n")
        options = ValidationOptions.from_env(str(env_file))
        assert options.ethereum_api_key == "from-dotenv"
        monkeypatch.delenv("SEAL_ETHEREUM_API_KEY", raising=False)

    def test_retired_network_detection(self):
        options = ValidationOptions()
        assert options.is_retired_network("https://ROPSTEN.infura.io/v3/key")
        assert not options.is_retired_network("https://mainnet.infura.io/v3/key")
