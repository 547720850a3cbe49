"""
Shared fixtures: seal builders and in-memory chain clients.

No test talks to a real node or explorer.
"""

import hashlib
import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seal_validate.clients import BitcoinTransaction, EthereumTransaction


def sha3_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha3_512(data).hexdigest()


def build_root(leaf: str, steps: list[tuple[str, str]]) -> str:
    """Combine leaf with (side, sibling) pairs the way a sealing service would."""
    acc = bytes.fromhex(leaf)
    for side, sibling in steps:
        sib = bytes.fromhex(sibling)
        acc = hashlib.sha3_512(sib + acc if side == "left" else acc + sib).digest()
    return acc.hex()


def proof_dicts(steps: list[tuple[str, str]]) -> list[dict[str, str]]:
    return [{side: sibling} for side, sibling in steps]


SIBLINGS = [("left", sha3_hex("sibling-a")), ("right", sha3_hex("sibling-b"))]
DATA = "hello seal"
DATA_HASH = sha3_hex(DATA)
ROOT = build_root(DATA_HASH, SIBLINGS)

ETH_TX = "aa" * 32
BTC_TX = "bb" * 32
SIGNER_TX = "cc" * 32
INVITE_TX = "dd" * 32
SIGNATURE_HASH = sha3_hex("signer-0x1234")


def make_anchor(tx: str = ETH_TX, node_url: str = "https://mainnet.example/rpc") -> dict[str, Any]:
    return {
        "transactionId": tx,
        "nodeUrl": node_url,
        "explorer": "https://etherscan.io/tx",
        "merkleRoot": ROOT,
        "proof": proof_dicts(SIBLINGS),
    }


def make_seal(**overrides: Any) -> dict[str, Any]:
    seal = {
        "id": "seal-001",
        "dataHash": DATA_HASH,
        "anchors": {"ethereum": {"1": make_anchor()}},
        "sealed": "2021-06-01T12:00:00Z",
    }
    seal.update(overrides)
    return seal


def make_signature(tx: str = SIGNER_TX, status: str | None = None, signature: str = SIGNATURE_HASH) -> dict[str, Any]:
    entry = {
        "transactionId": tx,
        "nodeUrl": "https://mainnet.example/rpc",
        "explorer": "https://etherscan.io/tx",
        "signature": signature,
        "signed": "2021-06-01T12:05:00Z",
    }
    if status:
        entry["transactionStatus"] = status
    return entry


INVITEE_HASHES = [sha3_hex("invitee-1"), sha3_hex("invitee-2")]
INVITE_ROOT = hashlib.sha3_512(
    bytes.fromhex(INVITEE_HASHES[0]) + bytes.fromhex(INVITEE_HASHES[1])
).hexdigest()


def make_sign_invite(tx: str = INVITE_TX, status: str | None = None) -> dict[str, Any]:
    entry = {
        "transactionId": tx,
        "nodeUrl": "https://mainnet.example/rpc",
        "explorer": "https://etherscan.io/tx",
        "merkleRoot": INVITE_ROOT,
        "proof": [],
        "invites": {
            "invite-1": {"hash": INVITEE_HASHES[0], "proof": [{"right": INVITEE_HASHES[1]}]},
            "invite-2": {"hash": INVITEE_HASHES[1], "proof": [{"left": INVITEE_HASHES[0]}]},
        },
    }
    if status:
        entry["transactionStatus"] = status
    return entry


class FakeEthereumNode:
    """In-memory stand-in for EthereumRpcClient; keys are 0x-prefixed tx ids."""

    def __init__(self, transactions: dict[str, str] | None = None):
        self.transactions = dict(transactions or {})
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def client_for(self, node_url: str) -> "FakeEthereumClient":
        return FakeEthereumClient(self, node_url)

    def lookup(self, node_url: str, transaction_id: str) -> EthereumTransaction | None:
        self.calls.append((node_url, transaction_id))
        if transaction_id in self.errors:
            raise self.errors[transaction_id]
        payload = self.transactions.get(transaction_id)
        if payload is None:
            return None
        return EthereumTransaction(hash=transaction_id, payload=payload)


class FakeEthereumClient:
    """Per-node-URL handle on a FakeEthereumNode, like EthereumRpcClient."""

    def __init__(self, node: FakeEthereumNode, node_url: str):
        self.node = node
        self.node_url = node_url

    def get_transaction(self, transaction_id: str) -> EthereumTransaction | None:
        return self.node.lookup(self.node_url, transaction_id)


class FakeBitcoinExplorer:
    """In-memory stand-in for BitcoinExplorerClient."""

    def __init__(self, transactions: dict[str, list[dict[str, Any]]] | None = None):
        self.transactions = dict(transactions or {})
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def get_transaction(self, transaction_id: str, network: str = "mainnet") -> BitcoinTransaction | None:
        self.calls.append((transaction_id, network))
        if transaction_id in self.errors:
            raise self.errors[transaction_id]
        outputs = self.transactions.get(transaction_id)
        if outputs is None:
            return None
        return BitcoinTransaction(hash=transaction_id, outputs=outputs)


@pytest.fixture
def eth_node() -> FakeEthereumNode:
    return FakeEthereumNode({
        "0x" + ETH_TX: "0x" + ROOT,
        "0x" + SIGNER_TX: "0x" + SIGNATURE_HASH,
        "0x" + INVITE_TX: "0x" + INVITE_ROOT,
    })


@pytest.fixture
def btc_explorer() -> FakeBitcoinExplorer:
    return FakeBitcoinExplorer({
        BTC_TX: [
            {"value": 1000, "script_type": "pay-to-pubkey-hash"},
            {"value": 0, "script_type": "null-data", "data_hex": ROOT},
        ],
    })
