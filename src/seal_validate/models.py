"""
Seal data model.

Seals arrive as JSON documents in the sealing service's camelCase wire
format. from_dict parses them into dataclasses; to_dict emits the same wire
format back, so a resolved seal can be stored where the original came from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import MalformedSeal, UnsupportedProtocol


class SealStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FAILED = "failed"


class Protocol(str, Enum):
    ETHEREUM = "ethereum"
    BITCOIN = "bitcoin"


class NetworkName(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None:
        raise MalformedSeal(
            f"Missing required field {key!r} in {where}",
            details={"field": key, "where": where},
        )
    return value


def _parse_status(value: Any) -> SealStatus | None:
    if value is None:
        return None
    try:
        return SealStatus(value)
    except ValueError:
        # Unknown cached statuses behave like "no cached status"
        return None


@dataclass
class ProofStep:
    """One level of a Merkle proof: a sibling hash on exactly one side."""
    left: str | None = None
    right: str | None = None

    def __post_init__(self):
        if (self.left is None) == (self.right is None):
            raise MalformedSeal(
                "Proof step must carry exactly one of 'left' or 'right'",
                details={"left": self.left, "right": self.right},
            )

    @property
    def sibling(self) -> str:
        return self.left if self.left is not None else self.right

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProofStep":
        if not isinstance(data, dict):
            raise MalformedSeal(
                "Proof step must be an object",
                details={"received": type(data).__name__},
            )
        return cls(left=data.get("left"), right=data.get("right"))

    def to_dict(self) -> dict[str, Any]:
        if self.left is not None:
            return {"left": self.left}
        return {"right": self.right}


def parse_proof(data: Any) -> list[ProofStep]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedSeal(
            "Proof must be an array of steps",
            details={"received": type(data).__name__},
        )
    return [ProofStep.from_dict(step) for step in data]


@dataclass
class Anchor:
    """A claimed on-chain commitment for one protocol/network."""
    protocol: Protocol
    network: str
    transaction_id: str
    node_url: str
    explorer: str
    merkle_root: str
    proof: list[ProofStep] = field(default_factory=list)
    exists: bool | None = None

    @property
    def key(self) -> str:
        return f"{self.protocol.value}/{self.network}"

    @classmethod
    def _common_fields(cls, protocol: Protocol, network: str, data: dict[str, Any]) -> dict[str, Any]:
        where = f"anchor {protocol.value}/{network}"
        if not isinstance(data, dict):
            raise MalformedSeal(f"{where} must be an object", details={"anchor": where})
        return {
            "protocol": protocol,
            "network": network,
            "transaction_id": _require(data, "transactionId", where),
            "node_url": data.get("nodeUrl", ""),
            "explorer": data.get("explorer", ""),
            "merkle_root": _require(data, "merkleRoot", where),
            "proof": parse_proof(data.get("proof")),
            "exists": data.get("exists"),
        }

    @classmethod
    def from_dict(cls, protocol: Protocol, network: str, data: dict[str, Any]) -> "Anchor":
        return cls(**cls._common_fields(protocol, network, data))

    def to_dict(self) -> dict[str, Any]:
        result = {
            "transactionId": self.transaction_id,
            "nodeUrl": self.node_url,
            "explorer": self.explorer,
            "merkleRoot": self.merkle_root,
            "proof": [step.to_dict() for step in self.proof],
        }
        if self.exists is not None:
            result["exists"] = self.exists
        return result


@dataclass
class InviteProof:
    """An invitee's leaf hash and its proof up to the sign-invite root."""
    invite_id: str
    hash: str
    proof: list[ProofStep] = field(default_factory=list)

    @classmethod
    def from_dict(cls, invite_id: str, data: dict[str, Any]) -> "InviteProof":
        where = f"invite {invite_id}"
        return cls(
            invite_id=invite_id,
            hash=_require(data, "hash", where),
            proof=parse_proof(data.get("proof")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "proof": [step.to_dict() for step in self.proof],
            "hash": self.hash,
        }


@dataclass
class SignInviteAnchor(Anchor):
    """
    An anchored root over invitee hashes.

    Invitees are leaves under merkle_root; merkle_root itself is the value
    committed on-chain.
    """
    invites: list[InviteProof] = field(default_factory=list)
    transaction_status: SealStatus | None = None

    @classmethod
    def from_dict(cls, protocol: Protocol, network: str, data: dict[str, Any]) -> "SignInviteAnchor":
        fields = cls._common_fields(protocol, network, data)
        invites = data.get("invites") or {}
        return cls(
            **fields,
            invites=[InviteProof.from_dict(invite_id, inv) for invite_id, inv in invites.items()],
            transaction_status=_parse_status(data.get("transactionStatus")),
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["invites"] = {inv.invite_id: inv.to_dict() for inv in self.invites}
        if self.transaction_status is not None:
            result["transactionStatus"] = self.transaction_status.value
        return result


@dataclass
class SignatureEntry:
    """A signer's on-chain commitment of their signature hash."""
    protocol: str
    address: str
    transaction_id: str
    node_url: str
    explorer: str
    signature: str
    signed: str | None = None
    transaction_status: SealStatus | None = None

    @classmethod
    def from_dict(cls, protocol: str, address: str, data: dict[str, Any]) -> "SignatureEntry":
        where = f"signature {protocol}/{address}"
        return cls(
            protocol=protocol,
            address=address,
            transaction_id=_require(data, "transactionId", where),
            node_url=data.get("nodeUrl", ""),
            explorer=data.get("explorer", ""),
            signature=_require(data, "signature", where),
            signed=data.get("signed"),
            transaction_status=_parse_status(data.get("transactionStatus")),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "transactionId": self.transaction_id,
            "nodeUrl": self.node_url,
            "explorer": self.explorer,
            "signature": self.signature,
        }
        if self.signed is not None:
            result["signed"] = self.signed
        if self.transaction_status is not None:
            result["transactionStatus"] = self.transaction_status.value
        return result


def _protocol(name: str) -> Protocol:
    try:
        return Protocol(name)
    except ValueError:
        raise UnsupportedProtocol(
            f"Unsupported anchor protocol: {name}",
            details={"protocol": name, "supported": [p.value for p in Protocol]},
        )


def parse_anchor_set(data: dict[str, Any], anchor_cls: type[Anchor] = Anchor) -> list[Anchor]:
    """
    Flatten a protocol -> network -> anchor mapping into anchors in document order.

    Raises:
        UnsupportedProtocol: If a protocol key is not ethereum or bitcoin
        MalformedSeal: If a Bitcoin network is not mainnet/testnet
    """
    if not isinstance(data, dict):
        raise MalformedSeal("Anchors must be an object", details={"received": type(data).__name__})

    anchors: list[Anchor] = []
    for protocol_name, networks in data.items():
        protocol = _protocol(protocol_name)
        for network, anchor_data in (networks or {}).items():
            if protocol == Protocol.BITCOIN and network not in (NetworkName.MAINNET.value, NetworkName.TESTNET.value):
                raise MalformedSeal(
                    f"Unknown bitcoin network: {network}",
                    details={"network": network},
                )
            anchors.append(anchor_cls.from_dict(protocol, network, anchor_data))
    return anchors


def anchor_set_to_dict(anchors: list[Anchor]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for anchor in anchors:
        result.setdefault(anchor.protocol.value, {})[anchor.network] = anchor.to_dict()
    return result


@dataclass
class Seal:
    """A verifiable attestation binding data_hash to blockchain commitments."""
    id: str
    data_hash: str
    anchors: list[Anchor] = field(default_factory=list)
    signatures: list[SignatureEntry] = field(default_factory=list)
    sign_invites: list[SignInviteAnchor] = field(default_factory=list)
    sealed: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Seal":
        """
        Parse a seal from its wire format.

        Raises:
            MalformedSeal: If required fields are missing or malformed
            UnsupportedProtocol: If an anchor protocol is unknown
        """
        if not isinstance(data, dict):
            raise MalformedSeal("Seal must be an object", details={"received": type(data).__name__})

        seal_id = _require(data, "id", "seal")
        data_hash = _require(data, "dataHash", "seal")
        anchors = parse_anchor_set(_require(data, "anchors", "seal"))

        signatures = [
            SignatureEntry.from_dict(protocol, address, entry)
            for protocol, signers in (data.get("signatures") or {}).items()
            for address, entry in (signers or {}).items()
        ]

        sign_invites: list[SignInviteAnchor] = []
        invites_data = data.get("signinvites") or {}
        invite_anchors = invites_data.get("anchors", invites_data)
        for protocol, channels in (invite_anchors or {}).items():
            # Sign-invites are only ever anchored on Ethereum; others are ignored.
            if protocol != Protocol.ETHEREUM.value:
                continue
            for channel_id, entry in (channels or {}).items():
                sign_invites.append(SignInviteAnchor.from_dict(Protocol.ETHEREUM, channel_id, entry))

        return cls(
            id=seal_id,
            data_hash=data_hash,
            anchors=anchors,
            signatures=signatures,
            sign_invites=sign_invites,
            sealed=data.get("sealed"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "dataHash": self.data_hash,
            "anchors": anchor_set_to_dict(self.anchors),
        }
        if self.signatures:
            signatures: dict[str, Any] = {}
            for entry in self.signatures:
                signatures.setdefault(entry.protocol, {})[entry.address] = entry.to_dict()
            result["signatures"] = signatures
        if self.sign_invites:
            result["signinvites"] = {"anchors": anchor_set_to_dict(self.sign_invites)}
        if self.sealed is not None:
            result["sealed"] = self.sealed
        return result


def as_seal(seal: "Seal | dict[str, Any]") -> Seal:
    return seal if isinstance(seal, Seal) else Seal.from_dict(seal)
