"""
Seal summary utilities for human-readable inspection.

Extracts key metadata from seals without validating or modifying them.
"""

from typing import Any

from .models import Seal, as_seal


def seal_summary(seal: Seal | dict[str, Any]) -> dict[str, Any]:
    """
    Extract a human-readable summary from a seal.

    Args:
        seal: A Seal or its wire-format dict

    Returns:
        Dict with seal_id, data_hash, anchors (as "protocol/network"),
        signer_count, invite_count, invitee_count and sealed
    """
    seal = as_seal(seal)

    return {
        "seal_id": seal.id,
        "data_hash": seal.data_hash,
        "sealed": seal.sealed or "",
        "anchors": sorted(anchor.key for anchor in seal.anchors),
        "signer_count": len(seal.signatures),
        "invite_count": len(seal.sign_invites),
        "invitee_count": sum(len(inv.invites) for inv in seal.sign_invites),
    }


def format_seal_summary(seal: Seal | dict[str, Any]) -> str:
    """
    Format a seal as a single-line human-readable string.

    Returns:
        String like "seal-001 | ethereum/1, bitcoin/mainnet | 2 signers | 9f86d081884c..."
    """
    s = seal_summary(seal)
    hash_short = s["data_hash"][:12] + "..." if len(s["data_hash"]) > 12 else s["data_hash"]
    anchors = ", ".join(s["anchors"]) if s["anchors"] else "no anchors"
    signers = f"{s['signer_count']} signer" + ("" if s["signer_count"] == 1 else "s")
    return f"{s['seal_id']} | {anchors} | {signers} | {hash_short}"
