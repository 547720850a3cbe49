"""
Merkle inclusion-proof replay.

A proof is an ordered list of sibling hashes, each tagged with its side
relative to the running hash at that tree level. Replaying it from the
seal's dataHash must reproduce the anchored merkle root exactly. This module
does no I/O.
"""

import hashlib
from collections.abc import Callable, Sequence

from .hexcodec import hex_to_bytes
from .models import ProofStep


HashFn = Callable[[bytes], bytes]


def sha3_512(data: bytes) -> bytes:
    return hashlib.sha3_512(data).digest()


def compute_root(
    proof: Sequence[ProofStep],
    target_hash: str,
    hash_fn: HashFn = sha3_512,
) -> str | None:
    """
    Replay a proof path and return the resulting root as lowercase hex.

    Returns None when the leaf or a sibling is not valid hex. An empty proof
    returns target_hash unchanged.
    """
    if not proof:
        return target_hash

    try:
        acc = hex_to_bytes(target_hash)
        for step in proof:
            sibling = hex_to_bytes(step.sibling)
            if step.left is not None:
                acc = hash_fn(sibling + acc)
            else:
                acc = hash_fn(acc + sibling)
    except ValueError:
        return None

    return acc.hex()


def validate_proof(
    proof: Sequence[ProofStep],
    target_hash: str,
    merkle_root: str,
    hash_fn: HashFn = sha3_512,
) -> bool:
    """
    Check that proof ties target_hash to merkle_root.

    Comparison is exact string equality, so a root stored in upper case
    never matches the lowercase replay.
    """
    root = compute_root(proof, target_hash, hash_fn)
    return root is not None and root == merkle_root
