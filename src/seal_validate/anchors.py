"""
Anchor validation.

For every protocol/network anchor in a seal, confirm that the claimed root
was written on-chain and that the anchor's proof replays from the seal's
dataHash to that root. Every anchor is checked even after one has failed, so
the report carries the full diagnostic picture.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional

from .clients import BitcoinExplorerClient, EthereumClientFactory
from .config import ValidationOptions
from .errors import (
    ErrorCode,
    NoCommitmentFound,
    TransactionLookupFailure,
    UnsupportedProtocol,
    VerificationError,
)
from .hexcodec import add_hex_prefix, same_hex
from .merkle import compute_root
from .models import Anchor, Protocol

logger = logging.getLogger(__name__)


@dataclass
class AnchorCheck:
    """Outcome of validating a single anchor."""
    protocol: str
    network: str
    valid: bool
    exists: Optional[bool] = None
    proof_valid: Optional[bool] = None
    skipped: bool = False
    errors: list[VerificationError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "network": self.network,
            "valid": self.valid,
            "exists": self.exists,
            "proof_valid": self.proof_valid,
            "skipped": self.skipped,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class AnchorReport:
    """All anchor checks of a seal. Valid only if every check is valid."""
    checks: list[AnchorCheck] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return all(check.valid for check in self.checks)

    @property
    def errors(self) -> list[VerificationError]:
        return [err for check in self.checks for err in check.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "checks": [check.to_dict() for check in self.checks],
        }


def _finish_check(anchor: Anchor, data_hash: str, onchain_root: str) -> AnchorCheck:
    """Compare the on-chain root and replay the proof."""
    errors: list[VerificationError] = []

    exists = same_hex(onchain_root, anchor.merkle_root)
    if not exists:
        errors.append(VerificationError(
            code=ErrorCode.COMMITMENT_MISMATCH,
            message=f"On-chain commitment for {anchor.key} does not match merkle root",
            details={
                "transaction_id": anchor.transaction_id,
                "expected": add_hex_prefix(anchor.merkle_root),
                "actual": onchain_root,
            },
        ))

    replayed = compute_root(anchor.proof, data_hash)
    proof_valid = replayed is not None and replayed == anchor.merkle_root
    if not proof_valid:
        errors.append(VerificationError(
            code=ErrorCode.PROOF_INVALID,
            message=f"Proof for {anchor.key} does not reproduce merkle root",
            details={"expected": anchor.merkle_root, "actual": replayed},
        ))

    return AnchorCheck(
        protocol=anchor.protocol.value,
        network=anchor.network,
        valid=exists and proof_valid,
        exists=exists,
        proof_valid=proof_valid,
        errors=errors,
    )


def _failed_check(anchor: Anchor, error: VerificationError, exists: Optional[bool] = None) -> AnchorCheck:
    return AnchorCheck(
        protocol=anchor.protocol.value,
        network=anchor.network,
        valid=False,
        exists=exists,
        errors=[error],
    )


def validate_ethereum_anchor(
    anchor: Anchor,
    data_hash: str,
    ethereum_client_for: EthereumClientFactory,
    options: ValidationOptions,
) -> AnchorCheck:
    if options.skip_retired_networks and options.is_retired_network(anchor.node_url):
        logger.warning(
            f"Known bypass: anchor {anchor.key} points at retired network {anchor.node_url}, "
            f"accepting without lookup"
        )
        return AnchorCheck(
            protocol=anchor.protocol.value,
            network=anchor.network,
            valid=True,
            skipped=True,
            errors=[VerificationError(
                code=ErrorCode.RETIRED_NETWORK_SKIPPED,
                message=f"Anchor {anchor.key} is on a retired network and was not checked",
                details={"node_url": anchor.node_url},
            )],
        )

    tx_id = add_hex_prefix(anchor.transaction_id)
    try:
        tx = ethereum_client_for(anchor.node_url).get_transaction(tx_id)
    except TransactionLookupFailure as e:
        logger.warning(f"Lookup of {anchor.key} transaction {tx_id} failed: {e}")
        return _failed_check(anchor, e.to_error())

    if tx is None:
        return _failed_check(anchor, VerificationError(
            code=ErrorCode.TRANSACTION_NOT_FOUND,
            message=f"Transaction {tx_id} for {anchor.key} not found",
            details={"transaction_id": tx_id, "node_url": anchor.node_url},
        ), exists=False)

    return _finish_check(anchor, data_hash, tx.payload)


def validate_bitcoin_anchor(
    anchor: Anchor,
    data_hash: str,
    bitcoin_client: BitcoinExplorerClient,
) -> AnchorCheck:
    try:
        tx = bitcoin_client.get_transaction(anchor.transaction_id, anchor.network)
        if tx is None:
            return _failed_check(anchor, VerificationError(
                code=ErrorCode.TRANSACTION_NOT_FOUND,
                message=f"Transaction {anchor.transaction_id} for {anchor.key} not found",
                details={"transaction_id": anchor.transaction_id},
            ), exists=False)
        onchain_root = tx.commitment()
    except NoCommitmentFound as e:
        return _failed_check(anchor, e.to_error(), exists=False)
    except TransactionLookupFailure as e:
        logger.warning(f"Lookup of {anchor.key} transaction {anchor.transaction_id} failed: {e}")
        return _failed_check(anchor, e.to_error())

    return _finish_check(anchor, data_hash, onchain_root)


def validate_anchor(
    anchor: Anchor,
    data_hash: str,
    *,
    ethereum_client_for: EthereumClientFactory,
    bitcoin_client: BitcoinExplorerClient,
    options: ValidationOptions,
) -> AnchorCheck:
    """
    Validate one anchor.

    Raises:
        RateLimited: If the remote API answered HTTP 429
        UnsupportedProtocol: If the anchor's protocol is unknown
    """
    if anchor.protocol == Protocol.ETHEREUM:
        check = validate_ethereum_anchor(anchor, data_hash, ethereum_client_for, options)
    elif anchor.protocol == Protocol.BITCOIN:
        check = validate_bitcoin_anchor(anchor, data_hash, bitcoin_client)
    else:
        raise UnsupportedProtocol(
            f"Unsupported anchor protocol: {anchor.protocol}",
            details={"protocol": str(anchor.protocol)},
        )

    logger.debug(f"Anchor {anchor.key}: valid={check.valid}")
    return check


def validate_anchors(
    anchors: list[Anchor],
    data_hash: str,
    *,
    ethereum_client_for: EthereumClientFactory,
    bitcoin_client: BitcoinExplorerClient,
    options: Optional[ValidationOptions] = None,
) -> AnchorReport:
    """
    Validate every anchor of a seal.

    With options.max_workers > 1 the lookups run on a thread pool. Checks are
    reported in seal order either way. An exception raised by any anchor
    (RateLimited) is re-raised once all lookups have finished.
    """
    options = options or ValidationOptions()
    kwargs = {
        "ethereum_client_for": ethereum_client_for,
        "bitcoin_client": bitcoin_client,
        "options": options,
    }

    if options.max_workers <= 1 or len(anchors) <= 1:
        return AnchorReport(checks=[validate_anchor(a, data_hash, **kwargs) for a in anchors])

    with ThreadPoolExecutor(max_workers=options.max_workers) as pool:
        futures = [pool.submit(validate_anchor, a, data_hash, **kwargs) for a in anchors]

    checks: list[AnchorCheck] = []
    first_error: Optional[BaseException] = None
    for future in futures:
        error = future.exception()
        if error is not None:
            first_error = first_error or error
            continue
        checks.append(future.result())

    if first_error is not None:
        raise first_error

    return AnchorReport(checks=checks)
