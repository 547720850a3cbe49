"""
Signature and sign-invite reconciliation.

Each signer (and each sign-invite root) has its own Ethereum transaction.
A found transaction with the expected payload confirms the entry; a found
transaction with anything else fails the whole set at once. A missing
transaction is tolerated only if the seal already cached the entry as
pending.

Entries under protocols other than Ethereum are never anchored and are
ignored.
"""

import copy
import logging
from collections.abc import Iterable
from typing import Optional, Union

from .clients import EthereumClientFactory, EthereumTransaction
from .errors import TransactionLookupFailure, VerificationError
from .hexcodec import add_hex_prefix, same_hex
from .merkle import validate_proof
from .models import Protocol, SealStatus, SignatureEntry, SignInviteAnchor

logger = logging.getLogger(__name__)

Entry = Union[SignatureEntry, SignInviteAnchor]


def combine_statuses(statuses: Iterable[SealStatus]) -> SealStatus:
    """FAILED dominates PENDING, which dominates CONFIRMED. Empty is CONFIRMED."""
    result = SealStatus.CONFIRMED
    for status in statuses:
        if status == SealStatus.FAILED:
            return SealStatus.FAILED
        if status == SealStatus.PENDING:
            result = SealStatus.PENDING
    return result


def _is_ethereum(entry: Entry) -> bool:
    protocol = entry.protocol.value if isinstance(entry.protocol, Protocol) else entry.protocol
    return protocol == Protocol.ETHEREUM.value


def _entry_label(entry: Entry) -> str:
    if isinstance(entry, SignatureEntry):
        return f"signature {entry.address}"
    return f"sign-invite {entry.network}"


def _fetch(
    entry: Entry,
    ethereum_client_for: EthereumClientFactory,
    errors: Optional[list[VerificationError]] = None,
) -> Optional[EthereumTransaction]:
    """
    Look up the entry's transaction. Lookup failures count as not found.

    A failed lookup is still recorded in errors, tagged LOOKUP_TIMEOUT or
    LOOKUP_FAILED, so it can be told apart from a real absence.
    """
    tx_id = add_hex_prefix(entry.transaction_id)
    try:
        return ethereum_client_for(entry.node_url).get_transaction(tx_id)
    except TransactionLookupFailure as e:
        logger.warning(f"Lookup of {_entry_label(entry)} transaction {tx_id} failed, treating as not found: {e}")
        if errors is not None:
            error = e.to_error()
            error.details.update({"entry": _entry_label(entry), "transaction_id": tx_id})
            errors.append(error)
        return None


def _matches(entry: Entry, tx: EthereumTransaction) -> bool:
    """Whether a found transaction confirms the entry."""
    if isinstance(entry, SignInviteAnchor):
        if not same_hex(tx.payload, entry.merkle_root):
            return False
        return all(
            validate_proof(invite.proof, invite.hash, entry.merkle_root)
            for invite in entry.invites
        )
    return same_hex(tx.payload, entry.signature)


def reconcile_entry(
    entry: Entry,
    ethereum_client_for: EthereumClientFactory,
    errors: Optional[list[VerificationError]] = None,
) -> SealStatus:
    """Tri-state status of a single signature or sign-invite entry."""
    tx = _fetch(entry, ethereum_client_for, errors)

    if tx is not None:
        if _matches(entry, tx):
            return SealStatus.CONFIRMED
        logger.info(f"{_entry_label(entry)} does not match its on-chain commitment")
        return SealStatus.FAILED

    if entry.transaction_status == SealStatus.PENDING:
        logger.debug(f"{_entry_label(entry)} not found yet, cached as pending")
        return SealStatus.PENDING

    logger.info(f"{_entry_label(entry)} transaction {entry.transaction_id} not found")
    return SealStatus.FAILED


def _reconcile(
    entries: Iterable[Entry],
    ethereum_client_for: EthereumClientFactory,
    errors: Optional[list[VerificationError]],
) -> SealStatus:
    # Stops at the first FAILED entry; later lookups are not made.
    status = SealStatus.CONFIRMED
    for entry in entries:
        if not _is_ethereum(entry):
            continue
        entry_status = reconcile_entry(entry, ethereum_client_for, errors)
        if entry_status == SealStatus.FAILED:
            return SealStatus.FAILED
        status = combine_statuses([status, entry_status])
    return status


def validate_signatures(
    signatures: Optional[list[SignatureEntry]],
    ethereum_client_for: EthereumClientFactory,
    errors: Optional[list[VerificationError]] = None,
) -> SealStatus:
    """
    Reconcile all signer commitments of a seal.

    Lookup failures are appended to errors when a list is given.

    Raises:
        RateLimited: If the node answered HTTP 429
    """
    return _reconcile(signatures or [], ethereum_client_for, errors)


def validate_sign_invites(
    sign_invites: Optional[list[SignInviteAnchor]],
    ethereum_client_for: EthereumClientFactory,
    errors: Optional[list[VerificationError]] = None,
) -> SealStatus:
    """
    Reconcile all sign-invite roots of a seal, including every invitee proof.

    Raises:
        RateLimited: If the node answered HTTP 429
    """
    return _reconcile(sign_invites or [], ethereum_client_for, errors)


def _resolve(entries: Optional[list[Entry]], ethereum_client_for: EthereumClientFactory) -> list[Entry]:
    resolved = copy.deepcopy(entries or [])
    for entry in resolved:
        if not _is_ethereum(entry):
            continue
        tx = _fetch(entry, ethereum_client_for)
        if tx is not None and _matches(entry, tx):
            entry.transaction_status = SealStatus.CONFIRMED
    return resolved


def resolve_signatures(
    signatures: Optional[list[SignatureEntry]],
    ethereum_client_for: EthereumClientFactory,
) -> list[SignatureEntry]:
    """
    Return copies of the signatures with confirmed entries cached as CONFIRMED.

    Entries that are missing or mismatched keep whatever status they had.
    """
    return _resolve(signatures, ethereum_client_for)


def resolve_sign_invites(
    sign_invites: Optional[list[SignInviteAnchor]],
    ethereum_client_for: EthereumClientFactory,
) -> list[SignInviteAnchor]:
    """Return copies of the sign-invites with confirmed entries cached as CONFIRMED."""
    return _resolve(sign_invites, ethereum_client_for)
