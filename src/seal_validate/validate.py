"""
Seal validation entry points.

Combines anchor validity with the signature and sign-invite reconciliations
into one SealStatus:

- FAILED if any anchor is invalid or either reconciliation FAILED
- PENDING if either reconciliation is PENDING
- CONFIRMED otherwise

A seal that fails validation is a verdict, not an error. Exceptions are
reserved for misuse (bad input kind, unknown data type or protocol,
malformed seal) and for RateLimited.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .anchors import AnchorReport, validate_anchors
from .clients import BitcoinExplorerClient, EthereumClientFactory, make_ethereum_client_factory
from .config import ValidationOptions
from .digest import DataType, hash_for_data
from .errors import ErrorCode, VerificationError
from .models import Seal, SealStatus, as_seal
from .signatures import (
    resolve_sign_invites,
    resolve_signatures,
    validate_sign_invites,
    validate_signatures,
)

logger = logging.getLogger(__name__)


def combine_status(
    anchors_valid: bool,
    signatures: SealStatus,
    sign_invites: SealStatus,
) -> SealStatus:
    """Fold anchor validity and both reconciliation statuses into one verdict."""
    if not anchors_valid or SealStatus.FAILED in (signatures, sign_invites):
        return SealStatus.FAILED
    if SealStatus.PENDING in (signatures, sign_invites):
        return SealStatus.PENDING
    return SealStatus.CONFIRMED


@dataclass
class SealReport:
    """Verdict for one seal plus the diagnostics that produced it."""
    seal_id: str
    status: SealStatus
    anchors: AnchorReport = field(default_factory=AnchorReport)
    signatures: SealStatus = SealStatus.CONFIRMED
    sign_invites: SealStatus = SealStatus.CONFIRMED
    errors: list[VerificationError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seal_id": self.seal_id,
            "status": self.status.value,
            "anchors": self.anchors.to_dict(),
            "signatures": self.signatures.value,
            "sign_invites": self.sign_invites.value,
            "errors": [e.to_dict() for e in self.errors],
        }


class SealValidator:
    """
    Validates seals against Ethereum nodes and a Bitcoin block explorer.

    Clients can be injected; by default one requests-backed Ethereum client
    is built per anchor node URL and one explorer client is shared.

    Usage:
        validator = SealValidator(ValidationOptions.from_env())
        status = validator.validate_seal_and_data(seal, "hello", DataType.STRING)
    """

    def __init__(
        self,
        options: Optional[ValidationOptions] = None,
        *,
        ethereum_client_factory: Optional[EthereumClientFactory] = None,
        bitcoin_client: Optional[BitcoinExplorerClient] = None,
    ) -> None:
        self.options = options or ValidationOptions()
        self.ethereum_client_for = ethereum_client_factory or make_ethereum_client_factory(self.options)
        self.bitcoin_client = bitcoin_client or BitcoinExplorerClient(self.options)

    def inspect_seal(self, seal: Seal | dict[str, Any]) -> SealReport:
        """
        Validate a seal and return the verdict with its diagnostics.

        Raises:
            MalformedSeal: If a seal dict cannot be parsed
            UnsupportedProtocol: If an anchor protocol is unknown
            RateLimited: If a remote API answered HTTP 429
        """
        seal = as_seal(seal)

        anchor_report = validate_anchors(
            seal.anchors,
            seal.data_hash,
            ethereum_client_for=self.ethereum_client_for,
            bitcoin_client=self.bitcoin_client,
            options=self.options,
        )
        errors = list(anchor_report.errors)
        signatures = validate_signatures(seal.signatures, self.ethereum_client_for, errors)
        sign_invites = validate_sign_invites(seal.sign_invites, self.ethereum_client_for, errors)

        status = combine_status(anchor_report.valid, signatures, sign_invites)
        logger.info(
            f"Seal {seal.id}: {status.value} (anchors valid={anchor_report.valid}, "
            f"signatures={signatures.value}, sign_invites={sign_invites.value})"
        )

        return SealReport(
            seal_id=seal.id,
            status=status,
            anchors=anchor_report,
            signatures=signatures,
            sign_invites=sign_invites,
            errors=errors,
        )

    def validate_seal(self, seal: Seal | dict[str, Any]) -> SealStatus:
        return self.inspect_seal(seal).status

    def inspect_seal_and_data(
        self,
        seal: Seal | dict[str, Any],
        data: Any,
        data_type: DataType | str,
    ) -> SealReport:
        """
        Check data against the seal's dataHash, then validate the seal.

        A digest mismatch returns FAILED without any network lookup.

        Raises:
            InvalidInputKind: If data does not match data_type
            UnsupportedDataType: If data_type is unknown
            StreamReadFailure: If a FILE stream cannot be read
        """
        seal = as_seal(seal)
        digest = hash_for_data(data, data_type)

        if digest != seal.data_hash:
            logger.info(f"Seal {seal.id}: data digest does not match dataHash")
            return SealReport(
                seal_id=seal.id,
                status=SealStatus.FAILED,
                errors=[VerificationError(
                    code=ErrorCode.DATA_HASH_MISMATCH,
                    message="Data digest does not match seal dataHash",
                    details={"expected": seal.data_hash, "actual": digest},
                )],
            )

        return self.inspect_seal(seal)

    def validate_seal_and_data(
        self,
        seal: Seal | dict[str, Any],
        data: Any,
        data_type: DataType | str,
    ) -> SealStatus:
        return self.inspect_seal_and_data(seal, data, data_type).status

    def resolve_seal(self, seal: Seal | dict[str, Any]) -> Seal:
        """
        Return a copy of the seal with confirmed signatures and sign-invites
        cached as CONFIRMED. The input seal is not modified.
        """
        seal = as_seal(seal)
        return replace(
            seal,
            signatures=resolve_signatures(seal.signatures, self.ethereum_client_for),
            sign_invites=resolve_sign_invites(seal.sign_invites, self.ethereum_client_for),
        )


def validate_seal(
    seal: Seal | dict[str, Any],
    options: Optional[ValidationOptions] = None,
) -> SealStatus:
    """Validate a seal with default clients."""
    return SealValidator(options).validate_seal(seal)


def validate_seal_and_data(
    seal: Seal | dict[str, Any],
    data: Any,
    data_type: DataType | str,
    options: Optional[ValidationOptions] = None,
) -> SealStatus:
    """Validate a seal and the data it claims to cover, with default clients."""
    return SealValidator(options).validate_seal_and_data(seal, data, data_type)


def resolve_seal(
    seal: Seal | dict[str, Any],
    options: Optional[ValidationOptions] = None,
) -> Seal:
    return SealValidator(options).resolve_seal(seal)
