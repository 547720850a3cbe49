"""
seal-validate: Independent verification of blockchain-anchored seals.

Checks that a seal's data digest is committed on Ethereum and/or Bitcoin
through a Merkle inclusion proof, and reconciles signer and sign-invite
commitments into one CONFIRMED / PENDING / FAILED verdict, without trusting
the service that produced the seal.
"""

from .config import ValidationOptions
from .digest import DataType, hash_for_data
from .hexcodec import add_hex_prefix
from .merkle import compute_root, validate_proof
from .models import (
    Anchor,
    InviteProof,
    NetworkName,
    ProofStep,
    Protocol,
    Seal,
    SealStatus,
    SignatureEntry,
    SignInviteAnchor,
)
from .clients import BitcoinExplorerClient, EthereumRpcClient
from .validate import (
    SealReport,
    SealValidator,
    combine_status,
    resolve_seal,
    validate_seal,
    validate_seal_and_data,
)
from .summary import seal_summary, format_seal_summary
from .errors import (
    ErrorCode,
    InvalidInputKind,
    MalformedSeal,
    NoCommitmentFound,
    RateLimited,
    SealValidationError,
    StreamReadFailure,
    TransactionLookupFailure,
    UnsupportedDataType,
    UnsupportedProtocol,
    VerificationError,
)

__version__ = "0.1.0"
__all__ = [
    # Configuration
    "ValidationOptions",
    # Data
    "DataType",
    "hash_for_data",
    "add_hex_prefix",
    # Merkle proofs
    "compute_root",
    "validate_proof",
    # Model
    "Anchor",
    "InviteProof",
    "NetworkName",
    "ProofStep",
    "Protocol",
    "Seal",
    "SealStatus",
    "SignatureEntry",
    "SignInviteAnchor",
    # Clients
    "BitcoinExplorerClient",
    "EthereumRpcClient",
    # Validation
    "SealReport",
    "SealValidator",
    "combine_status",
    "resolve_seal",
    "validate_seal",
    "validate_seal_and_data",
    # Summary
    "seal_summary",
    "format_seal_summary",
    # Errors
    "ErrorCode",
    "InvalidInputKind",
    "MalformedSeal",
    "NoCommitmentFound",
    "RateLimited",
    "SealValidationError",
    "StreamReadFailure",
    "TransactionLookupFailure",
    "UnsupportedDataType",
    "UnsupportedProtocol",
    "VerificationError",
]
