"""
Error codes and exception types for seal-validate.

Two kinds of failure exist. Misuse of the API (wrong input shape, unknown
data type or protocol) and explorer rate limiting raise exceptions. On-chain
absences and mismatches are folded into the seal verdict and reported as
VerificationError diagnostics.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Error and diagnostic codes.
    """
    # Raised
    INVALID_INPUT_KIND = "INVALID_INPUT_KIND"
    UNSUPPORTED_DATA_TYPE = "UNSUPPORTED_DATA_TYPE"
    UNSUPPORTED_PROTOCOL = "UNSUPPORTED_PROTOCOL"
    STREAM_READ_FAILURE = "STREAM_READ_FAILURE"
    MALFORMED_SEAL = "MALFORMED_SEAL"
    RATE_LIMITED = "RATE_LIMITED"
    # Raised by clients, recorded by validators
    NO_COMMITMENT_FOUND = "NO_COMMITMENT_FOUND"
    LOOKUP_FAILED = "LOOKUP_FAILED"
    LOOKUP_TIMEOUT = "LOOKUP_TIMEOUT"
    # Diagnostics only
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    COMMITMENT_MISMATCH = "COMMITMENT_MISMATCH"
    PROOF_INVALID = "PROOF_INVALID"
    RETIRED_NETWORK_SKIPPED = "RETIRED_NETWORK_SKIPPED"
    DATA_HASH_MISMATCH = "DATA_HASH_MISMATCH"


class SealValidationError(Exception):
    """Base class for all exceptions raised by seal-validate."""

    code: ErrorCode = ErrorCode.MALFORMED_SEAL

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_error(self) -> "VerificationError":
        return VerificationError(code=self.code, message=self.message, details=dict(self.details))


class InvalidInputKind(SealValidationError):
    """The data value's shape does not match the declared DataType."""
    code = ErrorCode.INVALID_INPUT_KIND


class UnsupportedDataType(SealValidationError):
    code = ErrorCode.UNSUPPORTED_DATA_TYPE


class UnsupportedProtocol(SealValidationError):
    code = ErrorCode.UNSUPPORTED_PROTOCOL


class StreamReadFailure(SealValidationError):
    code = ErrorCode.STREAM_READ_FAILURE


class MalformedSeal(SealValidationError):
    """The seal document is structurally invalid (missing fields, bad proof steps)."""
    code = ErrorCode.MALFORMED_SEAL


class NoCommitmentFound(SealValidationError):
    """A Bitcoin transaction has no output carrying an embedded data payload."""
    code = ErrorCode.NO_COMMITMENT_FOUND


class RateLimited(SealValidationError):
    """
    The remote API answered HTTP 429.

    Distinct from "transaction not found": the remedy is to back off or
    supply an API key, not to distrust the seal.
    """
    code = ErrorCode.RATE_LIMITED


class TransactionLookupFailure(SealValidationError):
    """A network or client error occurred while fetching a transaction."""
    code = ErrorCode.LOOKUP_FAILED

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        timed_out: bool = False,
    ):
        super().__init__(message, details)
        self.timed_out = timed_out

    def to_error(self) -> "VerificationError":
        code = ErrorCode.LOOKUP_TIMEOUT if self.timed_out else self.code
        return VerificationError(code=code, message=self.message, details=dict(self.details))


@dataclass
class VerificationError:
    """
    A single diagnostic with typed code and audit details.
    """
    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

