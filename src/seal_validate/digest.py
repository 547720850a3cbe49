"""
Subject-data digests.

A seal's dataHash is the SHA3-512 hex digest of the sealed bytes. Callers tag
their input with an explicit DataType; the shape is never inferred.
"""

import hashlib
from enum import Enum
from typing import Any

from .errors import InvalidInputKind, StreamReadFailure, UnsupportedDataType


# Read size for incremental stream hashing
CHUNK_SIZE = 64 * 1024


class DataType(str, Enum):
    STRING = "STRING"
    FILE = "FILE"
    HASH = "HASH"


def sha3_512_hex(data: bytes) -> str:
    """SHA3-512 of raw bytes as lowercase hex, no prefix."""
    return hashlib.sha3_512(data).hexdigest()


def _is_blob(data: Any) -> bool:
    return isinstance(data, (bytes, bytearray, memoryview))


def _is_stream(data: Any) -> bool:
    return not isinstance(data, str) and callable(getattr(data, "read", None))


def _hash_stream(stream: Any) -> str:
    hasher = hashlib.sha3_512()
    while True:
        try:
            chunk = stream.read(CHUNK_SIZE)
        except (OSError, ValueError) as exc:
            # ValueError covers reads from a closed file object
            raise StreamReadFailure(
                f"Could not read data stream: {exc}",
                details={"error": type(exc).__name__},
            ) from exc
        if not _is_blob(chunk):
            raise InvalidInputKind(
                f"Stream must yield bytes for {DataType.FILE.value}, got {type(chunk).__name__}",
                details={"data_type": DataType.FILE.value},
            )
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.hexdigest()


def _coerce_data_type(data_type: Any) -> DataType:
    if isinstance(data_type, DataType):
        return data_type
    try:
        return DataType(data_type)
    except ValueError:
        raise UnsupportedDataType(
            f"Unknown data type {data_type!r}",
            details={"data_type": str(data_type), "supported": [t.value for t in DataType]},
        )


def hash_for_data(data: Any, data_type: DataType | str) -> str:
    """
    Compute the digest a seal's dataHash is compared against.

    Args:
        data: A str (STRING, HASH), or a binary stream / bytes-like blob (FILE)
        data_type: Declared shape of data

    Returns:
        Lowercase SHA3-512 hex digest, or data itself for HASH

    Raises:
        InvalidInputKind: If data's shape does not match data_type
        UnsupportedDataType: If data_type is unknown
        StreamReadFailure: If reading a FILE stream fails
    """
    kind = _coerce_data_type(data_type)

    if kind == DataType.FILE:
        if _is_blob(data):
            return sha3_512_hex(bytes(data))
        if _is_stream(data):
            return _hash_stream(data)
        raise InvalidInputKind(
            f"Data must be a binary stream or blob for {kind.value}, got {type(data).__name__}",
            details={"data_type": kind.value},
        )

    if not isinstance(data, str):
        raise InvalidInputKind(
            f"Data cannot be a stream or blob for {kind.value}",
            details={"data_type": kind.value, "received": type(data).__name__},
        )

    if kind == DataType.STRING:
        return sha3_512_hex(data.encode("utf-8"))

    return data
