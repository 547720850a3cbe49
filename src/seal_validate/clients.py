"""
Transaction lookup clients.

Two collaborators fetch what a seal claims was written on-chain:

- EthereumRpcClient: JSON-RPC eth_getTransactionByHash against a node URL
- BitcoinExplorerClient: GET {base}/txs/{txId} against a block explorer

Both return None when the transaction does not exist, raise RateLimited on
HTTP 429 and TransactionLookupFailure for any other transport or protocol
error. Neither retries.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from .config import ValidationOptions
from .errors import NoCommitmentFound, RateLimited, TransactionLookupFailure
from .hexcodec import add_hex_prefix

logger = logging.getLogger(__name__)


@dataclass
class EthereumTransaction:
    hash: str
    payload: str
    block_number: Optional[int] = None


@dataclass
class BitcoinTransaction:
    hash: str
    outputs: list[dict[str, Any]] = field(default_factory=list)

    def commitment(self) -> str:
        """
        Return the data payload of the last output that carries one.

        Commitments are appended, so when several outputs embed data the
        last one is the anchored root.

        Raises:
            NoCommitmentFound: If no output carries data_hex
        """
        data_outputs = [
            out["data_hex"]
            for out in self.outputs
            if isinstance(out, dict) and out.get("data_hex") is not None
        ]
        if not data_outputs:
            raise NoCommitmentFound(
                f"Transaction {self.hash} has no output with embedded data",
                details={"transaction_id": self.hash, "outputs": len(self.outputs)},
            )
        return data_outputs[-1]


def _parse_block_number(value: Any) -> Optional[int]:
    if isinstance(value, str):
        try:
            return int(value, 16)
        except ValueError:
            return None
    return value if isinstance(value, int) else None


def _send(
    session: requests.Session,
    method: str,
    url: str,
    *,
    what: str,
    timeout: float,
    **kwargs: Any,
) -> requests.Response:
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise TransactionLookupFailure(
            f"Timed out fetching {what}",
            details={"url": url},
            timed_out=True,
        ) from e
    except requests.RequestException as e:
        raise TransactionLookupFailure(
            f"Request for {what} failed: {e}",
            details={"url": url},
        ) from e

    if response.status_code == 429:
        raise RateLimited(
            f"Too many requests to {url}; add an API key or upgrade your plan",
            details={"url": url, "status_code": 429},
        )
    return response


def _json_object(response: requests.Response, what: str) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise TransactionLookupFailure(
            f"Invalid JSON in response for {what}",
            details={"status_code": response.status_code},
        ) from e
    if not isinstance(body, dict):
        raise TransactionLookupFailure(
            f"Expected a JSON object in response for {what}, got {type(body).__name__}",
            details={"status_code": response.status_code},
        )
    return body


class _SessionPerThread:
    """Hands each thread its own requests.Session; sessions are not thread-safe."""

    def __init__(self) -> None:
        self._local = threading.local()

    def get(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session


class EthereumRpcClient:
    """
    Minimal JSON-RPC client for one Ethereum node.

    Usage:
        client = EthereumRpcClient("https://mainnet.infura.io/v3/...")
        tx = client.get_transaction("0xabc...")
        if tx is not None:
            print(tx.payload)
    """

    def __init__(
        self,
        node_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.node_url = node_url
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()
        self._request_id = 0

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def get_transaction(self, transaction_id: str) -> Optional[EthereumTransaction]:
        """
        Fetch a transaction by hash.

        Returns:
            The transaction, or None if the node does not know it

        Raises:
            RateLimited: On HTTP 429
            TransactionLookupFailure: On transport, HTTP or JSON-RPC errors
        """
        tx_hash = add_hex_prefix(transaction_id)
        self._request_id += 1
        what = f"ethereum transaction {tx_hash}"
        logger.debug(f"Fetching {what} from {self.node_url}")

        response = _send(
            self._session,
            "POST",
            self.node_url,
            what=what,
            timeout=self.timeout,
            headers=self._headers(),
            json={
                "jsonrpc": "2.0",
                "id": self._request_id,
                "method": "eth_getTransactionByHash",
                "params": [tx_hash],
            },
        )
        if not response.ok:
            raise TransactionLookupFailure(
                f"HTTP {response.status_code} fetching {what}",
                details={"url": self.node_url, "status_code": response.status_code},
            )

        body = _json_object(response, what)
        if body.get("error"):
            raise TransactionLookupFailure(
                f"JSON-RPC error fetching {what}: {body['error']}",
                details={"url": self.node_url, "error": body["error"]},
            )

        result = body.get("result")
        if result is None:
            return None
        if not isinstance(result, dict):
            raise TransactionLookupFailure(
                f"Malformed JSON-RPC result for {what}",
                details={"url": self.node_url, "result_type": type(result).__name__},
            )

        return EthereumTransaction(
            hash=result.get("hash", tx_hash),
            payload=result.get("input") or result.get("data") or "",
            block_number=_parse_block_number(result.get("blockNumber")),
        )


class BitcoinExplorerClient:
    """
    Block-explorer client (BlockCypher-compatible API).

    The API key, when configured, is sent as the "token" query parameter.
    """

    def __init__(
        self,
        options: Optional[ValidationOptions] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.options = options or ValidationOptions()
        self._session = session
        self._thread_sessions = _SessionPerThread()

    @property
    def session(self) -> requests.Session:
        """The injected session, or one owned by the calling thread."""
        if self._session is not None:
            return self._session
        return self._thread_sessions.get()

    def transaction_url(self, transaction_id: str, network: str = "mainnet") -> str:
        return f"{self.options.explorer_url_for(network)}/txs/{transaction_id}"

    def get_transaction(self, transaction_id: str, network: str = "mainnet") -> Optional[BitcoinTransaction]:
        """
        Fetch a transaction with its outputs.

        Returns:
            The transaction, or None on HTTP 404

        Raises:
            RateLimited: On HTTP 429
            TransactionLookupFailure: On other transport or HTTP errors
        """
        url = self.transaction_url(transaction_id, network)
        params = {"token": self.options.bitcoin_api_key} if self.options.bitcoin_api_key else None
        what = f"bitcoin transaction {transaction_id}"
        logger.debug(f"Fetching {what} from {url}")

        response = _send(
            self.session,
            "GET",
            url,
            what=what,
            timeout=self.options.timeout,
            params=params,
        )
        if response.status_code == 404:
            return None
        if not response.ok:
            raise TransactionLookupFailure(
                f"HTTP {response.status_code} fetching {what}",
                details={"url": url, "status_code": response.status_code},
            )

        body = _json_object(response, what)
        outputs = body.get("outputs") or []
        if not isinstance(outputs, list):
            raise TransactionLookupFailure(
                f"Malformed outputs in response for {what}",
                details={"url": url, "outputs_type": type(outputs).__name__},
            )
        return BitcoinTransaction(
            hash=body.get("hash", transaction_id),
            outputs=list(outputs),
        )


EthereumClientFactory = Callable[[str], EthereumRpcClient]


def make_ethereum_client_factory(
    options: Optional[ValidationOptions] = None,
    session: Optional[requests.Session] = None,
) -> EthereumClientFactory:
    """
    Return a factory building one EthereumRpcClient per node URL.

    Without an explicit session, clients built on the same thread share that
    thread's session, so anchor lookups fanned out to a pool never share one.
    """
    options = options or ValidationOptions()
    thread_sessions = _SessionPerThread()

    def factory(node_url: str) -> EthereumRpcClient:
        return EthereumRpcClient(
            node_url,
            api_key=options.ethereum_api_key,
            timeout=options.timeout,
            session=session if session is not None else thread_sessions.get(),
        )

    return factory
