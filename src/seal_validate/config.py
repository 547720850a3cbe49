"""
Validation options.

Options can be built programmatically, from a camelCase options dict as
accepted by the sealing service's own tooling, or from environment variables
(optionally loaded from a .env file).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from dotenv import load_dotenv


DEFAULT_BITCOIN_EXPLORER_URLS = {
    "mainnet": "https://api.blockcypher.com/v1/btc/main",
    "testnet": "https://api.blockcypher.com/v1/btc/test3",
}

# Ethereum networks that have been shut down. Anchors on them cannot be
# looked up anymore; the same commitment also lives on a live chain in the
# same seal.
RETIRED_NETWORK_MARKERS = ("ropsten", "rinkeby", "kovan", "morden", "goerli")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ValidationOptions:
    """Endpoints, credentials and behaviour switches for seal validation."""
    bitcoin_explorer_url: Optional[str] = None
    bitcoin_api_key: Optional[str] = None
    ethereum_api_key: Optional[str] = None
    timeout: float = 30.0
    skip_retired_networks: bool = True
    retired_network_markers: tuple[str, ...] = field(default=RETIRED_NETWORK_MARKERS)
    max_workers: int = 1

    def explorer_url_for(self, network: str) -> str:
        """Base explorer URL for a Bitcoin network; an explicit override wins."""
        if self.bitcoin_explorer_url:
            return self.bitcoin_explorer_url.rstrip("/")
        return DEFAULT_BITCOIN_EXPLORER_URLS.get(network, DEFAULT_BITCOIN_EXPLORER_URLS["mainnet"])

    def is_retired_network(self, node_url: str) -> bool:
        url = (node_url or "").lower()
        return any(marker in url for marker in self.retired_network_markers)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ValidationOptions:
        """
        Build options from a camelCase mapping.

        Recognized keys: bitcoinExplorerUrl (or legacy bitcoinUrl),
        bitcoinApiKey, ethereumApiKey, timeout, skipRetiredNetworks,
        maxWorkers. Unknown keys are ignored.
        """
        data = data or {}
        options = cls()
        if data.get("bitcoinExplorerUrl") or data.get("bitcoinUrl"):
            options.bitcoin_explorer_url = data.get("bitcoinExplorerUrl") or data.get("bitcoinUrl")
        if data.get("bitcoinApiKey"):
            options.bitcoin_api_key = data["bitcoinApiKey"]
        if data.get("ethereumApiKey"):
            options.ethereum_api_key = data["ethereumApiKey"]
        if data.get("timeout") is not None:
            options.timeout = float(data["timeout"])
        if data.get("skipRetiredNetworks") is not None:
            options.skip_retired_networks = bool(data["skipRetiredNetworks"])
        if data.get("maxWorkers") is not None:
            options.max_workers = int(data["maxWorkers"])
        return options

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Read configuration overrides from environment variables.

        Supported variables:
        - SEAL_BITCOIN_EXPLORER_URL: Bitcoin explorer base URL
        - SEAL_BITCOIN_API_KEY: Explorer API token
        - SEAL_ETHEREUM_API_KEY: Ethereum node API key
        - SEAL_HTTP_TIMEOUT: Per-request timeout in seconds
        - SEAL_SKIP_RETIRED_NETWORKS: Accept anchors on retired networks (true/false)
        - SEAL_MAX_WORKERS: Parallel anchor lookups
        """
        overrides: dict[str, Any] = {}

        if url := os.getenv("SEAL_BITCOIN_EXPLORER_URL"):
            overrides["bitcoin_explorer_url"] = url
        if key := os.getenv("SEAL_BITCOIN_API_KEY"):
            overrides["bitcoin_api_key"] = key
        if key := os.getenv("SEAL_ETHEREUM_API_KEY"):
            overrides["ethereum_api_key"] = key
        if timeout := os.getenv("SEAL_HTTP_TIMEOUT"):
            overrides["timeout"] = float(timeout)
        if skip := os.getenv("SEAL_SKIP_RETIRED_NETWORKS"):
            overrides["skip_retired_networks"] = _env_bool(skip)
        if workers := os.getenv("SEAL_MAX_WORKERS"):
            overrides["max_workers"] = int(workers)

        return overrides

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> ValidationOptions:
        """Build options from the environment after loading a .env file."""
        load_dotenv(dotenv_path)
        return replace(cls(), **cls._get_env_overrides())
