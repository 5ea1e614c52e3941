"""
Nexus provider for chain-abstracted bridges, transfers and contract calls.

Talks to a Nexus gateway over HTTP. A session is opened once per user
address and its id is sent with every later request; the gateway holds the
signer and submits the transactions.

Usage:
    provider = get_nexus_provider()
    await provider.initialize("0x...")

    quote = await provider.simulate_bridge(BridgeRequest("USDC", "100", 11155111))
    result = await provider.bridge(BridgeRequest("USDC", "100", 11155111))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.flow.errors import BackendNotInitializedError, NexusApiError
from ..core.nexus.backend import (
    BridgeAndExecuteRequest,
    BridgeAndExecuteResponse,
    BridgeRequest,
    ChainAbstractionBackend,
    ExecuteRequest,
    TransactionResponse,
    TransferRequest,
    UserAsset,
)

logger = logging.getLogger(__name__)

SESSION_HEADER = "x-nexus-session"


@dataclass
class NexusConfig:
    """Nexus provider configuration."""
    base_url: str = "http://127.0.0.1:8787"
    api_key: str = ""  # Optional for a local gateway
    network: str = "testnet"
    timeout_s: float = 30.0


class NexusProvider(ChainAbstractionBackend):
    """
    HTTP backend for the flow engine.

    Provides:
    - Session setup for a user address
    - Simulate and perform for bridge, transfer, execute and bridge-and-execute
    - Unified multi-chain balance queries
    """

    name = "nexus"

    def __init__(
        self,
        config: Optional[NexusConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or NexusConfig(
            base_url=settings.nexus_base_url,
            api_key=settings.nexus_api_key,
            network=settings.nexus_network,
            timeout_s=settings.request_timeout_seconds,
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._session_id: Optional[str] = None
        self._user_address: Optional[str] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Content-Type": "application/json",
                "User-Agent": "IntentCompass/0.1",
            }
            if self._config.api_key:
                headers["x-api-key"] = self._config.api_key

            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers=headers,
                timeout=self._config.timeout_s,
                transport=self._transport,
            )
        return self._client

    @property
    def user_address(self) -> Optional[str]:
        return self._user_address

    @property
    def network(self) -> str:
        return self._config.network

    def is_initialized(self) -> bool:
        return self._session_id is not None

    async def initialize(self, user_address: str) -> None:
        data = await self._request(
            "POST",
            "/v1/sessions",
            json={"userAddress": user_address, "network": self._config.network},
            session=False,
        )
        session_id = data.get("sessionId")
        if not session_id:
            raise NexusApiError("Session response did not include a sessionId")
        self._session_id = session_id
        self._user_address = user_address
        logger.info(f"Nexus session opened for {user_address} on {self._config.network}")

    async def health_check(self) -> Dict[str, Any]:
        """Check Nexus gateway health."""
        try:
            client = self._get_client()
            response = await client.get("/health")
            if response.status_code == 200:
                return {"status": "healthy", "initialized": self.is_initialized()}
            return {"status": "degraded", "code": response.status_code}
        except httpx.RequestError as e:
            return {"status": "error", "reason": str(e)}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        session: bool = True,
    ) -> Dict[str, Any]:
        headers: Dict[str, str] = {}
        if session:
            if self._session_id is None:
                raise BackendNotInitializedError()
            headers[SESSION_HEADER] = self._session_id

        try:
            client = self._get_client()
            response = await client.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Nexus request {method} {path} failed: {e}")
            raise NexusApiError(f"Request failed: {e}") from e

        if response.status_code not in (200, 201):
            error_text = response.text
            logger.error(f"Nexus {method} {path} failed: {response.status_code} - {error_text}")
            raise NexusApiError(
                f"{method} {path} failed: {error_text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Nexus {method} {path} returned non-JSON body: {e}")
            raise NexusApiError(
                f"Invalid JSON from {path}",
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise NexusApiError(f"Unexpected response from {path}: {data!r}")
        return data

    def _execute_payload(self, request: ExecuteRequest, token: str, amount: str) -> Dict[str, Any]:
        return request.to_payload(token=token, amount=amount, user_address=self._user_address or "")

    async def simulate_bridge(self, request: BridgeRequest) -> Dict[str, Any]:
        return await self._request("POST", "/v1/bridge/simulate", json=request.to_payload())

    async def bridge(self, request: BridgeRequest) -> TransactionResponse:
        data = await self._request("POST", "/v1/bridge", json=request.to_payload())
        return TransactionResponse.model_validate(data)

    async def simulate_transfer(self, request: TransferRequest) -> Dict[str, Any]:
        return await self._request("POST", "/v1/transfer/simulate", json=request.to_payload())

    async def transfer(self, request: TransferRequest) -> TransactionResponse:
        data = await self._request("POST", "/v1/transfer", json=request.to_payload())
        return TransactionResponse.model_validate(data)

    async def simulate_execute(self, request: ExecuteRequest, *, token: str, amount: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/v1/execute/simulate", json=self._execute_payload(request, token, amount)
        )

    async def execute(self, request: ExecuteRequest, *, token: str, amount: str) -> TransactionResponse:
        data = await self._request("POST", "/v1/execute", json=self._execute_payload(request, token, amount))
        return TransactionResponse.model_validate(data)

    async def simulate_bridge_and_execute(self, request: BridgeAndExecuteRequest) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/v1/bridge-and-execute/simulate",
            json=request.to_payload(self._user_address or ""),
        )

    async def bridge_and_execute(self, request: BridgeAndExecuteRequest) -> BridgeAndExecuteResponse:
        data = await self._request(
            "POST",
            "/v1/bridge-and-execute",
            json=request.to_payload(self._user_address or ""),
        )
        return BridgeAndExecuteResponse.model_validate(data)

    async def get_unified_balances(self) -> List[UserAsset]:
        data = await self._request("GET", "/v1/balances")
        return [UserAsset.model_validate(asset) for asset in data.get("assets", [])]

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance
_nexus_provider: Optional[NexusProvider] = None


def get_nexus_provider() -> NexusProvider:
    """Get the singleton Nexus provider instance."""
    global _nexus_provider
    if _nexus_provider is None:
        _nexus_provider = NexusProvider()
    return _nexus_provider
