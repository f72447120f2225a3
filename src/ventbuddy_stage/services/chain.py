"""JSON-RPC client that watches for transaction receipts.

Payments are signed and submitted by the viewer's wallet; this client only
observes the chain to produce the explicit confirmation signal the core
requires before recording a grant.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import httpx
from eth_utils import function_signature_to_4byte_selector

from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.schemas.common import GrantType

from .payments import GatewayError, PaymentReceipt

logger = logging.getLogger(__name__)

WEI_PER_ETH = Decimal(10) ** 18
RECEIPT_STATUS_SUCCESS = "0x1"

# Payment contract entry points; each takes the post id as its only argument.
PAYMENT_SELECTORS: dict[str, GrantType] = {
    function_signature_to_4byte_selector("tipPost(uint256)").hex(): GrantType.TIP,
    function_signature_to_4byte_selector("unlockTippableContent(uint256)").hex(): GrantType.UNLOCK,
}


@dataclass(frozen=True)
class RpcConfig:
    """Immutable configuration for the RPC watcher."""

    url: str
    contract_address: str | None
    timeout_seconds: float
    poll_interval_seconds: float


def load_rpc_config() -> RpcConfig:
    """Build configuration object from global settings."""
    if not settings.rpc_url:
        raise GatewayError("RPC_URL is not configured")
    return RpcConfig(
        url=settings.rpc_url,
        contract_address=settings.payment_contract_address,
        timeout_seconds=float(settings.rpc_http_timeout_seconds),
        poll_interval_seconds=float(settings.payment_poll_interval_seconds),
    )


def wei_to_eth(value_hex: str) -> Decimal:
    """Convert a hex-encoded wei quantity to ETH."""
    return Decimal(int(value_hex, 16)) / WEI_PER_ETH


def decode_payment_call(calldata: str | None) -> tuple[GrantType, int] | None:
    """Return the grant type and post id encoded in payment calldata.

    Returns None when the calldata is not a call to a payment function.
    """
    data = (calldata or "").lower().removeprefix("0x")
    if len(data) != 8 + 64:
        return None
    grant_type = PAYMENT_SELECTORS.get(data[:8])
    if grant_type is None:
        return None
    try:
        return grant_type, int(data[8:], 16)
    except ValueError:
        return None


class JsonRpcConfirmer:
    """Polls an Ethereum JSON-RPC node for transaction outcomes."""

    def __init__(
        self,
        config: RpcConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_rpc_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def _call(self, method: str, params: list[Any]) -> Any:
        client = self._ensure_client()
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await client.post(self.config.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise GatewayError(f"RPC request {method} failed: {exc}") from exc

        body = response.json()
        if body.get("error"):
            raise GatewayError(f"RPC {method} returned error: {body['error']}")
        return body.get("result")

    async def _build_receipt(self, tx_hash: str, receipt: dict[str, Any]) -> PaymentReceipt:
        if receipt.get("status") != RECEIPT_STATUS_SUCCESS:
            return PaymentReceipt(
                tx_hash=tx_hash,
                status="reverted",
                error="Transaction was reverted by the smart contract.",
            )

        tx = await self._call("eth_getTransactionByHash", [tx_hash]) or {}
        expected = self.config.contract_address
        if expected and (tx.get("to") or "").lower() != expected.lower():
            return PaymentReceipt(
                tx_hash=tx_hash,
                status="reverted",
                error="Transaction was not sent to the payment contract.",
            )
        call = decode_payment_call(tx.get("input"))
        if call is None:
            return PaymentReceipt(
                tx_hash=tx_hash,
                status="reverted",
                error="Transaction did not call a payment function.",
            )
        grant_type, content_id = call
        value = wei_to_eth(tx["value"]) if tx.get("value") else None
        return PaymentReceipt(
            tx_hash=tx_hash,
            status="success",
            sender=tx.get("from"),
            content_id=content_id,
            grant_type=grant_type,
            value=value,
        )

    async def wait_for_confirmation(self, tx_hash: str, timeout: float) -> PaymentReceipt | None:
        """Poll until the transaction is mined or ``timeout`` seconds elapse."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            receipt = await self._call("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                result = await self._build_receipt(tx_hash, receipt)
                logger.info("Transaction %s confirmed with status %s", tx_hash, result.status)
                return result
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning("No receipt for %s within %.1fs", tx_hash, timeout)
                return None
            await asyncio.sleep(min(self.config.poll_interval_seconds, remaining))

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class _ConfirmerSingleton:
    """Singleton wrapper for JsonRpcConfirmer."""

    _instance: JsonRpcConfirmer | None = None

    @classmethod
    def get_instance(cls) -> JsonRpcConfirmer:
        """Get or create the singleton confirmer instance."""
        if cls._instance is None:
            cls._instance = JsonRpcConfirmer()
        return cls._instance

    @classmethod
    async def reset(cls) -> None:
        if cls._instance is not None:
            await cls._instance.close()
            cls._instance = None


def get_confirmer() -> JsonRpcConfirmer:
    """Return the shared RPC confirmer instance."""
    return _ConfirmerSingleton.get_instance()


async def close_confirmer() -> None:
    """Close the shared confirmer if one was created."""
    await _ConfirmerSingleton.reset()
