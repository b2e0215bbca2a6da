"""Asynchronous JSON-RPC access to Ethereum-compatible chains."""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from typing import Any

import httpx

from .abi import AbiError, decode_values, encode_call, parse_address

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
DEFAULT_TIMEOUT_SECS = 30.0

_AGGREGATE3 = "aggregate3((address,bool,bytes)[])"


class RpcError(Exception):
    """Raised when a JSON-RPC request fails or returns malformed data."""

    def __init__(self, message: str, code: Any = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


def _validate_url(url: str) -> None:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ValueError(f"invalid RPC URL: {url!r}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"invalid RPC URL: {url!r}")


def _hex_to_bytes(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise RpcError(f"expected hex data, got {value!r}")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as exc:
        raise RpcError(f"invalid hex data: {value!r}") from exc


def _quantity(value: Any) -> int:
    if not isinstance(value, str) or not value.startswith("0x") or len(value) < 3:
        raise RpcError(f"expected a hex quantity, got {value!r}")
    try:
        return int(value[2:], 16)
    except ValueError as exc:
        raise RpcError(f"invalid hex quantity: {value!r}") from exc


class JsonRpcProvider:
    """An HTTP JSON-RPC endpoint of an Ethereum-compatible chain."""

    def __init__(self, url: str, timeout: float | None = DEFAULT_TIMEOUT_SECS) -> None:
        _validate_url(url)
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "JsonRpcProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connections."""
        await self._client.aclose()

    async def request(self, method: str, params: Iterable[Any] = ()) -> Any:
        """Send one JSON-RPC request and return its result."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise RpcError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"{method}: response is not valid JSON") from exc

        if not isinstance(body, dict):
            raise RpcError(f"{method}: malformed JSON-RPC response")
        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcError(
                    str(error.get("message", "JSON-RPC error")),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(str(error))
        if "result" not in body:
            raise RpcError(f"{method}: response has no result")
        return body["result"]

    async def get_gas_price(self) -> int:
        """The current gas price in wei."""
        return _quantity(await self.request("eth_gasPrice", []))

    async def call(self, to: str, data: bytes) -> bytes:
        """Run a read-only call against the latest block."""
        result = await self.request(
            "eth_call",
            [{"to": parse_address(to), "data": "0x" + bytes(data).hex()}, "latest"],
        )
        return _hex_to_bytes(result)

    async def multicall(
        self,
        calls: Iterable[tuple[str, bytes]],
        multicall_address: str | None = None,
    ) -> list[bytes]:
        """Run several calls in one request through Multicall3; all must succeed."""
        batch = [(parse_address(target), False, bytes(data)) for target, data in calls]
        if not batch:
            return []
        target = multicall_address or MULTICALL3_ADDRESS
        raw = await self.call(target, encode_call(_AGGREGATE3, batch))
        try:
            (results,) = decode_values(["(bool,bytes)[]"], raw)
        except AbiError as exc:
            raise RpcError("malformed multicall response") from exc
        if len(results) != len(batch):
            raise RpcError(
                f"multicall returned {len(results)} results for {len(batch)} calls"
            )
        failed = [index for index, (success, _) in enumerate(results) if not success]
        if failed:
            raise RpcError(f"multicall sub-call {failed[0]} failed")
        return [data for _, data in results]


def create_ethereum_provider(rpc_url: str) -> JsonRpcProvider:
    """A provider for Ethereum mainnet."""
    return JsonRpcProvider(rpc_url)


def create_base_provider(rpc_url: str) -> JsonRpcProvider:
    """A provider for Base."""
    return JsonRpcProvider(rpc_url)