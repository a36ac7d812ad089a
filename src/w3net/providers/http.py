# pylint: disable=missing-function-docstring
"""
HTTP provider for remote nodes.

- HttpProvider: posts JSON-RPC 2.0 requests with aiohttp, applying a total
  timeout and extra headers to every call.
- ``json_rpc_request_wrapper``: optional coroutine that receives each outgoing
  request and the default send behavior, so the request can be transformed (or
  answered) right before it goes over the wire.

Usage example:
    provider = await HttpProvider.create("https://rpc.sepolia.org", "sepolia", timeout=10)
    block_number = await provider.request("eth_blockNumber")
    await provider.close()

Notes:
- No request is ever retried here; retry policy belongs to the caller.
- The aiohttp session is created on first use and closed by ``close()``.
"""

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from .base import Provider
from ..exceptions import InvalidJsonResponse, ProviderConnectionError
from ..json_rpc import (
    failed_response_to_error,
    get_json_rpc_request,
    is_failed_json_rpc_response,
    parse_json_rpc_response,
)
from ..types import JsonRpcRequest, JsonRpcResponse, RequestParams

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20.0

SendJsonRpcRequest = Callable[[JsonRpcRequest], Awaitable[JsonRpcResponse]]
JsonRpcRequestWrapper = Callable[[JsonRpcRequest, SendJsonRpcRequest], Awaitable[JsonRpcResponse]]


class HttpProvider(Provider):
    """
    Provider talking JSON-RPC over HTTP(S).

    Attributes:
        url: Node endpoint
        network_name: Name of the network this provider serves, used in errors
    """

    def __init__(
        self,
        url: str,
        network_name: str,
        extra_headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        json_rpc_request_wrapper: Optional[JsonRpcRequestWrapper] = None,
    ) -> None:
        self.url = url
        self.network_name = network_name
        self._headers = {"Content-Type": "application/json", **(extra_headers or {})}
        self._timeout = timeout
        self._json_rpc_request_wrapper = json_rpc_request_wrapper
        self._request_ids = itertools.count(1)
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    async def create(
        cls,
        url: str,
        network_name: str,
        extra_headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        json_rpc_request_wrapper: Optional[JsonRpcRequestWrapper] = None,
    ) -> "HttpProvider":
        return cls(url, network_name, extra_headers, timeout, json_rpc_request_wrapper)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._headers,
            )
        return self._session

    async def request(self, method: str, params: RequestParams = None) -> Any:
        json_rpc_request = get_json_rpc_request(next(self._request_ids), method, params)

        if self._json_rpc_request_wrapper is not None:
            response = await self._json_rpc_request_wrapper(
                json_rpc_request, self._fetch_json_rpc_response
            )
        else:
            response = await self._fetch_json_rpc_response(json_rpc_request)

        if is_failed_json_rpc_response(response):
            raise failed_response_to_error(response)
        return response.get("result")

    async def _fetch_json_rpc_response(self, json_rpc_request: JsonRpcRequest) -> JsonRpcResponse:
        logger.debug("%s -> %s #%s", self.network_name, json_rpc_request["method"], json_rpc_request["id"])
        session = self._get_session()
        try:
            async with session.post(self.url, json=json_rpc_request) as resp:
                status = resp.status
                text = await resp.text()
        except asyncio.TimeoutError as e:
            raise ProviderConnectionError(
                self.network_name, self.url, f"no response after {self._timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise ProviderConnectionError(self.network_name, self.url, str(e)) from e

        try:
            response = parse_json_rpc_response(text)
        except InvalidJsonResponse:
            if status >= 400:
                raise ProviderConnectionError(self.network_name, self.url, f"HTTP {status}") from None
            raise

        if isinstance(response, list):
            # a single request must get a single response
            raise InvalidJsonResponse(text)
        return response

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def __repr__(self) -> str:
        return f"HttpProvider({self.network_name!r}, {self.url!r})"


__all__ = ["HttpProvider", "JsonRpcRequestWrapper", "SendJsonRpcRequest", "DEFAULT_TIMEOUT"]
