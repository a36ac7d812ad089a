# pylint: disable=no-name-in-module
"""
Network connection module for w3net.

A NetworkConnection binds a resolved network config to the provider created
for it. Every request made through the connection goes through the request
modifier (gas, gas price, chain id) before it reaches the provider.

Example:
    >>> async with await manager.connect("sepolia") as connection:
    ...     await connection.request("eth_sendTransaction", [{"from": sender, "to": to, "value": "0x1"}])
    ...     balance = await connection.web3.eth.get_balance(sender)
"""

import itertools
import logging
from typing import Any, Awaitable, Callable, Optional

from web3 import AsyncWeb3
from web3.middleware import AttributeDictMiddleware, ValidationMiddleware
from web3.providers import AsyncBaseProvider
from web3.types import RPCEndpoint, RPCResponse

from .config import NetworkConfig
from .exceptions import ProviderConnectionError, ProviderError
from .json_rpc import get_request_params
from .providers.base import Provider
from .request_modifiers import JsonRpcRequestModifier
from .types import RequestParams

logger = logging.getLogger(__name__)


CloseConnection = Callable[["NetworkConnection"], Awaitable[None]]
CreateProvider = Callable[["NetworkConnection"], Awaitable[Provider]]


class NetworkConnection:
    """
    A live connection to one network.

    Attributes:
        id: Connection identifier, unique per NetworkManager
        network_name: Name of the network in the config
        chain_type: Resolved chain type
        network_config: Network config with the connection override applied
    """

    _DEFAULT_MIDDLEWARE = [
        AttributeDictMiddleware,
        ValidationMiddleware,
    ]

    def __init__(
        self,
        id: int,
        network_name: str,
        chain_type: str,
        network_config: NetworkConfig,
        close_connection: CloseConnection,
    ) -> None:
        self.id = id
        self.network_name = network_name
        self.chain_type = chain_type
        self.network_config = network_config
        self._close_connection = close_connection

        self._provider: Optional[Provider] = None
        self._modifier: Optional[JsonRpcRequestModifier] = None
        self._web3: Optional[AsyncWeb3] = None

    @classmethod
    async def create(
        cls,
        id: int,
        network_name: str,
        chain_type: str,
        network_config: NetworkConfig,
        close_connection: CloseConnection,
        create_provider: CreateProvider,
    ) -> "NetworkConnection":
        """
        Create a connection and its provider.

        ``create_provider`` receives the connection itself, so the provider can
        refer back to it (e.g. in request hooks).
        """
        connection = cls(id, network_name, chain_type, network_config, close_connection)
        connection._provider = await create_provider(connection)
        logger.debug("Opened %s", connection)
        return connection

    @property
    def provider(self) -> Provider:
        if self._provider is None:
            raise RuntimeError(f"{self} has no provider yet")
        return self._provider

    @property
    def modifier(self) -> JsonRpcRequestModifier:
        if self._modifier is None:
            self._modifier = JsonRpcRequestModifier(self.provider, self.network_config)
        return self._modifier

    @property
    def web3(self) -> AsyncWeb3:
        """AsyncWeb3 instance whose requests go through this connection."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(
                ConnectionWeb3Provider(self),
                middleware=self._DEFAULT_MIDDLEWARE,
            )
        return self._web3

    async def request(self, method: str, params: RequestParams = None) -> Any:
        """
        Send a request through the modifier pipeline and return its result.

        Raises:
            InvalidRequestParams: If params are neither a list nor None
            InvalidGlobalChainId: If the node is on another chain than configured
            ProviderError: If the node answers with an error
        """
        request_arguments = {
            "method": method,
            "params": get_request_params({"method": method, "params": params}),
        }
        modified = await self.modifier.create_modified_json_rpc_request(request_arguments)
        return await self.provider.request(modified["method"], modified["params"])

    async def close(self) -> None:
        logger.debug("Closing %s", self)
        await self._close_connection(self)

    async def __aenter__(self) -> "NetworkConnection":
        return self

    async def __aexit__(self, *args, **kwargs) -> None:
        await self.close()

    def __str__(self) -> str:
        return f"NetworkConnection#{self.id}({self.network_name})"

    def __repr__(self) -> str:
        return (
            f"NetworkConnection(id={self.id}, network_name={self.network_name!r}, "
            f"chain_type={self.chain_type!r}, type={self.network_config.type!r})"
        )


class ConnectionWeb3Provider(AsyncBaseProvider):
    """
    web3.py provider that sends everything through a NetworkConnection.

    Node errors are handed back to web3 as JSON-RPC error responses so web3
    raises its usual exceptions.
    """

    def __init__(self, connection: NetworkConnection) -> None:
        super().__init__()
        self._connection = connection
        self._request_ids = itertools.count()

    async def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        request_id = next(self._request_ids)
        try:
            result = await self._connection.request(
                method, list(params) if params is not None else None
            )
        except ProviderError as e:
            error = {"code": e.code, "message": e.message}
            if e.data is not None:
                error["data"] = e.data
            return RPCResponse(jsonrpc="2.0", id=request_id, error=error)
        return RPCResponse(jsonrpc="2.0", id=request_id, result=result)

    async def is_connected(self, show_traceback: bool = False) -> bool:
        try:
            await self._connection.request("web3_clientVersion")
        except (ProviderError, ProviderConnectionError):
            if show_traceback:
                raise
            return False
        return True


__all__ = ["NetworkConnection", "ConnectionWeb3Provider"]
