"""
Network manager module for w3net.

The NetworkManager resolves a network name (plus an optional per-connection
config override) into a NetworkConnection backed by the right provider.

Example:
    >>> manager = NetworkManager.from_config({
    ...     "networks": {
    ...         "sepolia": {"type": "http", "url": "https://rpc.sepolia.org", "chain_id": 11155111},
    ...     },
    ... })
    >>> connection = await manager.connect("sepolia", network_config_override={"timeout": 5})
    >>> connection.id
    0
"""

import itertools
import logging
from typing import Any, Dict, Mapping, Optional, Union

from .config import (
    DEFAULT_CHAIN_TYPE,
    DEFAULT_NETWORK_NAME,
    NETWORK_TYPES,
    HttpNetworkConfig,
    LocalNetworkConfig,
    NetworkConfig,
    apply_config_override,
    resolve_user_config,
    validate_network_config,
)
from .connection import NetworkConnection
from .exceptions import InvalidChainType, InvalidNetworkConfig, InvalidNetworkType, NetworkNotFound
from .hooks import HookManager
from .providers.base import Provider
from .providers.http import HttpProvider, SendJsonRpcRequest
from .providers.local import LocalProvider
from .types import JsonRpcRequest, JsonRpcResponse

logger = logging.getLogger(__name__)

HOOK_CATEGORY = "network"


def _coerce_network_config(network_name: str, network_config: Union[NetworkConfig, Mapping[str, Any]]) -> NetworkConfig:
    if isinstance(network_config, (HttpNetworkConfig, LocalNetworkConfig)):
        return network_config

    network_type = network_config.get("type")
    if network_type not in NETWORK_TYPES:
        raise InvalidNetworkType(network_name, network_type)
    resolved, errors = validate_network_config(network_config)
    if resolved is None:
        raise InvalidNetworkConfig(network_name, errors)
    return resolved


class NetworkManager:
    """
    Creates NetworkConnections from declared network configs.

    Connection ids start at 0 and grow by one with every connection, closed
    ones included.
    """

    def __init__(
        self,
        default_network: str = DEFAULT_NETWORK_NAME,
        default_chain_type: str = DEFAULT_CHAIN_TYPE,
        network_configs: Optional[Mapping[str, Union[NetworkConfig, Mapping[str, Any]]]] = None,
        hook_manager: Optional[HookManager] = None,
    ) -> None:
        self._default_network = default_network
        self._default_chain_type = default_chain_type
        self._network_configs: Dict[str, NetworkConfig] = {
            name: _coerce_network_config(name, config)
            for name, config in (network_configs or {}).items()
        }
        self._hook_manager = hook_manager if hook_manager is not None else HookManager()
        self._connection_ids = itertools.count()

    @classmethod
    def from_config(
        cls,
        user_config: Mapping[str, Any],
        hook_manager: Optional[HookManager] = None,
    ) -> "NetworkManager":
        """Build a manager from a raw user config (built-in networks included)."""
        config = resolve_user_config(user_config)
        return cls(config.default_network, config.default_chain_type, config.networks, hook_manager)

    @property
    def hook_manager(self) -> HookManager:
        return self._hook_manager

    @property
    def network_configs(self) -> Dict[str, NetworkConfig]:
        return dict(self._network_configs)

    async def connect(
        self,
        network_name: Optional[str] = None,
        chain_type: Optional[str] = None,
        network_config_override: Optional[Mapping[str, Any]] = None,
    ) -> NetworkConnection:
        """
        Open a connection to a declared network.

        Args:
            network_name: Declared network, the default network when omitted
            chain_type: Expected chain type, taken from the config or the
                manager default when omitted
            network_config_override: Fields applied on top of the declared config

        Raises:
            NetworkNotFound: If the network isn't declared
            InvalidConfigOverride: If the override changes the network type or
                produces an invalid config
            InvalidChainType: If ``chain_type`` conflicts with the configured one
        """
        async def initialize():
            return await self._initialize_network_connection(
                network_name, chain_type, network_config_override
            )

        return await self._hook_manager.run_handler_chain(
            HOOK_CATEGORY, "newConnection", (), initialize
        )

    async def _initialize_network_connection(
        self,
        network_name: Optional[str],
        chain_type: Optional[str],
        network_config_override: Optional[Mapping[str, Any]],
    ) -> NetworkConnection:
        resolved_network_name = network_name if network_name is not None else self._default_network
        if resolved_network_name not in self._network_configs:
            raise NetworkNotFound(resolved_network_name)

        resolved_network_config = apply_config_override(
            self._network_configs[resolved_network_name], network_config_override
        )

        if chain_type is not None:
            resolved_chain_type = chain_type
        elif resolved_network_config.chain_type is not None:
            resolved_chain_type = resolved_network_config.chain_type
        else:
            resolved_chain_type = self._default_chain_type
        if (resolved_network_config.chain_type is not None
                and resolved_chain_type != resolved_network_config.chain_type):
            raise InvalidChainType(
                resolved_network_name, resolved_chain_type, resolved_network_config.chain_type
            )

        # only the hook manager is captured by the closures below
        hook_manager = self._hook_manager

        async def create_provider(connection: NetworkConnection) -> Provider:
            if isinstance(resolved_network_config, LocalNetworkConfig):
                return await LocalProvider.create(resolved_network_config)
            if isinstance(resolved_network_config, HttpNetworkConfig):
                async def json_rpc_request_wrapper(
                    request: JsonRpcRequest,
                    default_behavior: SendJsonRpcRequest,
                ) -> JsonRpcResponse:
                    async def send(_connection: NetworkConnection, req: JsonRpcRequest) -> JsonRpcResponse:
                        return await default_behavior(req)

                    return await hook_manager.run_handler_chain(
                        HOOK_CATEGORY, "onRequest", (connection, request), send
                    )

                return await HttpProvider.create(
                    url=resolved_network_config.url,
                    network_name=resolved_network_name,
                    extra_headers=resolved_network_config.http_headers,
                    timeout=resolved_network_config.timeout,
                    json_rpc_request_wrapper=json_rpc_request_wrapper,
                )
            raise InvalidNetworkType(resolved_network_name, getattr(resolved_network_config, "type", None))

        async def close_connection(connection: NetworkConnection) -> None:
            async def close_provider(conn: NetworkConnection) -> None:
                await conn.provider.close()

            await hook_manager.run_handler_chain(
                HOOK_CATEGORY, "closeConnection", (connection,), close_provider
            )

        connection_id = next(self._connection_ids)
        logger.debug("Connecting to %s (id %d, chain type %s)",
                     resolved_network_name, connection_id, resolved_chain_type)

        return await NetworkConnection.create(
            connection_id,
            resolved_network_name,
            resolved_chain_type,
            resolved_network_config,
            close_connection,
            create_provider,
        )


__all__ = ["NetworkManager", "HOOK_CATEGORY"]
