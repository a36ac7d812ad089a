"""
Exception classes for w3net.

Every exception raised by w3net derives from NetworkException. Each subclass
keeps the offending values as attributes (and in ``details``) so callers can
render their own message without parsing ours.

Example:
    >>> try:
    ...     connection = await manager.connect("mainnet")
    ... except NetworkNotFound as e:
    ...     print(f"Unknown network: {e.network_name}")
"""

from typing import Any, Dict, Iterable, List, Optional


class NetworkException(Exception):
    """
    Base exception class for network-related errors.

    Attributes:
        message: Human-readable description
        details: Structured context of the failure
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


class NetworkNotFound(NetworkException):
    def __init__(self, network_name: str) -> None:
        super().__init__(
            f"The network {network_name!r} is not defined in your config",
            network_name=network_name,
        )
        self.network_name = network_name


class InvalidNetworkType(NetworkException):
    def __init__(self, network_name: str, network_type: Any) -> None:
        super().__init__(
            f"Invalid network type {network_type!r} for network {network_name!r}. "
            "Expected 'http' or 'local'",
            network_name=network_name,
            network_type=network_type,
        )
        self.network_name = network_name
        self.network_type = network_type


class InvalidNetworkConfig(NetworkException):
    def __init__(self, network_name: str, errors: Iterable[str]) -> None:
        errors = list(errors)
        super().__init__(
            f"Invalid config for network {network_name!r}:\n\t" + "\n\t".join(errors),
            network_name=network_name,
            errors=errors,
        )
        self.network_name = network_name
        self.errors: List[str] = errors


class InvalidConfigOverride(NetworkException):
    """Raised when a connection override can't be applied to the declared network."""

    def __init__(self, errors: Iterable[str]) -> None:
        errors = list(errors)
        super().__init__(
            "Invalid network config override:\n\t" + "\n\t".join(errors),
            errors=errors,
        )
        self.errors: List[str] = errors


class InvalidChainType(NetworkException):
    def __init__(self, network_name: str, chain_type: str, network_chain_type: str) -> None:
        super().__init__(
            f"The network {network_name!r} is configured with chain type "
            f"{network_chain_type!r} but {chain_type!r} was requested",
            network_name=network_name,
            chain_type=chain_type,
            network_chain_type=network_chain_type,
        )
        self.network_name = network_name
        self.chain_type = chain_type
        self.network_chain_type = network_chain_type


class InvalidGlobalChainId(NetworkException):
    """
    Raised when the node reports a chain id different from the configured one.

    ``details`` always lists ``configured`` before ``reported``.
    """

    def __init__(self, configured: int, reported: int) -> None:
        super().__init__(
            f"Trying to send a request to a network with chain id {reported}, "
            f"but the network is configured with chain id {configured}",
            configured=configured,
            reported=reported,
        )
        self.configured = configured
        self.reported = reported


class InvalidJsonResponse(NetworkException):
    def __init__(self, response: str) -> None:
        super().__init__(f"Invalid JSON-RPC response received: {response}", response=response)
        self.response = response


class InvalidRequestParams(NetworkException):
    def __init__(self, params: Any) -> None:
        super().__init__(
            f"Invalid JSON-RPC request params, expected a list but got {type(params).__name__}",
            params=params,
        )
        self.params = params


class ProviderError(NetworkException):
    """
    A JSON-RPC error object returned by a node.

    Attributes:
        code: JSON-RPC error code
        data: Optional ``data`` member of the error object
    """

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(message, code=code, data=data)
        self.code = code
        self.data = data

    def __str__(self) -> str:
        return f"{self.message} (code {self.code})"


class ProviderConnectionError(NetworkException):
    """The node couldn't be reached or didn't answer in time."""

    def __init__(self, network_name: str, url: str, reason: str = "") -> None:
        message = f"Cannot connect to the network {network_name!r} at {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, network_name=network_name, url=url)
        self.network_name = network_name
        self.url = url


class OperationTimeout(NetworkException):
    def __init__(self, timeout: float, pending: Iterable[str]) -> None:
        pending = list(pending)
        super().__init__(
            f"Operations didn't finish within {timeout}s, still pending: {', '.join(pending)}",
            timeout=timeout,
            pending=pending,
        )
        self.timeout = timeout
        self.pending: List[str] = pending


__all__ = [
    "NetworkException",
    "NetworkNotFound",
    "InvalidNetworkType",
    "InvalidNetworkConfig",
    "InvalidConfigOverride",
    "InvalidChainType",
    "InvalidGlobalChainId",
    "InvalidJsonResponse",
    "InvalidRequestParams",
    "ProviderError",
    "ProviderConnectionError",
    "OperationTimeout",
]
