"""
Transport contract shared by every provider.

A provider turns ``(method, params)`` into the ``result`` of a JSON-RPC call,
raising ProviderError when the node answers with an error object.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..types import RequestParams


class Provider(ABC):
    @abstractmethod
    async def request(self, method: str, params: RequestParams = None) -> Any:
        """
        Send a JSON-RPC request and return its ``result``.

        Raises:
            ProviderError: If the node answers with a JSON-RPC error
            InvalidRequestParams: If params are neither a list nor None
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the resources held by the provider."""

    async def __aenter__(self) -> "Provider":
        return self

    async def __aexit__(self, *args, **kwargs) -> None:
        await self.close()
