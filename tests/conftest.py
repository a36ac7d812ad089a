"""
Shared fixtures for w3net tests.
"""

import asyncio
import inspect
import json
from typing import Any, Callable, Dict, List, Tuple

import pytest

from w3net.config import HttpNetworkConfig, LocalNetworkConfig
from w3net.exceptions import ProviderError
from w3net.json_rpc import get_request_params
from w3net.providers.base import Provider


# =============================================================================
# Test Constants
# =============================================================================

SENDER = "0x0000000000000000000000000000000000000011"
RECIPIENT = "0x0000000000000000000000000000000000000022"

METHOD_NOT_FOUND = -32601


# =============================================================================
# Doubles
# =============================================================================


class MockedProvider(Provider):
    """
    In-memory provider answering from preset return values.

    A callable return value is called with the request params and its result
    (awaited if needed) is returned. Unknown methods fail like a node would.
    """

    def __init__(self) -> None:
        self._return_values: Dict[str, Any] = {}
        self.calls: List[Tuple[str, List[Any]]] = []
        self.closed = False

    def set_return_value(self, method: str, value: Any) -> None:
        self._return_values[method] = value

    def number_of_calls(self, method: str) -> int:
        return sum(1 for called, _ in self.calls if called == method)

    @property
    def total_calls(self) -> int:
        return len(self.calls)

    async def request(self, method: str, params=None) -> Any:
        params = get_request_params({"method": method, "params": params})
        # make sure params are serializable
        json.dumps(params)
        self.calls.append((method, params))

        if method not in self._return_values:
            raise ProviderError(METHOD_NOT_FOUND, f"Method {method} not found")

        value = self._return_values[method]
        if callable(value):
            value = value(params)
        if inspect.isawaitable(value):
            value = await value
        return value

    async def close(self) -> None:
        self.closed = True


def raising(error: Exception) -> Callable[[List[Any]], Any]:
    def raise_error(_params):
        raise error
    return raise_error


def delayed(value: Any, delay: float = 0.01) -> Callable[[List[Any]], Any]:
    async def answer(_params):
        await asyncio.sleep(delay)
        return value
    return answer


class FakeEngine:
    """Stands in for the eth-tester engine of a LocalProvider."""

    def __init__(self, responses: Dict[str, Dict[str, Any]] = None) -> None:
        self.responses = responses or {}
        self.calls: List[Tuple[str, Any]] = []

    async def make_request(self, method, params):
        self.calls.append((method, params))
        return self.responses.get(method, {"jsonrpc": "2.0", "id": 0, "result": None})


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mocked_provider() -> MockedProvider:
    return MockedProvider()


@pytest.fixture
def http_config() -> HttpNetworkConfig:
    return HttpNetworkConfig(url="http://127.0.0.1:8545", chain_id=1)


@pytest.fixture
def local_config() -> LocalNetworkConfig:
    return LocalNetworkConfig()


def send_transaction_request(**tx_fields) -> Dict[str, Any]:
    tx = {"from": SENDER, "to": RECIPIENT, "value": "0x1"}
    tx.update(tx_fields)
    return {"jsonrpc": "2.0", "id": 1, "method": "eth_sendTransaction", "params": [tx]}
