"""
Tests for the gas price fillers.
"""

import pytest

from conftest import MockedProvider, raising, send_transaction_request
from w3net.exceptions import ProviderError
from w3net.request_modifiers import AutomaticGasPrice, FixedGasPrice


@pytest.fixture
def legacy_provider() -> MockedProvider:
    provider = MockedProvider()
    provider.set_return_value("eth_gasPrice", "0x1000")
    return provider


@pytest.fixture
def eip1559_provider() -> MockedProvider:
    provider = MockedProvider()
    provider.set_return_value("eth_feeHistory", {
        "oldestBlock": "0x10",
        "baseFeePerGas": ["0x30", "0x40"],
        "gasUsedRatio": [0.5],
        "reward": [["0x2"]],
    })
    provider.set_return_value("eth_maxPriorityFeePerGas", "0x5")
    return provider


class TestFixedGasPrice:
    def test_sets_gas_price(self) -> None:
        request = send_transaction_request()
        FixedGasPrice("0x77").modify_request(request)
        assert request["params"][0]["gasPrice"] == "0x77"

    @pytest.mark.parametrize("field", ["gasPrice", "maxFeePerGas", "maxPriorityFeePerGas"])
    def test_keeps_existing_pricing(self, field) -> None:
        request = send_transaction_request(**{field: "0x1"})
        FixedGasPrice("0x77").modify_request(request)
        assert request["params"][0][field] == "0x1"
        assert request["params"][0].get("gasPrice") in (None, "0x1")


class TestAutomaticGasPrice:
    @pytest.mark.asyncio
    async def test_legacy_node(self, legacy_provider) -> None:
        request = send_transaction_request()

        await AutomaticGasPrice(legacy_provider).modify_request(request)

        tx = request["params"][0]
        assert tx["gasPrice"] == "0x1000"
        assert "maxFeePerGas" not in tx
        assert "maxPriorityFeePerGas" not in tx

    @pytest.mark.asyncio
    async def test_legacy_node_is_remembered(self, legacy_provider) -> None:
        gas_price = AutomaticGasPrice(legacy_provider)

        await gas_price.modify_request(send_transaction_request())
        await gas_price.modify_request(send_transaction_request())

        assert legacy_provider.number_of_calls("eth_feeHistory") == 1
        assert legacy_provider.number_of_calls("eth_gasPrice") == 2

    @pytest.mark.asyncio
    async def test_eip1559_node(self, eip1559_provider) -> None:
        request = send_transaction_request()

        await AutomaticGasPrice(eip1559_provider).modify_request(request)

        tx = request["params"][0]
        # 0x40 * 81 // 64 + 2
        assert tx["maxFeePerGas"] == hex(83)
        assert tx["maxPriorityFeePerGas"] == "0x2"
        assert "gasPrice" not in tx
        method, params = eip1559_provider.calls[0]
        assert method == "eth_feeHistory"
        assert params == ["0x1", "pending", [50]]

    @pytest.mark.asyncio
    async def test_zero_reward_asks_for_priority_fee(self, eip1559_provider) -> None:
        eip1559_provider.set_return_value("eth_feeHistory", {
            "baseFeePerGas": ["0x0", "0x0"],
            "reward": [["0x0"]],
        })
        request = send_transaction_request()

        await AutomaticGasPrice(eip1559_provider).modify_request(request)

        tx = request["params"][0]
        assert tx["maxPriorityFeePerGas"] == "0x5"
        assert tx["maxFeePerGas"] == "0x5"

    @pytest.mark.asyncio
    async def test_malformed_fee_history_falls_back(self, legacy_provider) -> None:
        legacy_provider.set_return_value("eth_feeHistory", {"baseFeePerGas": []})
        request = send_transaction_request()

        await AutomaticGasPrice(legacy_provider).modify_request(request)

        assert request["params"][0]["gasPrice"] == "0x1000"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["gasPrice", "maxFeePerGas", "maxPriorityFeePerGas"])
    async def test_keeps_existing_pricing(self, legacy_provider, field) -> None:
        request = send_transaction_request(**{field: "0x1"})

        await AutomaticGasPrice(legacy_provider).modify_request(request)

        assert request["params"][0][field] == "0x1"
        assert legacy_provider.total_calls == 0

    @pytest.mark.asyncio
    async def test_gas_price_errors_propagate(self) -> None:
        provider = MockedProvider()
        provider.set_return_value("eth_gasPrice", raising(ProviderError(-32000, "unavailable")))

        with pytest.raises(ProviderError, match="unavailable"):
            await AutomaticGasPrice(provider).modify_request(send_transaction_request())
