"""
Tests for ChainIdValidator.
"""

import asyncio

import pytest

from conftest import MockedProvider, delayed, raising
from w3net.exceptions import InvalidGlobalChainId, ProviderError
from w3net.request_modifiers import ChainIdValidator


@pytest.fixture
def provider() -> MockedProvider:
    provider = MockedProvider()
    provider.set_return_value("eth_chainId", "0x1")
    return provider


class TestChainIdValidator:
    @pytest.mark.asyncio
    async def test_matching_chain_id(self, provider) -> None:
        validator = ChainIdValidator(provider, 1)

        await validator.validate()

        assert validator.chain_id == 1

    @pytest.mark.asyncio
    async def test_mismatch(self, provider) -> None:
        provider.set_return_value("eth_chainId", "0xa")
        validator = ChainIdValidator(provider, 1)

        with pytest.raises(InvalidGlobalChainId) as exc_info:
            await validator.validate()

        assert exc_info.value.configured == 1
        assert exc_info.value.reported == 10
        assert exc_info.value.details == {"configured": 1, "reported": 10}
        assert validator.chain_id is None

    @pytest.mark.asyncio
    async def test_validates_once(self, provider) -> None:
        validator = ChainIdValidator(provider, 1)

        await validator.validate()
        await validator.validate()
        await validator.validate()

        assert provider.number_of_calls("eth_chainId") == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_request(self, provider) -> None:
        provider.set_return_value("eth_chainId", delayed("0x1"))
        validator = ChainIdValidator(provider, 1)

        await asyncio.gather(*(validator.validate() for _ in range(5)))

        assert provider.number_of_calls("eth_chainId") == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_the_failure(self, provider) -> None:
        provider.set_return_value("eth_chainId", delayed("0x2"))
        validator = ChainIdValidator(provider, 1)

        results = await asyncio.gather(
            *(validator.validate() for _ in range(3)), return_exceptions=True
        )

        assert all(isinstance(result, InvalidGlobalChainId) for result in results)
        assert provider.number_of_calls("eth_chainId") == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_net_version(self, provider) -> None:
        provider.set_return_value("eth_chainId", raising(ProviderError(-32601, "Method not found")))
        provider.set_return_value("net_version", "1")
        validator = ChainIdValidator(provider, 1)

        await validator.validate()

        assert validator.chain_id == 1
        assert provider.number_of_calls("net_version") == 1

    @pytest.mark.asyncio
    async def test_both_methods_fail(self) -> None:
        provider = MockedProvider()
        validator = ChainIdValidator(provider, 1)

        with pytest.raises(ProviderError):
            await validator.validate()

        assert provider.number_of_calls("eth_chainId") == 1
        assert provider.number_of_calls("net_version") == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_remembered(self, provider) -> None:
        provider.set_return_value("eth_chainId", "0x2")
        validator = ChainIdValidator(provider, 1)

        with pytest.raises(InvalidGlobalChainId):
            await validator.validate()

        provider.set_return_value("eth_chainId", "0x1")
        await validator.validate()

        assert validator.chain_id == 1
        assert provider.number_of_calls("eth_chainId") == 2
