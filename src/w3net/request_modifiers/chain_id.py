"""
Chain id validation for remote networks.

The node is asked once per connection. Concurrent callers share the same
in-flight attempt; a failed attempt isn't remembered, so the next call asks
the node again.
"""

import asyncio
import logging
from typing import Optional

from ..exceptions import InvalidGlobalChainId, ProviderConnectionError, ProviderError
from ..json_rpc import parse_numeric_id, rpc_quantity_to_int
from ..providers.base import Provider

logger = logging.getLogger(__name__)


class ChainIdValidator:
    def __init__(self, provider: Provider, configured_chain_id: int) -> None:
        self._provider = provider
        self._configured_chain_id = configured_chain_id
        self._validated = False
        self._chain_id: Optional[int] = None
        self._validation: Optional["asyncio.Future[None]"] = None

    @property
    def chain_id(self) -> Optional[int]:
        """The chain id reported by the node, once validated."""
        return self._chain_id

    async def validate(self) -> None:
        """
        Check that the node's chain id matches the configured one.

        Raises:
            InvalidGlobalChainId: If the ids differ
            ProviderError: If neither eth_chainId nor net_version work
        """
        if self._validated:
            return

        if self._validation is None:
            validation = asyncio.ensure_future(self._validate())
            validation.add_done_callback(self._on_validation_done)
            self._validation = validation

        await asyncio.shield(self._validation)

    def _on_validation_done(self, validation: "asyncio.Future[None]") -> None:
        if not validation.cancelled():
            # mark the error as retrieved, callers that are still waiting re-raise it
            validation.exception()
        if self._validation is validation:
            self._validation = None

    async def _validate(self) -> None:
        reported = await self._get_chain_id()
        if reported != self._configured_chain_id:
            raise InvalidGlobalChainId(self._configured_chain_id, reported)

        logger.debug("Validated chain id %d", reported)
        self._chain_id = reported
        self._validated = True

    async def _get_chain_id(self) -> int:
        try:
            return await self._get_chain_id_from_eth_chain_id()
        except (ProviderError, ProviderConnectionError) as e:
            logger.debug("eth_chainId failed (%s), trying net_version", e)
            return await self._get_chain_id_from_net_version()

    async def _get_chain_id_from_eth_chain_id(self) -> int:
        return rpc_quantity_to_int(await self._provider.request("eth_chainId"))

    async def _get_chain_id_from_net_version(self) -> int:
        return parse_numeric_id(await self._provider.request("net_version"))


__all__ = ["ChainIdValidator"]
