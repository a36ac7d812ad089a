"""
Gas fillers for ``eth_sendTransaction`` requests.

Both strategies modify the request in place and leave a transaction that
already has a ``gas`` field untouched.
"""

import logging
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from eth_typing import HexStr

from ..exceptions import ProviderError
from ..json_rpc import get_request_params, int_to_rpc_quantity, rpc_quantity_to_int
from ..providers.base import Provider

logger = logging.getLogger(__name__)


def get_transaction(args: Mapping[str, Any]) -> Optional[dict]:
    """Return the transaction object of an ``eth_sendTransaction`` request, if any."""
    if args.get("method") != "eth_sendTransaction":
        return None
    params = get_request_params(args)
    tx = params[0] if params else None
    return tx if isinstance(tx, dict) else None


class FixedGas:
    """Sets ``gas`` to a value chosen in advance."""

    def __init__(self, gas: HexStr) -> None:
        self._gas = gas

    def modify_request(self, args: Mapping[str, Any]) -> None:
        tx = get_transaction(args)
        if tx is not None and tx.get("gas") is None:
            tx["gas"] = self._gas


class AutomaticGas:
    """
    Sets ``gas`` from ``eth_estimateGas``.

    With a multiplier other than 1 the estimate is scaled and capped just
    below the latest block gas limit. When estimation fails with an execution
    error the block gas limit itself is used, so the node reports the real
    failure when the transaction is sent.
    """

    def __init__(self, provider: Provider, gas_multiplier: float = 1) -> None:
        self._provider = provider
        self._gas_multiplier = gas_multiplier

    async def modify_request(self, args: Mapping[str, Any]) -> None:
        tx = get_transaction(args)
        if tx is not None and tx.get("gas") is None:
            tx["gas"] = await self._get_multiplied_gas_estimation(get_request_params(args))
            logger.debug("Estimated gas %s", tx["gas"])

    async def _get_multiplied_gas_estimation(self, params: List[Any]) -> HexStr:
        try:
            estimation = rpc_quantity_to_int(
                await self._provider.request("eth_estimateGas", params)
            )
        except ProviderError as e:
            if "execution error" in e.message.lower():
                return int_to_rpc_quantity(await self._get_block_gas_limit())
            raise

        if self._gas_multiplier == 1:
            return int_to_rpc_quantity(estimation)

        block_gas_limit = await self._get_block_gas_limit()
        multiplied = int(estimation * Decimal(str(self._gas_multiplier)))
        gas = block_gas_limit - 1 if multiplied > block_gas_limit else multiplied
        return int_to_rpc_quantity(gas)

    async def _get_block_gas_limit(self) -> int:
        block = await self._provider.request("eth_getBlockByNumber", ["latest", False])
        return rpc_quantity_to_int(block["gasLimit"])


__all__ = ["FixedGas", "AutomaticGas", "get_transaction"]
