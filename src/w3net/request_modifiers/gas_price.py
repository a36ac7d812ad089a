"""
Gas price fillers for ``eth_sendTransaction`` requests.

A transaction that already carries any of ``gasPrice``, ``maxFeePerGas`` or
``maxPriorityFeePerGas`` is left as is.
"""

import logging
from typing import Any, Mapping, Optional, Tuple

from eth_typing import HexStr

from .gas import get_transaction
from ..exceptions import ProviderError
from ..json_rpc import int_to_rpc_quantity, rpc_quantity_to_int
from ..providers.base import Provider

logger = logging.getLogger(__name__)

PRICE_FIELDS = ("gasPrice", "maxFeePerGas", "maxPriorityFeePerGas")

# Each full block raises the base fee by 1/8 at most, maxFeePerGas covers
# this many full blocks.
EIP1559_BASE_FEE_MAX_FULL_BLOCKS_PREFERENCE = 3
EIP1559_REWARD_PERCENTILE = 50


def has_price_fields(tx: Mapping[str, Any]) -> bool:
    return any(tx.get(field) is not None for field in PRICE_FIELDS)


class FixedGasPrice:
    """Sets ``gasPrice`` to a value chosen in advance."""

    def __init__(self, gas_price: HexStr) -> None:
        self._gas_price = gas_price

    def modify_request(self, args: Mapping[str, Any]) -> None:
        tx = get_transaction(args)
        if tx is not None and not has_price_fields(tx):
            tx["gasPrice"] = self._gas_price


class AutomaticGasPrice:
    """
    Fills the pricing fields from the node.

    EIP-1559 nodes get ``maxFeePerGas``/``maxPriorityFeePerGas`` derived from
    ``eth_feeHistory``; once the node proves it doesn't support fee history,
    ``gasPrice`` from ``eth_gasPrice`` is used for the rest of the connection.
    """

    def __init__(self, provider: Provider) -> None:
        self._provider = provider
        self._node_supports_eip1559: Optional[bool] = None

    async def modify_request(self, args: Mapping[str, Any]) -> None:
        tx = get_transaction(args)
        if tx is None or has_price_fields(tx):
            return

        suggested = await self._suggest_eip1559_fee_price_values()
        if suggested is None:
            tx["gasPrice"] = int_to_rpc_quantity(await self._get_gas_price())
            logger.debug("Using gasPrice %s", tx["gasPrice"])
            return

        max_fee_per_gas, max_priority_fee_per_gas = suggested
        if max_fee_per_gas < max_priority_fee_per_gas:
            max_fee_per_gas += max_priority_fee_per_gas

        tx["maxFeePerGas"] = int_to_rpc_quantity(max_fee_per_gas)
        tx["maxPriorityFeePerGas"] = int_to_rpc_quantity(max_priority_fee_per_gas)
        logger.debug("Using maxFeePerGas %s, maxPriorityFeePerGas %s",
                     tx["maxFeePerGas"], tx["maxPriorityFeePerGas"])

    async def _get_gas_price(self) -> int:
        return rpc_quantity_to_int(await self._provider.request("eth_gasPrice"))

    async def _suggest_eip1559_fee_price_values(self) -> Optional[Tuple[int, int]]:
        if self._node_supports_eip1559 is False:
            return None

        try:
            response = await self._provider.request(
                "eth_feeHistory", ["0x1", "pending", [EIP1559_REWARD_PERCENTILE]]
            )
            max_priority_fee_per_gas = rpc_quantity_to_int(response["reward"][0][0])
            next_base_fee = rpc_quantity_to_int(response["baseFeePerGas"][1])
        except (ProviderError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.debug("eth_feeHistory unavailable (%s), using eth_gasPrice", e)
            self._node_supports_eip1559 = False
            return None
        self._node_supports_eip1559 = True

        if max_priority_fee_per_gas == 0:
            try:
                max_priority_fee_per_gas = rpc_quantity_to_int(
                    await self._provider.request("eth_maxPriorityFeePerGas")
                )
            except ProviderError as e:
                logger.debug("eth_maxPriorityFeePerGas unavailable (%s), keeping 0", e)

        exponent = EIP1559_BASE_FEE_MAX_FULL_BLOCKS_PREFERENCE - 1
        max_fee_per_gas = next_base_fee * 9 ** exponent // 8 ** exponent + max_priority_fee_per_gas
        return max_fee_per_gas, max_priority_fee_per_gas


__all__ = ["FixedGasPrice", "AutomaticGasPrice", "PRICE_FIELDS"]
