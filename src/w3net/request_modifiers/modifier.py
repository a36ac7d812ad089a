"""
Request modifier applied to every call made through a NetworkConnection.

Stages, always in this order:
1. gas: ``gas`` config, automatic or fixed
2. gas price: ``gas_price`` config, automatic (remote networks only, the local
   engine prices transactions itself) or fixed
3. chain id: remote networks with a configured ``chain_id``, skipped for
   ``eth_chainId`` and ``net_version`` since the validator sends those itself

Example:
    >>> modifier = JsonRpcRequestModifier(provider, network_config)
    >>> request = {"method": "eth_sendTransaction", "params": [{"to": "0x..."}]}
    >>> modified = await modifier.create_modified_json_rpc_request(request)
    >>> modified["params"][0]["gas"]
    '0x5208'
"""

import copy
from typing import Any, Dict, Mapping, Optional

from .chain_id import ChainIdValidator
from .gas import AutomaticGas, FixedGas
from .gas_price import AutomaticGasPrice, FixedGasPrice
from ..config import NetworkConfig, is_http_network_config
from ..json_rpc import int_to_rpc_quantity
from ..providers.base import Provider

CHAIN_ID_METHODS = ("eth_chainId", "net_version")


class JsonRpcRequestModifier:
    """
    Fills gas fields and validates the chain id of outgoing requests.

    Strategy objects are built on first use and kept for the lifetime of the
    modifier, i.e. of its connection.
    """

    def __init__(self, provider: Provider, network_config: NetworkConfig) -> None:
        self._provider = provider
        self._network_config = network_config

        self._chain_id_validator: Optional[ChainIdValidator] = None
        self._automatic_gas: Optional[AutomaticGas] = None
        self._fixed_gas: Optional[FixedGas] = None
        self._automatic_gas_price: Optional[AutomaticGasPrice] = None
        self._fixed_gas_price: Optional[FixedGasPrice] = None

    async def create_modified_json_rpc_request(self, json_rpc_request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Return a modified copy of ``json_rpc_request``; the argument is never mutated.

        Any stage error propagates and the copy is dropped.
        """
        # the copy is modified by reference in every stage below
        new_json_rpc_request = copy.deepcopy(dict(json_rpc_request))

        await self._modify_gas_and_gas_price_if_needed(new_json_rpc_request)
        await self._validate_chain_id_if_needed(new_json_rpc_request)

        return new_json_rpc_request

    async def _modify_gas_and_gas_price_if_needed(self, json_rpc_request: Dict[str, Any]) -> None:
        config = self._network_config

        if config.gas == "auto":
            if self._automatic_gas is None:
                self._automatic_gas = AutomaticGas(self._provider, config.gas_multiplier)
            await self._automatic_gas.modify_request(json_rpc_request)
        else:
            if self._fixed_gas is None:
                self._fixed_gas = FixedGas(int_to_rpc_quantity(config.gas))
            self._fixed_gas.modify_request(json_rpc_request)

        if config.gas_price == "auto":
            if is_http_network_config(config):
                if self._automatic_gas_price is None:
                    self._automatic_gas_price = AutomaticGasPrice(self._provider)
                await self._automatic_gas_price.modify_request(json_rpc_request)
        else:
            if self._fixed_gas_price is None:
                self._fixed_gas_price = FixedGasPrice(int_to_rpc_quantity(config.gas_price))
            self._fixed_gas_price.modify_request(json_rpc_request)

    async def _validate_chain_id_if_needed(self, json_rpc_request: Dict[str, Any]) -> None:
        if json_rpc_request.get("method") in CHAIN_ID_METHODS:
            return

        config = self._network_config
        if is_http_network_config(config) and config.chain_id is not None:
            if self._chain_id_validator is None:
                self._chain_id_validator = ChainIdValidator(self._provider, config.chain_id)
            await self._chain_id_validator.validate()


__all__ = ["JsonRpcRequestModifier"]
