from .chain_id import ChainIdValidator
from .gas import AutomaticGas, FixedGas
from .gas_price import AutomaticGasPrice, FixedGasPrice
from .modifier import JsonRpcRequestModifier

__all__ = [
    "ChainIdValidator",
    "AutomaticGas",
    "FixedGas",
    "AutomaticGasPrice",
    "FixedGasPrice",
    "JsonRpcRequestModifier",
]
