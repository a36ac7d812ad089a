"""
Type definitions for w3net.

JSON-RPC envelopes are plain dicts on the wire; these TypedDicts describe
their shape. Common web3.py types are re-exported for convenience.

Example:
    >>> from w3net.types import JsonRpcRequest
    >>> request: JsonRpcRequest = {'jsonrpc': '2.0', 'id': 1, 'method': 'eth_chainId', 'params': []}
"""

from typing import Any, Dict, List, Literal, TypedDict, Union

from web3.types import RPCEndpoint, TxParams  # noqa: F401


JsonRpcId = Union[int, str, None]
RequestParams = Union[List[Any], Dict[str, Any], None]


class _RequestArgumentsBase(TypedDict):
    method: str


class RequestArguments(_RequestArgumentsBase, total=False):
    params: RequestParams


class JsonRpcRequest(TypedDict):
    jsonrpc: Literal["2.0"]
    id: Union[int, str]
    method: str
    params: List[Any]


class JsonRpcErrorObject(TypedDict, total=False):
    code: int
    message: str
    data: Any


class SuccessfulJsonRpcResponse(TypedDict):
    jsonrpc: Literal["2.0"]
    id: JsonRpcId
    result: Any


class FailedJsonRpcResponse(TypedDict):
    jsonrpc: Literal["2.0"]
    id: JsonRpcId
    error: JsonRpcErrorObject


JsonRpcResponse = Union[SuccessfulJsonRpcResponse, FailedJsonRpcResponse]
