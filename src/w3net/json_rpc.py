"""
JSON-RPC 2.0 envelope helpers.

Builds request objects, normalizes request params and validates responses.
See https://www.jsonrpc.org/specification

A response that carries a defined ``error`` is classified as failed even if
it also carries a ``result``; the ``error`` object must be well formed
(``code`` number, ``message`` string) for the payload to be accepted at all.
"""

import json
from typing import Any, List, Mapping, Union

from eth_typing import HexStr
from eth_utils import is_hex, to_hex, to_int

from .exceptions import InvalidJsonResponse, InvalidRequestParams, ProviderError
from .types import (
    FailedJsonRpcResponse,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestParams,
)


def _is_number(value: Any) -> bool:
    # bool is an int subclass, but JSON true/false aren't numbers
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_request_params(request_arguments: Mapping[str, Any]) -> List[Any]:
    """
    Return the params of a request as a list.

    Absent (or None) params become an empty list; any other non-list value
    raises InvalidRequestParams.
    """
    params = request_arguments.get("params")
    if params is None:
        return []
    if isinstance(params, list):
        return params
    raise InvalidRequestParams(params)


def get_json_rpc_request(
    id: Union[int, str],
    method: str,
    params: RequestParams = None,
) -> JsonRpcRequest:
    return {
        "jsonrpc": "2.0",
        "id": id,
        "method": method,
        "params": get_request_params({"method": method, "params": params}),
    }


def is_json_rpc_response(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False

    if payload.get("jsonrpc") != "2.0":
        return False

    if "id" not in payload:
        return False
    response_id = payload["id"]
    if response_id is not None and not _is_number(response_id) and not isinstance(response_id, str):
        return False

    error = payload.get("error")
    if "result" not in payload and error is None:
        return False

    if error is not None:
        if not isinstance(error, dict):
            return False
        if not _is_number(error.get("code")):
            return False
        if not isinstance(error.get("message"), str):
            return False

    return True


def is_failed_json_rpc_response(payload: JsonRpcResponse) -> bool:
    return payload.get("error") is not None


def parse_json_rpc_response(text: Union[str, bytes]) -> Union[JsonRpcResponse, List[JsonRpcResponse]]:
    """
    Parse a raw response body into a JSON-RPC response or a batch of them.

    Raises:
        InvalidJsonResponse: If the body isn't JSON or isn't a valid JSON-RPC response
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except ValueError:
        raise InvalidJsonResponse(text) from None

    if isinstance(payload, list):
        if all(is_json_rpc_response(item) for item in payload):
            return payload
    elif is_json_rpc_response(payload):
        return payload

    raise InvalidJsonResponse(text)


def int_to_rpc_quantity(value: int) -> HexStr:
    """
    Encode an integer as a JSON-RPC quantity: ``0x`` prefixed, no leading zeros.

    Example:
        >>> int_to_rpc_quantity(0)
        '0x0'
        >>> int_to_rpc_quantity(1234)
        '0x4d2'
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Quantities can't be negative: {value}")
    return to_hex(value)


def to_json_rpc_value(value: Any) -> Any:
    """
    Convert native values (as returned by in-process engines) to their wire form.

    Integers become quantities, bytes become ``0x`` data; mappings and
    sequences are converted item by item.

    Example:
        >>> to_json_rpc_value({"number": 1, "hash": b"\\x01\\x02", "uncles": []})
        {'number': '0x1', 'hash': '0x0102', 'uncles': []}
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return int_to_rpc_quantity(value)
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if isinstance(value, Mapping):
        return {key: to_json_rpc_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_rpc_value(item) for item in value]
    return value


def rpc_quantity_to_int(value: Union[HexStr, int]) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.startswith(("0x", "0X")) and is_hex(value):
        return to_int(hexstr=value)
    raise ValueError(f"Invalid JSON-RPC quantity: {value!r}")


def parse_numeric_id(value: Union[str, int]) -> int:
    """Parse a chain/network id that may be ``0x`` hex or decimal."""
    if isinstance(value, str) and not value.startswith(("0x", "0X")):
        return int(value, 10)
    return rpc_quantity_to_int(value)


def failed_response_to_error(response: FailedJsonRpcResponse) -> ProviderError:
    error = response["error"]
    return ProviderError(int(error["code"]), error["message"], error.get("data"))


__all__ = [
    "get_request_params",
    "get_json_rpc_request",
    "is_json_rpc_response",
    "is_failed_json_rpc_response",
    "parse_json_rpc_response",
    "int_to_rpc_quantity",
    "to_json_rpc_value",
    "rpc_quantity_to_int",
    "parse_numeric_id",
    "failed_response_to_error",
]
