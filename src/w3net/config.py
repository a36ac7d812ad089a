"""
Network configuration models.

A network is either reached over HTTP (``type: "http"``) or embedded in the
current process (``type: "local"``). Both variants are pydantic models; the
``type`` field is the tag every merge/validate path switches on.

User config example:
    >>> config = resolve_user_config({
    ...     "default_network": "sepolia",
    ...     "networks": {
    ...         "sepolia": {"type": "http", "url": "https://rpc.sepolia.org", "chain_id": 11155111},
    ...     },
    ... })
    >>> config.networks["sepolia"].timeout
    20.0
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from cytoolz.dicttoolz import merge
from eth_utils import is_hex_address
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import InvalidConfigOverride, InvalidNetworkConfig, InvalidNetworkType


UINT256_CEILING = 2 ** 256

DEFAULT_NETWORK_NAME = "local"
LOCALHOST_NETWORK_NAME = "localhost"
DEFAULT_CHAIN_TYPE = "generic"
L1_CHAIN_TYPE = "l1"
DEFAULT_LOCAL_CHAIN_ID = 31337

NETWORK_TYPES = ("http", "local")
HARDFORKS = ("berlin", "london", "paris", "merge", "shanghai", "cancun", "prague")


def _parse_uint256(value: Any) -> Any:
    if isinstance(value, str):
        value = int(value, 16) if value.startswith(("0x", "0X")) else int(value, 10)
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < UINT256_CEILING:
            raise ValueError("must be an unsigned 256-bit integer")
    return value


def _parse_gas(value: Any) -> Any:
    if value is None or value == "auto":
        return "auto"
    return _parse_uint256(value)


Uint256 = Annotated[int, BeforeValidator(_parse_uint256)]
GasConfig = Annotated[Union[Literal["auto"], int], BeforeValidator(_parse_gas)]


class _NetworkConfigBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    chain_type: Optional[str] = None
    # default sender, stored as configured and never filled into requests
    from_: Optional[str] = Field(default=None, alias="from")
    gas: GasConfig = "auto"
    gas_multiplier: float = Field(default=1, gt=0)
    gas_price: GasConfig = "auto"

    @field_validator("from_")
    @classmethod
    def _check_from(cls, address: Optional[str]) -> Optional[str]:
        if address is not None and not is_hex_address(address):
            raise ValueError("Expected a hex encoded address")
        return address


class HttpNetworkConfig(_NetworkConfigBase):
    """A remote node reachable over HTTP(S)."""

    type: Literal["http"] = "http"
    url: str
    chain_id: Optional[int] = Field(default=None, ge=0)
    # seconds
    timeout: float = Field(default=20.0, gt=0)
    http_headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def _check_url(cls, url: str) -> str:
        if not url.startswith(("http://", "https://")):
            raise ValueError("Expected an http(s) URL")
        return url


class GenesisAccount(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    private_key: str
    balance: Uint256 = 10_000 * 10 ** 18


class LocalNetworkConfig(_NetworkConfigBase):
    """An emulated chain running inside the current process."""

    type: Literal["local"] = "local"
    chain_id: int = Field(default=DEFAULT_LOCAL_CHAIN_ID, ge=0)
    chain_type: Optional[str] = L1_CHAIN_TYPE
    network_id: int = Field(default=DEFAULT_LOCAL_CHAIN_ID, ge=0)
    hardfork: str = "cancun"
    block_gas_limit: int = Field(default=30_000_000, gt=0)
    min_gas_price: Uint256 = 0
    automine: bool = True
    # seconds between mined blocks, 0 disables interval mining
    interval_mining: float = Field(default=0, ge=0)
    mempool_order: Literal["fifo", "priority"] = "fifo"
    genesis_accounts: List[GenesisAccount] = Field(default_factory=list)
    allow_unlimited_contract_size: bool = False
    throw_on_transaction_failures: bool = True
    throw_on_call_failures: bool = True
    allow_blocks_with_same_timestamp: bool = False
    enable_transient_storage: bool = False
    enable_rip7212: bool = False

    @field_validator("hardfork")
    @classmethod
    def _check_hardfork(cls, hardfork: str) -> str:
        hardfork = hardfork.lower()
        if hardfork not in HARDFORKS:
            raise ValueError(f"Expected one of {', '.join(HARDFORKS)}")
        return hardfork

    @model_validator(mode="before")
    @classmethod
    def _default_network_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("network_id") is None and "chain_id" in data:
            data = merge(data, {"network_id": data["chain_id"]})
        return data


NetworkConfig = Union[HttpNetworkConfig, LocalNetworkConfig]


def is_http_network_config(config: NetworkConfig) -> bool:
    return config.type == "http"


def is_local_network_config(config: NetworkConfig) -> bool:
    return config.type == "local"


def _model_for_type(network_type: Any):
    if network_type == "http":
        return HttpNetworkConfig
    if network_type == "local":
        return LocalNetworkConfig
    return None


def _format_errors(error: ValidationError) -> List[str]:
    return [
        f"* Error in {'.'.join(str(part) for part in issue['loc']) or '<root>'}: {issue['msg']}"
        for issue in error.errors()
    ]


def validate_network_config(config: Mapping[str, Any]) -> Tuple[Optional[NetworkConfig], List[str]]:
    """
    Validate a raw network config mapping against the schema of its type.

    Returns:
        The parsed config and an empty list, or None and the list of
        field-path qualified error messages
    """
    model = _model_for_type(config.get("type"))
    if model is None:
        return None, [f"* Error in type: Expected one of {', '.join(NETWORK_TYPES)}"]
    try:
        return model.model_validate(dict(config)), []
    except ValidationError as e:
        return None, _format_errors(e)


def apply_config_override(
    network_config: NetworkConfig,
    override: Optional[Mapping[str, Any]],
) -> NetworkConfig:
    """
    Shallow-merge ``override`` on top of ``network_config`` and re-validate.

    Nested values (headers, genesis accounts) are replaced wholesale.

    Raises:
        InvalidConfigOverride: If the override changes the network type or
            the merged config doesn't validate
    """
    if not override:
        return network_config

    if "type" in override and override["type"] != network_config.type:
        raise InvalidConfigOverride(["* The type of the network cannot be changed."])

    merged = merge(network_config.model_dump(by_alias=True), dict(override))
    resolved, errors = validate_network_config(merged)
    if resolved is None:
        raise InvalidConfigOverride(errors)
    return resolved


class ResolvedConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    default_network: str = DEFAULT_NETWORK_NAME
    default_chain_type: str = DEFAULT_CHAIN_TYPE
    networks: Dict[str, Union[HttpNetworkConfig, LocalNetworkConfig]] = Field(default_factory=dict)


def extend_user_config(user_config: Mapping[str, Any]) -> Dict[str, Any]:
    """Add the built-in ``localhost`` and ``local`` networks to a user config."""
    networks = dict(user_config.get("networks") or {})
    networks[LOCALHOST_NETWORK_NAME] = merge(
        {"url": "http://127.0.0.1:8545"},
        networks.get(LOCALHOST_NETWORK_NAME) or {},
        {"type": "http"},
    )
    networks[DEFAULT_NETWORK_NAME] = merge(
        {
            "chain_id": DEFAULT_LOCAL_CHAIN_ID,
            "chain_type": L1_CHAIN_TYPE,
            "gas": "auto",
            "gas_multiplier": 1,
            "gas_price": "auto",
        },
        networks.get(DEFAULT_NETWORK_NAME) or {},
        {"type": "local"},
    )
    return merge(dict(user_config), {"networks": networks})


def resolve_user_config(user_config: Mapping[str, Any]) -> ResolvedConfig:
    """
    Resolve a raw user config into validated network configs.

    Raises:
        InvalidNetworkType: If a network declares an unknown ``type``
        InvalidNetworkConfig: If a network doesn't match its schema
    """
    extended = extend_user_config(user_config)

    networks: Dict[str, NetworkConfig] = {}
    for network_name, network_config in extended["networks"].items():
        network_type = network_config.get("type") if isinstance(network_config, Mapping) else None
        if network_type not in NETWORK_TYPES:
            raise InvalidNetworkType(network_name, network_type)

        resolved, errors = validate_network_config(network_config)
        if resolved is None:
            raise InvalidNetworkConfig(network_name, errors)
        networks[network_name] = resolved

    return ResolvedConfig(
        default_network=extended.get("default_network") or DEFAULT_NETWORK_NAME,
        default_chain_type=extended.get("default_chain_type") or DEFAULT_CHAIN_TYPE,
        networks=networks,
    )


__all__ = [
    "NetworkConfig",
    "HttpNetworkConfig",
    "LocalNetworkConfig",
    "GenesisAccount",
    "ResolvedConfig",
    "is_http_network_config",
    "is_local_network_config",
    "validate_network_config",
    "apply_config_override",
    "extend_user_config",
    "resolve_user_config",
    "DEFAULT_NETWORK_NAME",
    "DEFAULT_CHAIN_TYPE",
]
