"""
Provider backed by an in-process emulated chain.

The engine is web3's AsyncEthereumTesterProvider running on an eth-tester
PyEVMBackend. It is built once from the network config; mining mode, hardfork
and the rest of the options are fixed at construction and never revisited per
request.

Example:
    >>> provider = await LocalProvider.create(LocalNetworkConfig(chain_id=1337))
    >>> await provider.request("eth_chainId")
    '0x539'
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

from cytoolz.dicttoolz import assoc
from web3 import AsyncWeb3
from web3.types import RPCEndpoint, RPCResponse

from .base import Provider
from ..config import LocalNetworkConfig
from ..exceptions import ProviderError
from ..json_rpc import get_request_params, int_to_rpc_quantity, to_json_rpc_value
from ..types import RequestParams

logger = logging.getLogger(__name__)

# JSON-RPC error codes
INTERNAL_ERROR_CODE = -32603
INVALID_PARAMS_CODE = -32602
EXECUTION_ERROR_CODE = -32000

HARDFORK_VMS = {
    "berlin": "BerlinVM",
    "london": "LondonVM",
    "paris": "ParisVM",
    "merge": "ParisVM",
    "shanghai": "ShanghaiVM",
    "cancun": "CancunVM",
    "prague": "PragueVM",
}

# options the engine doesn't model, kept on the provider as configured
_PASSTHROUGH_OPTIONS = (
    "min_gas_price",
    "mempool_order",
    "allow_unlimited_contract_size",
    "throw_on_transaction_failures",
    "throw_on_call_failures",
    "allow_blocks_with_same_timestamp",
    "enable_transient_storage",
    "enable_rip7212",
)


class Engine(Protocol):
    async def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        ...


def create_engine(config: LocalNetworkConfig) -> Engine:
    """
    Build an eth-tester backed engine for ``config``.

    Genesis accounts are allocated in the genesis state, so their balances are
    in place at block 0. When any are configured they replace the tester's
    default accounts.
    """
    # do not import eth_tester until runtime, it's only needed for local networks
    import eth.vm.forks
    from eth_account import Account
    from eth_tester import EthereumTester, PyEVMBackend
    from eth_tester.backends.pyevm.main import GENESIS_DIFFICULTY, GENESIS_MIX_HASH, GENESIS_NONCE
    from eth_utils import to_canonical_address
    from web3.providers.eth_tester import AsyncEthereumTesterProvider

    vm_class = getattr(eth.vm.forks, HARDFORK_VMS[config.hardfork])
    genesis_overrides = {"gas_limit": config.block_gas_limit}
    if not issubclass(vm_class, eth.vm.forks.ParisVM):
        # proof of work header fields for pre-merge forks
        genesis_overrides.update(difficulty=GENESIS_DIFFICULTY, nonce=GENESIS_NONCE, mix_hash=GENESIS_MIX_HASH)

    genesis_state = {
        to_canonical_address(Account.from_key(genesis_account.private_key).address): {
            "balance": genesis_account.balance,
            "nonce": 0,
            "code": b"",
            "storage": {},
        }
        for genesis_account in config.genesis_accounts
    }

    backend = PyEVMBackend(
        genesis_parameters=PyEVMBackend.generate_genesis_params(overrides=genesis_overrides),
        genesis_state=genesis_state or None,
        vm_configuration=((0, vm_class),),
    )
    if genesis_state:
        # the backend derives default keys from the size of the state, sign with the configured ones
        backend.account_keys = ()
    tester = EthereumTester(backend=backend, auto_mine_transactions=config.automine)
    for genesis_account in config.genesis_accounts:
        tester.add_account(genesis_account.private_key)

    tester_provider = AsyncEthereumTesterProvider()
    tester_provider.ethereum_tester = tester
    return TesterEngine(tester_provider)


class TesterEngine:
    """
    Runs requests through the full request function of an eth-tester provider.

    The provider's own middleware converts hex params into the native values
    eth-tester expects and renames result fields to their JSON-RPC names.
    Results are converted back to quantities and ``0x`` data, so they match
    what an HTTP node returns; tester exceptions come back as JSON-RPC error
    objects.
    """

    def __init__(self, tester_provider: Any) -> None:
        self._w3 = AsyncWeb3(tester_provider, middleware=[])

    @property
    def ethereum_tester(self) -> Any:
        return self._w3.provider.ethereum_tester

    async def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        from eth_tester.exceptions import TransactionFailed, ValidationError

        request_func = await self._w3.provider.request_func(self._w3, self._w3.middleware_onion)
        try:
            response = await request_func(method, params)
        except TransactionFailed as e:
            return RPCResponse(jsonrpc="2.0", error={"code": EXECUTION_ERROR_CODE, "message": str(e)})
        except ValidationError as e:
            return RPCResponse(jsonrpc="2.0", error={"code": INVALID_PARAMS_CODE, "message": str(e)})

        if "result" in response:
            return RPCResponse(**assoc(response, "result", to_json_rpc_value(response["result"])))
        return response


class LocalProvider(Provider):
    """
    Provider for the embedded chain.

    ``eth_chainId`` and ``net_version`` are answered from the config; every
    other method goes to the engine.

    Attributes:
        config: The network config the engine was built from
    """

    def __init__(self, config: LocalNetworkConfig, engine: Engine) -> None:
        self.config = config
        self._engine = engine
        self._mining_task: Optional[asyncio.Task] = None

    @classmethod
    async def create(
        cls,
        config: LocalNetworkConfig,
        engine_factory: Callable[[LocalNetworkConfig], Engine] = create_engine,
    ) -> "LocalProvider":
        engine = engine_factory(config)
        provider = cls(config, engine)

        customized = [
            name for name in _PASSTHROUGH_OPTIONS
            if getattr(config, name) != LocalNetworkConfig.model_fields[name].default
        ]
        if customized:
            logger.debug("Local engine ignores options: %s", ", ".join(customized))

        if config.interval_mining:
            provider._mining_task = asyncio.create_task(provider._mine_on_interval())
        return provider

    async def _mine_on_interval(self) -> None:
        while True:
            await asyncio.sleep(self.config.interval_mining)
            try:
                await self.request("evm_mine")
            except ProviderError as e:
                logger.warning("Interval mining failed: %s", e)

    async def request(self, method: str, params: RequestParams = None) -> Any:
        params = get_request_params({"method": method, "params": params})

        if method == "eth_chainId":
            return int_to_rpc_quantity(self.config.chain_id)
        if method == "net_version":
            return str(self.config.network_id)

        response = await self._engine.make_request(RPCEndpoint(method), params)

        error = response.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise ProviderError(
                    int(error.get("code", INTERNAL_ERROR_CODE)),
                    str(error.get("message", "")),
                    error.get("data"),
                )
            raise ProviderError(INTERNAL_ERROR_CODE, str(error))
        return response.get("result")

    async def close(self) -> None:
        if self._mining_task is not None:
            self._mining_task.cancel()
            try:
                await self._mining_task
            except asyncio.CancelledError:
                pass
            self._mining_task = None

    def __repr__(self) -> str:
        return f"LocalProvider(chain_id={self.config.chain_id}, hardfork={self.config.hardfork!r})"


__all__ = ["LocalProvider", "Engine", "TesterEngine", "create_engine", "HARDFORK_VMS"]
