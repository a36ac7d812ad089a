"""
Tests for NetworkManager.
"""

import pytest

from conftest import FakeEngine
from w3net.config import HttpNetworkConfig
from w3net.exceptions import (
    InvalidChainType,
    InvalidConfigOverride,
    InvalidNetworkConfig,
    InvalidNetworkType,
    NetworkNotFound,
)
from w3net.hooks import HookManager
from w3net.manager import NetworkManager
from w3net.providers import HttpProvider, LocalProvider


USER_CONFIG = {
    "networks": {
        "sepolia": {"type": "http", "url": "https://rpc.sepolia.org"},
        "base": {"type": "http", "url": "https://mainnet.base.org", "chain_type": "op"},
    },
}


@pytest.fixture
def engine(monkeypatch) -> FakeEngine:
    engine = FakeEngine()
    create = LocalProvider.create.__func__

    async def create_with_fake_engine(cls, config, engine_factory=None):
        return await create(cls, config, engine_factory=lambda _config: engine)

    monkeypatch.setattr(LocalProvider, "create", classmethod(create_with_fake_engine))
    return engine


@pytest.fixture
def manager() -> NetworkManager:
    return NetworkManager.from_config(USER_CONFIG)


def answer_requests(result):
    async def on_request(connection, request, next_handler):
        return {"jsonrpc": "2.0", "id": request["id"], "result": result}
    return on_request


class TestConnect:
    @pytest.mark.asyncio
    async def test_default_network(self, manager, engine) -> None:
        connection = await manager.connect()

        assert connection.network_name == "local"
        assert connection.chain_type == "l1"
        assert isinstance(connection.provider, LocalProvider)
        assert await connection.request("eth_chainId") == hex(31337)

    @pytest.mark.asyncio
    async def test_http_network(self, manager) -> None:
        connection = await manager.connect("sepolia")

        assert isinstance(connection.provider, HttpProvider)
        assert connection.provider.url == "https://rpc.sepolia.org"
        assert connection.provider.network_name == "sepolia"
        await connection.close()

    @pytest.mark.asyncio
    async def test_connection_ids(self, manager) -> None:
        first = await manager.connect("sepolia")
        await first.close()
        second = await manager.connect("sepolia")
        third = await manager.connect("localhost")

        assert [first.id, second.id, third.id] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_unknown_network(self, manager) -> None:
        with pytest.raises(NetworkNotFound) as exc_info:
            await manager.connect("mainnet")

        assert exc_info.value.network_name == "mainnet"

    @pytest.mark.asyncio
    async def test_unknown_default_network(self) -> None:
        manager = NetworkManager(default_network="missing")

        with pytest.raises(NetworkNotFound):
            await manager.connect()


class TestChainType:
    @pytest.mark.asyncio
    async def test_manager_default(self, manager) -> None:
        connection = await manager.connect("sepolia")
        assert connection.chain_type == "generic"

    @pytest.mark.asyncio
    async def test_requested_chain_type(self, manager) -> None:
        connection = await manager.connect("sepolia", chain_type="op")
        assert connection.chain_type == "op"

    @pytest.mark.asyncio
    async def test_configured_chain_type(self, manager) -> None:
        connection = await manager.connect("base")
        assert connection.chain_type == "op"

    @pytest.mark.asyncio
    async def test_conflicting_chain_type(self, manager) -> None:
        with pytest.raises(InvalidChainType) as exc_info:
            await manager.connect("base", chain_type="l1")

        assert exc_info.value.chain_type == "l1"
        assert exc_info.value.network_chain_type == "op"


class TestConfigOverride:
    @pytest.mark.asyncio
    async def test_override(self, manager) -> None:
        connection = await manager.connect("sepolia", network_config_override={"timeout": 5, "chain_id": 11155111})

        assert connection.network_config.timeout == 5
        assert connection.network_config.chain_id == 11155111
        # declared config is untouched
        assert manager.network_configs["sepolia"].timeout == 20

    @pytest.mark.asyncio
    async def test_override_chain_type(self, manager) -> None:
        connection = await manager.connect("sepolia", network_config_override={"chain_type": "op"})
        assert connection.chain_type == "op"

    @pytest.mark.asyncio
    async def test_type_change(self, manager) -> None:
        with pytest.raises(InvalidConfigOverride):
            await manager.connect("sepolia", network_config_override={"type": "local"})

    @pytest.mark.asyncio
    async def test_local_override(self, manager, engine) -> None:
        connection = await manager.connect(network_config_override={"chain_id": 1337})
        assert await connection.request("eth_chainId") == "0x539"


class TestHooks:
    @pytest.mark.asyncio
    async def test_new_connection(self, manager) -> None:
        seen = []

        async def on_new_connection(next_handler):
            connection = await next_handler()
            seen.append(connection)
            return connection

        manager.hook_manager.register_handlers("network", {"newConnection": on_new_connection})
        connection = await manager.connect("sepolia")

        assert seen == [connection]

    @pytest.mark.asyncio
    async def test_on_request(self, manager) -> None:
        manager.hook_manager.register_handlers("network", {"onRequest": answer_requests("0x2a")})

        connection = await manager.connect("sepolia")

        assert await connection.request("eth_blockNumber") == "0x2a"

    @pytest.mark.asyncio
    async def test_on_request_receives_the_connection(self, manager) -> None:
        seen = []

        async def on_request(connection, request, next_handler):
            seen.append((connection, request["method"]))
            return {"jsonrpc": "2.0", "id": request["id"], "result": "0x1"}

        manager.hook_manager.register_handlers("network", {"onRequest": on_request})
        connection = await manager.connect("sepolia")
        await connection.request("eth_gasPrice")

        assert seen == [(connection, "eth_gasPrice")]

    @pytest.mark.asyncio
    async def test_on_request_chain_id_validation(self, manager) -> None:
        methods = []

        async def on_request(connection, request, next_handler):
            methods.append(request["method"])
            return {"jsonrpc": "2.0", "id": request["id"], "result": "0xaa36a7"}

        manager.hook_manager.register_handlers("network", {"onRequest": on_request})
        connection = await manager.connect("sepolia", network_config_override={"chain_id": 11155111})
        await connection.request("eth_blockNumber")
        await connection.request("eth_blockNumber")

        assert methods == ["eth_chainId", "eth_blockNumber", "eth_blockNumber"]

    @pytest.mark.asyncio
    async def test_close_connection(self, manager) -> None:
        closed = []

        async def on_close(connection, next_handler):
            closed.append(connection)
            await next_handler(connection)

        manager.hook_manager.register_handlers("network", {"closeConnection": on_close})
        connection = await manager.connect("sepolia")
        await connection.close()

        assert closed == [connection]

    @pytest.mark.asyncio
    async def test_shared_hook_manager(self) -> None:
        hook_manager = HookManager()
        manager = NetworkManager.from_config(USER_CONFIG, hook_manager=hook_manager)

        assert manager.hook_manager is hook_manager


class TestNetworkManager:
    def test_from_config_adds_builtin_networks(self, manager) -> None:
        assert set(manager.network_configs) == {"local", "localhost", "sepolia", "base"}

    def test_accepts_raw_and_parsed_configs(self) -> None:
        manager = NetworkManager(network_configs={
            "raw": {"type": "http", "url": "http://127.0.0.1:8545"},
            "parsed": HttpNetworkConfig(url="http://127.0.0.1:8546"),
        })

        assert manager.network_configs["raw"].url == "http://127.0.0.1:8545"
        assert manager.network_configs["parsed"].url == "http://127.0.0.1:8546"

    def test_invalid_network_type(self) -> None:
        with pytest.raises(InvalidNetworkType):
            NetworkManager(network_configs={"ipc": {"type": "ipc"}})

    def test_invalid_network_config(self) -> None:
        with pytest.raises(InvalidNetworkConfig):
            NetworkManager(network_configs={"broken": {"type": "http", "url": 8545}})
