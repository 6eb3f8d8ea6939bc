"""
Tests for mockbridge Server Runner

Tests starting servers and obtaining adapters:
- Background server lifecycle
- connect() for standalone servers
- wait_until_ready() polling
- Remote adapter against a real server
- Standalone command line
"""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from mockbridge.adapter.remote import RemoteMockServerAdapter
from mockbridge.config import ServerConfig
from mockbridge.data import MockDefinition, MockServerHttpResponse, RequestRequirements
from mockbridge.errors import MockValidationError, TransportError, UnexpectedStatusError
from mockbridge.server.__main__ import main
from mockbridge.server.runner import MockServer, connect, wait_until_ready


class TestMockServer:
    """Test MockServer lifecycle."""

    def test_adapter_requires_start(self):
        server = MockServer()

        with pytest.raises(RuntimeError, match="not started"):
            server.adapter()

    def test_start_binds_ephemeral_port(self):
        server = MockServer().start()
        try:
            host, port = server.addr
            assert host == "127.0.0.1"
            assert port > 0
            assert server.adapter().address() == f"127.0.0.1:{port}"
        finally:
            server.stop()

    def test_start_twice(self):
        with MockServer() as server:
            with pytest.raises(RuntimeError, match="already started"):
                server.start()

    def test_stop_is_idempotent(self):
        server = MockServer().start()
        server.stop()
        server.stop()

    def test_static_mocks_loaded(self, tmp_path):
        (tmp_path / "health.yaml").write_text("request:\n  path: /health\nresponse:\n  body: ok\n")

        server = MockServer(ServerConfig(static_mock_dir=str(tmp_path)))

        assert [m.is_static for m in server.state.mocks.values()] == [True]

    @patch('mockbridge.server.runner.load_static_mocks')
    def test_static_mock_dir_resolved_to_path(self, mock_load, tmp_path):
        MockServer(ServerConfig(static_mock_dir=str(tmp_path)))

        _, directory = mock_load.call_args.args
        assert directory == tmp_path

    @patch('mockbridge.server.runner.load_static_mocks')
    def test_no_static_mock_dir(self, mock_load):
        MockServer(ServerConfig())

        mock_load.assert_not_called()

    def test_serves_over_http(self):
        definition = MockDefinition(
            request=RequestRequirements(method="GET", path="/hello"),
            response=MockServerHttpResponse(status=200, body="world")
        )

        with MockServer() as server:
            adapter = server.adapter()
            asyncio.run(adapter.create_mock(definition))

            host, port = server.addr
            response = httpx.get(f"http://{host}:{port}/hello")

        assert response.status_code == 200
        assert response.text == "world"


class TestConnect:
    """Test connect()."""

    def test_connect_with_config(self):
        adapter = connect(ServerConfig(host="10.1.2.3", port=5050))

        assert isinstance(adapter, RemoteMockServerAdapter)
        assert adapter.address() == "10.1.2.3:5050"

    def test_connect_from_environment(self, monkeypatch):
        monkeypatch.setenv("MOCKBRIDGE_HOST", "mock.internal")
        monkeypatch.setenv("MOCKBRIDGE_PORT", "6000")

        adapter = connect()

        assert adapter.host() == "mock.internal"
        assert adapter.port() == 6000

    def test_connect_requires_port(self):
        with pytest.raises(ValueError, match="port is required"):
            connect(ServerConfig(port=0))

    def test_remote_adapter_against_running_server(self):
        definition = MockDefinition(
            request=RequestRequirements(method="POST", path="/orders"),
            response=MockServerHttpResponse(status=201, body="created")
        )

        with MockServer() as server:
            adapter = connect(ServerConfig(port=server.addr[1]))

            async def scenario():
                await wait_until_ready(adapter, timeout=5)
                ref = await adapter.create_mock(definition)

                async with httpx.AsyncClient() as client:
                    served = await client.post(f"http://{adapter.address()}/orders")
                    await client.get(f"http://{adapter.address()}/zzz")

                active = await adapter.fetch_mock(ref.id)
                closest = await adapter.verify(RequestRequirements(method="DELETE", path="/orders"))

                await adapter.delete_mock(ref.id)
                with pytest.raises(UnexpectedStatusError) as exc_info:
                    await adapter.delete_mock(ref.id)

                await adapter.delete_history()
                after_clear = await adapter.verify(RequestRequirements(path="/nothing"))
                return served, active, closest, exc_info.value, after_clear

            served, active, closest, delete_error, after_clear = asyncio.run(scenario())

        assert served.status_code == 201
        assert served.text == "created"
        assert active.call_counter == 1
        assert closest.request_index == 0
        assert [m.title for m in closest.mismatches] == ["Method"]
        assert delete_error.status == 404
        assert after_clear is None

    def test_remote_adapter_across_event_loops(self):
        with MockServer() as server:
            adapter = connect(ServerConfig(port=server.addr[1]))

            asyncio.run(adapter.ping())
            ref = asyncio.run(adapter.create_mock(MockDefinition(request=RequestRequirements(path="/x"))))
            asyncio.run(adapter.delete_mock(ref.id))

            assert server.state.mocks == {}

    def test_remote_adapter_rejects_matchers(self):
        adapter = connect(ServerConfig(port=5000))
        definition = MockDefinition(request=RequestRequirements(matchers=[lambda req: True]))

        with pytest.raises(MockValidationError):
            asyncio.run(adapter.create_mock(definition))


class TestWaitUntilReady:
    """Test wait_until_ready()."""

    def test_returns_once_ping_succeeds(self):
        adapter = Mock()
        adapter.ping = AsyncMock(side_effect=[TransportError("down"), TransportError("down"), None])

        asyncio.run(wait_until_ready(adapter, timeout=5, interval=0.001))

        assert adapter.ping.await_count == 3

    def test_raises_last_error_after_timeout(self):
        adapter = Mock()
        adapter.ping = AsyncMock(side_effect=TransportError("still down"))

        with pytest.raises(TransportError, match="still down"):
            asyncio.run(wait_until_ready(adapter, timeout=0.05, interval=0.01))


class TestStandaloneMain:
    """Test the standalone command line."""

    @patch('mockbridge.server.__main__.MockServer')
    def test_defaults_to_port_5000(self, mock_server_cls, monkeypatch):
        monkeypatch.delenv("MOCKBRIDGE_PORT", raising=False)

        assert main([]) == 0

        config = mock_server_cls.call_args.args[0]
        assert config.port == 5000
        mock_server_cls.return_value.serve_forever.assert_called_once()

    @patch('mockbridge.server.__main__.MockServer')
    def test_cli_overrides_config_file(self, mock_server_cls, tmp_path):
        path = tmp_path / "server.yaml"
        path.write_text("host: 0.0.0.0\nport: 8080\nlog_level: warning\n")

        main(['--config', str(path), '--port', '9090'])

        config = mock_server_cls.call_args.args[0]
        assert config.host == "0.0.0.0"
        assert config.port == 9090
        assert config.log_level == "warning"

    def test_missing_static_mock_dir(self, tmp_path, capsys):
        assert main(['--static-mock-dir', str(tmp_path / "missing")]) == 1
        assert "Static mock directory not found" in capsys.readouterr().err

    def test_invalid_port(self, capsys):
        assert main(['--port', '70000']) == 1
        assert "Error" in capsys.readouterr().err
