"""
Tests for mockbridge configuration
"""

import pytest

from mockbridge.config import DEFAULT_KEEPALIVE_SECONDS, ServerConfig


class TestServerConfig:
    """Test ServerConfig."""

    def test_default_config(self):
        config = ServerConfig()

        assert config.host == '127.0.0.1'
        assert config.port == 0
        assert config.log_level == 'info'
        assert config.static_mock_dir is None
        assert config.keepalive_seconds == DEFAULT_KEEPALIVE_SECONDS == 86400
        assert config.request_timeout is None

    def test_port_parsed_from_string(self):
        assert ServerConfig(port="5000").port == 5000

    @pytest.mark.parametrize('port', ['abc', -1, 70000])
    def test_invalid_port(self, port):
        with pytest.raises(ValueError):
            ServerConfig(port=port)

    def test_from_env(self):
        config = ServerConfig.from_env({
            'MOCKBRIDGE_HOST': '10.0.0.5',
            'MOCKBRIDGE_PORT': '5050',
            'MOCKBRIDGE_LOG_LEVEL': 'DEBUG',
            'UNRELATED': 'x'
        })

        assert config.host == '10.0.0.5'
        assert config.port == 5050
        assert config.log_level == 'debug'

    def test_from_env_empty(self):
        assert ServerConfig.from_env({}) == ServerConfig()

    def test_from_yaml(self, tmp_path):
        path = tmp_path / 'server.yaml'
        path.write_text("host: 0.0.0.0\nport: 8081\nstatic_mock_dir: ./mocks\nunknown: 1\n")

        config = ServerConfig.from_yaml(str(path))

        assert config.host == '0.0.0.0'
        assert config.port == 8081
        assert config.static_mock_path.name == 'mocks'

    def test_from_yaml_not_a_mapping(self, tmp_path):
        path = tmp_path / 'server.yaml'
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError):
            ServerConfig.from_yaml(str(path))
