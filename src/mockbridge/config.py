"""
mockbridge Configuration

Server and transport settings, loadable from keyword arguments, environment
variables or a YAML file.

Example YAML:
    host: 127.0.0.1
    port: 5000
    log_level: debug
    static_mock_dir: ./mocks
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

ENV_PREFIX = "MOCKBRIDGE_"

# One day, keeps pooled connections alive for a whole test run
DEFAULT_KEEPALIVE_SECONDS = 60 * 60 * 24


@dataclass
class ServerConfig:
    """Configuration for a mock server and the clients talking to it."""

    # Bind / connect address (port 0 picks a free port for local servers)
    host: str = "127.0.0.1"
    port: int = 0

    log_level: str = "info"

    # Directory with YAML mock definitions loaded at startup
    static_mock_dir: Optional[str] = None

    # Transport
    keepalive_seconds: float = DEFAULT_KEEPALIVE_SECONDS
    request_timeout: Optional[float] = None

    def __post_init__(self):
        self.port = _parse_port(self.port)
        self.log_level = str(self.log_level).lower()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ServerConfig':
        """Create a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ServerConfig':
        """Load config from a YAML file."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {yaml_path}, found {type(data).__name__}")

        return cls.from_dict(data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """
        Create a config from MOCKBRIDGE_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ServerConfig with defaults for every unset variable
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        for name in ('host', 'port', 'log_level', 'static_mock_dir'):
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw

        return cls(**values)

    @property
    def static_mock_path(self) -> Optional[Path]:
        return Path(self.static_mock_dir) if self.static_mock_dir else None


def _parse_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port: {value!r}") from None

    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range: {port}")
    return port
