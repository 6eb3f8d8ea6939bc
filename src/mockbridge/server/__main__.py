"""
mockbridge standalone server

Usage:
    python -m mockbridge.server --port 5000
    python -m mockbridge.server --config server.yaml
    python -m mockbridge.server --static-mock-dir ./mocks --log-level debug
"""

import argparse
import dataclasses
import logging
import sys

from ..config import ServerConfig
from .runner import MockServer

DEFAULT_STANDALONE_PORT = 5000


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="mockbridge standalone mock server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m mockbridge.server --port 5000
  python -m mockbridge.server --static-mock-dir ./mocks
        """
    )
    parser.add_argument('--config', help='YAML configuration file')
    parser.add_argument('--host', help='Host to bind to')
    parser.add_argument('--port', type=int, help=f'Port to bind to (default: {DEFAULT_STANDALONE_PORT})')
    parser.add_argument('--static-mock-dir', help='Directory with YAML mock definitions')
    parser.add_argument('--log-level', choices=['critical', 'error', 'warning', 'info', 'debug'])

    args = parser.parse_args(argv)

    try:
        config = ServerConfig.from_yaml(args.config) if args.config else ServerConfig.from_env()

        overrides = {
            'host': args.host,
            'port': args.port,
            'static_mock_dir': args.static_mock_dir,
            'log_level': args.log_level,
        }
        config = dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})
        if config.port == 0:
            config = dataclasses.replace(config, port=DEFAULT_STANDALONE_PORT)

        logging.basicConfig(
            level=getattr(logging, config.log_level.upper()),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

        server = MockServer(config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    server.serve_forever()
    return 0


if __name__ == '__main__':
    sys.exit(main())
