"""
mockbridge Static Mocks

Loads mock definitions from YAML files when a server starts. Static mocks
survive delete_all_mocks().

Supported file layouts:
- a single definition:  {request: {...}, response: {...}}
- a list of definitions: [{request: ...}, ...]
- a wrapped list:        {mocks: [{request: ...}, ...]}
"""

import logging
from pathlib import Path
from typing import Any, List, Union

import yaml

from ..data import MockDefinition
from .handlers import add_new_mock
from .state import MockOrigin, MockServerState

logger = logging.getLogger("mockbridge.server")

YAML_SUFFIXES = ('.yaml', '.yml')


def _definitions(data: Any, source: Path) -> List[MockDefinition]:
    if isinstance(data, dict) and 'mocks' in data:
        data = data['mocks']
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"Unexpected static mock format in {source}")

    try:
        return [MockDefinition.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as err:
        raise ValueError(f"Invalid mock definition in {source}: {err!r}") from err


def load_static_mocks(state: MockServerState, directory: Union[str, Path]) -> List[int]:
    """
    Load every YAML file in `directory` as static mocks.

    Args:
        state: State to add the mocks to
        directory: Directory containing *.yaml / *.yml files

    Returns:
        Ids of the created mocks, in file name order

    Raises:
        FileNotFoundError: If the directory does not exist
        ValueError: If a file does not contain valid mock definitions
    """
    path = Path(directory)
    if not path.is_dir():
        raise FileNotFoundError(f"Static mock directory not found: {path}")

    ids = []
    for file_path in sorted(p for p in path.iterdir() if p.suffix in YAML_SUFFIXES):
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if data is None:
            continue

        for definition in _definitions(data, file_path):
            ids.append(add_new_mock(state, definition, MockOrigin.STATIC))

    logger.info(f"Loaded {len(ids)} static mocks from {path}")
    return ids
