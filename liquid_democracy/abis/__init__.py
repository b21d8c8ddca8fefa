"""
Contract Interface Descriptions
===============================

JSON ABIs for the contracts the deployment scripts talk to:
- DAOFactory: emits DeployDAO when the template creates a DAO
- Kernel: emits NewAppProxy for every installed application
- LiquidDemocracyTemplate: the deployment API itself
"""

import os
import json
from typing import Any, Dict, List

from ..errors import ConfigurationError

ABI_DIR = os.path.dirname(__file__)


def _read_json(file_path: str) -> Any:
    try:
        with open(file_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Contract interface not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Contract interface {file_path} is not valid JSON: {e}")


def load_abi(name_or_path: str) -> List[Dict[str, Any]]:
    """Load a packaged ABI by contract name, or any ABI/artifact file by path.

    Build artifacts (objects with an ``abi`` key) are accepted as well as
    bare ABI lists.
    """
    packaged = os.path.join(ABI_DIR, f"{name_or_path}.json")
    file_path = packaged if os.path.exists(packaged) else name_or_path
    data = _read_json(file_path)
    if isinstance(data, dict):
        data = data.get('abi')
    if not isinstance(data, list):
        raise ConfigurationError(f"No ABI found in {file_path}")
    return data


def load_artifact(file_path: str) -> Dict[str, Any]:
    """Load a compiled contract artifact with ``abi`` and ``bytecode``."""
    data = _read_json(file_path)
    if not isinstance(data, dict) or 'abi' not in data or not data.get('bytecode'):
        raise ConfigurationError(f"{file_path} is not a contract artifact with abi and bytecode")
    return data
