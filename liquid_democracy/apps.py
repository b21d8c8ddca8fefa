"""
Aragon application ids and installed-app lookup.

An app id is the ENS namehash of the app's repository name. The delegable
apps are published under ``open.aragonpm.eth``, the standard ones under
``aragonpm.eth``.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from eth_utils import keccak, to_bytes
from hexbytes import HexBytes

from .abis import load_abi
from .events import decode_events

logger = logging.getLogger(__name__)

APPS = [
    {'name': 'agent', 'contract_name': 'Agent'},
    {'name': 'vault', 'contract_name': 'Vault'},
    {'name': 'voting', 'contract_name': 'Voting'},
    {'name': 'survey', 'contract_name': 'Survey'},
    {'name': 'payroll', 'contract_name': 'Payroll'},
    {'name': 'finance', 'contract_name': 'Finance'},
    {'name': 'token-manager', 'contract_name': 'TokenManager'},
    {'name': 'delegable-voting', 'contract_name': 'DelegableVoting'},
    {'name': 'delegable-token-manager', 'contract_name': 'DelegableTokenManager'},
]

OPEN_APPS = ('delegable-voting', 'delegable-token-manager')


def namehash(name: str) -> HexBytes:
    """ENS namehash of a dotted name (no resolution, just the hash)."""
    node = b'\x00' * 32
    if name:
        for label in reversed(name.split('.')):
            node = keccak(node + keccak(text=label))
    return HexBytes(node)


def app_repo_name(app_name: str) -> str:
    registry = 'open.aragonpm.eth' if app_name in OPEN_APPS else 'aragonpm.eth'
    return f"{app_name}.{registry}"


APP_IDS = {app['name']: namehash(app_repo_name(app['name'])) for app in APPS}

DELEGABLE_VOTING_APP_ID = APP_IDS['delegable-voting']
DELEGABLE_TOKEN_MANAGER_APP_ID = APP_IDS['delegable-token-manager']


def installed_apps(receipt: Mapping[str, Any], app_id: Any,
                   kernel_abi: Optional[Sequence[Mapping[str, Any]]] = None) -> List[str]:
    """Proxy addresses of every ``app_id`` instance installed in ``receipt``."""
    if kernel_abi is None:
        kernel_abi = load_abi('Kernel')
    wanted = HexBytes(to_bytes(hexstr=app_id) if isinstance(app_id, str) else app_id)
    return [
        event.args['proxy']
        for event in decode_events(receipt, kernel_abi, 'NewAppProxy')
        if HexBytes(event.args['appId']) == wanted
    ]


def installed_apps_by_name(receipt: Mapping[str, Any],
                           kernel_abi: Optional[Sequence[Mapping[str, Any]]] = None) -> Dict[str, List[str]]:
    if kernel_abi is None:
        kernel_abi = load_abi('Kernel')
    apps = {name: installed_apps(receipt, app_id, kernel_abi) for name, app_id in APP_IDS.items()}
    counts = {name: len(proxies) for name, proxies in apps.items() if proxies}
    logger.debug(f"Installed apps: {counts}")
    return apps
