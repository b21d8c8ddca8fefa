"""Receipt builders for tests, encoding logs with the packaged ABIs."""

from eth_abi import encode
from eth_utils import collapse_if_tuple, event_abi_to_log_topic
from hexbytes import HexBytes

from .abis import load_abi
from .apps import DELEGABLE_TOKEN_MANAGER_APP_ID, DELEGABLE_VOTING_APP_ID
from .events import find_event_abi

DAO = '0x' + 'da' * 20
VOTING_PROXY = '0x' + 'a1' * 20
TOKEN_MANAGER_PROXY = '0x' + 'a2' * 20


def build_log(event_abi, values, address='0x' + 'fa' * 20, log_index=0):
    """Encode ``values`` (name -> value) as a log emitted by ``event_abi``.

    Indexed values given as bytes are used as the topic unchanged.
    """
    topics = [HexBytes(event_abi_to_log_topic(event_abi))]
    data_types, data_values = [], []
    for arg in event_abi['inputs']:
        type_str = collapse_if_tuple(arg)
        value = values[arg['name']]
        if arg.get('indexed'):
            topics.append(HexBytes(value) if isinstance(value, bytes) else HexBytes(encode([type_str], [value])))
        else:
            data_types.append(type_str)
            data_values.append(value)
    return {
        'address': address,
        'topics': topics,
        'data': HexBytes(encode(data_types, data_values)),
        'logIndex': log_index,
        'transactionHash': HexBytes(b'\x77' * 32),
        'blockNumber': 12,
    }


def build_prepare_receipt():
    """What prepareInstance emits: the new DAO, then its installed apps."""
    dao_factory_abi = load_abi('DAOFactory')
    new_app_proxy = find_event_abi(load_abi('Kernel'), 'NewAppProxy')
    logs = [
        build_log(find_event_abi(dao_factory_abi, 'DeployEVMScriptRegistry'), {'reg': '0x' + 'ee' * 20}, log_index=0),
        build_log(find_event_abi(dao_factory_abi, 'DeployDAO'), {'dao': DAO}, log_index=1),
        build_log(new_app_proxy, {'proxy': VOTING_PROXY, 'isUpgradeable': True,
                                  'appId': bytes(DELEGABLE_VOTING_APP_ID)}, address=DAO, log_index=2),
        build_log(new_app_proxy, {'proxy': TOKEN_MANAGER_PROXY, 'isUpgradeable': True,
                                  'appId': bytes(DELEGABLE_TOKEN_MANAGER_APP_ID)}, address=DAO, log_index=3),
    ]
    return {'status': 1, 'blockNumber': 12, 'logs': logs}
