"""
Receipt log decoding.

Transactions sent to the template emit events from several contracts
(the DAO factory, the new kernel, the template itself), so logs are matched
by event signature hash against a given ABI rather than by emitter address.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import collapse_if_tuple, event_abi_to_log_topic, to_checksum_address
from hexbytes import HexBytes

from .errors import AmbiguousEventError, EventNotFoundError, LogDecodeError

logger = logging.getLogger(__name__)


@dataclass
class DecodedEvent:
    event: str
    args: Dict[str, Any]
    address: Optional[str] = None
    log_index: Optional[int] = None
    transaction_hash: Optional[HexBytes] = None
    block_number: Optional[int] = None
    topics: List[HexBytes] = field(default_factory=list, repr=False)


def find_event_abi(contract_abi: Sequence[Mapping[str, Any]], event_name: str) -> Mapping[str, Any]:
    """Return the single event named ``event_name`` in ``contract_abi``."""
    matches = [
        entry for entry in contract_abi
        if entry.get('type') == 'event' and entry.get('name') == event_name
    ]
    if not matches:
        raise EventNotFoundError(event_name, f"No event named {event_name!r} in contract ABI")
    if len(matches) > 1:
        signatures = ", ".join(
            f"{event_name}({','.join(collapse_if_tuple(i) for i in m.get('inputs', []))})"
            for m in matches
        )
        raise AmbiguousEventError(event_name, f"Event {event_name!r} is overloaded in contract ABI: {signatures}")
    return matches[0]


def _is_dynamic(type_str: str) -> bool:
    return type_str in ('string', 'bytes') or type_str.endswith(']') or type_str.startswith('(')


def _normalize(type_str: str, value: Any) -> Any:
    if type_str == 'address':
        return to_checksum_address(value)
    if type_str.startswith('address[') and isinstance(value, (list, tuple)):
        inner = type_str[len('address'):]
        inner_type = 'address' + inner[inner.index(']') + 1:]
        return tuple(_normalize(inner_type, v) for v in value)
    return value


def decode_log(event_abi: Mapping[str, Any], log: Mapping[str, Any]) -> DecodedEvent:
    """Decode one log already known to carry ``event_abi``'s signature.

    Indexed arguments of dynamic type are stored on chain as their hash, so
    the raw 32-byte topic is returned for them.
    """
    inputs = event_abi.get('inputs', [])
    topics = [HexBytes(t) for t in log['topics']]
    indexed = [i for i in inputs if i.get('indexed')]
    if len(topics) - 1 != len(indexed):
        raise LogDecodeError(
            f"{event_abi['name']} declares {len(indexed)} indexed argument(s) "
            f"but log has {len(topics) - 1} topic(s) after the signature"
        )

    data_inputs = [i for i in inputs if not i.get('indexed')]
    data_types = [collapse_if_tuple(i) for i in data_inputs]
    try:
        data_values = decode(data_types, HexBytes(log.get('data', b''))) if data_types else ()
    except DecodingError as e:
        raise LogDecodeError(f"Could not decode {event_abi['name']} data: {e}") from e

    remaining_data = iter(data_values)
    remaining_topics = iter(topics[1:])

    args = {}
    for position, arg in enumerate(inputs):
        name = arg.get('name') or str(position)
        type_str = collapse_if_tuple(arg)
        if arg.get('indexed'):
            topic = next(remaining_topics)
            value = topic if _is_dynamic(type_str) else decode([type_str], topic)[0]
        else:
            value = next(remaining_data)
        args[name] = _normalize(type_str, value)

    return DecodedEvent(
        event=event_abi['name'],
        args=args,
        address=log.get('address'),
        log_index=log.get('logIndex'),
        transaction_hash=log.get('transactionHash'),
        block_number=log.get('blockNumber'),
        topics=topics,
    )


def decode_events(receipt: Mapping[str, Any], contract_abi: Sequence[Mapping[str, Any]],
                  event_name: str) -> List[DecodedEvent]:
    """Decode every log in ``receipt`` emitted as ``event_name``.

    Logs are matched on their first topic and returned in receipt order.
    Anonymous logs (no topics) never match, nor do logs whose indexed topic
    count differs from the ABI (another contract's event with the same
    signature but different indexing).
    """
    event_abi = find_event_abi(contract_abi, event_name)
    signature = HexBytes(event_abi_to_log_topic(event_abi))
    indexed_count = sum(1 for i in event_abi.get('inputs', []) if i.get('indexed'))

    events = []
    for log in receipt.get('logs', []):
        topics = log.get('topics') or []
        if not topics or HexBytes(topics[0]) != signature:
            continue
        if len(topics) - 1 != indexed_count:
            logger.debug(f"Skipping {event_name} log at index {log.get('logIndex')}: "
                         f"{len(topics) - 1} indexed topic(s), ABI declares {indexed_count}")
            continue
        decoded = decode_log(event_abi, log)
        logger.debug(f"Decoded {decoded.event} at log index {decoded.log_index}: {decoded.args}")
        events.append(decoded)
    return events


def get_event_argument(receipt: Mapping[str, Any], contract_abi: Sequence[Mapping[str, Any]],
                       event_name: str, argument: str, index: int = 0) -> Any:
    """Value of ``argument`` in the ``index``-th ``event_name`` log of a receipt."""
    events = decode_events(receipt, contract_abi, event_name)
    if len(events) <= index:
        raise EventNotFoundError(
            event_name, f"Receipt has {len(events)} {event_name} log(s), wanted index {index}"
        )
    return events[index].args[argument]
