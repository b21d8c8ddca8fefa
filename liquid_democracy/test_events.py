#!/usr/bin/env python3
"""
Tests for receipt log decoding
"""

import pytest
from eth_utils import encode_hex, keccak, to_checksum_address

from liquid_democracy.testing import DAO
from liquid_democracy.errors import AmbiguousEventError, EventNotFoundError, LogDecodeError
from liquid_democracy.events import decode_events, decode_log, find_event_abi, get_event_argument

ALICE = '0x' + '0a' * 20
BOB = '0x' + '0b' * 20

TRANSFER = {
    'type': 'event',
    'name': 'Transfer',
    'anonymous': False,
    'inputs': [
        {'indexed': True, 'name': 'from', 'type': 'address'},
        {'indexed': True, 'name': 'to', 'type': 'address'},
        {'indexed': False, 'name': 'value', 'type': 'uint256'},
    ],
}

MIXED = {
    'type': 'event',
    'name': 'Mixed',
    'anonymous': False,
    'inputs': [
        {'indexed': False, 'name': 'amount', 'type': 'uint256'},
        {'indexed': True, 'name': 'holder', 'type': 'address'},
        {'indexed': False, 'name': 'members', 'type': 'address[]'},
        {'indexed': True, 'name': 'label', 'type': 'string'},
    ],
}


class TestFindEventAbi:
    def test_finds_single_event(self, dao_factory_abi):
        assert find_event_abi(dao_factory_abi, 'DeployDAO')['name'] == 'DeployDAO'

    def test_missing_event(self, dao_factory_abi):
        with pytest.raises(EventNotFoundError, match="NewAppProxy"):
            find_event_abi(dao_factory_abi, 'NewAppProxy')

    def test_functions_are_not_events(self, dao_factory_abi):
        with pytest.raises(EventNotFoundError):
            find_event_abi(dao_factory_abi, 'newDAO')

    def test_overloaded_event_is_rejected(self):
        overloaded = dict(TRANSFER, inputs=TRANSFER['inputs'][:2])
        with pytest.raises(AmbiguousEventError) as exc:
            find_event_abi([TRANSFER, overloaded], 'Transfer')
        assert exc.value.event_name == 'Transfer'
        assert "Transfer(address,address,uint256)" in str(exc.value)


class TestDecodeEvents:
    def test_single_matching_log(self, make_log, dao_factory_abi):
        event_abi = find_event_abi(dao_factory_abi, 'DeployDAO')
        receipt = {'logs': [make_log(event_abi, {'dao': DAO}, log_index=4)]}

        events = decode_events(receipt, dao_factory_abi, 'DeployDAO')

        assert len(events) == 1
        assert events[0].event == 'DeployDAO'
        assert events[0].args == {'dao': to_checksum_address(DAO)}
        assert events[0].log_index == 4
        assert events[0].block_number == 12

    def test_no_matching_logs(self, make_log, dao_factory_abi):
        other = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 1})
        assert decode_events({'logs': [other]}, dao_factory_abi, 'DeployDAO') == []
        assert decode_events({'logs': []}, dao_factory_abi, 'DeployDAO') == []

    def test_keeps_receipt_order(self, make_log, prepare_receipt):
        receipt = dict(prepare_receipt)
        receipt['logs'] = [
            make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 3}, log_index=0),
            make_log(TRANSFER, {'from': BOB, 'to': ALICE, 'value': 1}, log_index=1),
        ] + prepare_receipt['logs'] + [
            make_log(TRANSFER, {'from': ALICE, 'to': ALICE, 'value': 2}, log_index=9),
        ]

        events = decode_events(receipt, [TRANSFER], 'Transfer')

        assert [e.args['value'] for e in events] == [3, 1, 2]
        assert [e.log_index for e in events] == [0, 1, 9]

    def test_indexed_arguments(self, make_log):
        receipt = {'logs': [make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 10 ** 18})]}

        event = decode_events(receipt, [TRANSFER], 'Transfer')[0]

        assert list(event.args) == ['from', 'to', 'value']
        assert event.args['from'] == to_checksum_address(ALICE)
        assert event.args['to'] == to_checksum_address(BOB)
        assert event.args['value'] == 10 ** 18

    def test_argument_order_follows_declaration(self, make_log):
        label_hash = keccak(text="Executive")
        receipt = {'logs': [make_log(MIXED, {
            'amount': 5, 'holder': ALICE, 'members': [ALICE, BOB], 'label': label_hash,
        })]}

        event = decode_events(receipt, [MIXED], 'Mixed')[0]

        assert list(event.args) == ['amount', 'holder', 'members', 'label']
        assert event.args['amount'] == 5
        assert event.args['holder'] == to_checksum_address(ALICE)
        assert event.args['members'] == (to_checksum_address(ALICE), to_checksum_address(BOB))
        # indexed strings are only available as their hash
        assert event.args['label'] == label_hash

    def test_hex_string_logs(self, make_log):
        log = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 7})
        log['topics'] = [encode_hex(t) for t in log['topics']]
        log['data'] = encode_hex(log['data'])

        events = decode_events({'logs': [log]}, [TRANSFER], 'Transfer')

        assert events[0].args['value'] == 7

    def test_anonymous_logs_are_skipped(self, make_log):
        log = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 7})
        anonymous = dict(log, topics=[])
        assert len(decode_events({'logs': [anonymous, log]}, [TRANSFER], 'Transfer')) == 1

    def test_differently_indexed_logs_are_skipped(self, make_log):
        # ERC721 Transfer shares the ERC20 signature but indexes all three arguments
        erc721 = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 7}, log_index=0)
        erc721['topics'] = erc721['topics'] + [erc721['topics'][1]]
        truncated = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 8}, log_index=1)
        truncated['topics'] = truncated['topics'][:2]
        valid = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 9}, log_index=2)

        events = decode_events({'logs': [erc721, truncated, valid]}, [TRANSFER], 'Transfer')

        assert [e.log_index for e in events] == [2]
        assert events[0].args['value'] == 9

    def test_decode_log_rejects_topic_count_mismatch(self, make_log):
        log = make_log(TRANSFER, {'from': ALICE, 'to': BOB, 'value': 7})
        log['topics'] = log['topics'][:2]
        with pytest.raises(LogDecodeError, match="indexed"):
            decode_log(TRANSFER, log)

    def test_undefined_event_fails_even_without_logs(self):
        with pytest.raises(EventNotFoundError):
            decode_events({'logs': []}, [TRANSFER], 'DeployDAO')


class TestGetEventArgument:
    def test_returns_argument(self, prepare_receipt, dao_factory_abi):
        assert get_event_argument(prepare_receipt, dao_factory_abi, 'DeployDAO', 'dao') == to_checksum_address(DAO)

    def test_missing_log(self, dao_factory_abi):
        with pytest.raises(EventNotFoundError, match="wanted index 0"):
            get_event_argument({'logs': []}, dao_factory_abi, 'DeployDAO', 'dao')
