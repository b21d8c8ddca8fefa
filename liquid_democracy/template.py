"""
Client for the LiquidDemocracyTemplate contract.

Each method sends one transaction, waits for it to be mined and returns the
receipt. Transactions are signed locally when a private key account is
given, otherwise they are sent from an unlocked node account.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from eth_utils import to_checksum_address
from web3 import Web3

from .abis import load_abi
from .errors import DeploymentError, TransactionFailedError
from .units import UnitDescriptor, VotingSettings

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_TIMEOUT = 300


class TransactionSender:
    """Builds, signs and sends transactions and waits for their receipts."""

    def __init__(self, w3: Web3, account: Optional[Any] = None, sender: Optional[str] = None,
                 gas_price: Optional[int] = None, gas: Optional[int] = None,
                 receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT):
        self.w3 = w3
        self.account = account
        self._sender = to_checksum_address(sender) if sender else None
        self.gas_price = gas_price
        self.gas = gas
        self.receipt_timeout = receipt_timeout

    @property
    def sender(self) -> str:
        if self.account is not None:
            return self.account.address
        if self._sender is None:
            self._sender = self.w3.eth.accounts[0]
        return self._sender

    def tx_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {'from': self.sender}
        if self.gas_price is not None:
            params['gasPrice'] = self.gas_price
        if self.gas is not None:
            params['gas'] = self.gas
        return params

    def send(self, label: str, call) -> Dict[str, Any]:
        """Send a prepared contract call (function or constructor)."""
        params = self.tx_params()
        if self.account is not None:
            params['nonce'] = self.w3.eth.get_transaction_count(self.account.address)
            tx = call.build_transaction(params)
            signed_tx = self.account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        else:
            tx_hash = call.transact(params)

        logger.info(f"{label} sent: {Web3.to_hex(tx_hash)}")
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt['status'] != 1:
            raise TransactionFailedError(label, Web3.to_hex(tx_hash), receipt)
        logger.info(f"{label} confirmed in block {receipt['blockNumber']}")
        return receipt


class LiquidDemocracyTemplate:
    """The template's four-step deployment API."""

    def __init__(self, w3: Web3, address: str, abi: Optional[Sequence[Dict[str, Any]]] = None,
                 sender: Optional[TransactionSender] = None):
        self.w3 = w3
        self.address = to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=abi or load_abi('LiquidDemocracyTemplate'))
        self.sender = sender or TransactionSender(w3)

    def _transact(self, function_name: str, *args) -> Dict[str, Any]:
        call = getattr(self.contract.functions, function_name)(*args)
        return self.sender.send(function_name, call)

    def prepare_instance(self, unit: UnitDescriptor, voting_settings: VotingSettings,
                         token_index: int = 0) -> Dict[str, Any]:
        """Create the DAO and its management token and voting app."""
        return self._transact('prepareInstance', *unit.token_args(), voting_settings.as_list(), token_index)

    def install_department(self, unit: UnitDescriptor, voting_settings: VotingSettings,
                           token_index: int = 0) -> Dict[str, Any]:
        """Create a department token and its voting app."""
        return self._transact('installDepartment', *unit.token_args(), voting_settings.as_list(), token_index)

    def distribute_department_tokens(self, members: Sequence[str], stakes: Sequence[int]) -> Dict[str, Any]:
        """Mint the last installed department's tokens to ``members``."""
        return self._transact('distributeDepartmentTokens', list(members), list(stakes))

    def finalize_instance(self, dao_id: str, members: Sequence[str], stakes: Sequence[int],
                          token_index: int = 0, flag: bool = True) -> Dict[str, Any]:
        """Register ``dao_id``, mint management tokens and seal the DAO."""
        return self._transact('finalizeInstance', dao_id, list(members), list(stakes), token_index, flag)


def deploy_template(w3: Web3, artifact: Dict[str, Any], constructor_args: Sequence[Any],
                    sender: Optional[TransactionSender] = None) -> str:
    """Deploy the template contract from a build artifact and return its address.

    Constructor arguments are the DAO factory, ENS registry, MiniMe token
    factory and aragonID addresses.
    """
    step = 'LiquidDemocracyTemplate deployment'
    sender = sender or TransactionSender(w3)
    try:
        factory = w3.eth.contract(abi=artifact['abi'], bytecode=artifact['bytecode'])
        receipt = sender.send(step, factory.constructor(*constructor_args))
    except Exception as e:
        logger.error(f"{step} failed: {e}")
        raise DeploymentError(step, [], str(e)) from e
    address = receipt['contractAddress']
    logger.info(f"LiquidDemocracyTemplate deployed at {address}")
    return address
