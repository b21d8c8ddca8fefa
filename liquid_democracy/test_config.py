"""
Tests for environment settings and connection setup
"""

import pytest
from unittest.mock import patch, MagicMock
from eth_utils import to_checksum_address

from liquid_democracy.config import DEFAULT_RPC_URL, Settings, connect, local_account
from liquid_democracy.errors import ConfigurationError

ENV_VARS = ("RPC_URL", "PRIVATE_KEY", "DEPLOYER_ADDRESS", "GAS_PRICE", "GAS_LIMIT",
            "RECEIPT_TIMEOUT", "POA_CHAIN", "LOG_LEVEL", "LOG_FILE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch('liquid_democracy.config.load_dotenv') as mock_load:
        yield mock_load


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env()
        assert settings.rpc_url == DEFAULT_RPC_URL
        assert settings.private_key is None
        assert settings.gas_price is None
        assert settings.receipt_timeout == 300
        assert settings.poa_chain is False
        assert settings.log_level == "INFO"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("RPC_URL", "http://node:8545")
        monkeypatch.setenv("GAS_PRICE", "60000000001")
        monkeypatch.setenv("GAS_LIMIT", "6900000")
        monkeypatch.setenv("POA_CHAIN", "true")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.rpc_url == "http://node:8545"
        assert settings.gas_price == 60000000001
        assert settings.gas_limit == 6900000
        assert settings.poa_chain is True
        assert settings.log_level == "DEBUG"

    def test_loads_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / 'custom.env'
        env_file.write_text("RPC_URL=http://node:8545\n")
        Settings.from_env(str(env_file))
        clean_env.assert_called_once_with(str(env_file))

    def test_missing_dotenv_file(self, clean_env, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            Settings.from_env(str(tmp_path / 'missing.env'))
        clean_env.assert_not_called()

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("GAS_PRICE", "60 gwei")
        with pytest.raises(ConfigurationError, match="GAS_PRICE"):
            Settings.from_env()

    @pytest.mark.parametrize("key", ["0x1234", "11" * 31, "0x" + "zz" * 32])
    def test_malformed_private_key(self, monkeypatch, key):
        monkeypatch.setenv("PRIVATE_KEY", key)
        with pytest.raises(ConfigurationError, match="PRIVATE_KEY"):
            Settings.from_env()

    def test_private_key_without_prefix(self, monkeypatch):
        monkeypatch.setenv("PRIVATE_KEY", "11" * 32)
        assert Settings.from_env().private_key == "11" * 32

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
            Settings.from_env()

    def test_malformed_deployer_address(self, monkeypatch):
        monkeypatch.setenv("DEPLOYER_ADDRESS", "0xnope")
        with pytest.raises(ConfigurationError, match="DEPLOYER_ADDRESS"):
            Settings.from_env()

    def test_deployer_address_is_checksummed(self, monkeypatch):
        monkeypatch.setenv("DEPLOYER_ADDRESS", "0x" + "ab" * 20)
        assert Settings.from_env().deployer_address == to_checksum_address("0x" + "ab" * 20)


class TestConnect:
    @patch('liquid_democracy.config.Web3')
    def test_connected(self, mock_web3):
        w3 = mock_web3.return_value
        w3.is_connected.return_value = True

        assert connect(Settings(rpc_url="http://node:8545")) is w3

        mock_web3.HTTPProvider.assert_called_once_with("http://node:8545")
        w3.middleware_onion.inject.assert_not_called()

    @patch('liquid_democracy.config.Web3')
    def test_poa_middleware(self, mock_web3):
        mock_web3.return_value.is_connected.return_value = True
        connect(Settings(poa_chain=True))
        mock_web3.return_value.middleware_onion.inject.assert_called_once()

    @patch('liquid_democracy.config.Web3')
    def test_unreachable_node(self, mock_web3):
        mock_web3.return_value.is_connected.return_value = False
        with pytest.raises(ConnectionError, match="localhost"):
            connect(Settings())


def test_local_account():
    w3 = MagicMock()
    assert local_account(w3, Settings()) is None
    account = local_account(w3, Settings(private_key="0x" + "11" * 32))
    w3.eth.account.from_key.assert_called_once_with("0x" + "11" * 32)
    assert account is w3.eth.account.from_key.return_value


def test_local_account_rejected_key():
    w3 = MagicMock()
    w3.eth.account.from_key.side_effect = ValueError("The private key must be exactly 32 bytes long")
    with pytest.raises(ConfigurationError, match="PRIVATE_KEY") as exc:
        local_account(w3, Settings(private_key="0x" + "00" * 32))
    assert isinstance(exc.value.__cause__, ValueError)
