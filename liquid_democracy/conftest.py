import pytest

from liquid_democracy.abis import load_abi
from liquid_democracy.testing import build_log, build_prepare_receipt


@pytest.fixture
def make_log():
    return build_log


@pytest.fixture
def dao_factory_abi():
    return load_abi('DAOFactory')


@pytest.fixture
def kernel_abi():
    return load_abi('Kernel')


@pytest.fixture
def prepare_receipt():
    return build_prepare_receipt()
