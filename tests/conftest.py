import pytest

from envkeys.provisioner import KeyProvisioner


@pytest.fixture(scope="session")
def pkcs1_provisioner():
    return KeyProvisioner(profile="pkcs1")


@pytest.fixture(scope="session")
def pkcs8_provisioner():
    return KeyProvisioner(profile="pkcs8")


@pytest.fixture(scope="session")
def key_pair(pkcs1_provisioner):
    # 2048 keeps the suite fast; shared across tests that only read it
    return pkcs1_provisioner.generate(2048)
