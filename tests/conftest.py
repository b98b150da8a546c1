import pytest

from baremetal.connection import IronicConnection, set_ironic_connection
from helpers import LEASES, FakeIronicClient
from main import create_app


@pytest.fixture
def fake_client():
    return FakeIronicClient()


@pytest.fixture
def lease_file(tmp_path):
    path = tmp_path / 'dnsmasq.leases'
    path.write_text(LEASES)
    return str(path)


@pytest.fixture
def app(fake_client):
    set_ironic_connection(IronicConnection(fake_client))
    app = create_app({'TESTING': True, 'DHCP_LEASE_FILE': None})
    yield app
    set_ironic_connection(None)


@pytest.fixture
def http(app):
    return app.test_client()
