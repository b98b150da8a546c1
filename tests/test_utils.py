import logging

import google.cloud.logging
import pytest

from security.credentials import get_auth_credentials
from utils import logging_utils
from utils.config_utils import get_env_bool, get_env_int, get_env_var, load_config

ENV_VARS = ['IRONIC_URL', 'IRONIC_TIMEOUT', 'BIND_ADDR', 'BIND_PORT', 'LOG_LEVEL', 'LOG_FORMAT',
            'CLOUD_LOGGING', 'DHCP_LEASE_FILE', 'OS_AUTH_URL', 'OS_USERNAME', 'OS_PASSWORD',
            'OS_PROJECT_NAME', 'OS_USER_DOMAIN_NAME', 'OS_PROJECT_DOMAIN_NAME']


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging_utils.cloud_logger = None


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = load_config()
    assert config['IRONIC_URL'] == 'http://localhost:6385'
    assert config['OS_AUTH_URL'] == 'http://localhost:6385'
    assert config['BIND_ADDR'] == '169.254.169.254'
    assert config['BIND_PORT'] == 80
    assert config['IRONIC_TIMEOUT'] == 0.0
    assert config['LOG_FORMAT'] == 'console'
    assert config['CLOUD_LOGGING'] is False
    assert config['DHCP_LEASE_FILE'] is None


def test_overrides(clean_env):
    clean_env.setenv('IRONIC_URL', 'http://ironic-api:6385/v1')
    clean_env.setenv('BIND_PORT', '8080')
    clean_env.setenv('IRONIC_TIMEOUT', '120')
    clean_env.setenv('LOG_LEVEL', 'DEBUG')
    clean_env.setenv('CLOUD_LOGGING', 'yes')

    config = load_config()

    assert config['IRONIC_URL'] == 'http://ironic-api:6385/v1'
    assert config['BIND_PORT'] == 8080
    assert config['IRONIC_TIMEOUT'] == 120.0
    assert config['LOG_LEVEL'] == 'debug'
    assert config['CLOUD_LOGGING'] is True


def test_empty_value_counts_as_unset(clean_env):
    clean_env.setenv('BIND_ADDR', '')
    assert get_env_var('BIND_ADDR', '0.0.0.0') == '0.0.0.0'


def test_required_variable(clean_env):
    with pytest.raises(ValueError, match='IRONIC_URL'):
        get_env_var('IRONIC_URL', required=True)


def test_invalid_numbers_and_booleans(clean_env):
    clean_env.setenv('BIND_PORT', 'eighty')
    clean_env.setenv('CLOUD_LOGGING', 'maybe')
    with pytest.raises(ValueError, match='BIND_PORT'):
        get_env_int('BIND_PORT')
    with pytest.raises(ValueError, match='CLOUD_LOGGING'):
        get_env_bool('CLOUD_LOGGING')


def test_no_credentials(clean_env):
    assert get_auth_credentials() is None


def test_credentials(clean_env):
    clean_env.setenv('OS_USERNAME', 'ironic')
    clean_env.setenv('OS_PASSWORD', 'secret')
    clean_env.setenv('OS_PROJECT_NAME', 'service')

    assert get_auth_credentials() == {
        'username': 'ironic',
        'password': 'secret',
        'project_name': 'service',
        'user_domain_name': 'default',
        'project_domain_name': 'default',
    }


def test_console_logging(capsys):
    logging_utils.setup_logging('debug', 'console')

    logging_utils.log_message("WARNING", "Several nodes match", client_ip='10.1.105.195')

    out = capsys.readouterr().out
    assert 'WARNING - Several nodes match client_ip=10.1.105.195' in out
    assert logging.getLogger().level == logging.DEBUG


def test_cloud_logging_falls_back(monkeypatch):
    def broken_client(*args, **kwargs):
        raise RuntimeError('no credentials')

    monkeypatch.setattr(google.cloud.logging, 'Client', broken_client)

    _, cloud_logger = logging_utils.setup_logging('info', 'console', use_cloud_logging=True)

    assert cloud_logger is None
    assert logging_utils.cloud_logger is None


def test_cloud_logging_receives_structured_entries(monkeypatch):
    entries = []

    class FakeCloudLogger:
        def log_struct(self, data, severity):
            entries.append((severity, data))

    monkeypatch.setattr(logging_utils, 'cloud_logger', FakeCloudLogger())

    logging_utils.log_message("warn", "Lease lookup failed", client_ip='10.1.105.195')

    assert entries == [('WARNING', {'message': 'Lease lookup failed',
                                    'component': 'ironic-metadata',
                                    'client_ip': '10.1.105.195'})]
