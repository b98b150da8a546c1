"""
Configuration utilities for the ironic-metadata service.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off')


def get_env_var(var_name, default=None, required=False):
    """Get an environment variable, treating empty values as unset."""
    value = os.environ.get(var_name)

    if not value:
        if required and default is None:
            error_msg = f"Required variable {var_name} is not set in environment"
            raise ValueError(error_msg)
        value = default

    return value


def get_env_int(var_name, default=0):
    value = get_env_var(var_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Variable {var_name} must be an integer, got {value!r}") from e


def get_env_float(var_name, default=0.0):
    value = get_env_var(var_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"Variable {var_name} must be a number, got {value!r}") from e


def get_env_bool(var_name, default=False):
    value = get_env_var(var_name)
    if value is None:
        return default
    if value.lower() in TRUE_VALUES:
        return True
    if value.lower() in FALSE_VALUES:
        return False
    raise ValueError(f"Variable {var_name} must be a boolean, got {value!r}")


def load_config():
    """
    Read the service configuration from the environment.

    Returns:
        dict: Configuration keyed by the upper-case names Flask expects in app.config.
    """
    ironic_url = get_env_var('IRONIC_URL', 'http://localhost:6385')

    return {
        'IRONIC_URL': ironic_url,
        'IRONIC_API_VERSION': get_env_var('IRONIC_API_VERSION', '1.50'),
        'IRONIC_TIMEOUT': get_env_float('IRONIC_TIMEOUT', 0.0),
        'IRONIC_REQUEST_TIMEOUT': get_env_float('IRONIC_REQUEST_TIMEOUT', 30.0),
        'BIND_ADDR': get_env_var('BIND_ADDR', '169.254.169.254'),
        'BIND_PORT': get_env_int('BIND_PORT', 80),
        'LOG_LEVEL': get_env_var('LOG_LEVEL', 'info').lower(),
        'LOG_FORMAT': get_env_var('LOG_FORMAT', 'console').lower(),
        'CLOUD_LOGGING': get_env_bool('CLOUD_LOGGING', False),
        'DHCP_LEASE_FILE': get_env_var('DHCP_LEASE_FILE'),
        'SHUTDOWN_GRACE_PERIOD': get_env_float('SHUTDOWN_GRACE_PERIOD', 30.0),
        'OS_AUTH_URL': get_env_var('OS_AUTH_URL', ironic_url),
        'OS_REGION_NAME': get_env_var('OS_REGION_NAME'),
        'OS_INTERFACE': get_env_var('OS_INTERFACE', 'public'),
    }
