"""
Credential handling for authenticated access to the Ironic API.
"""
from utils.config_utils import get_env_var


def get_auth_credentials():
    """
    Get Keystone credentials from environment variables.

    Returns:
        dict or None: Keyword arguments for a keystoneauth1 v3 Password plugin,
        or None when no username is configured (standalone, no-auth Ironic).

    Raises:
        ValueError: If a username is set without a password.
    """
    username = get_env_var('OS_USERNAME')
    if not username:
        return None

    password = get_env_var('OS_PASSWORD')
    if not password:
        raise ValueError("OS_USERNAME is set but OS_PASSWORD is missing")

    return {
        'username': username,
        'password': password,
        'project_name': get_env_var('OS_PROJECT_NAME'),
        'user_domain_name': get_env_var('OS_USER_DOMAIN_NAME', 'default'),
        'project_domain_name': get_env_var('OS_PROJECT_DOMAIN_NAME', 'default'),
    }
