"""
Ironic API Client Module
This module talks to the OpenStack Ironic (bare metal) API over HTTP and
turns its node records into Node objects.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from keystoneauth1 import exceptions as ks_exceptions
from keystoneauth1 import session as ks_session
from keystoneauth1.identity import v3

from security.credentials import get_auth_credentials

logger = logging.getLogger(__name__)

# Lowest microversion that exposes the node owner field
DEFAULT_API_VERSION = '1.50'

# The liveness probe uses its own short timeout, independent of request_timeout
PING_TIMEOUT = 5


class IronicAPIError(RuntimeError):
    """Raised when an Ironic API call fails or returns an unexpected payload."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class Node:
    """A bare metal node as returned by the Ironic API."""
    uuid: str
    name: str = ''
    owner: str = ''
    created_at: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    driver_info: Dict[str, Any] = field(default_factory=dict)
    instance_info: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        return cls(
            uuid=data['uuid'],
            name=data.get('name') or '',
            owner=data.get('owner') or '',
            created_at=data.get('created_at'),
            properties=data.get('properties') or {},
            driver_info=data.get('driver_info') or {},
            instance_info=data.get('instance_info') or {},
        )


def normalize_endpoint(url):
    """Return the Ironic v1 endpoint for a base URL, with a trailing slash."""
    url = url.rstrip('/')
    if not url.endswith('/v1'):
        url = url + '/v1'
    return url + '/'


def create_session(config):
    """
    Build a keystoneauth1 session and the baremetal endpoint to use with it.

    Args:
        config (dict): Service configuration (see utils.config_utils.load_config).

    Returns:
        tuple: (session, endpoint)
    """
    timeout = config.get('IRONIC_REQUEST_TIMEOUT') or None
    credentials = get_auth_credentials()

    # Standalone Ironic does not need authentication
    if credentials is None:
        return ks_session.Session(timeout=timeout), normalize_endpoint(config['IRONIC_URL'])

    auth = v3.Password(auth_url=config['OS_AUTH_URL'], **credentials)
    session = ks_session.Session(auth=auth, timeout=timeout)
    try:
        endpoint = session.get_endpoint(
            service_type='baremetal',
            interface=config.get('OS_INTERFACE', 'public'),
            region_name=config.get('OS_REGION_NAME'),
        )
    except ks_exceptions.ClientException as e:
        raise IronicAPIError(f"failed to create authenticated client: {str(e)}") from e

    if not endpoint:
        raise IronicAPIError("failed to create baremetal client: no baremetal endpoint in catalog")

    return session, normalize_endpoint(endpoint)


class IronicClient:
    """Thin client for the parts of the Ironic v1 API the metadata service needs"""

    def __init__(self, session, endpoint, api_version=DEFAULT_API_VERSION):
        self.session = session
        self.endpoint = endpoint if endpoint.endswith('/') else endpoint + '/'
        self.api_version = api_version

    def _url(self, path):
        return self.endpoint + path.lstrip('/')

    def _get(self, url, params=None):
        headers = {
            'Accept': 'application/json',
            'X-OpenStack-Ironic-API-Version': self.api_version,
        }
        try:
            response = self.session.get(url, params=params, headers=headers, raise_exc=False)
        except ks_exceptions.ClientException as e:
            raise IronicAPIError(f"GET {url} failed: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            raise IronicAPIError(
                f"GET {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise IronicAPIError(f"GET {url} returned invalid JSON") from e

    def ping(self):
        """Plain HTTP liveness probe against the API root. Returns True on any 2xx."""
        # Some Ironic deployments answer 404 for /v1/ but 200 for /v1
        url = self.endpoint.rstrip('/')
        try:
            response = requests.get(url, timeout=PING_TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Liveness probe of {url} failed: {str(e)}")
            return False
        return 200 <= response.status_code < 300

    def list_drivers(self) -> List[Dict[str, Any]]:
        """List the drivers the conductors have registered."""
        body = self._get(self._url('drivers'))
        return body.get('drivers') or []

    def list_nodes(self) -> List[Node]:
        """List every node with full details, following pagination links."""
        nodes = []
        url = self._url('nodes/detail')
        while url:
            body = self._get(url)
            try:
                nodes.extend(Node.from_dict(item) for item in body.get('nodes') or [])
            except (KeyError, TypeError, AttributeError) as e:
                raise IronicAPIError(f"could not extract nodes: {str(e)}") from e
            url = body.get('next')
        logger.debug(f"Listed {len(nodes)} nodes from Ironic")
        return nodes

    def get_node(self, node_id) -> Node:
        """Fetch a single node by UUID or name."""
        body = self._get(self._url(f'nodes/{node_id}'))
        try:
            return Node.from_dict(body)
        except (KeyError, TypeError, AttributeError) as e:
            raise IronicAPIError(f"could not extract node {node_id}: {str(e)}") from e

    def list_ports(self, address=None) -> List[Dict[str, Any]]:
        """List ports with details, optionally filtered by MAC address."""
        params = {'address': address} if address else None
        ports = []
        url = self._url('ports/detail')
        while url:
            body = self._get(url, params=params)
            ports.extend(body.get('ports') or [])
            url = body.get('next')
            # The next link already carries the query string
            params = None
        return ports
