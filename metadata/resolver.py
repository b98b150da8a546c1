"""
Works out which Ironic node is asking for metadata.

Each strategy is a named predicate ``matches(node, client_ip)``. Strategies run
in order and each one scans the whole node listing before the next is tried,
so a structured match always beats a substring match no matter where the two
nodes sit in the listing.
"""
from collections import namedtuple
from urllib.parse import urlsplit

from baremetal.client import IronicAPIError
from baremetal.connection import IronicConnectionError
from metadata.configdrive import ConfigDriveError, extract_config_drive
from metadata.dhcp import lookup_node_by_ip
from metadata.exceptions import NodeNotFoundError
from utils.logging_utils import log_message

MatchStrategy = namedtuple('MatchStrategy', ['name', 'matches'])


def _entries(value):
    return [entry for entry in value if isinstance(entry, dict)] if isinstance(value, list) else []


def match_configdrive_network(node, client_ip):
    """The IP is assigned to one of the networks in the node's config drive."""
    try:
        config_drive = extract_config_drive(node)
    except ConfigDriveError:
        return False
    networks = (config_drive.network_data or {}).get('networks')
    return any(network.get('ip_address') == client_ip for network in _entries(networks))


def match_fixed_ips(node, client_ip):
    """The IP is one of the node's instance_info fixed_ips."""
    fixed_ips = node.instance_info.get('fixed_ips')
    return any(entry.get('ip_address') == client_ip for entry in _entries(fixed_ips))


class LeaseMatcher:
    """
    Matches the node owning the port the client's DHCP lease was handed to.

    The lease file and the Ironic ports are only consulted on the first call,
    and the answer is reused for the rest of the scan.
    """

    def __init__(self, client, lease_file):
        self.client = client
        self.lease_file = lease_file
        self.lookups = 0
        self._leased = {}

    def leased_node(self, client_ip):
        if client_ip not in self._leased:
            self.lookups += 1
            self._leased[client_ip] = lookup_node_by_ip(self.client, self.lease_file, client_ip)
        return self._leased[client_ip]

    def __call__(self, node, client_ip):
        leased = self.leased_node(client_ip)
        return leased is not None and leased.uuid == node.uuid


def api_url_host(api_url):
    try:
        return urlsplit(api_url).hostname
    except ValueError:
        return None


def match_driver_info(node, client_ip):
    """The IP is the node's provisioning address recorded by the deploy driver."""
    if node.driver_info.get('deploy_ramdisk_address') == client_ip:
        return True
    options = node.driver_info.get('deploy_ramdisk_options')
    if isinstance(options, dict):
        api_url = options.get('ipa-api-url')
        if isinstance(api_url, str) and api_url_host(api_url) == client_ip:
            return True
    return False


def match_node_name(node, client_ip):
    """The node name contains the IP. Only meant for test setups."""
    return client_ip in node.name


DEFAULT_STRATEGIES = [
    MatchStrategy('configdrive_network', match_configdrive_network),
    MatchStrategy('fixed_ips', match_fixed_ips),
    MatchStrategy('driver_info', match_driver_info),
    MatchStrategy('node_name', match_node_name),
]


class NodeResolver:
    """Resolves a client IP to the single Ironic node it belongs to"""

    def __init__(self, connection, lease_file=None, strategies=None):
        """
        Args:
            connection (IronicConnection): Gateway to the Ironic API.
            lease_file (str, optional): dnsmasq lease file; enables the dhcp_lease strategy.
            strategies (list, optional): Ordered MatchStrategy list replacing the defaults.
        """
        self.connection = connection
        self.lease_file = lease_file
        self.strategies = strategies

    def strategies_for(self, client, client_ip):
        if self.strategies is not None:
            return list(self.strategies)

        strategies = list(DEFAULT_STRATEGIES)
        if self.lease_file:
            lease_strategy = MatchStrategy('dhcp_lease', LeaseMatcher(client, self.lease_file))
            # Structured port data ranks below the config drive and fixed IPs
            # but above the driver_info and name heuristics
            strategies.insert(2, lease_strategy)
        return strategies

    def resolve(self, client_ip):
        """
        Find the node for a client IP.

        Raises:
            IronicConnectionError: No Ironic client could be obtained.
            IronicAPIError: Listing the nodes failed.
            NodeNotFoundError: No node matches the IP.
        """
        try:
            client = self.connection.get_client()
        except IronicConnectionError as e:
            raise IronicConnectionError(f"failed to get Ironic client: {str(e)}") from e

        try:
            nodes = client.list_nodes()
        except IronicAPIError as e:
            raise IronicAPIError(f"failed to list nodes: {str(e)}", status_code=e.status_code) from e

        for strategy in self.strategies_for(client, client_ip):
            matched = [node for node in nodes if strategy.matches(node, client_ip)]
            if not matched:
                continue
            if len(matched) > 1:
                log_message("WARNING", "Several nodes match client IP, using the first",
                            client_ip=client_ip, strategy=strategy.name,
                            nodes=','.join(node.uuid for node in matched))
            node = matched[0]
            log_message("DEBUG", "Resolved node for client IP",
                        client_ip=client_ip, strategy=strategy.name, node=node.uuid)
            return node

        raise NodeNotFoundError(f"no node found for IP {client_ip}")
