"""
DHCP lease lookups.

dnsmasq writes one lease per line: ``<expiry> <mac> <ip> <hostname> <client-id>``.
Mapping a client IP back to its MAC lets us find the node through its Ironic
port even when the node carries no IP information itself.
"""
import logging

from baremetal.client import IronicAPIError
from metadata.exceptions import LeaseNotFoundError, NodeNotFoundError

logger = logging.getLogger(__name__)


def parse_dhcp_lease_file(path, target_ip):
    """
    Find the MAC address leased to an IP address.

    Malformed lines are skipped.

    Raises:
        LeaseNotFoundError: The file cannot be read or has no lease for target_ip.
    """
    try:
        with open(path, 'r') as f:
            for line_number, line in enumerate(f, start=1):
                fields = line.split()
                if len(fields) < 3:
                    if fields:
                        logger.debug(f"Skipping malformed lease on line {line_number} of {path}")
                    continue
                mac, ip = fields[1], fields[2]
                if ip == target_ip:
                    return mac.lower()
    except OSError as e:
        raise LeaseNotFoundError(f"could not read DHCP lease file {path}: {str(e)}") from e

    raise LeaseNotFoundError(f"no DHCP lease found for IP {target_ip} in {path}")


def lookup_node_by_mac(client, mac):
    """
    Find the node owning the port with the given MAC address.

    Raises:
        NodeNotFoundError: No port has that address.
        IronicAPIError: The Ironic API call failed.
    """
    for port in client.list_ports(address=mac):
        node_uuid = port.get('node_uuid')
        if node_uuid:
            return client.get_node(node_uuid)
    raise NodeNotFoundError(f"no node found for MAC {mac}")


def lookup_node_by_ip(client, lease_file, client_ip):
    """
    Find the node whose port holds the MAC leased to client_ip.

    Lookup failures are logged and yield None.
    """
    try:
        mac = parse_dhcp_lease_file(lease_file, client_ip)
        return lookup_node_by_mac(client, mac)
    except (LeaseNotFoundError, NodeNotFoundError, IronicAPIError) as e:
        logger.debug(f"DHCP lease lookup for {client_ip} found nothing: {str(e)}")
        return None
