from baremetal.client import IronicAPIError, Node

LEASES = """1750802648 9c:6b:00:70:59:8b 10.1.105.195 * *
1750802648 9c:6b:00:70:59:8a 10.1.105.194 * *
"""


class FakeIronicClient:
    """In-memory stand-in for IronicClient."""

    endpoint = 'http://ironic.test:6385/v1/'

    def __init__(self, nodes=None, ports=None, drivers=None, error=None):
        self.nodes = list(nodes or [])
        self.ports = list(ports or [])
        self.drivers = list(drivers if drivers is not None else [{'name': 'ipmi'}])
        self.error = error
        self.list_nodes_calls = 0
        self.list_ports_calls = 0

    def ping(self):
        return True

    def list_drivers(self):
        return self.drivers

    def list_nodes(self):
        self.list_nodes_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.nodes)

    def get_node(self, node_id):
        for node in self.nodes:
            if node_id in (node.uuid, node.name):
                return node
        raise IronicAPIError(f"GET nodes/{node_id} returned HTTP 404", status_code=404)

    def list_ports(self, address=None):
        self.list_ports_calls += 1
        return [port for port in self.ports if address is None or port['address'] == address]


def make_node(uuid='1be26c0b-03f2-4d2e-ae87-c02d7f33c123', **kwargs):
    kwargs.setdefault('name', 'node-0')
    kwargs.setdefault('owner', 'project-a')
    kwargs.setdefault('created_at', '2025-06-24T21:50:48+00:00')
    return Node(uuid=uuid, **kwargs)
