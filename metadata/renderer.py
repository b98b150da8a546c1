"""
Builds the OpenStack and EC2 metadata documents for a node.

A node's config drive, when present and parseable, takes precedence over the
fields derived from the node record itself.
"""
import logging

from metadata.configdrive import ConfigDriveError, extract_config_drive
from metadata.models import Key, Link, MetaData, Network, NetworkData

logger = logging.getLogger(__name__)

OPENSTACK_VERSIONS = ['latest']

OPENSTACK_DOCUMENTS = [
    'meta_data.json',
    'network_data.json',
    'user_data',
    'vendor_data.json',
    'vendor_data2.json',
]

EC2_VERSIONS = ['latest']

EC2_DOCUMENTS = [
    'meta-data/',
    'user-data',
]

VENDOR_DATA = {
    'ironic': {
        'version': '1.0',
    },
}

VENDOR_DATA2 = {
    'static': {
        'ironic-metadata': {
            'version': '1.0',
        },
    },
}


def get_node_hostname(node):
    return node.name or node.uuid


def load_config_drive(node):
    """Return the node's parsed config drive, or None when there is no usable one."""
    try:
        return extract_config_drive(node)
    except ConfigDriveError as e:
        logger.debug(f"Ignoring config drive of node {node.uuid}: {str(e)}")
        return None


def string_items(mapping):
    """Keep only the string-valued entries of a mapping."""
    if not isinstance(mapping, dict):
        return {}
    return {key: value for key, value in mapping.items() if isinstance(value, str)}


def build_keys(public_keys):
    return [Key(name=name, data=public_keys[name]) for name in sorted(public_keys)]


def build_instance_metadata(node):
    """Build the meta_data.json document for a node."""
    hostname = get_node_hostname(node)
    instance_type = ''
    public_keys = {}
    meta = {}

    config_drive = load_config_drive(node)
    if config_drive is not None:
        instance_type = config_drive.meta_data.get('instance_type')
        if not isinstance(instance_type, str):
            instance_type = ''
        if config_drive.meta_data.get('hostname'):
            hostname = config_drive.meta_data['hostname']
        config_drive_keys = string_items(config_drive.public_keys)
        if config_drive_keys:
            public_keys = config_drive_keys
    else:
        public_keys = string_items(node.instance_info.get('public_keys'))
        meta = string_items(node.properties)

    availability_zone = node.instance_info.get('availability_zone')
    if not isinstance(availability_zone, str):
        availability_zone = ''

    return MetaData(
        uuid=node.uuid,
        name=node.name,
        hostname=hostname,
        availability_zone=availability_zone,
        instance_type=instance_type,
        launch_index=0,
        public_keys=public_keys,
        keys=build_keys(public_keys),
        meta=meta,
        project_id=node.owner,
        creation_time=node.created_at,
    )


def fallback_network_data():
    return NetworkData(
        links=[Link(id='eth0', type='physical', mtu=1500)],
        networks=[Network(id='network0', type='ipv4', link='eth0')],
        services=[],
    )


def build_network_topology(node):
    """
    Build the network_data.json document for a node.

    Returns the config drive's network data untouched when there is some, and a
    single-link placeholder otherwise.
    """
    config_drive = load_config_drive(node)
    if config_drive is not None and config_drive.network_data:
        return config_drive.network_data
    return fallback_network_data()


def build_user_data(node):
    """Return the node's user data, or an empty string when it has none."""
    config_drive = load_config_drive(node)
    if config_drive is not None and config_drive.user_data:
        return config_drive.user_data

    user_data = node.instance_info.get('user_data')
    if isinstance(user_data, str):
        return user_data
    return ''


def build_ec2_metadata(node, client_ip):
    lines = [
        f"instance-id\n{node.uuid}",
        f"hostname\n{get_node_hostname(node)}",
        f"local-ipv4\n{client_ip}",
    ]
    return '\n'.join(lines)
