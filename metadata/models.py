"""
Metadata document types served to booting nodes.

Empty optional fields are left out of the serialized documents, the way
OpenStack's metadata service omits them.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


def _is_empty(value):
    if isinstance(value, (str, list, dict)):
        return len(value) == 0
    return value is None or value == 0


def _serialize(value):
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value


def _to_dict(obj, always=()):
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name not in always and _is_empty(value):
            continue
        result[f.name] = _serialize(value)
    return result


@dataclass(frozen=True)
class Key:
    """An SSH public key entry of the meta_data.json keys list"""
    name: str
    data: str
    type: str = 'ssh'

    def to_dict(self):
        return {'name': self.name, 'type': self.type, 'data': self.data}


@dataclass(frozen=True)
class MetaData:
    uuid: str
    name: str = ''
    hostname: str = ''
    availability_zone: str = ''
    instance_type: str = ''
    launch_index: int = 0
    public_keys: Dict[str, str] = field(default_factory=dict)
    keys: List[Key] = field(default_factory=list)
    meta: Dict[str, str] = field(default_factory=dict)
    project_id: str = ''
    creation_time: Optional[str] = None

    def to_dict(self):
        return _to_dict(self, always=('uuid', 'launch_index', 'public_keys', 'meta'))


@dataclass(frozen=True)
class Link:
    id: str
    type: str
    ethernet_mac_address: str = ''
    mtu: int = 0

    def to_dict(self):
        return _to_dict(self, always=('id', 'type'))


@dataclass(frozen=True)
class Route:
    network: str
    gateway: str
    netmask: str
    metric: int = 0

    def to_dict(self):
        return _to_dict(self, always=('network', 'gateway', 'netmask'))


@dataclass(frozen=True)
class Network:
    id: str
    type: str
    link: str
    ip_address: str = ''
    netmask: str = ''
    gateway: str = ''
    routes: List[Route] = field(default_factory=list)
    dns: List[str] = field(default_factory=list)

    def to_dict(self):
        return _to_dict(self, always=('id', 'type', 'link'))


@dataclass(frozen=True)
class Service:
    type: str
    address: str

    def to_dict(self):
        return {'type': self.type, 'address': self.address}


@dataclass(frozen=True)
class NetworkData:
    links: List[Link] = field(default_factory=list)
    networks: List[Network] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)

    def to_dict(self):
        return _to_dict(self, always=('links', 'networks', 'services'))


def document_to_dict(document: Any):
    """Serialize a document object, or pass an already-plain JSON value through."""
    return _serialize(document)
