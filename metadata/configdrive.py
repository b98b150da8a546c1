"""
Config drive parsing.

Ironic stores a config drive in ``instance_info.configdrive`` either as a JSON
document (string or object) or as a gzipped, base64 encoded ISO 9660 image.
Only the JSON forms are understood here.
"""
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class ConfigDriveError(ValueError):
    """Base class for config drive problems."""


class ConfigDriveMissingError(ConfigDriveError):
    pass


class ConfigDriveUnsupportedError(ConfigDriveError):
    pass


class ConfigDriveParseError(ConfigDriveError):
    pass


class SourceKind(enum.Enum):
    RAW_STRING = 'raw_string'
    STRUCTURED = 'structured'
    UNSUPPORTED_IMAGE = 'unsupported_image'


@dataclass(frozen=True)
class ConfigDriveSource:
    kind: SourceKind
    value: Any

    @classmethod
    def classify(cls, value):
        if isinstance(value, dict):
            return cls(SourceKind.STRUCTURED, value)
        if isinstance(value, str) and value.lstrip().startswith('{'):
            return cls(SourceKind.RAW_STRING, value)
        return cls(SourceKind.UNSUPPORTED_IMAGE, value)


@dataclass(frozen=True)
class ConfigDrive:
    meta_data: Dict[str, Any] = field(default_factory=dict)
    user_data: str = ''
    network_data: Optional[Dict[str, Any]] = None
    vendor_data: Any = None
    public_keys: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        meta_data = _mapping(data, 'meta_data')
        user_data = data.get('user_data')
        if user_data is None:
            user_data = ''
        if not isinstance(user_data, str):
            raise ConfigDriveParseError("config drive user_data must be a string")

        network_data = data.get('network_data')
        if network_data is not None and not isinstance(network_data, dict):
            raise ConfigDriveParseError("config drive network_data must be an object")

        public_keys = data.get('public_keys')
        if public_keys is None:
            public_keys = meta_data.get('public_keys')
        if public_keys is None:
            public_keys = {}
        if not isinstance(public_keys, dict):
            raise ConfigDriveParseError("config drive public_keys must be an object")

        return cls(
            meta_data=meta_data,
            user_data=user_data,
            network_data=network_data,
            vendor_data=data.get('vendor_data'),
            public_keys=public_keys,
        )


def _mapping(data, key):
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigDriveParseError(f"config drive {key} must be an object")
    return value


def extract_config_drive(node):
    """
    Parse the config drive stored on a node.

    Raises:
        ConfigDriveMissingError: The node has no config drive.
        ConfigDriveUnsupportedError: The config drive is an ISO image or some other
            non-JSON value.
        ConfigDriveParseError: The config drive looks like JSON but cannot be parsed
            into the expected shape.
    """
    raw = node.instance_info.get('configdrive')
    if raw is None:
        raise ConfigDriveMissingError(f"node {node.uuid} has no config drive")

    source = ConfigDriveSource.classify(raw)

    if source.kind is SourceKind.RAW_STRING:
        try:
            data = json.loads(source.value)
        except ValueError as e:
            raise ConfigDriveUnsupportedError(
                f"config drive of node {node.uuid} is not valid JSON") from e
        if not isinstance(data, dict):
            raise ConfigDriveUnsupportedError(
                f"config drive of node {node.uuid} is not a JSON object")
    elif source.kind is SourceKind.STRUCTURED:
        # Round-trip through JSON so only plain JSON types reach ConfigDrive
        try:
            data = json.loads(json.dumps(source.value))
        except (TypeError, ValueError) as e:
            raise ConfigDriveParseError(
                f"could not normalize config drive of node {node.uuid}: {str(e)}") from e
    elif source.kind is SourceKind.UNSUPPORTED_IMAGE:
        raise ConfigDriveUnsupportedError(
            f"config drive of node {node.uuid} is an image, which is not implemented")
    else:
        raise ConfigDriveUnsupportedError(f"unknown config drive source {source.kind}")

    return ConfigDrive.from_dict(data)
