class NodeNotFoundError(LookupError):
    """No Ironic node corresponds to the requesting client."""


class LeaseNotFoundError(LookupError):
    """The DHCP lease file has no usable entry for an IP address."""
