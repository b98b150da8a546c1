"""
Bare Metal Package
This package provides the client and connection handling for the OpenStack Ironic API.
"""

from baremetal.client import IronicAPIError, IronicClient, Node
from baremetal.connection import (IronicConnection, IronicConnectionError, IronicTimeoutError,
                                  ReadinessState, get_ironic_connection,
                                  initialize_ironic_connection, set_ironic_connection)

__all__ = ['IronicAPIError', 'IronicClient', 'Node', 'IronicConnection', 'IronicConnectionError',
           'IronicTimeoutError', 'ReadinessState', 'get_ironic_connection',
           'initialize_ironic_connection', 'set_ironic_connection']
