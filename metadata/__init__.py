"""
Metadata Package
This package resolves requesting nodes and renders their OpenStack and EC2 metadata.
"""

from metadata.exceptions import LeaseNotFoundError, NodeNotFoundError
from metadata.resolver import NodeResolver
from metadata.routes import register_metadata_routes

__all__ = ['LeaseNotFoundError', 'NodeNotFoundError', 'NodeResolver', 'register_metadata_routes']
