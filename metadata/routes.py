"""
Metadata Routes Module
This module provides the Flask routes for the OpenStack and EC2 style metadata APIs.
"""

import functools

from flask import Blueprint, Response, current_app, jsonify, request

from baremetal.client import IronicAPIError
from baremetal.connection import IronicConnectionError, get_ironic_connection
from metadata.exceptions import NodeNotFoundError
from metadata.models import document_to_dict
from metadata.renderer import (EC2_DOCUMENTS, EC2_VERSIONS, OPENSTACK_DOCUMENTS,
                               OPENSTACK_VERSIONS, VENDOR_DATA, VENDOR_DATA2,
                               build_ec2_metadata, build_instance_metadata,
                               build_network_topology, build_user_data)
from metadata.resolver import NodeResolver
from utils.logging_utils import log_message

# Create a Blueprint for metadata routes
metadata_bp = Blueprint('metadata', __name__)


def split_host_port(address):
    """Strip the port from 'host:port' or '[v6]:port'; bare addresses pass through."""
    if not address:
        return address
    if address.startswith('['):
        host, _, _ = address[1:].partition(']')
        return host
    if address.count(':') == 1:
        return address.split(':', 1)[0]
    return address


def get_client_ip(req):
    """Get the real client IP: X-Forwarded-For, then X-Real-IP, then the peer address."""
    forwarded_for = req.headers.get('X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()

    real_ip = req.headers.get('X-Real-IP')
    if real_ip:
        return real_ip.strip()

    return split_host_port(req.remote_addr or '')


def text_response(text, status=200):
    return Response(text, status=status, mimetype='text/plain')


def json_response(document):
    try:
        return jsonify(document_to_dict(document))
    except (TypeError, ValueError) as e:
        log_message("ERROR", f"Failed to encode JSON response: {str(e)}", path=request.path)
        return text_response("Internal Server Error", 500)


def resolve_node(client_ip):
    resolver = NodeResolver(get_ironic_connection(),
                            lease_file=current_app.config.get('DHCP_LEASE_FILE'))
    return resolver.resolve(client_ip)


def with_node(view):
    """Resolve the requesting node and pass it, with the client IP, to the view."""
    @functools.wraps(view)
    def wrapper():
        client_ip = get_client_ip(request)
        if not client_ip:
            log_message("ERROR", "Client IP missing from request", path=request.path)
            return text_response("Internal Server Error", 500)

        try:
            node = resolve_node(client_ip)
        except NodeNotFoundError as e:
            log_message("ERROR", f"Failed to find node for client IP: {str(e)}", client_ip=client_ip)
            return text_response("Node not found", 404)
        except (IronicConnectionError, IronicAPIError) as e:
            log_message("ERROR", f"Failed to look up node: {str(e)}", client_ip=client_ip)
            return text_response("Internal Server Error", 500)

        return view(node, client_ip)
    return wrapper


@metadata_bp.route('/openstack', methods=['GET'])
@metadata_bp.route('/openstack/', methods=['GET'])
def openstack_root():
    return json_response(OPENSTACK_VERSIONS)


@metadata_bp.route('/openstack/latest', methods=['GET'])
@metadata_bp.route('/openstack/latest/', methods=['GET'])
def openstack_latest():
    return json_response(OPENSTACK_DOCUMENTS)


@metadata_bp.route('/openstack/latest/meta_data.json', methods=['GET'])
@with_node
def meta_data(node, client_ip):
    return json_response(build_instance_metadata(node))


@metadata_bp.route('/openstack/latest/network_data.json', methods=['GET'])
@with_node
def network_data(node, client_ip):
    return json_response(build_network_topology(node))


@metadata_bp.route('/openstack/latest/user_data', methods=['GET'])
@metadata_bp.route('/latest/user-data', methods=['GET'])
@with_node
def user_data(node, client_ip):
    """Serve the node's user data; an empty value counts as missing."""
    data = build_user_data(node)
    if not data:
        return text_response("User data not found", 404)
    return text_response(data)


@metadata_bp.route('/openstack/latest/vendor_data.json', methods=['GET'])
def vendor_data():
    return json_response(VENDOR_DATA)


@metadata_bp.route('/openstack/latest/vendor_data2.json', methods=['GET'])
def vendor_data2():
    return json_response(VENDOR_DATA2)


@metadata_bp.route('/', methods=['GET'])
def ec2_root():
    return text_response('\n'.join(EC2_VERSIONS))


@metadata_bp.route('/latest', methods=['GET'])
@metadata_bp.route('/latest/', methods=['GET'])
def ec2_latest():
    return text_response('\n'.join(EC2_DOCUMENTS))


@metadata_bp.route('/latest/meta-data', methods=['GET'])
@metadata_bp.route('/latest/meta-data/', methods=['GET'])
@with_node
def ec2_meta_data(node, client_ip):
    return text_response(build_ec2_metadata(node, client_ip))


def register_metadata_routes(app):
    """Register metadata routes with the Flask app"""
    app.register_blueprint(metadata_bp)
