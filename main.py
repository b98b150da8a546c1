#!/usr/bin/env python3
"""
Ironic Metadata Service
This application answers cloud-init metadata requests from bare metal nodes
provisioned by OpenStack Ironic, identifying each node by its IP address.
"""

import signal
import sys
import threading
import time

from flask import Flask, g, request
from werkzeug.exceptions import InternalServerError
from werkzeug.serving import make_server

# Import from our modules
from utils import logging_utils
from utils.config_utils import load_config
from utils.logging_utils import log_message, setup_logging
from baremetal.connection import initialize_ironic_connection
from metadata.routes import register_metadata_routes, text_response


def create_app(config=None):
    """Create the Flask app with the metadata routes and request logging."""
    app = Flask(__name__)
    app.config.update(config or {})

    register_metadata_routes(app)

    @app.before_request
    def start_timer():
        g.request_start = time.monotonic()

    @app.after_request
    def log_request(response):
        started = g.get('request_start')
        duration_ms = (time.monotonic() - started) * 1000 if started is not None else 0.0
        log_message("INFO", "HTTP request",
                    method=request.method,
                    path=request.path,
                    status=response.status_code,
                    remote_addr=request.remote_addr,
                    user_agent=request.user_agent.string,
                    duration_ms=round(duration_ms, 2))
        return response

    @app.errorhandler(InternalServerError)
    def internal_error(e):
        original = getattr(e, 'original_exception', None) or e
        log_message("ERROR", f"Unhandled error: {str(original)}", path=request.path)
        return text_response("Internal Server Error", 500)

    return app


def serve(app, host, port, grace_period):
    """Serve until SIGINT or SIGTERM, then give in-flight requests grace_period seconds."""
    server = make_server(host, port, app, threaded=True)
    # Let server_close() wait for request threads
    server.daemon_threads = False

    stop = threading.Event()

    def handle_signal(signum, frame):
        stop.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    server_thread = threading.Thread(target=server.serve_forever, daemon=True)
    server_thread.start()
    log_message("INFO", "Starting HTTP server", address=f"{host}:{port}")

    stop.wait()
    log_message("INFO", "Shutting down server...")

    def close():
        server.shutdown()
        server.server_close()

    closer = threading.Thread(target=close, daemon=True)
    closer.start()
    closer.join(grace_period)
    if closer.is_alive():
        log_message("WARNING", "Server forced to shutdown", grace_period=grace_period)
    else:
        log_message("INFO", "Server exited")


def main():
    """Main entry point for the application."""
    try:
        config = load_config()
        setup_logging(config['LOG_LEVEL'], config['LOG_FORMAT'], config['CLOUD_LOGGING'])

        log_message("INFO", "Starting ironic-metadata service",
                    ironic_url=config['IRONIC_URL'],
                    bind_addr=config['BIND_ADDR'],
                    bind_port=config['BIND_PORT'])

        # Initialize Ironic connection
        connection = initialize_ironic_connection(config)
        log_message("INFO", "Ironic client created", **connection.get_connection_status())

        app = create_app(config)
        serve(app, config['BIND_ADDR'], config['BIND_PORT'], config['SHUTDOWN_GRACE_PERIOD'])

    except Exception as e:
        log_message("ERROR", f"Application failed: {str(e)}")
        if logging_utils.cloud_logger is not None:
            # Sleep for a short time to ensure logs are flushed before the process exits
            time.sleep(5)
        sys.exit(1)


if __name__ == "__main__":
    main()
