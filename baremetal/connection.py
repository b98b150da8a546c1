"""
Ironic Connection Module
This module owns the process-wide handle to the Ironic API and, when a
timeout is configured, waits for the API and its conductors to come up
before handing the client out.
"""

import enum
import threading
import time

from baremetal.client import IronicAPIError, IronicClient, create_session
from utils.logging_utils import log_message

# Seconds between readiness probes
DEFAULT_POLL_INTERVAL = 5


class IronicConnectionError(RuntimeError):
    """Raised when a usable Ironic client cannot be obtained."""


class IronicTimeoutError(IronicConnectionError):
    """Raised when Ironic did not become ready within the configured timeout."""


class ReadinessState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    FAILED = 'failed'


class IronicConnection:
    """Class to hand out the Ironic client once the API is known to be ready"""

    def __init__(self, client, timeout=0, poll_interval=DEFAULT_POLL_INTERVAL,
                 clock=time.monotonic, sleep=time.sleep):
        """
        Initialize the Ironic connection

        Args:
            client (IronicClient): Client for the Ironic API.
            timeout (float): Seconds to wait for Ironic to become ready. 0 disables the wait.
            poll_interval (float): Seconds between readiness probes.
        """
        self.client = client
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.state = ReadinessState.UNINITIALIZED
        self._clock = clock
        self._sleep = sleep
        # Only one caller drives the polling; the others wait for its outcome
        self._lock = threading.Lock()

    def get_client(self):
        """
        Get the Ironic client, polling the API first if that has not happened yet.

        Raises:
            IronicTimeoutError: If Ironic did not come up in time, now or on an earlier call.
        """
        with self._lock:
            if self.state is ReadinessState.READY or not self.timeout:
                return self.client

            if self.state is ReadinessState.FAILED:
                raise IronicTimeoutError("could not contact Ironic API: timeout previously reached")

            deadline = self._clock() + self.timeout

            log_message("INFO", "Waiting for Ironic API...", endpoint=self.client.endpoint)
            if not self._wait_for(self._api_is_up, deadline, "API"):
                self.state = ReadinessState.FAILED
                raise IronicTimeoutError("could not contact Ironic API: timeout reached")

            log_message("INFO", "API successfully connected, waiting for conductor...")
            if not self._wait_for(self._conductor_is_up, deadline, "conductor API"):
                self.state = ReadinessState.FAILED
                raise IronicTimeoutError("could not contact Ironic API: timeout reached")

            log_message("INFO", "Ironic API and conductor are ready")
            self.state = ReadinessState.READY
            return self.client

    def _wait_for(self, check, deadline, what):
        while self._clock() < deadline:
            log_message("DEBUG", f"Waiting for {what} to become available...")
            if check():
                return True
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(self.poll_interval, remaining))
        return False

    def _api_is_up(self):
        return self.client.ping()

    def _conductor_is_up(self):
        # The conductor can be considered up when the driver count is non-zero
        try:
            return len(self.client.list_drivers()) > 0
        except IronicAPIError as e:
            log_message("DEBUG", f"Listing drivers failed: {str(e)}")
            return False

    def get_connection_status(self):
        """Get the current readiness state and endpoint"""
        return {
            'state': self.state.value,
            'endpoint': self.client.endpoint,
            'timeout': self.timeout,
        }


# Global instance that can be imported and used throughout the application
ironic_connection = None


def initialize_ironic_connection(config):
    """Initialize the global Ironic connection from the service configuration"""
    global ironic_connection
    session, endpoint = create_session(config)
    client = IronicClient(session, endpoint, api_version=config.get('IRONIC_API_VERSION', '1.50'))
    ironic_connection = IronicConnection(client, timeout=config.get('IRONIC_TIMEOUT', 0))
    return ironic_connection


def set_ironic_connection(connection):
    """Replace the global Ironic connection"""
    global ironic_connection
    ironic_connection = connection
    return ironic_connection


def get_ironic_connection():
    """Get the global Ironic connection instance"""
    if ironic_connection is None:
        raise IronicConnectionError("Ironic connection has not been initialized")
    return ironic_connection
