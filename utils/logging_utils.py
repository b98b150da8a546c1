"""
Logging utilities for the ironic-metadata service.
"""
import logging
import sys
import google.cloud.logging
from google.cloud.logging.handlers import StructuredLogHandler

LOGGER_NAME = 'ironic-metadata'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'warn': logging.WARNING,
    'error': logging.ERROR,
}

logger = logging.getLogger(LOGGER_NAME)
cloud_logger = None


def setup_logging(level='info', log_format='console', use_cloud_logging=False):
    """Set up logging for the application."""
    global cloud_logger

    if log_format == 'json':
        handler = StructuredLogHandler(stream=sys.stdout)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logging.basicConfig(
        level=LEVELS.get(level, logging.INFO),
        handlers=[handler],
        force=True
    )

    cloud_logger = None
    if use_cloud_logging:
        # Set up Cloud Logging client
        try:
            cloud_logger_client = google.cloud.logging.Client()
            cloud_logger = cloud_logger_client.logger(LOGGER_NAME)
            logger.info("Cloud Logging initialized successfully")
        except Exception as e:
            logger.warning(f"Failed to initialize Cloud Logging: {str(e)}")
            cloud_logger = None

    return logger, cloud_logger


def log_to_cloud(severity, message, **kwargs):
    """Log to Cloud Logging with structured data."""
    if cloud_logger is None:
        return

    try:
        struct_data = {
            "message": message,
            "component": LOGGER_NAME,
            **kwargs
        }
        cloud_logger.log_struct(struct_data, severity=severity)
    except Exception as e:
        logger.warning(f"Failed to log to Cloud Logging: {str(e)}")


def format_fields(fields):
    return ' '.join(f"{key}={value}" for key, value in fields.items())


def log_message(severity, message, **kwargs):
    """Log a message to standard logging and, when enabled, to Cloud Logging."""
    level = LEVELS.get(severity.lower(), logging.INFO)

    text = message
    if kwargs:
        text = f"{message} {format_fields(kwargs)}"

    # StructuredLogHandler picks json_fields up; the console formatter ignores it
    logger.log(level, text, extra={'json_fields': kwargs})

    if cloud_logger is not None:
        log_to_cloud(cloud_logger_severity(severity), message, **kwargs)


def cloud_logger_severity(severity):
    severity = severity.upper()
    if severity == 'WARN':
        return 'WARNING'
    return severity
