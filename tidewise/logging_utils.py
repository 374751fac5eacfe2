"""Logging setup for the tidewise service.

Google Cloud Logging is used on Cloud Run. Elsewhere log records go to a
stream handler that prints paths relative to the project root.
"""

import logging
import os

import google.cloud.logging  # type: ignore[import]

# Directory containing the tidewise package
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

LOCAL_LOG_FORMAT = "%(levelname)s:%(relativepath)s:%(lineno)d: %(message)s"


class RelativePathFilter(logging.Filter):
    """Adds a 'relativepath' attribute to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.relativepath = os.path.relpath(
                os.path.normpath(record.pathname), PROJECT_ROOT
            )
        except ValueError:
            # Different drive on Windows
            record.relativepath = record.pathname
        return True


def _configure_local_handler(root_logger: logging.Logger) -> None:
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOCAL_LOG_FORMAT))
    # Handler-level filter so records from child loggers also get the attribute
    handler.addFilter(RelativePathFilter())
    root_logger.addHandler(handler)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the root logger for Cloud Run or local execution.

    Args:
        level: Root logger level
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if "K_SERVICE" in os.environ:
        # Captures all logs at the root level and higher
        log_client = google.cloud.logging.Client()  # type: ignore[no-untyped-call]
        log_client.setup_logging(log_level=level)  # type: ignore[no-untyped-call]
        logging.info("[logging] Using google cloud logging")
    else:
        _configure_local_handler(root_logger)
        logging.info("[logging] Using stream handler with relative path format")
