import logging
import sys

import structlog


def configure_logging(level: int = logging.INFO):
    """
    Routes stdlib logging and structlog output to stderr as JSON lines.
    Call once from the application entry point; the library never configures
    logging on import.
    """
    logging.basicConfig(stream=sys.stderr, level=level, force=True)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
