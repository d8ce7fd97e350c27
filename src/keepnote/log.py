import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """
    Routes stdlib logging and structlog to stderr.
    Nothing may be written to stdout while the MCP server speaks JSON-RPC on it.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(stream=sys.stderr, level=numeric_level, force=True)

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
