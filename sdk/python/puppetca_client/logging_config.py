"""
Puppet CA Client - Logging
structlog setup for applications embedding the client
"""

import logging

import structlog


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    The client only emits events; call this once from the application
    that owns the process.

    Args:
        level: Log level name for the root logger
        json: Render JSON lines, or human readable console output when False
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
