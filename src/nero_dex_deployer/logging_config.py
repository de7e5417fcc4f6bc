"""Structured logging configuration using structlog.

Provides JSON-structured logging for CI pipelines and human-readable colored
output for operators at a terminal. A deployment run wraps itself in
``deployment_context`` so every line it emits carries the network name and
chain ID, and secrets handed to a logger are masked before rendering.

Usage:
    from nero_dex_deployer.logging_config import setup_logging, get_logger
    setup_logging(log_level="DEBUG", json_logs=False)
    logger = get_logger()
    with deployment_context(network="nero-testnet", chain_id=689):
        logger.info("deploy.unit.confirmed", unit="factory", address="0x...")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

# Event keys whose values never reach the output
SECRET_KEYS = frozenset({"private_key", "api_key", "apikey", "explorer_api_key"})

# Libraries that log every RPC or HTTP round trip at INFO
NOISY_LOGGERS = ("web3", "httpx", "httpcore", "urllib3", "asyncio", "aiohttp")


def mask_secrets(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Replace the value of any secret-looking key with a fixed mask."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Standard Python log level name. Unknown names fall back to INFO.
        json_logs: If True, output JSON. If False, colored console.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        mask_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # Logs go to stderr so the record and outcome tables on stdout stay clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    level = logging.getLevelName(log_level.upper())
    root_logger.setLevel(level if isinstance(level, int) else logging.INFO)

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


@contextmanager
def deployment_context(
    network: str | None, chain_id: int | None, **extra: Any
) -> Iterator[None]:
    """Bind the deployment's network and chain ID to every log line in the block.

    The binding is held in structlog's context variables, so it follows the
    run across awaits and is removed again on exit, even on error.
    """
    with structlog.contextvars.bound_contextvars(network=network, chain_id=chain_id, **extra):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If None, uses the calling module's name.

    Returns:
        A bound structlog logger with context variable support.
    """
    return structlog.get_logger(name)
