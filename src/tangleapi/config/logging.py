"""structlog configuration for the CLI and the servers it starts.

Everything goes to one stderr handler: our own structlog events, stdlib
records from the service layer, and the records uvicorn and FastMCP
emit while ``serve``/``mcp`` run. ``--log-json`` switches that handler to
JSON lines so a server's output can be shipped as-is.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Server loggers that bring their own handlers; they are re-routed through
# ours and held at WARNING unless --verbose.
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "mcp", "httpx")

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _stderr_handler(log_json: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_PRE_CHAIN,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging through a single structlog-formatted stderr handler.

    Safe to call more than once; each call replaces the previous handler.

    Args:
        verbose: ``tangleapi`` loggers at DEBUG and server loggers at INFO.
            Otherwise both stay at WARNING.
        log_json: Render JSON lines instead of the console format.
    """
    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(log_json))
    root.setLevel(logging.WARNING)

    logging.getLogger("tangleapi").setLevel(logging.DEBUG if verbose else logging.WARNING)

    server_level = logging.INFO if verbose else logging.WARNING
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
        server_logger.setLevel(server_level)
