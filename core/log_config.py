"""structlog configuration for the CLI.

Logs go to stderr so command output (``rewrite`` in particular) stays clean
on stdout. Only warnings and errors are shown unless ``verbose`` is set.
"""

from __future__ import annotations

import logging
import sys

import structlog


def _stderr_logger(*_args) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger; test runners swap it between invocations
    return structlog.PrintLogger(sys.stderr)


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog once per CLI invocation.

    Args:
        verbose: Emit debug events (id collisions, reads and writes).
    """
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
