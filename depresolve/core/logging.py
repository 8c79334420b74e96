"""CLI logging: structlog events rendered through a stdlib handler on stderr."""

from __future__ import annotations

import logging.config
import os
import sys

import structlog


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Reads from environment variables:
        DEPRESOLVE_LOG_LEVEL:  level of the ``depresolve`` loggers (default: INFO)
        DEPRESOLVE_LOG_FORMAT: console | json (default: console)

    An explicit *level* (the CLI's ``--verbose``) takes precedence over the
    environment. Other libraries only log warnings.
    """
    log_level = (level or os.environ.get("DEPRESOLVE_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("DEPRESOLVE_LOG_FORMAT", "console").lower()

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if log_format == "json":
        pre_chain.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdout carries command output (--json), so logs stay on stderr.
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": {"depresolve": {"level": log_level}},
        }
    )
