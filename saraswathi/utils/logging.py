"""Structured logging for the catalogue service.

Every event carries ``service="saraswathi"`` and the deployment ``env`` via
structlog context vars, so pipeline jobs running in background tasks log
with the same identity as request handlers.  Events render as coloured
console lines in development and JSON lines in production.

Standard-library records (uvicorn, httpx, the Google and Pillow libraries)
go through the same renderer.  The chattier client libraries are held at
WARNING unless the service itself runs at DEBUG.
"""

import logging
import os
import sys

import structlog

SERVICE_NAME = "saraswathi"

# Loggers that emit one line per outbound request or decoded image.
NOISY_LOGGERS = ("httpx", "httpcore", "google", "grpc", "urllib3", "PIL")


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        json_output: Force JSON output.  Otherwise JSON is used only when
                     ``APP_ENV=production``.

    Returns:
        A logger bound to the service context.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"
    level = logging.getLevelName(log_level.upper())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    renderer: structlog.types.Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared_processors],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME, env=app_env)
    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Named logger; configures logging with defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
