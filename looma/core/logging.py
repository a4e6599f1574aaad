import logging
import sys

import structlog

DEV_ENV = "dev"


def configure_logging(log_level: str = "INFO", *, app_env: str | None = None) -> None:
    """Route structlog through stdlib logging.

    ``app_env`` is bound into the context of every event. The ``dev`` environment
    renders readable console lines; every other environment renders JSON.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if app_env == DEV_ENV:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    if app_env:
        structlog.contextvars.bind_contextvars(app_env=app_env)
