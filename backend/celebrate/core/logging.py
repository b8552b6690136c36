"""
Structured logging for the API and the seed script.

Every record goes through stdlib logging (so uvicorn, SQLAlchemy and the
Stripe SDK end up in the same stream) and is rendered by structlog:

- production: one JSON object per line, tracebacks as structured dicts
- anywhere else: the console renderer, colored when attached to a TTY

Records carry `service` and `environment`, plus whatever the request
middleware bound through contextvars (request_id, method, path).
"""

import logging
import sys

import structlog

from celebrate.core.config import get_settings

_HANDLER_NAME = "celebrate"

# Libraries that are chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "stripe")


def _service_context(service: str, environment: str):
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def build_renderer(environment: str):
    if environment == "production":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging() -> None:
    """Idempotent: the app lifespan and every test client may call it."""
    settings = get_settings()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(settings.APP_NAME, settings.ENVIRONMENT),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        # foreign (plain stdlib) records get the same context as ours
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *build_renderer(settings.ENVIRONMENT),
        ],
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
