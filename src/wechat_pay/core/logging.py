"""structlog setup for the gateway service.

Every log line carries the service name, the deployment environment and
the gateway identity (``gateway_env`` and ``appid``) so notifications from
sandbox and production merchants can be told apart. Credentials and
signatures are masked before rendering.
"""

from __future__ import annotations

import logging
import logging.config
from collections.abc import MutableMapping
from threading import Lock
from typing import Any

import structlog
import structlog.contextvars
import structlog.stdlib

from wechat_pay.core.config import Settings, WechatPayConfig
from wechat_pay.core.constants import REQUEST_ID_CTX_KEY, SERVICE_NAME

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "redact_secrets",
]

REDACTED = "***"
_SECRET_KEYS = frozenset({"apikey", "paySign", "sign", "ssl_password"})

_LOGGING_INITIALISED = False
_LOGGING_LOCK = Lock()
_BASE_CONTEXT: dict[str, Any] = {"service": SERVICE_NAME}


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask the API key and signatures wherever they appear in an event."""

    for name, value in list(event_dict.items()):
        if name in _SECRET_KEYS and value:
            event_dict[name] = REDACTED
        elif isinstance(value, dict) and _SECRET_KEYS.intersection(value):
            event_dict[name] = {
                key: REDACTED if key in _SECRET_KEYS and item else item
                for key, item in value.items()
            }
    return event_dict


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if isinstance(resolved, str):
        return logging.INFO
    return int(resolved)


def _renderer(settings: Settings) -> Any:
    if settings.log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def _base_context(
    settings: Settings, config: WechatPayConfig | None
) -> dict[str, Any]:
    context: dict[str, Any] = {
        "service": SERVICE_NAME,
        "environment": settings.environment.value,
    }
    if config is not None:
        context["gateway_env"] = config.env.value
        context["appid"] = config.appid
    return context


def configure_logging(
    settings: Settings, config: WechatPayConfig | None = None
) -> None:
    """Configure structlog and stdlib logging once per process.

    The gateway identity from ``config`` is bound for every later log line.
    Calling again only refreshes that bound context.
    """

    global _LOGGING_INITIALISED, _BASE_CONTEXT

    _BASE_CONTEXT = _base_context(settings, config)
    structlog.contextvars.bind_contextvars(**_BASE_CONTEXT)

    if _LOGGING_INITIALISED:
        return

    with _LOGGING_LOCK:
        if _LOGGING_INITIALISED:
            return

        level = _resolve_level(settings.log_level)
        shared: list[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
        ]
        renderer = _renderer(settings)

        structlog.configure(
            processors=[
                *shared,
                structlog.processors.dict_tracebacks,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        handler = {
            "class": "logging.StreamHandler",
            "formatter": "structlog",
            "level": level,
        }
        # uvicorn keeps its own loggers; route them through the same renderer.
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "structlog": {
                        "()": structlog.stdlib.ProcessorFormatter,
                        "foreign_pre_chain": shared,
                        "processors": [
                            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                            renderer,
                        ],
                    }
                },
                "handlers": {"default": handler},
                "loggers": {
                    "": {"handlers": ["default"], "level": level},
                    "uvicorn.error": {
                        "handlers": ["default"],
                        "level": level,
                        "propagate": False,
                    },
                },
            }
        )
        _LOGGING_INITIALISED = True


def bind_request_context(request_id: str, **kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**{REQUEST_ID_CTX_KEY: request_id, **kwargs})


def clear_request_context() -> None:
    """Drop per-request values but keep the service and gateway identity."""

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**_BASE_CONTEXT)
