from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from wechat_pay.api.middleware import RequestContextMiddleware
from wechat_pay.api.routes import ROUTERS
from wechat_pay.core.config import (
    Settings,
    WechatPayConfig,
    get_settings,
    get_wechat_pay_config,
)
from wechat_pay.core.lifespan import create_lifespan
from wechat_pay.core.logging import configure_logging
from wechat_pay.payments.dependencies import notification_rejected_handler
from wechat_pay.payments.exceptions import NotificationRejectedError


def create_app() -> FastAPI:
    settings: Settings = get_settings()
    # Missing credentials abort startup rather than failing per request.
    config: WechatPayConfig = get_wechat_pay_config()
    configure_logging(settings, config)

    app = FastAPI(
        title=settings.project_name,
        description=settings.project_description,
        version=settings.project_version,
        docs_url=settings.docs_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=create_lifespan(settings, config),
    )

    app.state.settings = settings
    app.state.wechat_pay_config = config
    app.openapi_tags = [
        {"name": "health", "description": "Service health check operations"},
        {
            "name": "wechat-pay",
            "description": (
                "Gateway notification callback, refund lookup and JSAPI "
                "payment request signing."
            ),
        },
    ]

    app.add_exception_handler(NotificationRejectedError, notification_rejected_handler)
    app.add_middleware(RequestContextMiddleware)
    for router in ROUTERS:
        app.include_router(router)

    return app
