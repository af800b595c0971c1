from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from starlette.types import Lifespan

from wechat_pay.core.config import Settings, WechatPayConfig
from wechat_pay.payments.client import WechatPayClient


def create_lifespan(settings: Settings, config: WechatPayConfig) -> Lifespan[FastAPI]:
    logger = structlog.get_logger(__name__).bind(
        environment=settings.environment, gateway_environment=config.env
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("application_startup")
        client = WechatPayClient.from_config(
            config, timeout=settings.http_timeout_seconds
        )
        app.state.wechat_pay_client = client

        try:
            yield
        finally:
            app.state.wechat_pay_client = None
            await client.aclose()
            logger.info("application_shutdown")

    return lifespan
