from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from wechat_pay.core.config import (
    Settings,
    WechatPayConfig,
    get_settings,
    get_wechat_pay_config,
)

router = APIRouter(prefix="/health", tags=["health"])
logger = structlog.get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "error"]
    service: str
    version: str
    timestamp: datetime
    environment: str
    gateway_environment: str

    model_config = ConfigDict(extra="ignore")


@router.get("", summary="Service health check", response_model=HealthResponse)
async def health(
    settings: Settings = Depends(get_settings),
    config: WechatPayConfig = Depends(get_wechat_pay_config),
) -> HealthResponse:
    """Return a lightweight health payload for readiness probes."""

    payload = HealthResponse(
        status="ok",
        service=settings.project_name,
        version=settings.project_version,
        timestamp=datetime.now(UTC),
        environment=settings.environment.value,
        gateway_environment=config.env.value,
    )
    logger.debug("health_status", gateway_environment=payload.gateway_environment)
    return payload
