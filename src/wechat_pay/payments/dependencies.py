from __future__ import annotations

from fastapi import Depends, Request, Response, status

from wechat_pay.core.config import WechatPayConfig, get_wechat_pay_config
from wechat_pay.core.constants import XML_MEDIA_TYPE

from .client import WechatPayClient
from .codec import encode_success_ack
from .exceptions import NotificationRejectedError
from .notifications import LoggingNotificationHandler, NotificationHandler
from .notify import NotificationPipeline, Verified
from .types import FieldSet

_PIPELINE: NotificationPipeline | None = None
_HANDLER: NotificationHandler | None = None


def get_notification_pipeline(
    config: WechatPayConfig = Depends(get_wechat_pay_config),
) -> NotificationPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = NotificationPipeline.from_config(config)
    return _PIPELINE


def get_notification_handler() -> NotificationHandler:
    global _HANDLER
    if _HANDLER is None:
        _HANDLER = LoggingNotificationHandler()
    return _HANDLER


async def verified_notification(
    request: Request,
    pipeline: NotificationPipeline = Depends(get_notification_pipeline),
) -> FieldSet:
    """Return the verified notification payload or answer 422 with no body.

    Rejections raise :class:`NotificationRejectedError`, which the application
    turns into an empty 422 response; the reason stays in the logs and the
    gateway redelivers the notification later.
    """

    body = await request.body()
    result = pipeline.process(body)
    if isinstance(result, Verified):
        return result.payload
    raise NotificationRejectedError(result.reason.value, result.detail)


async def notification_rejected_handler(
    request: Request, exc: Exception
) -> Response:
    return Response(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


def success_response() -> Response:
    """Acknowledge a handled notification so the gateway stops redelivering it."""

    return Response(
        content=encode_success_ack(),
        status_code=status.HTTP_200_OK,
        media_type=XML_MEDIA_TYPE,
    )


def reset_payment_dependencies() -> None:
    """Reset cached singletons to allow reconfiguration during tests."""

    global _PIPELINE, _HANDLER
    _PIPELINE = None
    _HANDLER = None


def get_wechat_pay_client(request: Request) -> WechatPayClient:
    """Return the client opened by the application lifespan."""

    client: WechatPayClient | None = getattr(
        request.app.state, "wechat_pay_client", None
    )
    if client is None:
        raise RuntimeError("WeChat Pay client is not initialised")
    return client
