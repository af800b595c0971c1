from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from wechat_pay.api.schemas import (
    PayRequestCreate,
    PayRequestResponse,
    RefundQueryPayload,
)
from wechat_pay.core.config import WechatPayConfig, get_wechat_pay_config
from wechat_pay.payments.api import query_refund
from wechat_pay.payments.client import WechatPayClient
from wechat_pay.payments.dependencies import (
    get_notification_handler,
    get_wechat_pay_client,
    success_response,
    verified_notification,
)
from wechat_pay.payments.exceptions import (
    GatewayRequestError,
    MalformedPayloadError,
    SignatureMismatchError,
)
from wechat_pay.payments.jsapi import generate_pay_request
from wechat_pay.payments.notifications import NotificationHandler
from wechat_pay.payments.types import FieldSet

router = APIRouter(prefix="/api/v1/wechat-pay", tags=["wechat-pay"])

logger = structlog.get_logger(__name__)


@router.post(
    "/notify",
    response_class=Response,
    summary="Handle WeChat Pay payment notifications",
    responses={
        status.HTTP_200_OK: {"content": {"application/xml": {}}},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {
            "description": "Notification rejected; the gateway will redeliver it"
        },
    },
)
async def handle_notification(
    payload: FieldSet = Depends(verified_notification),
    handler: NotificationHandler = Depends(get_notification_handler),
) -> Response:
    await handler.handle(payload)
    return success_response()


@router.post(
    "/refunds/query",
    response_model=dict[str, str],
    summary="Query refund status at the gateway",
)
async def refund_query(
    payload: RefundQueryPayload,
    client: WechatPayClient = Depends(get_wechat_pay_client),
) -> FieldSet:
    try:
        return await query_refund(client, **payload.model_dump(exclude_none=True))
    except GatewayRequestError as exc:
        logger.warning("refund_query_failed", error=exc.message)
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    except (MalformedPayloadError, SignatureMismatchError) as exc:
        logger.error("refund_query_invalid_response", error=str(exc))
        raise HTTPException(
            status.HTTP_502_BAD_GATEWAY, detail="Invalid gateway response"
        ) from exc


@router.post(
    "/jsapi/pay-request",
    response_model=PayRequestResponse,
    summary="Build the signed JSAPI payment invocation payload",
)
async def create_pay_request(
    payload: PayRequestCreate,
    config: WechatPayConfig = Depends(get_wechat_pay_config),
) -> PayRequestResponse:
    return PayRequestResponse(**generate_pay_request(payload.prepay_id, config))
