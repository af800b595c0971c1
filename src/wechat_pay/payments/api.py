"""Endpoint-specific request builders on top of :class:`WechatPayClient`."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from .client import WechatPayClient
from .types import FieldSet

__all__ = ["REFUND_QUERY_PATH", "RefundQueryRequest", "query_refund"]

REFUND_QUERY_PATH = "pay/refundquery"


@dataclass(slots=True)
class RefundQueryRequest:
    """Identifiers accepted by the refund query API; one of them is enough."""

    device_info: str | None = None
    transaction_id: str | None = None
    out_trade_no: str | None = None
    out_refund_no: str | None = None
    refund_id: str | None = None

    def to_fields(self) -> dict[str, str | None]:
        return asdict(self)


async def query_refund(client: WechatPayClient, **params: str | None) -> FieldSet:
    """Call ``pay/refundquery``; unknown parameters raise ``TypeError``."""

    request = RefundQueryRequest(**params)
    return await client.post(REFUND_QUERY_PATH, request.to_fields())
