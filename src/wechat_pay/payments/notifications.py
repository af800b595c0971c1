from __future__ import annotations

from typing import Protocol

import structlog

from .types import FieldSet


class NotificationHandler(Protocol):
    """Business processing for a notification that passed verification."""

    async def handle(self, payload: FieldSet) -> None:
        """Apply the payment outcome (mark the order paid, emit events, ...)."""


class LoggingNotificationHandler:
    """Default handler that logs verified notifications in lieu of a real integration."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger(__name__)

    async def handle(self, payload: FieldSet) -> None:
        self._logger.info(
            "wechat_pay_payment_notified",
            out_trade_no=payload.get("out_trade_no"),
            transaction_id=payload.get("transaction_id"),
            result_code=payload.get("result_code"),
            total_fee=payload.get("total_fee"),
        )
