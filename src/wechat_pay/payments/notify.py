"""Verification of the gateway's asynchronous payment notifications.

A notification goes through three stages: the body is decoded, the
``return_code`` is inspected, and for successful notifications the ``sign``
field is checked against a signature recomputed with the merchant API key.
Every stage either hands the payload on or ends in a :class:`Rejected` result
carrying the reason, so callers never see unverified data.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypeAlias

import structlog

from wechat_pay.core.config import WechatPayConfig

from .codec import decode
from .enums import RejectionReason, ReturnCode
from .exceptions import (
    BusinessFailureError,
    MalformedPayloadError,
    SignatureMismatchError,
    WechatPayError,
)
from .signature import SIGN_FIELD, verify
from .types import FieldSet

__all__ = [
    "NotificationPipeline",
    "Rejected",
    "VerificationResult",
    "Verified",
]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Verified:
    """Notification whose signature matched; ``payload`` includes ``sign``."""

    payload: FieldSet

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> FieldSet:
        return self.payload


@dataclass(frozen=True, slots=True)
class Rejected:
    """Notification that must not be acknowledged.

    ``detail`` is for diagnostics only and is never sent back to the gateway.
    """

    reason: RejectionReason
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def to_exception(self) -> WechatPayError:
        if self.reason is RejectionReason.BUSINESS_FAILURE:
            return BusinessFailureError(self.detail)
        if self.reason is RejectionReason.SIGNATURE_MISMATCH:
            return SignatureMismatchError(self.detail or "invalid signature")
        return MalformedPayloadError(self.detail or "malformed payload")

    def unwrap(self) -> FieldSet:
        raise self.to_exception()


VerificationResult: TypeAlias = Verified | Rejected


class NotificationPipeline:
    """Stateless decode/validate/verify sequence over one shared API key."""

    def __init__(self, apikey: str) -> None:
        if not apikey:
            raise ValueError("apikey must be provided")
        self._apikey = apikey

    @classmethod
    def from_config(cls, config: WechatPayConfig) -> NotificationPipeline:
        return cls(config.apikey.get_secret_value())

    def process(self, body: bytes | str) -> VerificationResult:
        """Run the full pipeline over a raw request body."""

        try:
            payload = decode(body)
        except MalformedPayloadError as exc:
            logger.warning(
                "wechat_pay_notification_rejected",
                reason=RejectionReason.MALFORMED.value,
                error=str(exc),
            )
            return Rejected(RejectionReason.MALFORMED, str(exc))
        return self.verify(payload)

    def verify(self, payload: Mapping[str, str]) -> VerificationResult:
        """Validate ``return_code`` then check the signature of a decoded payload."""

        return_code = payload.get("return_code")
        if return_code == ReturnCode.SUCCESS:
            if not payload.get(SIGN_FIELD):
                logger.warning(
                    "wechat_pay_notification_rejected",
                    reason=RejectionReason.MALFORMED.value,
                    out_trade_no=payload.get("out_trade_no"),
                    error="missing sign",
                )
                return Rejected(RejectionReason.MALFORMED, "missing sign")
            return self._check_signature(dict(payload))

        if return_code == ReturnCode.FAIL:
            # Failure notifications are not signed the same way; stop here.
            reason = payload.get("return_msg") or None
            logger.warning(
                "wechat_pay_notification_rejected",
                reason=RejectionReason.BUSINESS_FAILURE.value,
                return_msg=reason,
            )
            return Rejected(RejectionReason.BUSINESS_FAILURE, reason)

        logger.warning(
            "wechat_pay_notification_rejected",
            reason=RejectionReason.MALFORMED.value,
            return_code=return_code,
        )
        detail = (
            "missing return_code"
            if return_code is None
            else f"unexpected return_code {return_code!r}"
        )
        return Rejected(RejectionReason.MALFORMED, detail)

    def _check_signature(self, payload: FieldSet) -> VerificationResult:
        if verify(payload, self._apikey):
            logger.info(
                "wechat_pay_notification_verified",
                out_trade_no=payload.get("out_trade_no"),
                transaction_id=payload.get("transaction_id"),
            )
            return Verified(payload)

        logger.error(
            "wechat_pay_signature_mismatch",
            out_trade_no=payload.get("out_trade_no"),
            transaction_id=payload.get("transaction_id"),
        )
        return Rejected(RejectionReason.SIGNATURE_MISMATCH, "invalid signature")
