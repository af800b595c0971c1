from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RefundQueryPayload(BaseModel):
    """Identifiers for a refund lookup; at least one is required."""

    device_info: str | None = Field(default=None, max_length=32)
    transaction_id: str | None = Field(default=None, max_length=32)
    out_trade_no: str | None = Field(default=None, max_length=32)
    out_refund_no: str | None = Field(default=None, max_length=64)
    refund_id: str | None = Field(default=None, max_length=32)

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    @model_validator(mode="after")
    def _require_identifier(self) -> RefundQueryPayload:
        identifiers = (
            self.transaction_id,
            self.out_trade_no,
            self.out_refund_no,
            self.refund_id,
        )
        if not any(identifiers):
            raise ValueError(
                "one of transaction_id, out_trade_no, out_refund_no or refund_id "
                "is required"
            )
        return self


class PayRequestCreate(BaseModel):
    prepay_id: str = Field(..., min_length=1, max_length=64)

    model_config = ConfigDict(str_strip_whitespace=True)


class PayRequestResponse(BaseModel):
    """Arguments for ``WeixinJSBridge.invoke('getBrandWCPayRequest', ...)``."""

    appId: str
    timeStamp: str
    nonceStr: str
    package: str
    signType: str
    paySign: str
