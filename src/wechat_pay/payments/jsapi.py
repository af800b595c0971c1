from __future__ import annotations

import time

from wechat_pay.core.config import WechatPayConfig

from .enums import SignType
from .signature import generate_nonce_str, sign
from .types import JSAPIPayRequest

__all__ = ["generate_pay_request"]


def generate_pay_request(
    prepay_id: str,
    config: WechatPayConfig,
    *,
    nonce_str: str | None = None,
    timestamp: int | None = None,
) -> JSAPIPayRequest:
    """Build the signed payload for the in-browser JSAPI payment call."""

    if not prepay_id:
        raise ValueError("prepay_id must be provided")

    fields: dict[str, str] = {
        "appId": config.appid,
        "timeStamp": str(int(time.time()) if timestamp is None else timestamp),
        "nonceStr": nonce_str or generate_nonce_str(),
        "package": f"prepay_id={prepay_id}",
        "signType": SignType.MD5.value,
    }
    return JSAPIPayRequest(
        appId=fields["appId"],
        timeStamp=fields["timeStamp"],
        nonceStr=fields["nonceStr"],
        package=fields["package"],
        signType=fields["signType"],
        paySign=sign(fields, config.apikey.get_secret_value()),
    )
