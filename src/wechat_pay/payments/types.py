from __future__ import annotations

from collections.abc import Mapping
from typing import TypeAlias, TypedDict

__all__ = [
    "FieldSet",
    "JSAPIPayRequest",
    "SignableFields",
]

FieldSet: TypeAlias = dict[str, str]
SignableFields: TypeAlias = Mapping[str, object]


class JSAPIPayRequest(TypedDict):
    """Arguments handed to ``WeixinJSBridge.invoke('getBrandWCPayRequest')``."""

    appId: str
    timeStamp: str
    nonceStr: str
    package: str
    signType: str
    paySign: str
