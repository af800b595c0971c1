from __future__ import annotations

import pytest

from wechat_pay.payments.codec import (
    decode,
    encode,
    encode_failure_ack,
    encode_success_ack,
)
from wechat_pay.payments.exceptions import MalformedPayloadError

NOTIFICATION_XML = b"""
<xml>
  <appid><![CDATA[wx2421b1c4370ec43b]]></appid>
  <attach><![CDATA[\xe6\x94\xaf\xe4\xbb\x98\xe6\xb5\x8b\xe8\xaf\x95]]></attach>
  <mch_id><![CDATA[10000100]]></mch_id>
  <return_code><![CDATA[SUCCESS]]></return_code>
  <total_fee>1</total_fee>
  <coupon_fee_0><![CDATA[10]]></coupon_fee_0>
</xml>
"""


def test_decode_reads_cdata_and_plain_text() -> None:
    fields = decode(NOTIFICATION_XML)

    assert fields == {
        "appid": "wx2421b1c4370ec43b",
        "attach": "支付测试",
        "mch_id": "10000100",
        "return_code": "SUCCESS",
        "total_fee": "1",
        "coupon_fee_0": "10",
    }


def test_decode_trims_whitespace_and_keeps_empty_elements() -> None:
    fields = decode("<xml><a>  padded  </a><b/><c><![CDATA[ x ]]></c></xml>")

    assert fields == {"a": "padded", "b": "", "c": "x"}


def test_decode_accepts_xml_declaration() -> None:
    body = b'<?xml version="1.0" encoding="UTF-8"?><xml><a>1</a></xml>'

    assert decode(body) == {"a": "1"}


@pytest.mark.parametrize(
    "body",
    [
        b"",
        b"   ",
        b"not xml at all",
        b"<xml><a>1</a>",
        b'{"return_code": "SUCCESS"}',
    ],
)
def test_decode_rejects_malformed_bodies(body: bytes) -> None:
    with pytest.raises(MalformedPayloadError):
        decode(body)


def test_decode_requires_xml_root() -> None:
    with pytest.raises(MalformedPayloadError):
        decode(b"<root><return_code>SUCCESS</return_code></root>")


def test_decode_rejects_external_entity_declarations() -> None:
    body = (
        b'<?xml version="1.0"?>'
        b'<!DOCTYPE xml [<!ENTITY secret SYSTEM "file:///etc/passwd">]>'
        b"<xml><a>&secret;</a></xml>"
    )

    with pytest.raises(MalformedPayloadError):
        decode(body)


def test_decode_rejects_internal_entity_declarations() -> None:
    body = (
        b'<!DOCTYPE xml [<!ENTITY fee "100">]>'
        b"<xml><total_fee>&fee;</total_fee></xml>"
    )

    with pytest.raises(MalformedPayloadError):
        decode(body)


def test_encode_wraps_values_in_cdata_and_skips_none() -> None:
    body = encode({"appid": "A", "total_fee": 1, "device_info": None})

    assert body == (
        b"<xml><appid><![CDATA[A]]></appid>"
        b"<total_fee><![CDATA[1]]></total_fee></xml>"
    )


def test_success_ack_round_trip() -> None:
    assert decode(encode_success_ack()) == {"return_code": "SUCCESS", "return_msg": "OK"}


def test_success_ack_uses_cdata() -> None:
    body = encode_success_ack()

    assert b"<return_code><![CDATA[SUCCESS]]></return_code>" in body
    assert b"<return_msg><![CDATA[OK]]></return_msg>" in body


def test_failure_ack_carries_reason() -> None:
    assert decode(encode_failure_ack("SIGNERROR")) == {
        "return_code": "FAIL",
        "return_msg": "SIGNERROR",
    }
