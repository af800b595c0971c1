from __future__ import annotations

from collections.abc import Mapping

from lxml import etree

from .enums import ReturnCode
from .exceptions import MalformedPayloadError
from .signature import stringify
from .types import FieldSet

__all__ = [
    "ROOT_TAG",
    "decode",
    "encode",
    "encode_failure_ack",
    "encode_success_ack",
]

ROOT_TAG = "xml"

# Notification bodies come from the network; never expand entities, fetch DTDs
# or accept a DOCTYPE.
_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    load_dtd=False,
    remove_comments=True,
    remove_pis=True,
    huge_tree=False,
)


def decode(body: bytes | str) -> FieldSet:
    """Parse a gateway ``<xml>`` document into a flat field mapping.

    Child elements become keys and their text (CDATA or plain, trimmed) the
    values. Fields the gateway adds in the future are kept as-is.
    """

    raw = body.encode("utf-8") if isinstance(body, str) else bytes(body)
    if not raw.strip():
        raise MalformedPayloadError("Empty payload")

    try:
        root = etree.fromstring(raw, parser=_PARSER)
    except etree.XMLSyntaxError as exc:
        raise MalformedPayloadError(f"Invalid XML payload: {exc}") from exc

    if root is not None and root.getroottree().docinfo.doctype:
        raise MalformedPayloadError("Document type declarations are not accepted")

    if root is None or root.tag != ROOT_TAG:
        raise MalformedPayloadError(f"Expected <{ROOT_TAG}> root element")

    fields: FieldSet = {}
    for child in root:
        if not isinstance(child.tag, str):
            continue
        fields[child.tag] = (child.text or "").strip()
    return fields


def encode(fields: Mapping[str, object]) -> bytes:
    """Serialise ``fields`` as an ``<xml>`` document with CDATA values."""

    root = etree.Element(ROOT_TAG)
    for name, value in fields.items():
        if value is None:
            continue
        child = etree.SubElement(root, name)
        child.text = etree.CDATA(stringify(value, name))
    return etree.tostring(root, encoding="utf-8")


def encode_success_ack() -> bytes:
    return encode({"return_code": ReturnCode.SUCCESS.value, "return_msg": "OK"})


def encode_failure_ack(reason: str = "FAIL") -> bytes:
    return encode({"return_code": ReturnCode.FAIL.value, "return_msg": reason})
