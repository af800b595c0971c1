"""Gateway request signing.

The gateway authenticates every message with an MD5 digest over the sorted,
non-empty fields followed by the merchant API key::

    appid=A&mch_id=B&key=<apikey>

Outbound requests and inbound notifications go through :func:`sign`, so the
canonical form only exists in one place.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import secrets
import string
from collections.abc import Mapping
from decimal import Decimal

from .types import SignableFields

__all__ = [
    "SIGN_FIELD",
    "canonicalize",
    "generate_nonce_str",
    "sign",
    "stringify",
    "verify",
]

SIGN_FIELD = "sign"
_NONCE_ALPHABET = string.ascii_letters + string.digits


def _non_finite_message(value: object, name: str | None) -> str:
    target = f"field {name!r}" if name else "field"
    return f"{target} has a non-finite value {value!r}"


def stringify(value: object, name: str | None = None) -> str:
    """Render a field value the way the gateway expects it on the wire.

    Infinite and NaN numbers have no wire form and raise :class:`ValueError`.
    """

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(_non_finite_message(value, name))
        if value.is_integer():
            return str(int(value))
        value = Decimal(repr(value))
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(_non_finite_message(value, name))
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return format(value.normalize(), "f")
    return str(value)


def canonicalize(fields: SignableFields) -> str:
    """Return the sorted ``name=value&`` string without the trailing key."""

    items: list[tuple[str, str]] = []
    for name, value in fields.items():
        if name == SIGN_FIELD or value is None:
            continue
        rendered = stringify(value, name)
        if rendered == "":
            continue
        items.append((name, rendered))

    # Plain code point order, never locale-aware.
    items.sort(key=lambda item: item[0])
    return "".join(f"{name}={value}&" for name, value in items)


def sign(fields: SignableFields, secret: str) -> str:
    """Compute the 32-character uppercase MD5 signature for ``fields``."""

    payload = f"{canonicalize(fields)}key={secret}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest().upper()


def verify(fields: Mapping[str, object], secret: str) -> bool:
    """Check the ``sign`` carried in ``fields`` against a fresh signature."""

    provided = fields.get(SIGN_FIELD)
    if not isinstance(provided, str) or not provided:
        return False
    expected = sign(fields, secret)
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def generate_nonce_str(length: int = 32) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(_NONCE_ALPHABET) for _ in range(length))
