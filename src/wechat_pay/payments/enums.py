from __future__ import annotations

from enum import StrEnum


class GatewayEnvironment(StrEnum):
    """Gateway deployment the merchant account talks to."""

    SANDBOX = "sandbox"
    PRODUCTION = "production"


class ReturnCode(StrEnum):
    """Communication-level outcome reported in ``return_code``."""

    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


class RejectionReason(StrEnum):
    """Why an inbound notification was not accepted."""

    MALFORMED = "malformed"
    BUSINESS_FAILURE = "business_failure"
    SIGNATURE_MISMATCH = "signature_mismatch"


class SignType(StrEnum):
    MD5 = "MD5"
