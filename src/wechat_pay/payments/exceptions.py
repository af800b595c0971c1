from __future__ import annotations


class WechatPayError(RuntimeError):
    """Base class for WeChat Pay integration errors."""


class ConfigurationError(WechatPayError):
    """Raised when the gateway configuration is invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised at startup when a required configuration value is absent."""


class MalformedPayloadError(WechatPayError):
    """Raised when a gateway payload is not the expected XML shape."""


class BusinessFailureError(WechatPayError):
    """Raised when the gateway reports ``return_code=FAIL``."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or "gateway reported failure")
        self.reason = reason


class SignatureMismatchError(WechatPayError):
    """Raised when a payload signature does not match the recomputed one."""


class GatewayRequestError(WechatPayError):
    """Raised when an outbound call to the gateway does not succeed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotificationRejectedError(WechatPayError):
    """Raised at the HTTP boundary when a notification is not acknowledged."""

    def __init__(self, reason: str, detail: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.detail = detail
