"""Global constants for the WeChat Pay integration service."""

from __future__ import annotations

SERVICE_NAME = "wechat-pay"
REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_CTX_KEY = "request_id"
DEFAULT_ENV_FILE = ".env"
SECRETS_DIR = "/run/secrets"

CONFIG_ENV_PREFIX = "WECHAT_PAY__"
PRODUCTION_BASE_URL = "https://api.mch.weixin.qq.com/"
SANDBOX_BASE_URL = "https://api.mch.weixin.qq.com/sandboxnew/"
XML_MEDIA_TYPE = "application/xml"
