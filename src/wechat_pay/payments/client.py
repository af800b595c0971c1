from __future__ import annotations

import ssl
from collections.abc import Mapping
from types import TracebackType

import httpx
import structlog

from wechat_pay.core.config import WechatPayConfig
from wechat_pay.core.constants import XML_MEDIA_TYPE

from .codec import decode, encode
from .enums import ReturnCode
from .exceptions import GatewayRequestError, SignatureMismatchError
from .signature import SIGN_FIELD, generate_nonce_str, sign, stringify, verify
from .types import FieldSet

__all__ = ["WechatPayClient", "build_ssl_context"]

logger = structlog.get_logger(__name__)


def build_ssl_context(config: WechatPayConfig) -> ssl.SSLContext | None:
    """Return a TLS context carrying the merchant client certificate, if any."""

    if config.ssl_certfile is None and config.ssl_cacertfile is None:
        return None

    context = ssl.create_default_context(cafile=config.ssl_cacertfile)
    if config.ssl_certfile is not None:
        password = (
            config.ssl_password.get_secret_value()
            if config.ssl_password is not None
            else None
        )
        context.load_cert_chain(
            certfile=config.ssl_certfile,
            keyfile=config.ssl_keyfile,
            password=password,
        )
    return context


class WechatPayClient:
    """Signed XML-over-HTTP client for the gateway's merchant API.

    Each call is a single request; failures are raised, never retried.
    """

    def __init__(
        self,
        *,
        appid: str,
        mch_id: str,
        apikey: str,
        base_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        if not appid:
            raise ValueError("appid must be provided")
        if not mch_id:
            raise ValueError("mch_id must be provided")
        if not apikey:
            raise ValueError("apikey must be provided")
        self._appid = appid
        self._mch_id = mch_id
        self._apikey = apikey
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            verify=ssl_context if ssl_context is not None else True,
        )

    @classmethod
    def from_config(
        cls,
        config: WechatPayConfig,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> WechatPayClient:
        return cls(
            appid=config.appid,
            mch_id=config.mch_id,
            apikey=config.apikey.get_secret_value(),
            base_url=config.base_url,
            timeout=timeout,
            http_client=http_client,
            ssl_context=build_ssl_context(config) if http_client is None else None,
        )

    async def __aenter__(self) -> WechatPayClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_request_fields(self, fields: Mapping[str, object]) -> FieldSet:
        """Add merchant identifiers and a nonce, then sign the request."""

        payload: dict[str, object] = {
            "appid": self._appid,
            "mch_id": self._mch_id,
            "nonce_str": generate_nonce_str(),
        }
        payload.update(
            (key, value)
            for key, value in fields.items()
            if value is not None and key != SIGN_FIELD
        )
        request: FieldSet = {
            key: stringify(value, key) for key, value in payload.items()
        }
        request[SIGN_FIELD] = sign(payload, self._apikey)
        return request

    async def post(self, path: str, fields: Mapping[str, object]) -> FieldSet:
        """POST a signed request to ``path`` and return the verified response."""

        body = encode(self.build_request_fields(fields))
        try:
            response = await self._client.post(
                path.lstrip("/"),
                content=body,
                headers={"Content-Type": XML_MEDIA_TYPE},
            )
        except httpx.HTTPError as exc:
            logger.warning("wechat_pay_request_failed", path=path, error=str(exc))
            raise GatewayRequestError(str(exc)) from exc

        if response.is_error:
            logger.warning(
                "wechat_pay_request_failed",
                path=path,
                status_code=response.status_code,
            )
            raise GatewayRequestError(
                f"Gateway responded with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        data = decode(response.content)

        if data.get("return_code") != ReturnCode.SUCCESS:
            message = data.get("return_msg") or "Gateway returned FAIL"
            logger.warning(
                "wechat_pay_request_rejected", path=path, return_msg=message
            )
            raise GatewayRequestError(message, status_code=response.status_code)

        if SIGN_FIELD in data and not verify(data, self._apikey):
            logger.error("wechat_pay_response_signature_mismatch", path=path)
            raise SignatureMismatchError("invalid signature in gateway response")

        logger.info(
            "wechat_pay_request_completed",
            path=path,
            result_code=data.get("result_code"),
        )
        return data
