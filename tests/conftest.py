from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from wechat_pay.app import create_app
from wechat_pay.core.config import (
    WechatPayConfig,
    get_settings,
    get_wechat_pay_config,
)
from wechat_pay.payments.dependencies import reset_payment_dependencies

TEST_APPID = "wx2421b1c4370ec43b"
TEST_MCH_ID = "10000100"
TEST_APIKEY = "192006250b4c09247ec02edce69f6a2d"


@pytest.fixture(autouse=True)
def configure_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("WECHAT_PAY__ENV", "sandbox")
    monkeypatch.setenv("WECHAT_PAY__APPID", TEST_APPID)
    monkeypatch.setenv("WECHAT_PAY__MCH_ID", TEST_MCH_ID)
    monkeypatch.setenv("WECHAT_PAY__APIKEY", TEST_APIKEY)

    reset_payment_dependencies()
    get_settings.cache_clear()
    get_wechat_pay_config.cache_clear()
    try:
        yield
    finally:
        reset_payment_dependencies()
        get_settings.cache_clear()
        get_wechat_pay_config.cache_clear()


@pytest.fixture()
def wechat_pay_config() -> WechatPayConfig:
    return get_wechat_pay_config()


@pytest_asyncio.fixture()
async def app() -> AsyncIterator[FastAPI]:
    application = create_app()
    try:
        async with application.router.lifespan_context(application):
            yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as http_client:
        yield http_client
