from __future__ import annotations

import pytest
from pydantic import SecretStr

from wechat_pay.core.config import (
    EnvVar,
    get_settings,
    get_wechat_pay_config,
    resolve_config,
    resolve_value,
)
from wechat_pay.core.constants import PRODUCTION_BASE_URL, SANDBOX_BASE_URL
from wechat_pay.payments.enums import GatewayEnvironment
from wechat_pay.payments.exceptions import (
    ConfigurationError,
    MissingConfigurationError,
)

BASE_SOURCE = {
    "appid": "wx8888888888888888",
    "mch_id": "1900000109",
    "apikey": "192006250b4c09247ec02edce69f6a2d",
}


def test_resolve_value_literal() -> None:
    assert resolve_value("literal", environ={}) == "literal"
    assert resolve_value(SecretStr("hidden"), environ={}) == "hidden"
    assert resolve_value(None, environ={}) is None
    assert resolve_value("", environ={}) is None


def test_resolve_value_env_var_reference() -> None:
    environ = {"WECHAT_PAY_APP_ID": "wx-from-env"}

    assert resolve_value(EnvVar("WECHAT_PAY_APP_ID"), environ=environ) == "wx-from-env"
    assert resolve_value("${WECHAT_PAY_APP_ID}", environ=environ) == "wx-from-env"


def test_resolve_value_env_var_default() -> None:
    assert resolve_value(EnvVar("UNSET_VAR", "fallback"), environ={}) == "fallback"
    assert resolve_value("${UNSET_VAR:-fallback}", environ={}) == "fallback"
    assert resolve_value("${UNSET_VAR}", environ={}) is None


def test_resolve_value_prefers_environment_over_default() -> None:
    environ = {"SET_VAR": "present"}

    assert resolve_value("${SET_VAR:-fallback}", environ=environ) == "present"


def test_resolve_config_builds_frozen_config() -> None:
    config = resolve_config(
        {**BASE_SOURCE, "apikey": EnvVar("WECHAT_PAY_API_KEY")},
        environ={"WECHAT_PAY_API_KEY": "secret-from-env"},
    )

    assert config.appid == "wx8888888888888888"
    assert config.apikey.get_secret_value() == "secret-from-env"
    assert config.env is GatewayEnvironment.SANDBOX
    assert config.base_url == SANDBOX_BASE_URL
    assert "secret-from-env" not in repr(config)
    with pytest.raises(ValueError):
        config.appid = "changed"  # type: ignore[misc]


def test_resolve_config_production_base_url() -> None:
    config = resolve_config({**BASE_SOURCE, "env": "production"}, environ={})

    assert config.env is GatewayEnvironment.PRODUCTION
    assert config.base_url == PRODUCTION_BASE_URL
    assert config.is_sandbox is False


@pytest.mark.parametrize("missing", ["appid", "mch_id", "apikey"])
def test_resolve_config_missing_required_value(missing: str) -> None:
    source = {key: value for key, value in BASE_SOURCE.items() if key != missing}

    with pytest.raises(MissingConfigurationError) as exc_info:
        resolve_config(source, environ={})

    message = str(exc_info.value)
    assert missing in message
    assert f"WECHAT_PAY__{missing.upper()}" in message


def test_resolve_config_unresolved_reference_is_missing() -> None:
    with pytest.raises(MissingConfigurationError):
        resolve_config({**BASE_SOURCE, "apikey": "${NOT_SET_ANYWHERE}"}, environ={})


def test_resolve_config_rejects_unknown_environment() -> None:
    with pytest.raises(ConfigurationError):
        resolve_config({**BASE_SOURCE, "env": "staging"}, environ={})


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MERCHANT_KEY", "indirect-key")
    monkeypatch.setenv("WECHAT_PAY__APIKEY", "${MERCHANT_KEY}")
    monkeypatch.setenv("WECHAT_PAY__ENV", "production")
    get_settings.cache_clear()
    get_wechat_pay_config.cache_clear()

    config = get_wechat_pay_config()

    assert config.apikey.get_secret_value() == "indirect-key"
    assert config.env is GatewayEnvironment.PRODUCTION
    assert config.mch_id == "10000100"


def test_missing_apikey_aborts_application_startup(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from wechat_pay.app import create_app

    monkeypatch.delenv("WECHAT_PAY__APIKEY")
    get_settings.cache_clear()
    get_wechat_pay_config.cache_clear()

    with pytest.raises(MissingConfigurationError):
        create_app()
