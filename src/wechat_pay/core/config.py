from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    computed_field,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from wechat_pay.core.constants import (
    CONFIG_ENV_PREFIX,
    DEFAULT_ENV_FILE,
    PRODUCTION_BASE_URL,
    SANDBOX_BASE_URL,
    SECRETS_DIR,
)
from wechat_pay.payments.enums import GatewayEnvironment
from wechat_pay.payments.exceptions import (
    ConfigurationError,
    MissingConfigurationError,
)

__all__ = [
    "EnvVar",
    "Environment",
    "Settings",
    "WechatPayConfig",
    "WechatPaySettings",
    "get_settings",
    "get_wechat_pay_config",
    "resolve_config",
    "resolve_value",
]

_ENV_REFERENCE = re.compile(
    r"^\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>.*))?\}$", re.DOTALL
)
_REQUIRED_KEYS = ("appid", "mch_id", "apikey")
_OPTIONAL_KEYS = ("ssl_cacertfile", "ssl_certfile", "ssl_keyfile", "ssl_password")


class Environment(StrEnum):
    """Deployment environments supported by the service."""

    DEVELOPMENT = "development"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass(frozen=True, slots=True)
class EnvVar:
    """Reference to an environment variable, with an optional fallback."""

    name: str
    default: str | None = None


def resolve_value(
    value: Any, environ: Mapping[str, str] | None = None
) -> str | None:
    """Resolve a configured value that may point at an environment variable.

    Accepts a literal, an :class:`EnvVar`, or the string forms ``${NAME}`` and
    ``${NAME:-default}``. Empty results resolve to ``None``.
    """

    env = os.environ if environ is None else environ

    if isinstance(value, SecretStr):
        value = value.get_secret_value()

    if value is None:
        return None

    if isinstance(value, EnvVar):
        resolved = env.get(value.name, value.default)
    elif isinstance(value, str):
        match = _ENV_REFERENCE.match(value.strip())
        if match is None:
            resolved = value
        else:
            resolved = env.get(match.group("name"), match.group("default"))
    else:
        resolved = str(value)

    if resolved is None or resolved == "":
        return None
    return resolved


def _missing_config_message(key: str) -> str:
    env_name = f"{CONFIG_ENV_PREFIX}{key.upper()}"
    return (
        f"The config {key} for wechat_pay is missing. Configure it with "
        f"`{env_name}=value` or point it at another variable with "
        f"`{env_name}=${{OTHER_VARIABLE}}`."
    )


class WechatPayConfig(BaseModel):
    """Fully resolved gateway credentials, built once at startup."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    env: GatewayEnvironment = GatewayEnvironment.SANDBOX
    appid: str = Field(..., min_length=1)
    mch_id: str = Field(..., min_length=1)
    apikey: SecretStr
    ssl_cacertfile: str | None = None
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None
    ssl_password: SecretStr | None = None

    @computed_field
    @property
    def base_url(self) -> str:
        if self.env is GatewayEnvironment.PRODUCTION:
            return PRODUCTION_BASE_URL
        return SANDBOX_BASE_URL

    @property
    def is_sandbox(self) -> bool:
        return self.env is GatewayEnvironment.SANDBOX


def resolve_config(
    source: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> WechatPayConfig:
    """Resolve raw configuration values into a :class:`WechatPayConfig`.

    Raises :class:`MissingConfigurationError` when ``appid``, ``mch_id`` or
    ``apikey`` cannot be resolved.
    """

    resolved: dict[str, Any] = {}
    for key in _REQUIRED_KEYS:
        value = resolve_value(source.get(key), environ)
        if value is None:
            raise MissingConfigurationError(_missing_config_message(key))
        resolved[key] = value

    for key in _OPTIONAL_KEYS:
        value = resolve_value(source.get(key), environ)
        if value is not None:
            resolved[key] = value

    raw_env = resolve_value(source.get("env"), environ) or GatewayEnvironment.SANDBOX
    try:
        resolved["env"] = GatewayEnvironment(str(raw_env).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in GatewayEnvironment)
        raise ConfigurationError(
            f"Unsupported wechat_pay env {raw_env!r}; expected one of: {allowed}"
        ) from exc

    return WechatPayConfig(**resolved)


class WechatPaySettings(BaseSettings):
    """Raw gateway settings; values may be literals or ``${VAR}`` references."""

    model_config = SettingsConfigDict(
        env_prefix=CONFIG_ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
    )

    env: str = GatewayEnvironment.SANDBOX.value
    appid: str | None = None
    mch_id: str | None = None
    apikey: SecretStr | None = None
    ssl_cacertfile: str | None = None
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None
    ssl_password: SecretStr | None = None

    def as_source(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in type(self).model_fields}


class Settings(BaseSettings):
    """Application settings loaded from the environment or secret stores."""

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_nested_delimiter="__",
        secrets_dir=SECRETS_DIR,
        extra="ignore",
        case_sensitive=False,
    )

    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    project_name: str = "WeChat Pay Gateway"
    project_description: str = "WeChat Pay notification and signing service"
    project_version: str = "0.1.0"
    docs_url: str | None = "/docs"
    openapi_url: str = "/openapi.json"

    http_timeout_seconds: float = Field(default=10.0, gt=0)

    wechat_pay: WechatPaySettings = Field(default_factory=WechatPaySettings)

    @model_validator(mode="after")
    def _normalize(self) -> Settings:
        self.log_level = self.log_level.upper()
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


@lru_cache(maxsize=1)
def get_wechat_pay_config() -> WechatPayConfig:
    """Resolve and cache the gateway configuration for the process."""

    return resolve_config(get_settings().wechat_pay.as_source())
