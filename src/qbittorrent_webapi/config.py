"""
Client configuration.

ClientConfig is an immutable value validated on construction. Changes are
applied in a batch through ``with_changes``, which re-validates the
result. Configurations can be loaded from dictionaries, JSON files and
environment variables (optionally backed by a ``.env`` file).
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union
from urllib.parse import urlparse

from dotenv import dotenv_values

from .exceptions import ValidationError
from .transport import DEFAULT_CONNECT_TIMEOUT, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .validation import ValidationResult, url_error


ENV_PREFIX = "QBITTORRENT_"

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
FALSE_VALUES = frozenset({"false", "0", "no", "off", ""})

SECRET_FIELDS = frozenset({"password", "proxy_auth"})

# Environment suffix -> field name; URL and BASE_URL are both accepted
_ENV_FIELDS = {
    "BASE_URL": "base_url",
    "URL": "base_url",
    "USERNAME": "username",
    "PASSWORD": "password",
    "TIMEOUT": "timeout",
    "CONNECT_TIMEOUT": "connect_timeout",
    "VERIFY_SSL": "verify_ssl",
    "SSL_CERT_PATH": "ssl_cert_path",
    "PROXY": "proxy",
    "PROXY_AUTH": "proxy_auth",
    "USER_AGENT": "user_agent",
    "CLEAR_SESSION_ON_AUTH_ERROR": "clear_session_on_auth_error",
}


def parse_bool(value: Union[str, bool, int]) -> bool:
    """
    Parse a configuration boolean.

    Raises:
        ValueError: If the value is not a recognised boolean spelling
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one qBittorrent server."""

    base_url: str
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    verify_ssl: bool = True
    ssl_cert_path: Optional[str] = None
    proxy: Optional[str] = None
    proxy_auth: Optional[str] = field(default=None, repr=False)
    user_agent: str = DEFAULT_USER_AGENT
    clear_session_on_auth_error: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.base_url, str) and self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        result = self.validate()
        if not result.is_valid:
            raise ValidationError.invalid_config(result.errors)

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("base_url", url_error("base_url", self.base_url))
        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            result.add_error("timeout", "timeout must be greater than 0")
        if not isinstance(self.connect_timeout, (int, float)) or self.connect_timeout <= 0:
            result.add_error("connect_timeout", "connect_timeout must be greater than 0")
        if bool(self.username) != bool(self.password):
            result.add_error("credentials", "username and password must be given together")
        if self.proxy is not None:
            parsed = urlparse(self.proxy)
            if parsed.scheme not in ("http", "https", "socks5", "socks5h") or not parsed.netloc:
                result.add_error("proxy", "proxy must be an http, https or socks5 URL")
        if self.proxy_auth is not None and ":" not in self.proxy_auth:
            result.add_error("proxy_auth", "proxy_auth must have the form user:password")
        if self.ssl_cert_path is not None and not Path(self.ssl_cert_path).is_file():
            result.add_error("ssl_cert_path", f"certificate file not found: {self.ssl_cert_path}")
        if not self.user_agent or not self.user_agent.strip():
            result.add_error("user_agent", "user_agent must not be empty")
        return result

    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)

    def with_changes(self, **changes: Any) -> "ClientConfig":
        """
        Apply several changes at once and re-validate the result.

        Raises:
            ValidationError: If a change names an unknown field or the result is invalid
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError.invalid_config(
                {name: f"unknown configuration field {name!r}" for name in unknown}
            )
        return replace(self, **changes)

    def to_dict(self, include_secrets: bool = False) -> dict[str, Any]:
        data = asdict(self)
        if not include_secrets:
            for name in SECRET_FIELDS:
                if data.get(name):
                    data[name] = "***MASKED***"
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClientConfig":
        """
        Build a config from a mapping; ``url`` is accepted as an alias of ``base_url``.

        Raises:
            ValidationError: If a value cannot be converted or the config is invalid
        """
        values = dict(data)
        if "url" in values and "base_url" not in values:
            values["base_url"] = values.pop("url")
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in values.items() if k in known}
        if "base_url" not in kwargs:
            raise ValidationError.invalid_config({"base_url": "base_url is required"})

        errors: dict[str, str] = {}
        for name in ("timeout", "connect_timeout"):
            if name in kwargs:
                try:
                    kwargs[name] = float(kwargs[name])
                except (TypeError, ValueError):
                    errors[name] = f"{name} must be a number"
        for name in ("verify_ssl", "clear_session_on_auth_error"):
            if name in kwargs:
                try:
                    kwargs[name] = parse_bool(kwargs[name])
                except (ValueError, AttributeError):
                    errors[name] = f"{name} must be a boolean"
        if errors:
            raise ValidationError.invalid_config(errors)
        return cls(**kwargs)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "ClientConfig":
        """
        Load configuration from a JSON file.

        Raises:
            ValidationError: If the file is missing, malformed or invalid
        """
        config_path = Path(path)
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ValidationError.invalid_config(
                {"path": f"configuration file not found: {config_path}"}
            ) from e
        except json.JSONDecodeError as e:
            raise ValidationError.invalid_config(
                {"path": f"configuration file is not valid JSON: {e}"}
            ) from e
        if not isinstance(data, dict):
            raise ValidationError.invalid_config({"path": "configuration root must be an object"})
        return cls.from_dict(data)

    def save_to_json_file(self, path: Union[str, Path], include_secrets: bool = True) -> None:
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(include_secrets=include_secrets), f, indent=2, ensure_ascii=False)

    @classmethod
    def from_environment(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Union[str, Path]] = None,
    ) -> "ClientConfig":
        """
        Load configuration from environment variables such as ``QBITTORRENT_BASE_URL``.

        Args:
            prefix: Variable name prefix
            environ: Variables to read; defaults to ``os.environ``
            dotenv_path: Optional ``.env`` file; real environment values take precedence

        Raises:
            ValidationError: If the resulting configuration is invalid
        """
        values: dict[str, Optional[str]] = {}
        if dotenv_path is not None:
            values.update(dotenv_values(dotenv_path))
        values.update(os.environ if environ is None else environ)

        data: dict[str, Any] = {}
        for suffix, name in _ENV_FIELDS.items():
            value = values.get(f"{prefix}{suffix}")
            if value is not None and name not in data:
                data[name] = value
        return cls.from_dict(data)

    def merge(self, overrides: Mapping[str, Any]) -> "ClientConfig":
        """Config with non-None ``overrides`` applied."""
        return self.with_changes(**{k: v for k, v in overrides.items() if v is not None})
