# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Signing parameters: credentials, region and service.

Parameters are loaded from a YAML file.  The default location follows the
XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/awsv4/awsv4.yaml``
    (typically ``~/.config/awsv4/awsv4.yaml``)

The file holds named profiles; ``!env`` tags resolve values from
environment variables, which may in turn come from ``.env`` files::

    default_profile: prod
    profiles:
      prod:
        access_key: !env AWS_ACCESS_KEY_ID
        secret_key: !env AWS_SECRET_ACCESS_KEY
        session_token: !env AWS_SESSION_TOKEN
        region: eu-west-1
        service: execute-api

Without a config file the standard ``AWS_*`` environment variables are
used.  Loaded secret keys and session tokens are registered for log
redaction.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from platformdirs import user_config_path

from awsv4.dotenv_loader import load_dotenv_once
from awsv4.logging import SecretFilter
from awsv4.types import Credentials


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "awsv4"

_DEFAULT_PROFILE = "default"


class ConfigError(Exception):
    """Base exception for configuration errors."""


def get_config_path() -> Path:
    """Return the default config file path."""
    return user_config_path(_APP_NAME) / "awsv4.yaml"


def get_dotenv_path() -> Path:
    """Return the default ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)  # type: ignore[arg-type]
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its value, or stringify literals.

    Unset and empty environment variables both resolve to None.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name) or None
    if value is None:
        return None
    return str(value)


def _resolve(value: object, *, required: str = "") -> str | None:
    """Resolve a config value, raising when a required one is absent.

    Args:
        value: Raw value from YAML (may be ``_EnvVar`` or None).
        required: Human-readable field name.  When set, raises
            ``ConfigError`` if the value is absent.
    """
    resolved = _raw_resolve(value)
    if resolved is None and required:
        if isinstance(value, _EnvVar):
            raise ConfigError(
                f"Required config '{required}': environment variable "
                f"'{value.var_name}' is not set"
            )
        raise ConfigError(f"Required config '{required}' is missing")
    return resolved


# ---------------------------------------------------------------------------
# Signing parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthParams:
    """Parameters for signing requests.

    Attributes:
        access_key: AWS access key ID.
        secret_key: AWS secret access key.
        session_token: Optional STS session token.
        region: AWS region. Empty means the signer default.
        service: AWS service name. Empty means the signer default.
    """

    access_key: str
    secret_key: str
    session_token: str | None = None
    region: str = ""
    service: str = ""

    def __repr__(self) -> str:
        return (
            f"AuthParams(access_key={self.access_key!r}, secret_key='***', "
            f"region={self.region!r}, service={self.service!r})"
        )

    @property
    def credentials(self) -> Credentials:
        """Credentials for the signer."""
        return Credentials(
            access_key_id=self.access_key,
            secret_access_key=self.secret_key,
            session_token=self.session_token or None,
        )

    def register_secrets(self) -> None:
        """Register the secret key and session token for log redaction."""
        SecretFilter.register_secret(self.secret_key)
        SecretFilter.register_secret(self.session_token)

    @classmethod
    def from_dict(cls, raw: dict[str, Any], *, name: str = "") -> AuthParams:
        """Build parameters from a mapping (values may be ``!env`` tags).

        Args:
            raw: Profile mapping.
            name: Profile name, used in error messages.

        Raises:
            ConfigError: If the access key or secret key is missing.
        """
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Profile '{name}' must be a mapping, "
                f"got {type(raw).__name__}"
            )
        prefix = f"profiles.{name}." if name else ""
        access_key = _resolve(
            raw.get("access_key"), required=f"{prefix}access_key"
        )
        secret_key = _resolve(
            raw.get("secret_key"), required=f"{prefix}secret_key"
        )
        assert access_key is not None and secret_key is not None
        params = cls(
            access_key=access_key,
            secret_key=secret_key,
            session_token=_resolve(raw.get("session_token")),
            region=_resolve(raw.get("region")) or "",
            service=_resolve(raw.get("service")) or "",
        )
        params.register_secrets()
        return params

    @classmethod
    def from_env(cls) -> AuthParams:
        """Build parameters from the standard ``AWS_*`` variables.

        Raises:
            ConfigError: If ``AWS_ACCESS_KEY_ID`` or
                ``AWS_SECRET_ACCESS_KEY`` is not set.
        """
        return cls.from_dict(
            {
                "access_key": _EnvVar("AWS_ACCESS_KEY_ID"),
                "secret_key": _EnvVar("AWS_SECRET_ACCESS_KEY"),
                "session_token": _EnvVar("AWS_SESSION_TOKEN"),
                "region": os.environ.get("AWS_REGION")
                or os.environ.get("AWS_DEFAULT_REGION"),
                "service": _EnvVar("AWS_SERVICE"),
            }
        )

    @classmethod
    def from_yaml(
        cls, config_path: Path, profile: str | None = None
    ) -> AuthParams:
        """Load one profile from a YAML config file.

        Args:
            config_path: Path to the config file.
            profile: Profile name. Defaults to ``default_profile`` from the
                file, then ``default``.

        Raises:
            ConfigError: If the file is malformed or the profile is
                missing or incomplete.
        """
        try:
            with open(config_path) as f:
                raw = yaml.load(f, Loader=_make_loader())  # noqa: S506
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")

        profiles = raw.get("profiles") or {}
        if not isinstance(profiles, dict):
            raise ConfigError("Config 'profiles' must be a mapping")

        name = (
            profile
            or _resolve(raw.get("default_profile"))
            or _DEFAULT_PROFILE
        )
        if name not in profiles:
            available = ", ".join(sorted(profiles)) or "none"
            raise ConfigError(
                f"Profile '{name}' not found in {config_path} "
                f"(available: {available})"
            )
        logger.debug("Using profile '%s' from %s", name, config_path)
        return cls.from_dict(profiles[name], name=name)


def load_auth_params(
    config_path: Path | None = None, profile: str | None = None
) -> AuthParams:
    """Load signing parameters.

    Loads ``.env`` files first, then reads the config file.  When no path
    is given and the default config file does not exist, the environment
    is used instead.

    Args:
        config_path: Config file. Defaults to ``get_config_path()``.
        profile: Profile name within the file.

    Raises:
        ConfigError: If parameters are missing or the file is invalid.
    """
    load_dotenv_once()

    if config_path is None:
        config_path = get_config_path()
        if not config_path.exists():
            if profile:
                raise ConfigError(
                    f"Profile '{profile}' requested but {config_path} "
                    f"does not exist"
                )
            logger.debug("No config at %s, using environment", config_path)
            return AuthParams.from_env()
    elif not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    return AuthParams.from_yaml(config_path, profile)
