# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for awsv4/config.py."""

from pathlib import Path
from unittest.mock import patch

import pytest

from awsv4.config import (
    AuthParams,
    ConfigError,
    _EnvVar,
    _raw_resolve,
    _resolve,
    get_config_path,
    load_auth_params,
)
from awsv4.logging import SecretFilter


ENV = {
    "AWS_ACCESS_KEY_ID": "AKIDEXAMPLE",
    "AWS_SECRET_ACCESS_KEY": "secret-from-env",
}

CONFIG = """\
default_profile: prod

profiles:
  prod:
    access_key: !env PROD_ACCESS_KEY
    secret_key: !env PROD_SECRET_KEY
    session_token: !env PROD_SESSION_TOKEN
    region: eu-west-1
    service: execute-api
  dev:
    access_key: AKIDDEV
    secret_key: dev-secret
"""


def _write_config(tmp_path: Path, content: str = CONFIG) -> Path:
    path = tmp_path / "awsv4.yaml"
    path.write_text(content)
    return path


class TestRawResolve:
    """Tests for _raw_resolve."""

    def test_literal_string(self) -> None:
        """Literal string values resolve to themselves."""
        assert _raw_resolve("hello") == "hello"

    def test_none(self) -> None:
        """None resolves to None."""
        assert _raw_resolve(None) is None

    def test_int(self) -> None:
        """Non-string values are stringified."""
        assert _raw_resolve(42) == "42"

    def test_envvar_set(self) -> None:
        """EnvVar resolves to env value when set."""
        with patch.dict("os.environ", {"MY_VAR": "val"}):
            assert _raw_resolve(_EnvVar("MY_VAR")) == "val"

    def test_envvar_unset(self) -> None:
        """EnvVar resolves to None when env var is not set."""
        with patch.dict("os.environ", {}, clear=True):
            assert _raw_resolve(_EnvVar("MISSING")) is None

    def test_envvar_empty(self) -> None:
        """EnvVar resolves to None when env var is empty string."""
        with patch.dict("os.environ", {"EMPTY": ""}):
            assert _raw_resolve(_EnvVar("EMPTY")) is None


class TestResolve:
    """Tests for _resolve."""

    def test_optional_missing(self) -> None:
        """Optional values may be absent."""
        assert _resolve(None) is None

    def test_required_missing(self) -> None:
        """Missing required literals name the field."""
        with pytest.raises(ConfigError, match="'profiles.a.secret_key'"):
            _resolve(None, required="profiles.a.secret_key")

    def test_required_env_missing(self) -> None:
        """Missing required env vars name the variable."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ConfigError, match="'MISSING' is not set"):
                _resolve(_EnvVar("MISSING"), required="access_key")


class TestAuthParams:
    """Tests for AuthParams."""

    def test_repr_hides_secret(self) -> None:
        """The secret key never appears in repr."""
        params = AuthParams(access_key="AKID", secret_key="hunter2")
        assert "hunter2" not in repr(params)
        assert "AKID" in repr(params)

    def test_credentials(self) -> None:
        """credentials maps fields and normalizes empty tokens."""
        params = AuthParams(
            access_key="AKID", secret_key="s", session_token=""
        )
        creds = params.credentials
        assert creds.access_key_id == "AKID"
        assert creds.secret_access_key == "s"
        assert creds.session_token is None

    def test_from_dict(self) -> None:
        """Literal values are taken as-is."""
        params = AuthParams.from_dict(
            {
                "access_key": "AKID",
                "secret_key": "s3cr3t",
                "region": "us-west-2",
                "service": "s3",
            }
        )
        assert params == AuthParams(
            access_key="AKID",
            secret_key="s3cr3t",
            region="us-west-2",
            service="s3",
        )

    def test_from_dict_registers_secrets(self) -> None:
        """Secret key and session token are registered for redaction."""
        AuthParams.from_dict(
            {
                "access_key": "AKID",
                "secret_key": "s3cr3t",
                "session_token": "t",
            }
        )
        assert SecretFilter._secrets == {"s3cr3t", "t"}

    def test_from_dict_missing_secret(self) -> None:
        """A missing secret key is a config error naming the field."""
        with pytest.raises(ConfigError, match="'profiles.dev.secret_key'"):
            AuthParams.from_dict({"access_key": "AKID"}, name="dev")

    def test_from_dict_not_a_mapping(self) -> None:
        """Profiles must be mappings."""
        with pytest.raises(ConfigError, match="must be a mapping"):
            AuthParams.from_dict("oops", name="dev")  # type: ignore[arg-type]

    def test_from_env(self) -> None:
        """Standard AWS variables are read."""
        env = {
            **ENV,
            "AWS_SESSION_TOKEN": "token",
            "AWS_REGION": "eu-north-1",
            "AWS_SERVICE": "lambda",
        }
        with patch.dict("os.environ", env, clear=True):
            params = AuthParams.from_env()
        assert params == AuthParams(
            access_key="AKIDEXAMPLE",
            secret_key="secret-from-env",
            session_token="token",
            region="eu-north-1",
            service="lambda",
        )

    def test_from_env_default_region(self) -> None:
        """AWS_DEFAULT_REGION is used when AWS_REGION is unset."""
        env = {**ENV, "AWS_DEFAULT_REGION": "ap-south-1"}
        with patch.dict("os.environ", env, clear=True):
            params = AuthParams.from_env()
        assert params.region == "ap-south-1"
        assert params.service == ""
        assert params.session_token is None

    def test_from_env_missing(self) -> None:
        """Missing credentials name the variable."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ConfigError, match="AWS_ACCESS_KEY_ID"):
                AuthParams.from_env()


class TestFromYaml:
    """Tests for AuthParams.from_yaml."""

    def test_default_profile(self, tmp_path: Path) -> None:
        """default_profile selects the profile and !env resolves."""
        env = {
            "PROD_ACCESS_KEY": "AKIDPROD",
            "PROD_SECRET_KEY": "prod-secret",
        }
        with patch.dict("os.environ", env, clear=True):
            params = AuthParams.from_yaml(_write_config(tmp_path))
        assert params == AuthParams(
            access_key="AKIDPROD",
            secret_key="prod-secret",
            region="eu-west-1",
            service="execute-api",
        )

    def test_named_profile(self, tmp_path: Path) -> None:
        """An explicit profile wins over default_profile."""
        params = AuthParams.from_yaml(_write_config(tmp_path), "dev")
        assert params.access_key == "AKIDDEV"
        assert params.region == ""

    def test_fallback_profile_name(self, tmp_path: Path) -> None:
        """Without default_profile the 'default' profile is used."""
        path = _write_config(
            tmp_path,
            "profiles:\n  default:\n    access_key: A\n    secret_key: S\n",
        )
        assert AuthParams.from_yaml(path).access_key == "A"

    def test_missing_profile(self, tmp_path: Path) -> None:
        """Unknown profiles list the available ones."""
        with pytest.raises(
            ConfigError, match=r"'staging' not found.*available: dev, prod"
        ):
            AuthParams.from_yaml(_write_config(tmp_path), "staging")

    def test_unset_env_var(self, tmp_path: Path) -> None:
        """An unset !env variable for a required key is an error."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(
                ConfigError,
                match=r"'profiles.prod.access_key'.*'PROD_ACCESS_KEY'",
            ):
                AuthParams.from_yaml(_write_config(tmp_path))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Malformed YAML is a config error."""
        path = _write_config(tmp_path, "profiles: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            AuthParams.from_yaml(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """The document must be a mapping."""
        path = _write_config(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            AuthParams.from_yaml(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file has no profiles."""
        path = _write_config(tmp_path, "")
        with pytest.raises(ConfigError, match="available: none"):
            AuthParams.from_yaml(path)


class TestLoadAuthParams:
    """Tests for load_auth_params."""

    def test_default_path(self) -> None:
        """The default file lives in the XDG config directory."""
        path = get_config_path()
        assert path.name == "awsv4.yaml"
        assert path.parent.name == "awsv4"

    def test_explicit_path(self, tmp_path: Path) -> None:
        """An explicit config file is loaded."""
        with patch("awsv4.config.load_dotenv_once") as mock_dotenv:
            params = load_auth_params(_write_config(tmp_path), "dev")
        mock_dotenv.assert_called_once_with()
        assert params.access_key == "AKIDDEV"

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        """An explicit path must exist."""
        with patch("awsv4.config.load_dotenv_once"):
            with pytest.raises(ConfigError, match="Config file not found"):
                load_auth_params(tmp_path / "missing.yaml")

    def test_default_file(self, tmp_path: Path) -> None:
        """The default file is used when present."""
        path = _write_config(tmp_path)
        with (
            patch("awsv4.config.load_dotenv_once"),
            patch("awsv4.config.get_config_path", return_value=path),
        ):
            params = load_auth_params(profile="dev")
        assert params.secret_key == "dev-secret"

    def test_env_fallback(self, tmp_path: Path) -> None:
        """Without a config file the environment is used."""
        with (
            patch("awsv4.config.load_dotenv_once"),
            patch(
                "awsv4.config.get_config_path",
                return_value=tmp_path / "missing.yaml",
            ),
            patch.dict("os.environ", ENV, clear=True),
        ):
            params = load_auth_params()
        assert params.access_key == "AKIDEXAMPLE"

    def test_profile_without_file(self, tmp_path: Path) -> None:
        """Requesting a profile without a config file is an error."""
        with (
            patch("awsv4.config.load_dotenv_once"),
            patch(
                "awsv4.config.get_config_path",
                return_value=tmp_path / "missing.yaml",
            ),
        ):
            with pytest.raises(ConfigError, match="'dev' requested"):
                load_auth_params(profile="dev")
