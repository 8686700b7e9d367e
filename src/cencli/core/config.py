"""Configuration management for the cencli CLI.

Settings come from four layers, highest precedence first: explicit command
line flags, ``CENCLI_*`` environment variables, ``config.yaml`` in the data
directory, and built-in defaults. The file is created with the defaults on
first run.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from tenacity import wait_exponential, wait_fixed, wait_incrementing
from tenacity.wait import wait_base

from cencli.core.constants import DEFAULT_API_URL, EnvVars
from cencli.core.errors import InvalidConfigError
from cencli.core.output.formats import OutputFormat, OutputType
from cencli.core.param_types import format_duration, parse_duration
from cencli.core.paths import DataPaths
from cencli.core.yaml import YamlOperationError, safe_read_yaml, safe_write_yaml
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)


class BackoffType(str, Enum):
    """Delay growth between retry attempts."""

    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class TemplateEntity(str, Enum):
    """Entities that can be rendered with ``--output-format template``."""

    HOST = "host"
    CERTIFICATE = "certificate"
    WEB_PROPERTY = "webproperty"
    SEARCH_RESULT = "searchresult"


DEFAULT_CONFIG: dict[str, Any] = {
    "output-format": OutputFormat.JSON.value,
    "streaming": False,
    "no-color": False,
    "no-spinner": False,
    "quiet": False,
    "debug": False,
    "timeout": "30s",
    "api-url": DEFAULT_API_URL,
    "retry-strategy": {
        "max-attempts": 2,
        "base-delay": "500ms",
        "max-delay": "30s",
        "backoff": BackoffType.FIXED.value,
    },
    "timeouts": {
        "http": "0s",
    },
    "search": {
        "page-size": 100,
        "max-pages": 1,
    },
    "templates": {entity.value: {"path": ""} for entity in TemplateEntity},
}

# Keys accepted by ``config set`` and their value kinds
_BOOL_KEYS = {"streaming", "no-color", "no-spinner", "quiet", "debug"}
_DURATION_KEYS = {
    "timeout",
    "retry-strategy.base-delay",
    "retry-strategy.max-delay",
    "timeouts.http",
}
_INT_KEYS = {"retry-strategy.max-attempts", "search.page-size", "search.max-pages"}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries in place and return ``base``.

    Values from ``override`` take precedence. Nested dicts are merged
    recursively; other values are replaced.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def flatten_keys(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted keys (``search.page-size``)."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            flat.update(flatten_keys(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def env_var_for(key_path: str) -> str:
    """Return the environment variable overriding a dotted config key."""
    return EnvVars.PREFIX + key_path.upper().replace("-", "_").replace(".", "_")


def _set_path(data: dict[str, Any], key_path: str, value: Any) -> None:
    keys = key_path.split(".")
    current = data
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def _get_path(data: dict[str, Any], key_path: str, default: Any = None) -> Any:
    value: Any = data
    for key in key_path.split("."):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def coerce_value(key_path: str, raw: Any) -> Any:
    """Convert a raw string (env var, ``config set``) to the key's type.

    Raises
    ------
    InvalidConfigError
        If the value cannot be converted
    """
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if key_path in _BOOL_KEYS:
        if text.lower() in _TRUE:
            return True
        if text.lower() in _FALSE:
            return False
        msg = f"{key_path}: expected a boolean, got {raw!r}"
        raise InvalidConfigError(msg)
    if key_path in _INT_KEYS:
        try:
            return int(text)
        except ValueError:
            msg = f"{key_path}: expected an integer, got {raw!r}"
            raise InvalidConfigError(msg) from None
    return text


def environment_overrides(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect ``CENCLI_*`` overrides for every known config key."""
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for key_path in flatten_keys(DEFAULT_CONFIG):
        var = env_var_for(key_path)
        if var in environ:
            _set_path(overrides, key_path, coerce_value(key_path, environ[var]))
    return overrides


@dataclass
class RetryStrategy:
    """Retry policy for API requests."""

    max_attempts: int = 2
    base_delay: float = 0.5
    max_delay: float = 30.0
    backoff: BackoffType = BackoffType.FIXED

    def wait(self) -> wait_base:
        """Tenacity wait for this policy; the first retry waits ``base_delay``."""
        if self.backoff is BackoffType.LINEAR:
            return wait_incrementing(
                start=self.base_delay,
                increment=self.base_delay,
                max=self.max_delay,
            )
        if self.backoff is BackoffType.EXPONENTIAL:
            return wait_exponential(multiplier=self.base_delay, max=self.max_delay)
        return wait_fixed(min(self.base_delay, self.max_delay))


@dataclass
class SearchConfig:
    """Search pagination defaults."""

    page_size: int = 100
    # -1 fetches every page
    max_pages: int = 1


def _duration(data: dict[str, Any], key_path: str) -> float:
    value = _get_path(data, key_path)
    if isinstance(value, bool) or isinstance(value, (int, float)):
        msg = f"{key_path}: durations need a unit (e.g. 30s, 2m), got {value!r}"
        raise InvalidConfigError(msg)
    try:
        seconds = parse_duration(str(value))
    except ValueError as e:
        raise InvalidConfigError(f"{key_path}: {e}") from e
    if seconds < 0:
        msg = f"{key_path}: duration must not be negative"
        raise InvalidConfigError(msg)
    return seconds


def _boolean(data: dict[str, Any], key_path: str) -> bool:
    value = _get_path(data, key_path)
    if isinstance(value, bool):
        return value
    coerced = coerce_value(key_path, str(value))
    return bool(coerced)


def _integer(data: dict[str, Any], key_path: str) -> int:
    value = _get_path(data, key_path)
    if isinstance(value, bool):
        msg = f"{key_path}: expected an integer, got {value!r}"
        raise InvalidConfigError(msg)
    if isinstance(value, int):
        return value
    return coerce_value(key_path, str(value))


class CliConfig:
    """Validated, typed view over the merged configuration.

    Parameters
    ----------
    data : dict[str, Any]
        Merged configuration mapping (defaults, file, environment)
    data_dir : Path | None
        Data directory the configuration was loaded from

    Raises
    ------
    InvalidConfigError
        If any value fails validation
    """

    def __init__(self, data: dict[str, Any], data_dir: Path | None = None) -> None:
        self.data = data
        self.data_dir = data_dir or DataPaths.data_dir()

        raw_format = str(_get_path(data, "output-format"))
        try:
            output_format = OutputFormat(raw_format)
        except ValueError:
            msg = f"output-format: invalid output format {raw_format!r}"
            raise InvalidConfigError(msg) from None
        if output_format.output_type is not OutputType.DATA:
            msg = (
                f"output-format: {raw_format!r} cannot be a default; "
                "choose json, yaml, ndjson or tree"
            )
            raise InvalidConfigError(msg)
        self.output_format: OutputFormat = output_format

        self.streaming = _boolean(data, "streaming")
        self.no_color = _boolean(data, "no-color")
        self.no_spinner = _boolean(data, "no-spinner")
        self.quiet = _boolean(data, "quiet")
        self.debug = _boolean(data, "debug")
        self.timeout = _duration(data, "timeout")
        self.api_url = str(_get_path(data, "api-url") or DEFAULT_API_URL).rstrip("/")
        self.http_timeout = _duration(data, "timeouts.http")

        try:
            backoff = BackoffType(str(_get_path(data, "retry-strategy.backoff")))
        except ValueError:
            msg = (
                "retry-strategy.backoff: expected fixed, linear or exponential, "
                f"got {_get_path(data, 'retry-strategy.backoff')!r}"
            )
            raise InvalidConfigError(msg) from None
        self.retry = RetryStrategy(
            max_attempts=_integer(data, "retry-strategy.max-attempts"),
            base_delay=_duration(data, "retry-strategy.base-delay"),
            max_delay=_duration(data, "retry-strategy.max-delay"),
            backoff=backoff,
        )
        if self.retry.max_attempts < 1:
            msg = "retry-strategy.max-attempts: must be at least 1"
            raise InvalidConfigError(msg)

        self.search = SearchConfig(
            page_size=_integer(data, "search.page-size"),
            max_pages=_integer(data, "search.max-pages"),
        )
        if self.search.page_size < 1:
            msg = "search.page-size: must be at least 1"
            raise InvalidConfigError(msg)
        if self.search.max_pages == 0 or self.search.max_pages < -1:
            msg = "search.max-pages: must be at least 1, or -1 for all pages"
            raise InvalidConfigError(msg)

    def template_path(self, entity: TemplateEntity) -> Path | None:
        """Configured template file for ``entity``, if any."""
        value = _get_path(self.data, f"templates.{entity.value}.path")
        return Path(value).expanduser() if value else None

    def apply_flags(self, flags: dict[str, Any]) -> None:
        """Override settings with flags given on the command line.

        Parameters
        ----------
        flags : dict[str, Any]
            Persistent flag values keyed by parameter name; the output format
            is resolved separately and ignored here
        """
        for name in ("streaming", "no_color", "no_spinner", "quiet", "debug"):
            if name in flags:
                setattr(self, name, bool(flags[name]))
        if flags.get("timeout") is not None:
            self.timeout = float(flags["timeout"])

    def as_dict(self) -> dict[str, Any]:
        """Effective configuration as a YAML-friendly mapping."""
        effective = copy.deepcopy(self.data)
        effective.update(
            {
                "output-format": self.output_format.value,
                "streaming": self.streaming,
                "no-color": self.no_color,
                "no-spinner": self.no_spinner,
                "quiet": self.quiet,
                "debug": self.debug,
                "timeout": format_duration(self.timeout),
            },
        )
        return effective


class ConfigManager:
    """Reads, writes and validates ``config.yaml``.

    Parameters
    ----------
    data_dir : Path | None
        Data directory; defaults to :meth:`DataPaths.data_dir`
    """

    def __init__(self, data_dir: Path | None = None) -> None:
        self.data_dir = data_dir or DataPaths.data_dir()
        self.config_file = DataPaths.config_file(self.data_dir)

    def ensure_config_file(self) -> bool:
        """Create ``config.yaml`` with the defaults when missing.

        Returns
        -------
        bool
            True if the file was created
        """
        if self.config_file.exists():
            return False
        try:
            safe_write_yaml(self.config_file, copy.deepcopy(DEFAULT_CONFIG))
        except YamlOperationError as e:
            raise InvalidConfigError(f"failed to write config file: {e}") from e
        logger.debug("Created default config at %s", self.config_file)
        return True

    def read_file(self) -> dict[str, Any]:
        """Read the raw contents of ``config.yaml``."""
        if not self.config_file.exists():
            return {}
        try:
            return safe_read_yaml(self.config_file)
        except YamlOperationError as e:
            raise InvalidConfigError(f"failed to read config file: {e}") from e

    def merged(self, environ: dict[str, str] | None = None) -> dict[str, Any]:
        """Defaults, overlaid by the file, overlaid by the environment."""
        data = copy.deepcopy(DEFAULT_CONFIG)
        deep_merge(data, self.read_file())
        deep_merge(data, environment_overrides(environ))
        return data

    def load(self, create: bool = True) -> CliConfig:
        """Load and validate the configuration.

        Parameters
        ----------
        create : bool
            Write the default file on first run

        Raises
        ------
        InvalidConfigError
            If the file cannot be read or a value is invalid
        """
        if create:
            try:
                self.ensure_config_file()
            except InvalidConfigError as e:
                # A read-only data dir still allows running on defaults
                logger.debug("Config file not created: %s", e)
        return CliConfig(self.merged(), self.data_dir)

    def get_value(self, key_path: str) -> Any:
        """Get an effective value by dotted key.

        Raises
        ------
        InvalidConfigError
            If the key is unknown
        """
        data = self.merged()
        sentinel = object()
        value = _get_path(data, key_path, sentinel)
        if value is sentinel:
            raise InvalidConfigError(f"unknown config key: {key_path}")
        return value

    def set_value(self, key_path: str, raw_value: str) -> Any:
        """Validate and persist a value in ``config.yaml``.

        Returns
        -------
        Any
            The stored, type-converted value

        Raises
        ------
        InvalidConfigError
            If the key is unknown or the value invalid
        """
        known = flatten_keys(DEFAULT_CONFIG)
        if key_path not in known:
            raise InvalidConfigError(f"unknown config key: {key_path}")

        value = coerce_value(key_path, raw_value)
        if key_path in _DURATION_KEYS:
            try:
                value = format_duration(parse_duration(str(value)))
            except ValueError as e:
                raise InvalidConfigError(f"{key_path}: {e}") from e

        file_data = self.read_file()
        _set_path(file_data, key_path, value)

        # Validate the result before touching the file
        candidate = deep_merge(copy.deepcopy(DEFAULT_CONFIG), copy.deepcopy(file_data))
        CliConfig(candidate, self.data_dir)

        try:
            safe_write_yaml(self.config_file, file_data)
        except YamlOperationError as e:
            raise InvalidConfigError(f"failed to write config file: {e}") from e
        logger.debug("Set config %s = %r in %s", key_path, value, self.config_file)
        return value

    def reset(self) -> None:
        """Overwrite ``config.yaml`` with the defaults."""
        try:
            safe_write_yaml(self.config_file, copy.deepcopy(DEFAULT_CONFIG))
        except YamlOperationError as e:
            raise InvalidConfigError(f"failed to write config file: {e}") from e


class CredentialStore:
    """Personal access token and default organization id.

    Stored in ``credentials.yaml`` with mode 0600. ``CENCLI_PAT`` and
    ``CENCLI_ORG_ID`` take precedence over stored values.
    """

    FILE_MODE = 0o600

    def __init__(self, data_dir: Path | None = None) -> None:
        self.path = DataPaths.credentials_file(data_dir)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return safe_read_yaml(self.path)
        except YamlOperationError as e:
            raise InvalidConfigError(f"failed to read credentials: {e}") from e

    def _write(self, data: dict[str, Any]) -> None:
        try:
            safe_write_yaml(self.path, data, mode=self.FILE_MODE)
        except YamlOperationError as e:
            raise InvalidConfigError(f"failed to write credentials: {e}") from e

    @property
    def token(self) -> str | None:
        """Active personal access token."""
        env_token = os.environ.get(EnvVars.PAT)
        if env_token:
            return env_token
        return self._read().get("token") or None

    @property
    def org_id(self) -> str | None:
        """Default organization id."""
        env_org = os.environ.get(EnvVars.ORG_ID)
        if env_org:
            return env_org
        return self._read().get("org-id") or None

    def set_token(self, token: str) -> None:
        """Store a personal access token."""
        data = self._read()
        data["token"] = token
        self._write(data)

    def set_org_id(self, org_id: str | None) -> None:
        """Store the default organization id; ``None`` clears it."""
        data = self._read()
        if org_id is None:
            data.pop("org-id", None)
        else:
            data["org-id"] = org_id
        self._write(data)

    def clear_token(self) -> None:
        """Remove the stored token."""
        data = self._read()
        if data.pop("token", None) is not None:
            self._write(data)


def mask_token(token: str | None) -> str:
    """Mask a token for display, keeping the last four characters."""
    if not token:
        return "(not set)"
    if len(token) <= 4:
        return "****"
    return "*" * 8 + token[-4:]
