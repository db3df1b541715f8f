"""
Configuration for the offline sync service.

Configuration can be provided directly, via environment variables, or
from a YAML settings file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError
from .sync.queue_store import DEFAULT_QUEUE_KEY
from .sync.retry import MAX_RETRIES, RetryPolicy

ENV_PREFIX = "OFFLINE_SYNC_"


@dataclass
class SyncConfig:
    """Configuration for the offline sync service.

    Environment Variables:
        OFFLINE_SYNC_API_BASE_URL: Backend base URL (e.g. https://api.example.com)
        OFFLINE_SYNC_AUTH_TOKEN: Bearer token sent with every request
        OFFLINE_SYNC_QUEUE_KEY: Storage slot for the queue (default: offline_mutation_queue)
        OFFLINE_SYNC_STORAGE_PATH: Directory of the file-backed store
        OFFLINE_SYNC_MAX_RETRIES: Failed attempts before eviction (default: 3)
        OFFLINE_SYNC_PERMANENT_STATUS_CODES: Comma separated statuses evicted at once
        OFFLINE_SYNC_REQUEST_TIMEOUT: Request timeout in seconds (default: 30)
        OFFLINE_SYNC_DEBOUNCE: Online notification debounce in seconds (default: 1.0)
        OFFLINE_SYNC_CONNECTIVITY_HOST: Host resolved by the connectivity probe
        OFFLINE_SYNC_CONNECTIVITY_TIMEOUT: Probe timeout in seconds (default: 5)
        OFFLINE_SYNC_PROBE_INTERVAL: Seconds between probes (default: 15)

    Settings file (``offline_sync`` section):

    ```yaml
    offline_sync:
      api_base_url: "https://api.example.com"
      storage_path: "~/.offline-sync"
      max_retries: 3
      permanent_status_codes: [400, 422]
    ```
    """

    api_base_url: str = "http://localhost:8000"
    auth_token: str | None = None
    queue_key: str = DEFAULT_QUEUE_KEY
    storage_path: str | None = None

    # Retry settings
    max_retries: int = MAX_RETRIES
    permanent_status_codes: list[int] = field(default_factory=list)

    # Timing settings
    request_timeout_s: float = 30.0
    debounce_s: float = 1.0

    # Connectivity probe settings
    connectivity_host: str = "dns.google"
    connectivity_timeout_s: float = 5.0
    probe_interval_s: float = 15.0

    @classmethod
    def from_environment(cls) -> SyncConfig:
        """Create configuration from environment variables.

        Returns:
            SyncConfig populated from environment variables

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        env = os.environ
        config = cls(
            api_base_url=env.get(f"{ENV_PREFIX}API_BASE_URL", cls.api_base_url),
            auth_token=env.get(f"{ENV_PREFIX}AUTH_TOKEN") or None,
            queue_key=env.get(f"{ENV_PREFIX}QUEUE_KEY", DEFAULT_QUEUE_KEY),
            storage_path=env.get(f"{ENV_PREFIX}STORAGE_PATH") or None,
            max_retries=_env_number(int, "MAX_RETRIES", MAX_RETRIES),
            permanent_status_codes=_parse_status_codes(
                env.get(f"{ENV_PREFIX}PERMANENT_STATUS_CODES", "")
            ),
            request_timeout_s=_env_number(float, "REQUEST_TIMEOUT", 30.0),
            debounce_s=_env_number(float, "DEBOUNCE", 1.0),
            connectivity_host=env.get(f"{ENV_PREFIX}CONNECTIVITY_HOST", cls.connectivity_host),
            connectivity_timeout_s=_env_number(float, "CONNECTIVITY_TIMEOUT", 5.0),
            probe_interval_s=_env_number(float, "PROBE_INTERVAL", 15.0),
        )
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: str | Path, section: str = "offline_sync") -> SyncConfig:
        """Load configuration from a YAML settings file.

        Args:
            path: Path to the YAML file
            section: Top-level key holding the settings

        Returns:
            SyncConfig with file values over defaults

        Raises:
            ConfigurationError: If the file is missing, unparsable or has unknown keys
        """
        config_path = Path(path).expanduser()
        try:
            content = config_path.read_text()
        except OSError as e:
            raise ConfigurationError(
                "path", f"cannot read settings file: {e}", str(config_path)
            ) from e

        try:
            document = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError("path", f"invalid YAML: {e}", str(config_path)) from e

        if not isinstance(document, dict):
            raise ConfigurationError("path", "settings file must be a mapping", str(config_path))

        values = document.get(section) or {}
        if not isinstance(values, dict):
            raise ConfigurationError(section, "section must be a mapping")

        return cls.from_dict(values)

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> SyncConfig:
        """Create configuration from a mapping of field names to values."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown setting")

        values = dict(values)
        codes = values.get("permanent_status_codes")
        if isinstance(codes, str):
            values["permanent_status_codes"] = _parse_status_codes(codes)
        elif isinstance(codes, int) and not isinstance(codes, bool):
            values["permanent_status_codes"] = [codes]
        elif codes is None and "permanent_status_codes" in values:
            values["permanent_status_codes"] = []

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigurationError: On the first invalid value
        """
        if not self.api_base_url:
            raise ConfigurationError("api_base_url", "must not be empty")
        if not self.queue_key:
            raise ConfigurationError("queue_key", "must not be empty")
        if not isinstance(self.max_retries, int) or self.max_retries < 1:
            raise ConfigurationError("max_retries", "must be an integer >= 1", str(self.max_retries))
        for name in ("request_timeout_s", "connectivity_timeout_s", "probe_interval_s"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(name, "must be a positive number", str(value))
        if not isinstance(self.debounce_s, (int, float)) or self.debounce_s < 0:
            raise ConfigurationError("debounce_s", "must be >= 0", str(self.debounce_s))
        if not isinstance(self.permanent_status_codes, (list, tuple)):
            raise ConfigurationError(
                "permanent_status_codes",
                "must be a list of HTTP status codes",
                str(self.permanent_status_codes),
            )
        for code in self.permanent_status_codes:
            if not isinstance(code, int) or not 100 <= code <= 599:
                raise ConfigurationError(
                    "permanent_status_codes", "must be HTTP status codes", str(code)
                )

    def retry_policy(self) -> RetryPolicy:
        """Build the retry policy described by this configuration."""
        return RetryPolicy(
            max_retries=self.max_retries,
            permanent_status_codes=frozenset(self.permanent_status_codes),
        )

    def resolved_storage_path(self) -> Path:
        """Directory of the file-backed store (defaults to ~/.offline-sync)."""
        if self.storage_path:
            return Path(self.storage_path).expanduser()
        return Path.home() / ".offline-sync"


def _env_number(kind: type[int] | type[float], name: str, default: int | float) -> Any:
    raw = os.environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name}", f"not a valid {kind.__name__}", raw) from None


def _parse_status_codes(raw: str) -> list[int]:
    codes = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            codes.append(int(part))
        except ValueError:
            raise ConfigurationError("permanent_status_codes", "not an integer", part) from None
    return codes
