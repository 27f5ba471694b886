# Copyright (c) Syntropy Systems
"""Configuration management for ssebench."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import cast

import yaml
from dotenv import find_dotenv, load_dotenv

from ssebench.errors import ConfigurationError

DEFAULT_ENDPOINT = "https://s3.us-east-005.backblazeb2.com"
DEFAULT_REGION = "us-east-005"
DEFAULT_BASE_KEY = "meta-test.txt"
CONFIG_FILENAME = "ssebench.yaml"

_B2_HOST_RE = re.compile(r"^s3\.([a-z0-9-]+)\.backblazeb2\.com$")


@dataclass
class BenchConfig:
    """Tuning knobs for a benchmark run."""

    # Payload size in MiB
    size_mb: float = 8.0

    # Number of baseline/treatment pairs
    iterations: int = 5

    # Also time GET of both objects
    download: bool = True

    # Prefix for every object key the run creates
    prefix: str = "sse-overhead"

    # Progress and retry log lines
    verbose: bool = True

    # Retries per request after the first attempt
    max_retries: int = 5

    # Backoff step and ceiling (milliseconds)
    base_delay_ms: float = 150.0
    backoff_cap_ms: float = 2000.0

    # Pause after each iteration's cleanup (milliseconds)
    pause_ms: float = 50.0

    # Connection pool
    max_connections: int = 10
    keepalive_expiry: float = 30.0
    request_timeout: float = 30.0

    def validate(self) -> None:
        """Raise ConfigurationError if any value is out of range."""
        problems: list[str] = []
        if self.size_mb <= 0:
            problems.append("size_mb must be positive")
        if self.iterations < 1:
            problems.append("iterations must be at least 1")
        if self.max_retries < 0:
            problems.append("max_retries must not be negative")
        if self.base_delay_ms < 0:
            problems.append("base_delay_ms must not be negative")
        if self.backoff_cap_ms < 0:
            problems.append("backoff_cap_ms must not be negative")
        if self.pause_ms < 0:
            problems.append("pause_ms must not be negative")
        if self.max_connections < 1:
            problems.append("max_connections must be at least 1")
        if not self.prefix.strip("/"):
            problems.append("prefix must not be empty")
        if problems:
            raise ConfigurationError(problems)


@dataclass
class StorageSettings:
    """Where to connect and how to authenticate."""

    access_key_id: str | None = None
    secret_access_key: str | None = field(default=None, repr=False)
    bucket: str | None = None
    endpoint: str = DEFAULT_ENDPOINT
    region: str | None = None
    base_key: str = DEFAULT_BASE_KEY

    def __post_init__(self) -> None:
        self.endpoint = self.endpoint.rstrip("/")
        if not self.region:
            self.region = region_from_endpoint(self.endpoint)

    def validate(self) -> None:
        """Raise ConfigurationError naming every missing setting."""
        missing = [
            name
            for name, value in (
                ("B2_ACCESS_KEY_ID", self.access_key_id),
                ("B2_SECRET_ACCESS_KEY", self.secret_access_key),
                ("B2_BUCKET", self.bucket),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError([f"missing {name}" for name in missing])
        if not self.endpoint.startswith(("http://", "https://")):
            raise ConfigurationError([f"endpoint must be an http(s) URL: {self.endpoint}"])


def region_from_endpoint(endpoint: str) -> str:
    """Derive the signing region from a Backblaze S3 endpoint.

    Falls back to the default region for other hosts.
    """
    host = endpoint.split("://", 1)[-1].split("/", 1)[0].split(":", 1)[0]
    match = _B2_HOST_RE.match(host)
    if match:
        return match.group(1)
    return DEFAULT_REGION


def load_storage_settings(env_file: Path | None = None) -> StorageSettings:
    """Load storage settings from the environment.

    A ``.env`` file (or ``env_file``) is read first; variables already set in
    the environment win.
    """
    _ = load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True))
    return StorageSettings(
        access_key_id=os.environ.get("B2_ACCESS_KEY_ID"),
        secret_access_key=os.environ.get("B2_SECRET_ACCESS_KEY"),
        bucket=os.environ.get("B2_BUCKET"),
        endpoint=os.environ.get("B2_ENDPOINT") or DEFAULT_ENDPOINT,
        region=os.environ.get("B2_REGION"),
        base_key=os.environ.get("TEST_KEY") or DEFAULT_BASE_KEY,
    )


def get_global_config_dir() -> Path:
    """Get the global ssebench config directory (~/.ssebench)."""
    return Path.home() / ".ssebench"


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Return ./ssebench.yaml, else ~/.ssebench/config.yaml, else None."""
    if start_path is None:
        start_path = Path.cwd()

    local = start_path / CONFIG_FILENAME
    if local.is_file():
        return local

    global_config = get_global_config_dir() / "config.yaml"
    if global_config.is_file():
        return global_config

    return None


def load_config(config_path: Path | None = None) -> BenchConfig:
    """Load benchmark settings from YAML or defaults.

    Looks for config in:
    1. Provided config_path
    2. ./ssebench.yaml
    3. ~/.ssebench/config.yaml
    4. Defaults

    Keys with a value of the wrong type are ignored.
    """
    config = BenchConfig()

    if config_path is None:
        config_path = find_config_file()
    elif not config_path.exists():
        raise ConfigurationError([f"config file not found: {config_path}"])

    if config_path is None:
        return config

    with config_path.open() as f:
        try:
            loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError([f"cannot parse {config_path}: {e}"]) from e

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigurationError([f"{config_path} must be a mapping of settings"])
    data = cast("dict[str, object]", loaded)

    for config_field in fields(config):
        value = data.get(config_field.name)
        if value is None:
            continue
        current = getattr(config, config_field.name)
        if isinstance(current, bool):
            if isinstance(value, bool):
                setattr(config, config_field.name, value)
        elif isinstance(current, int):
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(config, config_field.name, value)
        elif isinstance(current, float):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(config, config_field.name, float(value))
        elif isinstance(current, str) and isinstance(value, str):
            setattr(config, config_field.name, value)

    return config
