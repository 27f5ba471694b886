# Copyright (c) Syntropy Systems
"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from ssebench.config import (
    DEFAULT_BASE_KEY,
    DEFAULT_ENDPOINT,
    DEFAULT_REGION,
    BenchConfig,
    StorageSettings,
    find_config_file,
    load_config,
    load_storage_settings,
    region_from_endpoint,
)
from ssebench.errors import ConfigurationError


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_file(self, clean_env: Path) -> None:
        config = load_config()

        assert config == BenchConfig()
        assert config.size_mb == 8.0
        assert config.iterations == 5
        assert config.download is True
        assert config.prefix == "sse-overhead"
        assert config.max_retries == 5
        assert config.base_delay_ms == 150.0
        assert config.pause_ms == 50.0

    def test_local_file(self, clean_env: Path) -> None:
        (clean_env / "ssebench.yaml").write_text(
            "size_mb: 2\niterations: 10\ndownload: false\nprefix: bench/sse\n"
        )

        config = load_config()

        assert config.size_mb == 2.0
        assert isinstance(config.size_mb, float)
        assert config.iterations == 10
        assert config.download is False
        assert config.prefix == "bench/sse"
        # Untouched keys keep their defaults
        assert config.max_retries == 5

    def test_global_file(self, clean_env: Path) -> None:
        global_dir = clean_env / "home" / ".ssebench"
        global_dir.mkdir()
        (global_dir / "config.yaml").write_text("iterations: 7\n")

        assert find_config_file() == global_dir / "config.yaml"
        assert load_config().iterations == 7

    def test_local_file_wins(self, clean_env: Path) -> None:
        global_dir = clean_env / "home" / ".ssebench"
        global_dir.mkdir()
        (global_dir / "config.yaml").write_text("iterations: 7\n")
        (clean_env / "ssebench.yaml").write_text("iterations: 3\n")

        assert load_config().iterations == 3

    def test_wrong_types_are_ignored(self, clean_env: Path) -> None:
        (clean_env / "ssebench.yaml").write_text(
            "iterations: ten\ndownload: 'yes'\nsize_mb: true\nmax_retries: 1.5\n"
            "pause_ms: 10\n"
        )

        config = load_config()

        assert config.iterations == 5
        assert config.download is True
        assert config.size_mb == 8.0
        assert config.max_retries == 5
        assert config.pause_ms == 10.0

    def test_empty_file(self, clean_env: Path) -> None:
        (clean_env / "ssebench.yaml").write_text("")

        assert load_config() == BenchConfig()

    def test_list_file_rejected(self, clean_env: Path) -> None:
        (clean_env / "ssebench.yaml").write_text("- 1\n- 2\n")

        with pytest.raises(ConfigurationError, match="must be a mapping of settings"):
            _ = load_config()

    def test_scalar_file_rejected(self, clean_env: Path) -> None:
        (clean_env / "ssebench.yaml").write_text("just words\n")

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            _ = load_config()

    def test_unparseable_file_rejected(self, clean_env: Path) -> None:
        (clean_env / "ssebench.yaml").write_text("iterations: [1\n")

        with pytest.raises(ConfigurationError, match="cannot parse") as exc_info:
            _ = load_config()

        assert exc_info.value.__cause__ is not None

    def test_explicit_path(self, clean_env: Path) -> None:
        path = clean_env / "custom.yaml"
        path.write_text("retries_unknown_key: 1\nmax_retries: 0\n")

        assert load_config(path).max_retries == 0

    def test_explicit_missing_path(self, clean_env: Path) -> None:
        with pytest.raises(ConfigurationError, match="config file not found"):
            _ = load_config(clean_env / "nope.yaml")


class TestBenchConfigValidate:
    """Tests for BenchConfig.validate()."""

    def test_defaults_are_valid(self) -> None:
        BenchConfig().validate()

    def test_collects_every_problem(self) -> None:
        config = BenchConfig(size_mb=0, iterations=0, max_retries=-1, prefix="/")

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()

        problems = exc_info.value.problems
        assert "size_mb must be positive" in problems
        assert "iterations must be at least 1" in problems
        assert "max_retries must not be negative" in problems
        assert "prefix must not be empty" in problems

    def test_zero_retries_allowed(self) -> None:
        BenchConfig(max_retries=0, base_delay_ms=0, pause_ms=0).validate()


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_trailing_slash_removed(self) -> None:
        settings = StorageSettings(endpoint="https://s3.us-east-005.backblazeb2.com/")

        assert settings.endpoint == "https://s3.us-east-005.backblazeb2.com"

    @pytest.mark.parametrize(
        ("endpoint", "region"),
        [
            ("https://s3.us-west-004.backblazeb2.com", "us-west-004"),
            ("https://s3.eu-central-003.backblazeb2.com/", "eu-central-003"),
            ("http://localhost:9000", DEFAULT_REGION),
            ("https://minio.internal", DEFAULT_REGION),
        ],
    )
    def test_region_from_endpoint(self, endpoint: str, region: str) -> None:
        assert region_from_endpoint(endpoint) == region
        assert StorageSettings(endpoint=endpoint).region == region

    def test_explicit_region_wins(self) -> None:
        settings = StorageSettings(
            endpoint="https://s3.us-west-004.backblazeb2.com", region="custom-1"
        )

        assert settings.region == "custom-1"

    def test_missing_credentials(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            StorageSettings(access_key_id="AKID").validate()

        assert exc_info.value.problems == [
            "missing B2_SECRET_ACCESS_KEY",
            "missing B2_BUCKET",
        ]

    def test_endpoint_scheme(self) -> None:
        settings = StorageSettings(
            access_key_id="a",
            secret_access_key="b",
            bucket="c",
            endpoint="s3.us-east-005.backblazeb2.com",
        )

        with pytest.raises(ConfigurationError, match="http"):
            settings.validate()

    def test_secret_hidden_from_repr(self) -> None:
        settings = StorageSettings(secret_access_key="very-secret")

        assert "very-secret" not in repr(settings)


class TestLoadStorageSettings:
    """Tests for load_storage_settings()."""

    def test_from_environment(self, b2_env: Path) -> None:
        settings = load_storage_settings()

        assert settings.access_key_id == "AKIDEXAMPLE"
        assert settings.bucket == "bench-bucket"
        assert settings.endpoint == DEFAULT_ENDPOINT
        assert settings.region == "us-east-005"
        assert settings.base_key == DEFAULT_BASE_KEY
        settings.validate()

    def test_nothing_set(self, clean_env: Path) -> None:
        settings = load_storage_settings()

        assert settings.access_key_id is None
        with pytest.raises(ConfigurationError):
            settings.validate()

    def test_dotenv_in_working_directory(self, clean_env: Path) -> None:
        (clean_env / ".env").write_text(
            "B2_ACCESS_KEY_ID=from-file\n"
            "B2_SECRET_ACCESS_KEY=secret\n"
            "B2_BUCKET=file-bucket\n"
            "B2_ENDPOINT=https://s3.us-west-004.backblazeb2.com/\n"
            "TEST_KEY=custom.bin\n"
        )

        settings = load_storage_settings()

        assert settings.access_key_id == "from-file"
        assert settings.bucket == "file-bucket"
        assert settings.endpoint == "https://s3.us-west-004.backblazeb2.com"
        assert settings.region == "us-west-004"
        assert settings.base_key == "custom.bin"

    def test_environment_wins_over_dotenv(self, b2_env: Path) -> None:
        (b2_env / ".env").write_text("B2_BUCKET=file-bucket\nB2_REGION=file-region\n")

        settings = load_storage_settings()

        assert settings.bucket == "bench-bucket"
        assert settings.region == "file-region"

    def test_explicit_env_file(self, clean_env: Path) -> None:
        env_file = clean_env / "creds.env"
        env_file.write_text("B2_BUCKET=explicit-bucket\n")

        settings = load_storage_settings(env_file)

        assert settings.bucket == "explicit-bucket"
