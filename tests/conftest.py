# Copyright (c) Syntropy Systems
"""Pytest fixtures for ssebench tests."""

from __future__ import annotations

import os
from collections import defaultdict
from collections.abc import AsyncIterator, Generator
from pathlib import Path
from urllib.parse import unquote

import httpx
import pytest

from ssebench.client import StorageClient
from ssebench.config import BenchConfig, StorageSettings

ENV_VARS = (
    "B2_ACCESS_KEY_ID",
    "B2_SECRET_ACCESS_KEY",
    "B2_BUCKET",
    "B2_ENDPOINT",
    "B2_REGION",
    "TEST_KEY",
)

# Store original cwd at module load time
_original_cwd = Path.cwd()


class BrokenBody(httpx.AsyncByteStream):
    """Body that sends one chunk and then drops the connection."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield b"part"
        raise httpx.ReadError("peer closed connection mid-body")


class FakeBucket:
    """In-memory S3 bucket served through httpx.MockTransport.

    ``script(method, ...)`` queues statuses (or exceptions) returned before the
    bucket behaves normally for that method.
    """

    def __init__(self, name: str = "bench-bucket") -> None:
        self.name = name
        self.objects: dict[str, bytes] = {}
        self.object_headers: dict[str, dict[str, str]] = {}
        self.requests: list[httpx.Request] = []
        # GET of a key ending with one of these suffixes breaks off mid-body
        self.broken_suffixes: list[str] = []
        self._scripted: defaultdict[str, list[int | type[httpx.TransportError]]] = (
            defaultdict(list)
        )

    def script(self, method: str, *outcomes: int | type[httpx.TransportError]) -> None:
        self._scripted[method].extend(outcomes)

    def key_of(self, request: httpx.Request) -> str:
        path = unquote(request.url.path)
        parts = path.split("/", 2)
        return parts[2] if len(parts) > 2 else ""

    @property
    def calls(self) -> list[tuple[str, str]]:
        """(method, key) of every request received."""
        return [(r.method, self.key_of(r)) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._scripted.get(request.method)
        if queue:
            outcome = queue.pop(0)
            if isinstance(outcome, int):
                return httpx.Response(outcome, text=f"<Error>scripted {outcome}</Error>")
            raise outcome("scripted failure", request=request)

        key = self.key_of(request)
        if request.method == "PUT":
            self.objects[key] = request.content
            self.object_headers[key] = dict(request.headers)
            return httpx.Response(200)
        if request.method == "GET" and not key:
            return httpx.Response(200, text="<ListBucketResult/>")
        if request.method == "GET":
            if key not in self.objects:
                return httpx.Response(404, text="<Error>NoSuchKey</Error>")
            if key.endswith(tuple(self.broken_suffixes)):
                return httpx.Response(200, stream=BrokenBody())
            return httpx.Response(200, content=self.objects[key])
        if request.method == "DELETE":
            _ = self.objects.pop(key, None)
            return httpx.Response(204)
        return httpx.Response(405)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Run the test from an empty directory."""
    os.chdir(tmp_path)
    yield tmp_path
    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def clean_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Remove B2_* variables and point HOME at an empty directory."""
    for name in ENV_VARS:
        # setenv first so the variable is removed again on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return temp_dir


@pytest.fixture
def b2_env(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Valid credentials in the environment."""
    monkeypatch.setenv("B2_ACCESS_KEY_ID", "AKIDEXAMPLE")
    monkeypatch.setenv("B2_SECRET_ACCESS_KEY", "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY")
    monkeypatch.setenv("B2_BUCKET", "bench-bucket")
    return clean_env


@pytest.fixture
def bucket() -> FakeBucket:
    return FakeBucket()


@pytest.fixture
def settings() -> StorageSettings:
    return StorageSettings(
        access_key_id="AKIDEXAMPLE",
        secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        bucket="bench-bucket",
        endpoint="https://s3.us-east-005.backblazeb2.com/",
    )


@pytest.fixture
def bench_config() -> BenchConfig:
    """Small, fast configuration with no real waiting."""
    return BenchConfig(
        size_mb=0.001,
        iterations=3,
        base_delay_ms=0,
        pause_ms=0,
        max_retries=2,
    )


@pytest.fixture
def make_client(bucket: FakeBucket, settings: StorageSettings, bench_config: BenchConfig):
    """Factory for signed clients backed by the fake bucket.

    Call it inside the coroutine that uses the client.
    """

    def factory() -> StorageClient:
        return StorageClient.from_settings(
            settings, bench_config, transport=httpx.MockTransport(bucket)
        )

    return factory


class RecordingSleep:
    """Async sleep replacement that records requested delays in seconds."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
