# Copyright (c) Syntropy Systems
"""HTTP client for the S3-compatible object store."""
from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from typing_extensions import Self

from ssebench.signing import SigV4Auth

if TYPE_CHECKING:
    from types import TracebackType

    from ssebench.config import BenchConfig, StorageSettings
    from ssebench.models.samples import OperationSpec

# Characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


def encode_key(key: str) -> str:
    """Percent-encode each segment of an object key, keeping the slashes."""
    return "/".join(quote(segment, safe=_URI_SAFE) for segment in key.split("/"))


class StorageClient:
    """Signed access to one bucket over a shared keep-alive connection pool.

    One instance is created at startup and passed to everything that issues
    requests. Only one request is ever in flight at a time.
    """

    endpoint: str
    bucket: str
    _client: httpx.AsyncClient

    def __init__(
        self,
        endpoint: str,
        bucket: str,
        auth: httpx.Auth | None = None,
        *,
        timeout: float = 30.0,
        max_connections: int = 10,
        keepalive_expiry: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Base URL of the S3 endpoint (e.g., "https://s3.us-east-005.backblazeb2.com")
            bucket: Bucket every key lives in
            auth: Request signer, None for unauthenticated endpoints
            timeout: Transport timeout in seconds
            max_connections: Size of the connection pool
            keepalive_expiry: Seconds an idle connection is kept open
            transport: Custom transport (used by tests)

        """
        self.endpoint = endpoint.rstrip("/")
        self.bucket = bucket
        self._client = httpx.AsyncClient(
            auth=auth,
            timeout=timeout,
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
                keepalive_expiry=keepalive_expiry,
            ),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: StorageSettings,
        config: BenchConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> StorageClient:
        """Build a signed client from validated settings."""
        auth = SigV4Auth(
            access_key_id=settings.access_key_id or "",
            secret_access_key=settings.secret_access_key or "",
            region=settings.region or "",
        )
        return cls(
            settings.endpoint,
            settings.bucket or "",
            auth,
            timeout=config.request_timeout,
            max_connections=config.max_connections,
            keepalive_expiry=config.keepalive_expiry,
            transport=transport,
        )

    def url_for(self, key: str) -> str:
        """Return the path-style URL of ``key`` in the bucket."""
        return f"{self.endpoint}/{quote(self.bucket, safe=_URI_SAFE)}/{encode_key(key)}"

    async def send(self, spec: OperationSpec) -> httpx.Response:
        """Issue one attempt of ``spec``.

        The response is streamed; the caller must read or close it.
        Transport failures raise ``httpx.TransportError``.
        """
        request = self._client.build_request(
            spec.method,
            self.url_for(spec.key),
            headers=spec.headers,
            params=spec.query or None,
            content=spec.payload,
        )
        return await self._client.send(request, stream=True)

    async def aclose(self) -> None:
        """Close the connection pool."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the connection pool."""
        await self.aclose()
