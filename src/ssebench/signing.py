# Copyright (c) Syntropy Systems
"""AWS Signature Version 4 request signing for httpx."""
from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.config import Config
from botocore.credentials import Credentials

if TYPE_CHECKING:
    from collections.abc import Generator

# Headers produced by the signer that must be copied onto the outgoing request
_SIGNER_HEADERS = (
    "Authorization",
    "X-Amz-Date",
    "X-Amz-Content-SHA256",
    "X-Amz-Security-Token",
)


def _is_signed_header(name: str) -> bool:
    lowered = name.lower()
    return lowered.startswith("x-amz-") or lowered in ("content-type", "content-md5")


class SigV4Auth(httpx.Auth):
    """Sign each request for the S3 service with an unsigned payload hash.

    Only ``host``, ``content-type``, ``content-md5`` and ``x-amz-*`` headers are
    signed so transport-managed headers can change without breaking the
    signature.
    """

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        region: str,
        session_token: str | None = None,
    ) -> None:
        self._credentials = Credentials(access_key_id, secret_access_key, session_token)
        self._region = region
        self._client_config = Config(s3={"payload_signing_enabled": False})

    def sign(self, request: httpx.Request) -> None:
        """Add SigV4 headers to ``request`` in place."""
        aws_request = AWSRequest(
            method=request.method,
            url=str(request.url),
            headers={k: v for k, v in request.headers.items() if _is_signed_header(k)},
        )
        aws_request.context["client_config"] = self._client_config
        S3SigV4Auth(self._credentials, "s3", self._region).add_auth(aws_request)
        for name in _SIGNER_HEADERS:
            value = aws_request.headers.get(name)
            if value is not None:
                request.headers[name] = value

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        self.sign(request)
        yield request
