"""Cloud Storage CORS configuration.

Sends a single `PATCH /b/{bucket}?fields=cors` to the Cloud Storage JSON API
so the site (running on `origin`) can upload and read images directly from the
bucket. Access tokens come from Google application default credentials unless
a token provider is injected.

Failures are reported in the returned `SetupCorsOutput` (success=False plus
the reason) instead of being raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable
from urllib.parse import quote

import google.auth
import google.auth.transport.requests
import httpx
from google.auth.exceptions import GoogleAuthError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import CorsRule, SetupCorsInput, SetupCorsOutput

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

TokenProvider = Callable[[], Awaitable[str]]


def _refresh_default_token() -> str:
    credentials, _project = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    credentials.refresh(google.auth.transport.requests.Request())
    if not credentials.token:
        raise GoogleAuthError("application default credentials returned no access token")
    return credentials.token


async def default_token_provider() -> str:
    """Access token from application default credentials (blocking refresh off-loop)."""

    return await asyncio.to_thread(_refresh_default_token)


class StorageCorsConfigurator:
    """Applies a CORS rule to a bucket through the Cloud Storage JSON API."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        token_provider: TokenProvider = default_token_provider,
        api_base_url: str = "https://storage.googleapis.com/storage/v1",
        methods: list[str] | None = None,
        response_headers: list[str] | None = None,
        max_age_seconds: int = 3600,
    ) -> None:
        self._client = client
        self._token_provider = token_provider
        self._api_base_url = api_base_url.rstrip("/")
        self._methods = list(methods or ["GET", "PUT", "POST", "DELETE"])
        self._response_headers = list(response_headers or ["Content-Type", "access-control-allow-origin"])
        self._max_age_seconds = max_age_seconds

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        token_provider: TokenProvider | None = None,
    ) -> "StorageCorsConfigurator":
        settings = settings or AppSettings()
        return cls(
            client=client or build_async_client(settings),
            token_provider=token_provider or default_token_provider,
            api_base_url=settings.storage_api_base_url,
            methods=settings.cors_methods,
            response_headers=settings.cors_response_headers,
            max_age_seconds=settings.cors_max_age_seconds,
        )

    def build_rules(self, origin: str) -> list[CorsRule]:
        return [
            CorsRule(
                origin=[origin],
                method=list(self._methods),
                response_header=list(self._response_headers),
                max_age_seconds=self._max_age_seconds,
            )
        ]

    def bucket_url(self, bucket_name: str) -> str:
        return f"{self._api_base_url}/b/{quote(bucket_name, safe='')}"

    async def apply(self, record: SetupCorsInput) -> SetupCorsOutput:
        bucket = record.bucket_name
        body = {"cors": [rule.model_dump(by_alias=True) for rule in self.build_rules(record.origin)]}

        try:
            token = await self._token_provider()
            response = await self._client.patch(
                self.bucket_url(bucket),
                params={"fields": "cors"},
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
        except (GoogleAuthError, httpx.HTTPError) as exc:
            logger.error("Error setting up CORS for bucket %s: %s", bucket, exc)
            return SetupCorsOutput(
                success=False,
                message=str(exc) or "An unknown error occurred during CORS setup.",
            )

        if response.is_error:
            logger.error("CORS setup failed: %s %s", response.status_code, response.text)
            return SetupCorsOutput(
                success=False,
                message=(
                    f"Failed to set CORS configuration. Status: {response.status_code}. "
                    f"Body: {response.text}"
                ),
            )

        logger.info("CORS configuration updated for bucket %s (origin %s)", bucket, record.origin)
        return SetupCorsOutput(
            success=True,
            message=f"CORS configuration updated successfully for bucket {bucket}.",
        )

    async def aclose(self) -> None:
        await self._client.aclose()
