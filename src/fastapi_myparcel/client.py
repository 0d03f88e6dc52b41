"""Authenticated transport for the MyParcel JSON API."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from fastapi_myparcel.exceptions import CommunicationError

logger = logging.getLogger(__name__)

SHIPMENT_CONTENT_TYPE = "application/vnd.shipment+json;charset=utf-8"
RETURN_SHIPMENT_CONTENT_TYPE = (
    "application/vnd.return_shipment+json;charset=utf-8"
)
LABEL_LINK_ACCEPT = "application/vnd.shipment_label_link+json; charset=utf8"


def encode_api_key(api_key: str) -> str:
    return base64.b64encode(api_key.encode("utf-8")).decode("ascii")


class MyParcelClient:
    """Thin wrapper around ``httpx.AsyncClient`` for carrier calls.

    Every call is a single attempt: non-2xx responses raise
    :class:`CommunicationError` with the status code and body, and
    nothing is retried here.
    """

    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str = "fastapi-myparcel",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    def _headers(self, api_key: str, **extra: str) -> dict[str, str]:
        headers = {
            "Authorization": f"basic {encode_api_key(api_key)}",
            "User-Agent": self.user_agent,
        }
        headers.update(extra)
        return headers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    async def json_request(
        self,
        method: str,
        path: str,
        *,
        api_key: str,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_headers = self._headers(
            api_key,
            Accept="application/json",
            **{"Content-Type": "application/json"},
        )
        request_headers.update(headers or {})
        response = await self.http_client.request(
            method,
            self._url(path),
            headers=request_headers,
            json=json,
        )
        if not response.is_success:
            raise CommunicationError(
                f"MyParcel request failed ({response.status_code}): "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def pdf_request(self, path: str, *, api_key: str) -> bytes:
        """GET a label PDF. ``path`` may also be an absolute URL."""
        response = await self.http_client.get(
            self._url(path),
            headers=self._headers(api_key, Accept="application/pdf"),
        )
        if not response.is_success:
            raise CommunicationError(
                f"MyParcel label request failed ({response.status_code}): "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.content
