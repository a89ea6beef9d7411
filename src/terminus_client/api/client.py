"""Authenticated HTTP request capability for the hosting API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from terminus_client.api.errors import ApiError, TransportError
from terminus_client.config.models import TerminusConfig

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})


@dataclass
class ApiResponse:
    """Decoded response from a single API call."""

    status_code: int
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)


def is_transient(exc: BaseException) -> bool:
    """Whether a failed request is worth retrying."""
    if isinstance(exc, TransportError):
        return True
    if isinstance(exc, ApiError):
        return exc.status_code in TRANSIENT_STATUS_CODES
    return False


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    if isinstance(body, dict):
        for key in ("message", "error", "reason"):
            if body.get(key):
                return str(body[key])
    if isinstance(body, str) and body.strip():
        return body.strip()
    return resp.reason_phrase or f"HTTP {resp.status_code}"


class RequestClient:
    """Sends authenticated JSON requests relative to the configured API base URL."""

    def __init__(
        self,
        config: TerminusConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        headers = {
            "Accept": "application/json",
            "User-Agent": config.api.user_agent,
        }
        if config.auth.session_token:
            headers["Authorization"] = f"Bearer {config.auth.session_token}"
        self._client = httpx.Client(
            base_url=config.api.base_url + "/",
            headers=headers,
            timeout=config.api.timeout,
            transport=transport,
        )

    @property
    def current_user_id(self) -> str:
        return self._config.auth.user_id

    def request(
        self,
        path: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResponse:
        """Perform one request and return the decoded body.

        Raises TransportError when the API cannot be reached and ApiError
        for any HTTP status of 400 or above.
        """
        path = path.lstrip("/")
        logger.debug("%s %s params=%s", method, path, params)
        try:
            resp = self._client.request(method, path, params=params, json=json)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ApiError(
                f"{method} {path} returned {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
                path=path,
            )

        data: Any = None
        if resp.content:
            try:
                data = resp.json()
            except ValueError:
                data = resp.text
        return ApiResponse(status_code=resp.status_code, data=data, headers=dict(resp.headers))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RequestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
