from __future__ import annotations

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from . import __version__


def default_user_agent() -> str:
    return f"border-explorer v{__version__}"


def default_timeout(total: float) -> httpx.Timeout:
    return httpx.Timeout(total, connect=min(total, 10.0))


class HttpClientFactory:
    """Creates the shared httpx client with sane defaults.

    One client per run; do not create per-request.
    """

    @staticmethod
    def client(
        base_url: str | None = None,
        headers: dict | None = None,
        timeout_s: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> httpx.Client:
        return httpx.Client(
            base_url=base_url or "",
            headers=headers,
            timeout=default_timeout(timeout_s),
            follow_redirects=True,
            transport=transport,
        )


TransientHttpError = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


def transient_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(5),
        wait=wait_exponential_jitter(initial=0.5, max=10.0),
        retry=retry_if_exception_type(TransientHttpError),
    )
