"""Feed retrieval from HTTP(S) URLs or local files."""

from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from unifeed.config import settings
from unifeed.errors import FetchError

logger = structlog.get_logger()


@dataclass(frozen=True)
class FetchResult:
    """Result of fetching a URL."""

    final_url: str
    status_code: int
    content: bytes | None
    content_type: str | None = None
    error: str | None = None
    elapsed_ms: int | None = None


def _is_retryable_http_status(status_code: int) -> bool:
    return status_code in {408, 425, 429, 500, 502, 503, 504}


def _should_retry(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return _is_retryable_http_status(exc.response.status_code)
    return False


@retry(
    stop=stop_after_attempt(settings.fetch_max_attempts),
    wait=wait_exponential(min=1, max=10),
    retry=retry_if_exception(_should_retry),
    reraise=True,
)
def fetch_url(url: str, *, timeout_seconds: float | None = None) -> FetchResult:
    """Fetch URL with retries on transient failures."""
    headers = {"User-Agent": settings.user_agent}
    timeout = settings.fetch_timeout_seconds if timeout_seconds is None else timeout_seconds

    try:
        with httpx.Client(timeout=timeout, follow_redirects=True, headers=headers) as client:
            response = client.get(url)
            elapsed_ms = int(response.elapsed.total_seconds() * 1000)

            if response.status_code >= 400:
                raise httpx.HTTPStatusError(
                    f"HTTP {response.status_code}",
                    request=response.request,
                    response=response,
                )

            return FetchResult(
                final_url=str(response.url),
                status_code=response.status_code,
                content=response.content,
                content_type=response.headers.get("content-type"),
                elapsed_ms=elapsed_ms,
            )

    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        if _is_retryable_http_status(status_code):
            logger.warning("Retryable HTTP error", url=url, status=status_code)
            raise
        logger.warning("HTTP error (non-retryable)", url=url, status=status_code)
        return FetchResult(
            final_url=str(e.response.url),
            status_code=status_code,
            content=None,
            error=f"HTTP {status_code}",
        )


def fetch_feed(location: str) -> bytes:
    """Return raw feed bytes from a URL or a file path."""
    if location.startswith(("http://", "https://")):
        try:
            result = fetch_url(location)
        except httpx.HTTPError as exc:
            logger.error("Request error", url=location, error=str(exc))
            raise FetchError(f"Failed to fetch {location}: {exc}") from exc
        if result.error or result.content is None:
            raise FetchError(f"Failed to fetch {location}: {result.error}")
        return result.content

    path = Path(location).expanduser()
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FetchError(f"Failed to read {location}: {exc}") from exc
