"""
Heads Integration - HTTP Client

SRP: Only HTTP communication with the head providers.
No parsing, no fallback logic. Just one GET per call.

Responsibilities:
- HTTP GET with a bounded timeout (milliseconds, default 5000)
- User-Agent identifying the calling application
- Error translation to NetworkError
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from headcatalog.core.config import settings
from .errors import NetworkError

logger = logging.getLogger(__name__)


class HeadsClient:
    """
    HTTP fetcher for head provider endpoints.

    SRP: Only HTTP, no catalog semantics. Retries and fallback belong
    to the refresh coordinator.

    A shared ``httpx.AsyncClient`` may be injected; otherwise a client
    is opened for each request.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        user_agent: Optional[str] = None,
    ):
        self._http = http_client
        self.user_agent = user_agent or settings.user_agent

    async def fetch(self, url: str, timeout_millis: int) -> str:
        """
        GET *url* and return the full response body as text.

        Raises:
            NetworkError: connection refused, timeout, non-2xx status
                or any other transport failure.
        """
        timeout = max(1, int(timeout_millis)) / 1000.0
        headers = {"User-Agent": self.user_agent}
        logger.debug("Fetching %s (timeout %sms)", url, timeout_millis)

        try:
            if self._http is not None:
                r = await self._http.get(url, headers=headers, timeout=timeout)
                r.raise_for_status()
                return r.text
            async with httpx.AsyncClient(timeout=timeout) as client:
                r = await client.get(url, headers=headers)
                r.raise_for_status()
                return r.text
        except httpx.ConnectError as e:
            raise NetworkError(f"Cannot connect to {url}: {e}", url=url) from e
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timeout after {timeout_millis}ms: {url}", url=url) from e
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"Unexpected status {e.response.status_code} from {url}", url=url
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Unexpected error fetching {url}: {e}", url=url) from e
        except Exception as e:
            raise NetworkError(f"Invalid request or response for {url}: {e}", url=url) from e
