"""HTTP utilities for the voter lookup service.

Provides:
- RetryStrategy: urllib3 retry policy for idempotent requests
- SessionManager: a pooled requests.Session with the retry policy mounted
- read_json: decode a response body, refusing HTML error pages
"""

import json
from typing import Any, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

from utils.patterns import HTML_BODY


class RetryStrategy:
    """Defines retry behavior for HTTP requests.

    Only GET and HEAD are retried. Updates and message sends are POSTs and
    must not be replayed behind the caller's back.
    """

    def __init__(self, max_retries: int = 2, backoff_factor: float = 1.0,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 2)
            backoff_factor: Exponential backoff multiplier (default: 1.0)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy."""
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 10):
        """Initialize session manager.

        Args:
            retry_strategy: RetryStrategy to use (default: standard strategy)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
        """
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})

            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None


def looks_like_html(text: str) -> bool:
    """True if *text* is an HTML page rather than a JSON document."""
    return bool(HTML_BODY.match(text or ""))


def read_json(resp: requests.Response) -> Any:
    """Decode the JSON body of *resp*.

    Raises:
        ValueError: if the body is empty, HTML-shaped or not valid JSON.
    """
    text = resp.text
    if not text or not text.strip():
        raise ValueError("empty response body")
    if looks_like_html(text):
        raise ValueError("received an HTML page where JSON was expected")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc.msg}") from exc
