"""
Domain Search HTTP Client

Async client for the external domain search API. Requests run on a thread
pool so the event loop is never blocked by the outbound call.

License: Mozilla Public License 2.0
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

import requests
from pydantic import ValidationError
from requests.exceptions import RequestException

from ..errors import UpstreamUnavailable
from .models import UpstreamSearchResponse

logger = logging.getLogger(__name__)

USER_AGENT = "domains-mcp-server"


class DomainSearchClient:
    """
    Async HTTP client for the domain search ("spins") API with thread pool execution.
    """

    def __init__(self, base_url: str, page_size: int = 5, timeout: float = 5.0,
                 max_workers: int = 10):
        """
        Initialize search client.

        Args:
            base_url: Full URL of the search endpoint
            page_size: Number of suggestions requested per search
            timeout: Request timeout in seconds
            max_workers: Maximum concurrent worker threads
        """
        self.base_url = base_url
        self.page_size = page_size
        self.timeout = timeout
        self.executor = ThreadPoolExecutor(max_workers=max_workers,
                                           thread_name_prefix="domain-search")

        logger.debug(f"Domain search client initialized: {self.base_url} (timeout={timeout}s)")

    def _execute_request(self, keywords: str) -> Dict[str, Any]:
        """
        Execute the search request (synchronous, runs in thread pool).

        Raises:
            UpstreamUnavailable: On transport failure, non-200 status or non-JSON body
        """
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        params = {"q": keywords, "pagesize": self.page_size}

        logger.debug(f"Request: GET {self.base_url}, q='{keywords}'")

        try:
            response = requests.get(
                self.base_url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except RequestException as e:
            logger.error(f"Request error: {e}")
            raise UpstreamUnavailable(f"Request error: {e}")

        if response.status_code != 200:
            raise UpstreamUnavailable(
                f"Domain search API error: {response.status_code} {response.reason}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Domain search API returned invalid JSON: {e}")

    async def search_spins(self, keywords: str) -> UpstreamSearchResponse:
        """
        Fetch domain suggestions for the given keywords.

        Args:
            keywords: User's search text, sent verbatim

        Returns:
            Parsed upstream payload

        Raises:
            UpstreamUnavailable: If the request fails or the payload does not match the schema
        """
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(self.executor, self._execute_request, keywords)

        try:
            return UpstreamSearchResponse.model_validate(data)
        except ValidationError as e:
            raise UpstreamUnavailable(f"Unexpected domain search payload: {e}")

    def close(self):
        """Shutdown the thread pool executor"""
        logger.debug("Shutting down domain search client")
        self.executor.shutdown(wait=False)
