"""
HTTP fetch + HTML parse layer

No cache awareness here: callers decide what to cache. Transport failures are
mapped onto the scraping error taxonomy and never retried.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
from bs4 import BeautifulSoup

from errors import ScrapingError, access_denied, http_error, network_error
from scraping_config import ScrapingConfig

logger = logging.getLogger(__name__)

class PageFetcher:
    """Async page fetcher sharing one aiohttp session across all scrapers"""

    def __init__(self, config: ScrapingConfig = None, session: Optional[aiohttp.ClientSession] = None):
        self.config = config or ScrapingConfig()
        self.session = session
        self._owns_session = session is None
        self.semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

        # Headers to mimic a real browser
        self.headers = {
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'fr-FR,fr;q=0.9,en;q=0.5',
        }

    async def __aenter__(self):
        """Async context manager entry"""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def open(self):
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            connector = aiohttp.TCPConnector(limit_per_host=self.config.max_concurrent_requests)
            self.session = aiohttp.ClientSession(connector=connector, timeout=timeout, headers=self.headers)
            self._owns_session = True

    async def close(self):
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def fetch_html(self, url: str) -> str:
        """GET a page and return its body, raising ScrapingError on any failure"""
        if self.session is None:
            await self.open()

        async with self.semaphore:
            try:
                async with self.session.get(url, headers=self.headers) as response:
                    logger.info(f"GET {url} {response.status}")
                    if response.status == 403:
                        raise access_denied(url)
                    if not 200 <= response.status < 300:
                        raise http_error(url, response.status)
                    return await response.text(errors='replace')
            except ScrapingError:
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"Request failed for {url}: {type(e).__name__} - {e}")
                raise network_error(url) from e

    async def fetch_soup(self, url: str) -> BeautifulSoup:
        html = await self.fetch_html(url)
        return parse_html(html)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, 'html.parser')
