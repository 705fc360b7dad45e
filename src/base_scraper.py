"""
Base class shared by every FFN scraper

Composes the page fetcher, the injected cache and the pydantic schema helpers.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import pydantic
from bs4 import BeautifulSoup
from pydantic import BaseModel

from errors import CompetitionClosedError, ValidationError
from memory_cache import MemoryCache
from page_fetcher import PageFetcher
from scraping_config import ScrapingConfig

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)

_MISS = object()

def _encode_arg(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json')
    raise TypeError(f"Cannot build a cache key from {type(value).__name__}")


def validation_details(error: pydantic.ValidationError) -> list:
    return error.errors(include_url=False, include_context=False, include_input=False)


class BaseScraper:
    """Fetch + parse + read-through cache + validation helpers"""

    def __init__(self, fetcher: PageFetcher, cache: MemoryCache, config: ScrapingConfig = None,
                 use_cache: Optional[bool] = None, cache_ttl: Optional[float] = None):
        self.fetcher = fetcher
        self.cache = cache
        self.config = config or fetcher.config
        self.use_cache = self.config.use_cache if use_cache is None else use_cache
        self.cache_ttl = self.config.cache_ttl if cache_ttl is None else cache_ttl

    def get_cache_key(self, prefix: str, *args) -> str:
        """Deterministic key: the prefix followed by each argument JSON-encoded"""
        return ':'.join([prefix] + [json.dumps(arg, sort_keys=True, default=_encode_arg) for arg in args])

    async def get_or_fetch(self, cache_key: str, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        if self.use_cache:
            cached = self.cache.get(cache_key, _MISS)
            if cached is not _MISS:
                logger.debug(f"Cache hit for {cache_key}")
                return cached

        result = await fetch_fn()

        if self.use_cache:
            self.cache.set(cache_key, result, self.cache_ttl)
        return result

    async def fetch_soup(self, url: str) -> BeautifulSoup:
        return await self.fetcher.fetch_soup(url)

    def validate(self, schema: Type[M], data: Dict[str, Any], message: str = "Invalid data") -> M:
        """Parse ``data`` with ``schema`` or raise ValidationError with the field errors"""
        try:
            return schema.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(message, validation_details(e)) from e

    def safe_validate(self, schema: Type[M], data: Dict[str, Any]) -> Optional[M]:
        """Parse ``data`` or return None; used to drop malformed rows"""
        try:
            return schema.model_validate(data)
        except pydantic.ValidationError as e:
            logger.debug(f"Dropping invalid {schema.__name__} row: {e.error_count()} error(s)")
            return None

    def check_competition_open(self, soup: BeautifulSoup):
        if soup.select_one('#boxAlert') is not None:
            raise CompetitionClosedError()
