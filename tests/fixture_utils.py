from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from errors import http_error
from memory_cache import MemoryCache
from page_fetcher import PageFetcher
from scrapers import Scrapers, create_scrapers
from scraping_config import (
  ScrapingConfig,
  clubs_url,
  competitions_url,
  participants_url,
  program_url,
  qualification_url,
  race_list_url,
  results_url,
  swimmer_url,
)

BASE_DIR = Path(__file__).parent
FIXTURES_PAGES_DIR = BASE_DIR / "fixtures" / "pages"

COMPETITION = "1234"
CLOSED_COMPETITION = "999"


def slug_to_stem(slug: str) -> str:
  # Replace path separators and keep it filesystem-safe
  return slug.strip("/ ").replace("/", "__")


def page_path(slug: str) -> Path:
  return FIXTURES_PAGES_DIR / f"{slug_to_stem(slug)}.html"


def read_fixture(slug: str) -> Optional[str]:
  p = page_path(slug)
  if not p.exists():
    return None
  return p.read_text(encoding="utf-8")


def default_pages(config: ScrapingConfig) -> Dict[str, str]:
  """URL -> fixture slug for every page of the sample competition"""
  return {
    competitions_url(config): "competitions",
    clubs_url(config, COMPETITION): "clubs",
    participants_url(config, COMPETITION): "participants",
    swimmer_url(config, COMPETITION, "987"): "swimmer_987",
    swimmer_url(config, COMPETITION, "654"): "swimmer_654",
    swimmer_url(config, COMPETITION, "555"): "swimmer_555",
    program_url(config, COMPETITION): "program",
    race_list_url(config, COMPETITION): "race_list",
    results_url(config, COMPETITION, "52"): "results",
    qualification_url(config, "79"): "qualification_79",
    qualification_url(config, "90", 2025): "qualification_90_2025",
    clubs_url(config, CLOSED_COMPETITION): "closed",
    participants_url(config, CLOSED_COMPETITION): "closed",
    swimmer_url(config, CLOSED_COMPETITION, "987"): "closed",
    race_list_url(config, CLOSED_COMPETITION): "closed",
  }


class FixtureFetcher(PageFetcher):
  """PageFetcher serving saved pages; unknown URLs answer like a 404"""

  def __init__(self, pages: Dict[str, str], config: Optional[ScrapingConfig] = None):
    super().__init__(config)
    self.pages = dict(pages)
    self.requests: List[str] = []

  async def open(self):
    pass

  async def close(self):
    pass

  async def fetch_html(self, url: str) -> str:
    self.requests.append(url)
    slug = self.pages.get(url)
    if slug is None:
      raise http_error(url, 404)
    html = read_fixture(slug)
    if html is None:
      raise FileNotFoundError(page_path(slug))
    return html


def fixture_scrapers(config: Optional[ScrapingConfig] = None, pages: Optional[Dict[str, str]] = None,
                     cache: Optional[MemoryCache] = None) -> Scrapers:
  config = config or ScrapingConfig()
  fetcher = FixtureFetcher(default_pages(config) if pages is None else pages, config)
  return create_scrapers(config, cache if cache is not None else MemoryCache(config.cache_ttl), fetcher)
