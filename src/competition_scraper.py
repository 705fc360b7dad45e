"""
Competition scraper - lists the meets published on the live results site
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from errors import NotFoundError, ScrapingError
from models import Competition, Level, SearchLocationParams, SearchNameParams
from scraping_config import competitions_url
from utils import normalize_whitespace, query_param

logger = logging.getLogger(__name__)

LEVEL_KEYS = [
    (Level.NATIONAL, 'N'),
    (Level.REGIONAL, 'R'),
    (Level.DEPARTEMENTAL, 'D'),
]
FALLBACK_POOLSIZE = 25

_POOL_RE = re.compile(r'(\d+)\s*m', re.IGNORECASE)
_DATE_RE = re.compile(r'\b(\d{2})/(\d{2})/(\d{4})\b')
_STATS_RE = re.compile(r'(\d+)\s*engagements\s*/\s*(\d+)\s*nageurs', re.IGNORECASE)

def extract_pool_size(text: str) -> Optional[int]:
    match = _POOL_RE.search(text or '')
    return int(match.group(1)) if match else None


def extract_dates(text: str) -> List[date]:
    dates = []
    for day, month, year in _DATE_RE.findall(text or ''):
        try:
            dates.append(date(int(year), int(month), int(day)))
        except ValueError:
            continue
    return dates


def extract_stats(text: str) -> Dict[str, int]:
    match = _STATS_RE.search(text or '')
    if not match:
        return {'entries': 0, 'swimmers': 0}
    return {'entries': int(match.group(1)), 'swimmers': int(match.group(2))}


def _level_text(root, prefix: str, key: str) -> str:
    node = root.select_one(f'.{prefix}{key}, .{prefix}{key.lower()}')
    return node.get_text().strip() if node else ''


def extract_level_sections(soup: BeautifulSoup, base_url: str) -> List[Dict[str, Any]]:
    """Primary strategy: one container per meet, classed by level (N, R, D)"""
    candidates = []
    for level, key in LEVEL_KEYS:
        for root in soup.select(f'.containeur_niveau{key}, .containeur_niveau{key.lower()}'):
            location = _level_text(root, 'competition_lieu', key)
            name = _level_text(root, 'competition_nom', key)
            info = _level_text(root, 'date', key)
            poolsize = extract_pool_size(_level_text(root, 'bassin', key))

            img = root.select_one('.visuel_img img')
            link = root.find('a')
            href = link.get('href', '') if link else ''
            ffn_id = query_param(href, 'competition', base_url) or href.split('=')[-1]
            dates = extract_dates(info)

            if not ffn_id or not name or not poolsize or not dates:
                logger.debug(f"Skipping incomplete {level.value} competition row: {name!r}")
                continue

            stats = extract_stats(info)
            candidates.append({
                'level': level,
                'ffn_id': ffn_id,
                'name': name,
                'poolsize': poolsize,
                'start_date': dates[0],
                'end_date': dates[1] if len(dates) > 1 else None,
                'location': location.lower() or None,
                'image': urljoin(base_url, img['src']) if img and img.get('src') else None,
                'nb_entries': stats['entries'],
                'nb_swimmers': stats['swimmers'],
            })
    return candidates


def extract_competition_links(soup: BeautifulSoup, base_url: str) -> List[Dict[str, Any]]:
    """Fallback strategy: any link carrying a competition id, fields read from its parent text"""
    candidates = []
    seen = set()
    for link in soup.select("a[href*='competition=']"):
        ffn_id = query_param(link.get('href'), 'competition', base_url)
        name = normalize_whitespace(link.get_text())
        if not ffn_id or not name or ffn_id in seen:
            continue
        seen.add(ffn_id)

        surrounding = link.parent.get_text(' ') if link.parent else ''
        dates = extract_dates(surrounding)
        stats = extract_stats(surrounding)
        candidates.append({
            'level': Level.NATIONAL,
            'ffn_id': ffn_id,
            'name': name,
            'poolsize': extract_pool_size(surrounding) or FALLBACK_POOLSIZE,
            'start_date': dates[0] if dates else None,
            'end_date': dates[1] if len(dates) > 1 else None,
            'nb_entries': stats['entries'],
            'nb_swimmers': stats['swimmers'],
        })
    return candidates


class CompetitionScraper(BaseScraper):

    async def get_all(self) -> List[Competition]:
        cache_key = self.get_cache_key('competitions')

        async def fetch():
            soup = await self.fetch_soup(competitions_url(self.config))
            base_url = self.config.live_base_url

            candidates = extract_level_sections(soup, base_url)
            if not candidates:
                logger.warning("No competition container found, falling back to competition links")
                candidates = extract_competition_links(soup, base_url)

            competitions = [c for c in (self.safe_validate(Competition, row) for row in candidates) if c]
            logger.info(f"Parsed {len(competitions)} competitions")
            return competitions

        return await self.get_or_fetch(cache_key, fetch)

    async def get_by_id(self, competition_id: str) -> Competition:
        for competition in await self.get_all():
            if competition.ffn_id == competition_id:
                return competition
        raise NotFoundError("Competition")

    async def search_by_name(self, name: str) -> List[Competition]:
        params = self.validate(SearchNameParams, {'name': name}, "Competition name is required")
        needle = params.name.lower()
        return [c for c in await self.get_all() if needle in c.name.lower()]

    async def search_by_location(self, location: str) -> List[Competition]:
        params = self.validate(SearchLocationParams, {'location': location}, "Location is required")
        needle = params.location.lower()
        return [c for c in await self.get_all() if c.location and needle in c.location]

    async def get_first(self) -> Optional[Competition]:
        try:
            competitions = await self.get_all()
        except ScrapingError as e:
            logger.warning(f"Unable to load competitions: {e.message}")
            return None
        return competitions[0] if competitions else None
