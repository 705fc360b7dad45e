"""
Club scraper - clubs taking part in one competition
"""

import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from errors import NotFoundError, ScrapingError
from models import Club, ClubParams, CompetitionParams
from scraping_config import clubs_url
from utils import query_param

logger = logging.getLogger(__name__)

def extract_club_blocks(soup: BeautifulSoup, base_url: str) -> List[Dict[str, Any]]:
    """One ``.resStructure`` block per club, its first link carrying the ``structure`` id"""
    candidates = []
    for block in soup.select('.resStructure'):
        link = block.find('a')
        if link is None:
            continue
        candidates.append({
            'id': query_param(link.get('href'), 'structure', base_url),
            'name': link.get_text().strip().lower(),
        })
    return candidates


class ClubScraper(BaseScraper):

    async def get_all(self, competition_id: str) -> List[Club]:
        self.validate(CompetitionParams, {'competition_id': competition_id}, "Invalid competition id")
        cache_key = self.get_cache_key('clubs', competition_id)

        async def fetch():
            soup = await self.fetch_soup(clubs_url(self.config, competition_id))
            self.check_competition_open(soup)

            clubs: Dict[str, Club] = {}
            for row in extract_club_blocks(soup, self.config.live_base_url):
                club = self.safe_validate(Club, row)
                if club:
                    clubs[club.id] = club
            return list(clubs.values())

        return await self.get_or_fetch(cache_key, fetch)

    async def get_by_id(self, competition_id: str, club_id: str) -> Club:
        self.validate(ClubParams, {'competition_id': competition_id, 'club_id': club_id}, "Invalid club id")
        for club in await self.get_all(competition_id):
            if club.id == club_id:
                return club
        raise NotFoundError("Club")

    async def find_by_name(self, competition_id: str, name: str) -> Optional[Club]:
        """Exact name match first, then the first club whose name contains ``name``"""
        needle = (name or '').strip().lower()
        if not needle:
            return None
        clubs = await self.get_all(competition_id)
        for club in clubs:
            if club.name == needle:
                return club
        for club in clubs:
            if needle in club.name:
                return club
        return None

    async def get_first(self, competition_id: str) -> Optional[Club]:
        try:
            clubs = await self.get_all(competition_id)
        except ScrapingError as e:
            logger.warning(f"Unable to load clubs for {competition_id}: {e.message}")
            return None
        return clubs[0] if clubs else None
