"""
Swimmer scraper

Two fetch strategies: the participant index (one page, id + name + link per
swimmer) and the per-swimmer detail page, the only place gender, club and birth
year are printed. Detail pages are only fetched when a lookup narrows down to a
single swimmer, or in batches by ``get_all_detailed``.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from club_scraper import ClubScraper
from errors import NotFoundError, ScrapingError
from models import ClubParams, CompetitionParams, Gender, Swimmer, SwimmerParams, SwimmerSearchParams
from scraping_config import participants_url, swimmer_url
from utils import absolute_url, normalize_whitespace, query_param, split_name

logger = logging.getLogger(__name__)

_PARENTHESIS_RE = re.compile(r'\s*\(.*?\)')
_YEAR_RE = re.compile(r'\d{4}')

def extract_swimmer_index(soup: BeautifulSoup, base_url: str) -> List[Dict[str, Any]]:
    """Participant page: one ``.nageur`` block per swimmer, linked by ``iuf``"""
    candidates = []
    for block in soup.select('.nageur'):
        link = block.find('a')
        if link is None or not link.get('href'):
            continue
        swimmer_id = query_param(link['href'], 'iuf', base_url)
        if not swimmer_id:
            continue
        label = normalize_whitespace(_PARENTHESIS_RE.sub('', link.get_text()))
        candidates.append({
            'id': swimmer_id,
            **split_name(label),
            'link': absolute_url(link['href'], base_url),
        })
    return candidates


def extract_swimmer_detail(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    """Header of a personal start list: "NAME Firstname (YYYY / NAT) - CLUB : ..."

    The header cell class encodes gender (1 = men, 2 = women).
    """
    gender = Gender.MALE
    cell = soup.select_one('.tableau .resStructureIndividu1')
    if cell is None:
        gender = Gender.FEMALE
        cell = soup.select_one('.tableau .resStructureIndividu2')
    if cell is None:
        return None

    info = normalize_whitespace(cell.get_text(' ')).split('(', 1)
    if len(info) < 2:
        return None

    club_part = info[1].split(' - ', 1)
    club_name = club_part[1].split(':')[0].strip().lower() if len(club_part) > 1 else ''
    year = _YEAR_RE.search(info[1])
    return {
        **split_name(info[0].strip()),
        'gender': gender,
        'club_name': club_name or None,
        'birth_year': int(year.group()) if year else None,
    }


class SwimmerScraper(BaseScraper):

    def __init__(self, fetcher, cache, club_scraper: ClubScraper, **kwargs):
        super().__init__(fetcher, cache, **kwargs)
        self.club_scraper = club_scraper

    async def get_index(self, competition_id: str) -> List[Swimmer]:
        cache_key = self.get_cache_key('swimmer-links', competition_id)

        async def fetch():
            soup = await self.fetch_soup(participants_url(self.config, competition_id))
            self.check_competition_open(soup)
            rows = extract_swimmer_index(soup, self.config.live_base_url)
            return [s for s in (self.safe_validate(Swimmer, row) for row in rows) if s]

        return await self.get_or_fetch(cache_key, fetch)

    async def get_detail(self, competition_id: str, entry: Swimmer) -> Optional[Swimmer]:
        """Detail record for one index entry; raises on page failure"""
        cache_key = self.get_cache_key('swimmer-detail', competition_id, entry.id)

        async def fetch():
            url = entry.link or swimmer_url(self.config, competition_id, entry.id)
            detail = extract_swimmer_detail(await self.fetch_soup(url))
            if detail is None:
                logger.warning(f"No swimmer header on detail page for {entry.id}")
                return None

            club_id = None
            if detail['club_name']:
                try:
                    club = await self.club_scraper.find_by_name(competition_id, detail['club_name'])
                    club_id = club.id if club else None
                except ScrapingError as e:
                    logger.debug(f"Club lookup failed for {detail['club_name']!r}: {e.message}")

            return self.safe_validate(Swimmer, {**detail, 'id': entry.id, 'club_id': club_id, 'link': entry.link})

        return await self.get_or_fetch(cache_key, fetch)

    async def _try_detail(self, competition_id: str, entry: Swimmer) -> Optional[Swimmer]:
        try:
            return await self.get_detail(competition_id, entry)
        except ScrapingError as e:
            logger.warning(f"Error processing swimmer {entry.id}: {e.message}")
            return None

    async def get_all(self, competition_id: str) -> List[Swimmer]:
        self.validate(CompetitionParams, {'competition_id': competition_id}, "Invalid competition id")
        return await self.get_index(competition_id)

    async def get_all_detailed(self, competition_id: str) -> List[Swimmer]:
        """Every swimmer with detail fields, detail pages fetched in fixed-size batches"""
        self.validate(CompetitionParams, {'competition_id': competition_id}, "Invalid competition id")
        cache_key = self.get_cache_key('swimmers-detailed', competition_id)

        async def fetch():
            entries = await self.get_index(competition_id)
            batch_size = max(1, self.config.detail_batch_size)
            swimmers = []
            for i in range(0, len(entries), batch_size):
                batch = entries[i:i + batch_size]
                results = await asyncio.gather(*[self._try_detail(competition_id, e) for e in batch])
                swimmers.extend(s for s in results if s is not None)
                logger.debug(f"Swimmer details {min(i + batch_size, len(entries))}/{len(entries)}")
            return swimmers

        return await self.get_or_fetch(cache_key, fetch)

    async def get_by_id(self, competition_id: str, swimmer_id: str) -> Swimmer:
        self.validate(SwimmerParams, {'competition_id': competition_id, 'swimmer_id': swimmer_id},
                      "Invalid swimmer id")
        for entry in await self.get_index(competition_id):
            if entry.id == swimmer_id:
                return await self._try_detail(competition_id, entry) or entry
        raise NotFoundError("Swimmer")

    async def search(self, competition_id: str, first_name: Optional[str] = None,
                     last_name: Optional[str] = None) -> List[Swimmer]:
        params = self.validate(
            SwimmerSearchParams,
            {'competition_id': competition_id, 'first_name': first_name, 'last_name': last_name},
            "Invalid search criteria",
        )
        first = (params.first_name or '').strip().lower()
        last = (params.last_name or '').strip().lower()

        matches = [
            s for s in await self.get_index(competition_id)
            if (not first or first in s.first_name.lower()) and (not last or last in s.last_name.lower())
        ]
        if len(matches) == 1:
            return [await self._try_detail(competition_id, matches[0]) or matches[0]]
        return matches

    async def get_by_club(self, competition_id: str, club_id: str) -> List[Swimmer]:
        self.validate(ClubParams, {'competition_id': competition_id, 'club_id': club_id}, "Invalid club id")
        return [s for s in await self.get_all_detailed(competition_id) if s.club_id == club_id]

    async def get_first(self, competition_id: str) -> Optional[Swimmer]:
        try:
            swimmers = await self.get_all(competition_id)
        except ScrapingError as e:
            logger.warning(f"Unable to load swimmers for {competition_id}: {e.message}")
            return None
        return swimmers[0] if swimmers else None
