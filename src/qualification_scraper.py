"""
Qualifying-time grid scraper (federation results archive)

A grid page holds one section per gender, each made of tables whose header row
starts with "Épreuves". Sections carry no gender label: the n-th header row
belongs to the n-th gender of ``ScrapingConfig.gender_section_order``. Tables
either have one (time, qualifier count) column pair per age bracket, or a
single time + count pair when the meet has no age breakdown.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from errors import NotFoundError
from models import (
    QualificationAgeParams, QualificationEvent, QualificationGrid, QualificationGridParams,
    QualificationLookupParams, QualificationTime,
)
from scraping_config import qualification_url
from utils import normalize_whitespace, query_param, slugify

logger = logging.getLogger(__name__)

RACE_ALIASES = {
    "50 Nage Libre": "50 NL",
    "100 Nage Libre": "100 NL",
    "200 Nage Libre": "200 NL",
    "400 Nage Libre": "400 NL",
    "800 Nage Libre": "800 NL",
    "1500 Nage Libre": "1500 NL",
    "50 Dos": "50 Dos",
    "100 Dos": "100 Dos",
    "200 Dos": "200 Dos",
    "50 Brasse": "50 Brasse",
    "100 Brasse": "100 Brasse",
    "200 Brasse": "200 Brasse",
    "50 Papillon": "50 Pap",
    "100 Papillon": "100 Pap",
    "200 Papillon": "200 Pap",
    "200 4 Nages": "200 4N",
    "400 4 Nages": "400 4N",
}
_ALIASES_BY_NAME = {name.lower(): alias for name, alias in RACE_ALIASES.items()}

_SEASON_RE = re.compile(r'Saison\s*:?\s*(\d{4})\s*/\s*(\d{4})', re.IGNORECASE)
_AGE_HEADER_RE = re.compile(r'(\d+)\s*ans(\s*et\s*plus)?.*?\((\d{4})', re.IGNORECASE)
_COUNT_RE = re.compile(r'\d+')
_PLACEHOLDER_RE = re.compile(r'^(-+|choisi|s[ée]lection)', re.IGNORECASE)

def current_season(today: Optional[date] = None) -> int:
    """Seasons start in September: December 2024 belongs to season 2025"""
    today = today or date.today()
    return today.year + 1 if today.month >= 9 else today.year


def season_label(season: int) -> str:
    return f"{season - 1} / {season}"


def normalize_race(name: str) -> str:
    name = normalize_whitespace(name)
    return _ALIASES_BY_NAME.get(name.lower(), name)


def parse_age_header(text: str) -> Optional[Dict[str, Any]]:
    """"14 ans (2011)" or "19 ans et plus (2006 et avant)" """
    match = _AGE_HEADER_RE.search(text or '')
    if not match:
        return None
    return {'age': int(match.group(1)), 'birth_year': int(match.group(3)), 'is_plus': bool(match.group(2))}


def extract_season(soup: BeautifulSoup) -> Optional[Tuple[str, int]]:
    match = _SEASON_RE.search(soup.get_text(' '))
    if not match:
        return None
    return f"{match.group(1)} / {match.group(2)}", int(match.group(2))


def _is_header_row(cells) -> bool:
    first = normalize_whitespace(cells[0].get_text()).lower() if cells else ''
    return first.startswith('épreuve') or first.startswith('epreuve')


def _parse_count(cell) -> Optional[int]:
    match = _COUNT_RE.search(cell.get_text()) if cell is not None else None
    return int(match.group()) if match else None


def extract_qualification_rows(soup: BeautifulSoup, event_id: str,
                               gender_order: Tuple[str, ...]) -> List[Dict[str, Any]]:
    """Walk every row in page order, switching gender on each "Épreuves" header row"""
    rows = []
    header_count = 0
    gender = None
    brackets: List[Dict[str, Any]] = []

    for tr in soup.find_all('tr'):
        cells = tr.find_all(['td', 'th'], recursive=False)
        if not cells:
            continue

        if _is_header_row(cells):
            header_count += 1
            if header_count > len(gender_order):
                if gender is not None:
                    logger.warning(f"Grid {event_id}: ignoring header section #{header_count}, "
                                   f"only {len(gender_order)} gender sections expected")
                gender = None
                continue
            gender = gender_order[header_count - 1]
            brackets = [b for b in (parse_age_header(c.get_text()) for c in cells[1:]) if b]
            continue

        if gender is None:
            continue
        race = normalize_race(cells[0].get_text())
        if not race:
            continue

        if brackets:
            columns = [(bracket, 1 + 2 * i) for i, bracket in enumerate(brackets)]
        else:
            columns = [(None, 1)]

        for bracket, index in columns:
            if index >= len(cells):
                break
            time = cells[index].get_text().strip()
            if not time or 'Temps' in time:
                continue
            rows.append({
                'event_id': event_id,
                'race': race,
                'gender': gender,
                'age': bracket['age'] if bracket else None,
                'birth_year': bracket['birth_year'] if bracket else None,
                'time': time,
                'qualifier_count': _parse_count(cells[index + 1] if index + 1 < len(cells) else None),
            })
    return rows


def extract_event_options(soup: BeautifulSoup, archive_base_url: str) -> List[Dict[str, str]]:
    """Options of the grid selector (``idclt``)"""
    events = []
    seen = set()
    base = f"{archive_base_url.rstrip('/')}/webffn/"
    for select in soup.find_all('select'):
        options = select.find_all('option')
        if select.get('name') != 'idclt' and not any('idclt=' in (o.get('value') or '') for o in options):
            continue
        for option in options:
            value = (option.get('value') or '').strip()
            name = normalize_whitespace(option.get_text())
            event_id = query_param(value, 'idclt', base) if 'idclt=' in value else value
            if not event_id or not event_id.isdigit() or event_id == '0' or not name or _PLACEHOLDER_RE.match(name):
                continue
            if event_id in seen:
                continue
            seen.add(event_id)
            events.append({
                'slug': slugify(name) or event_id,
                'id': event_id,
                'name': name,
                'url': urljoin(base, value) if 'idclt=' in value else None,
            })
    return events


def resolve_by_birth_year(candidates: List[QualificationTime], birth_year: int) -> Optional[QualificationTime]:
    """Exact birth year, then the year before, then the oldest bracket, then an age-less entry"""
    for year in (birth_year, birth_year - 1):
        for q in candidates:
            if q.birth_year == year:
                return q

    aged = [q for q in candidates if q.age is not None and q.birth_year is not None]
    if aged:
        oldest = max(aged, key=lambda q: q.age)
        if birth_year <= oldest.birth_year:
            return oldest

    return next((q for q in candidates if q.birth_year is None), None)


class QualificationScraper(BaseScraper):

    def __init__(self, fetcher, cache, config=None, use_cache=None, cache_ttl=None):
        super().__init__(fetcher, cache, config, use_cache, cache_ttl)
        if cache_ttl is None:
            self.cache_ttl = self.config.qualification_cache_ttl

    async def get_available_events(self) -> List[QualificationEvent]:
        cache_key = self.get_cache_key('qualification-events')

        async def fetch():
            url = qualification_url(self.config, self.config.default_qualification_event)
            soup = await self.fetch_soup(url)
            events = []
            for row in extract_event_options(soup, self.config.archive_base_url):
                row['url'] = row['url'] or qualification_url(self.config, row['id'])
                event = self.safe_validate(QualificationEvent, row)
                if event:
                    events.append(event)
            return events

        return await self.get_or_fetch(cache_key, fetch)

    async def resolve_event_id(self, event: Optional[str]) -> str:
        """Grids are addressed by internal id ("79") or by slug ("france-open-ete")"""
        if not event:
            return self.config.default_qualification_event
        event = event.strip()
        if event.isdigit():
            return event
        wanted = slugify(event)
        for candidate in await self.get_available_events():
            if candidate.slug == wanted:
                return candidate.id
        raise NotFoundError(f"Qualification grid {event!r}")

    async def get_grid(self, event: Optional[str] = None, season: Optional[int] = None) -> QualificationGrid:
        params = self.validate(QualificationGridParams, {'event': event, 'season': season},
                               "Invalid qualification grid parameters")
        event_id = await self.resolve_event_id(params.event)
        cache_key = self.get_cache_key('qualification-grid', event_id, params.season)

        async def fetch():
            soup = await self.fetch_soup(qualification_url(self.config, event_id, params.season))

            qualifications: Dict[Tuple[str, str, str, str], QualificationTime] = {}
            for row in extract_qualification_rows(soup, event_id, tuple(self.config.gender_section_order)):
                qualification = self.safe_validate(QualificationTime, row)
                if qualification and qualification.key not in qualifications:
                    qualifications[qualification.key] = qualification

            found = extract_season(soup)
            if found:
                label, season_year = found
            else:
                season_year = params.season or current_season()
                label = season_label(season_year)

            selected = soup.select_one('select[name=idclt] option[selected]')
            logger.info(f"Parsed {len(qualifications)} qualifying times for grid {event_id} ({label})")
            return QualificationGrid(
                event_id=event_id,
                season=label,
                season_year=season_year,
                competition=normalize_whitespace(selected.get_text()) or None if selected else None,
                qualifications=list(qualifications.values()),
            )

        return await self.get_or_fetch(cache_key, fetch)

    async def get_qualification_time(self, race: str, gender: str, birth_year: int,
                                     event: Optional[str] = None, season: Optional[int] = None) -> QualificationTime:
        params = self.validate(
            QualificationLookupParams,
            {'race': race, 'gender': gender, 'birth_year': birth_year, 'event': event, 'season': season},
            "Invalid qualification lookup",
        )
        grid = await self.get_grid(params.event, params.season)
        wanted = normalize_race(params.race).lower()
        candidates = [q for q in grid.qualifications if q.race.lower() == wanted and q.gender == params.gender]

        qualification = resolve_by_birth_year(candidates, params.birth_year)
        if qualification is None:
            raise NotFoundError(f"Qualifying time for {params.race} ({params.gender.value}, born {params.birth_year})")
        return qualification

    async def get_qualifications_for_birth_year(self, gender: str, birth_year: int, event: Optional[str] = None,
                                                season: Optional[int] = None) -> List[QualificationTime]:
        """One qualifying time per race for a swimmer of ``gender`` born in ``birth_year``"""
        params = self.validate(
            QualificationAgeParams,
            {'gender': gender, 'birth_year': birth_year, 'event': event, 'season': season},
            "Invalid qualification lookup",
        )
        grid = await self.get_grid(params.event, params.season)

        by_race: Dict[str, List[QualificationTime]] = {}
        for q in grid.qualifications:
            if q.gender == params.gender:
                by_race.setdefault(q.race, []).append(q)

        results = []
        for candidates in by_race.values():
            qualification = resolve_by_birth_year(candidates, params.birth_year)
            if qualification:
                results.append(qualification)
        return results

    async def get_races(self, event: Optional[str] = None, season: Optional[int] = None) -> List[str]:
        grid = await self.get_grid(event, season)
        return sorted({q.race for q in grid.qualifications})
