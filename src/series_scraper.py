"""
Program resolver and series (heat) scraper

Resolving a heat takes two pages: the day's program gives the internal
coordinates of the race scheduled at a given time (embedded in an onclick
handler), then the race page lists every heat with its lane assignments.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from errors import NotFoundError, ScrapingError, parsing_error
from models import (
    FormattedLane, FormattedSeries, LaneEntry, ProgramParams, RaceSeries, Series, SeriesOverview,
    SeriesParams,
)
from scraping_config import program_url, series_url
from utils import is_after, normalize_whitespace, parse_hours

logger = logging.getLogger(__name__)

REQUIRED_PROGRAM_KEYS = ('cat_id', 'epr_id', 'typ_id', 'num_epreuve')

_SERIES_META_RE = re.compile(r's[ée]rie\s*(\d+)', re.IGNORECASE)
_LANE_META_RE = re.compile(r'couloir\s*(\d+)', re.IGNORECASE)
_ONCLICK_PARAM_RE = re.compile(r'[?&](\w+)=(\d+)')
_DIGITS_RE = re.compile(r'\d+')

def parse_race_meta(meta: Optional[str]) -> Dict[str, Optional[int]]:
    """Heat and lane numbers from engagement meta ("Série 3/6 • Couloir 4 • 27.12")"""
    series_match = _SERIES_META_RE.search(meta or '')
    lane_match = _LANE_META_RE.search(meta or '')
    return {
        'series_number': int(series_match.group(1)) if series_match else None,
        'lane': int(lane_match.group(1)) if lane_match else None,
    }


def extract_program_onclick(soup: BeautifulSoup, date: str, time: str) -> Optional[str]:
    """onclick of the last program item starting at or before ``time`` on ``date``"""
    onclick = None
    for heading in soup.find_all('h6'):
        if date not in heading.get_text():
            continue
        block = heading.find_next_sibling()
        if block is None or block.name != 'div':
            continue
        for item in block.select('ul.reunion li.survol'):
            time_node = item.select_one('.time')
            race_time = time_node.get_text().strip() if time_node else ''
            try:
                if is_after(time, race_time) < 0:
                    break
            except ValueError:
                logger.debug(f"Skipping program item without a time: {race_time!r}")
                continue
            tooltip = item.select_one('.tooltip')
            if tooltip is not None and tooltip.get('onclick'):
                onclick = tooltip['onclick']
    return onclick


def parse_onclick_params(onclick: str) -> Dict[str, str]:
    cleaned = re.sub(r"['\"+\s]", '', onclick)
    params = dict(_ONCLICK_PARAM_RE.findall(cleaned))
    for key in REQUIRED_PROGRAM_KEYS:
        if key not in params:
            raise parsing_error(f'Parameter "{key}" missing from program entry')
    return params


def _lane_from_row(cells) -> Dict[str, str]:
    club_cell = cells[4]
    tooltip = club_cell.select_one('.tooltip')
    chrono = cells[5].get_text().strip()
    return {
        'name': normalize_whitespace(cells[1].get_text()),
        'year': cells[2].get_text().strip(),
        'nationality': cells[3].get_text().strip(),
        'club': normalize_whitespace((tooltip or club_cell).get_text()),
        'last_chrono': 'AT' if 'AT' in chrono else chrono,
    }


def extract_heats(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    """Heat header rows (``td.prgTitre``) interleaved with lane rows (``tr.survol``)"""
    heats = []
    current = None

    def flush():
        if current is not None and current['swimmers']:
            heats.append(current)

    for row in soup.find_all('tr'):
        title_cell = row.select_one('td.prgTitre')
        if title_cell is not None:
            flush()
            title = title_cell.get_text().strip()
            time_cell = row.select_one('td.prgTime')
            parts = title.split('-')
            numbers = _DIGITS_RE.findall(parts[2]) if len(parts) > 2 else []
            current = {
                'type': 'simple',
                'nb': numbers[0] if numbers else str(len(heats) + 1),
                'max_nb': numbers[1] if len(numbers) > 1 else '',
                'race': parts[0].strip(),
                'time': time_cell.get_text().strip() if time_cell else '',
                'swimmers': [],
            }
            continue

        if current is not None and 'survol' in (row.get('class') or []):
            cells = row.find_all('td', recursive=False)
            if len(cells) >= 6:
                current['swimmers'].append(_lane_from_row(cells))

    flush()
    return heats


def _same_time(a: str, b: str) -> bool:
    try:
        return parse_hours(a) == parse_hours(b)
    except ValueError:
        return a == b


def find_swimmer_series_index(series: List[Series], series_number: Optional[int], time: Optional[str]) -> int:
    """Heat number from meta, else the heat scheduled at ``time``, else the first heat"""
    if series_number is not None:
        for index, heat in enumerate(series):
            if heat.nb == str(series_number):
                return index
    if time:
        for index, heat in enumerate(series):
            if _same_time(heat.time, time):
                return index
    return 0


class SeriesScraper(BaseScraper):

    parse_race_meta = staticmethod(parse_race_meta)

    async def get_program(self, competition_id: str, date: str, time: str) -> SeriesParams:
        params = self.validate(
            ProgramParams, {'competition_id': competition_id, 'date': date, 'time': time},
            "Invalid program parameters",
        )
        cache_key = self.get_cache_key('program', params.competition_id, params.date, params.time)

        async def fetch():
            soup = await self.fetch_soup(program_url(self.config, params.competition_id))
            onclick = extract_program_onclick(soup, params.date, params.time)
            if not onclick:
                raise NotFoundError("Race in program")
            return self.validate(SeriesParams, parse_onclick_params(onclick), "Invalid program entry")

        return await self.get_or_fetch(cache_key, fetch)

    async def get_all_series(self, competition_id: str, params: SeriesParams) -> Optional[RaceSeries]:
        """Every heat of the race at ``params``, None when the page lists none"""
        cache_key = self.get_cache_key('all-series', competition_id, params)

        async def fetch():
            soup = await self.fetch_soup(series_url(self.config, competition_id, params))
            heats = []
            for row in extract_heats(soup):
                lanes = [lane for lane in (self.safe_validate(LaneEntry, s) for s in row['swimmers']) if lane]
                heat = self.safe_validate(Series, {**row, 'swimmers': lanes}) if lanes else None
                if heat:
                    heats.append(heat)

            if not heats:
                return None

            first = heats[0]
            race_type = 'relay' if len(first.swimmers) > 1 and first.swimmers[1].last_chrono == '' else 'simple'
            race = next((h.race for h in heats if h.race), '')
            heats = [h.model_copy(update={'type': race_type}) for h in heats]
            return RaceSeries(race=race, type=race_type, series=heats)

        return await self.get_or_fetch(cache_key, fetch)

    async def get_series(self, competition_id: Optional[str], date: Optional[str], time: Optional[str],
                         race: Optional[str] = None, meta: Optional[str] = None,
                         lane: Optional[int] = None) -> Optional[SeriesOverview]:
        """Heats of the race a swimmer is entered in, their own heat and lane flagged.

        Returns None on any failure so the caller can fall back on its own display.
        """
        if not (competition_id and date and time):
            return None

        race_meta = parse_race_meta(meta)
        selected_lane = lane or race_meta['lane'] or self.config.default_lane

        try:
            params = await self.get_program(competition_id, date, time)
            result = await self.get_all_series(competition_id, params)
        except ScrapingError as e:
            logger.warning(f"Unable to scrape series for {competition_id} {date} {time}: {e.message}")
            return None
        if result is None:
            return None

        swimmer_index = find_swimmer_series_index(result.series, race_meta['series_number'], time)
        formatted = []
        for index, heat in enumerate(result.series):
            is_swimmer_series = index == swimmer_index
            formatted.append(FormattedSeries(
                series_number=int(heat.nb) if heat.nb.isdigit() else index + 1,
                is_swimmer_series=is_swimmer_series,
                swimmers=[
                    FormattedLane(
                        lane=position,
                        name=entry.name,
                        club=entry.club,
                        entry_time=entry.last_chrono,
                        is_selected=is_swimmer_series and position == selected_lane,
                    )
                    for position, entry in enumerate(heat.swimmers, start=1)
                ],
            ))

        return SeriesOverview(
            race=result.race or race or "Épreuve",
            total_series=len(result.series),
            swimmer_series_index=swimmer_index,
            type=result.type,
            series=formatted,
        )
