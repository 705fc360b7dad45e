"""
Results scraper - full ranking of one race with lap splits
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from models import RaceParams, RaceResultEntry, RaceResults, SwimmerRaceResult, SwimmerResultParams
from scraping_config import results_url
from utils import normalize_whitespace, query_param

logger = logging.getLogger(__name__)

_PAREN_RE = re.compile(r'\(([^)]+)\)')
_POINTS_RE = re.compile(r'(\d+)\s*pts', re.IGNORECASE)

def parse_rank(text: Optional[str]) -> Optional[int]:
    """"12." -> 12; "DSQ", "ABD" or an empty cell -> None"""
    cleaned = (text or '').strip().rstrip('.').strip()
    return int(cleaned) if cleaned.isdecimal() and cleaned.isascii() else None


def parse_points(text: Optional[str]) -> Optional[int]:
    match = _POINTS_RE.search(text or '')
    return int(match.group(1)) if match else None


def parse_race_header(text: str) -> Tuple[Optional[str], Optional[str]]:
    """"50 Dos Messieurs - Séries (Lundi 22 Décembre 2025 - 10h52)" -> (name, date)"""
    match = _PAREN_RE.search(text)
    race_date = match.group(1).strip() if match else None
    race_name = normalize_whitespace(_PAREN_RE.sub('', text, count=1)) or None
    return race_name, race_date


def parse_splits(cell) -> List[Dict[str, Optional[str]]]:
    splits = []
    if cell is None:
        return splits
    for row in cell.select('table.split tr'):
        distance_cell = row.select_one('td.distance')
        distance = re.sub(r'\s+', '', distance_cell.get_text()).replace(':', '') if distance_cell else ''
        if not distance:
            continue
        cumulative = row.select_one('td.split')
        lap = row.select_one('td.relay')
        lap_text = lap.get_text().strip().strip('[]').strip() if lap else ''
        splits.append({
            'distance': re.sub(r'(\d+)m', r'\1 m', distance),
            'split': lap_text or None,
            'cumulative': (cumulative.get_text().strip() or None) if cumulative else None,
        })
    return splits


def _cell_text(row, selector: str) -> Optional[str]:
    cell = row.select_one(selector)
    return (cell.get_text().strip() or None) if cell else None


def _text_at(cells, index: int) -> Optional[str]:
    return normalize_whitespace(cells[index].get_text()) or None if index < len(cells) else None


def _time_text(cell) -> Optional[str]:
    if cell is None:
        return None
    link = cell.select_one('a.tooltip')
    if link is not None:
        first = link.find(string=True, recursive=False)
        return (first.strip() or None) if first else None
    return cell.get_text().strip() or None


def extract_result_rows(soup: BeautifulSoup, base_url: str) -> List[Dict[str, Any]]:
    """Ranked rows of ``table.tableau``; the time cell nests the split table"""
    rows = []
    for row in soup.select('table.tableau tr.survol'):
        cells = row.find_all('td', recursive=False)
        link = cells[1].find('a') if len(cells) > 1 else None
        if link is None:
            continue
        swimmer_id = query_param(link.get('href'), 'iuf', base_url)
        name = normalize_whitespace(link.get_text())
        if not swimmer_id or not name:
            continue

        time_cell = row.select_one('td.temps_sans_tps_passage') or row.select_one('td.temps')
        splits = parse_splits(time_cell)
        rows.append({
            'rank': parse_rank(_cell_text(row, 'td.place')),
            'swimmer_id': swimmer_id,
            'name': name,
            'birth_year': _text_at(cells, 2),
            'nationality': _text_at(cells, 3),
            'club': _text_at(cells, 4),
            'time': _time_text(time_cell),
            'points': parse_points(_cell_text(row, 'td.points')),
            'reaction': _cell_text(row, 'td.reaction'),
            'qualification': _cell_text(row, 'td.qualification'),
            'remark': _cell_text(row, 'td.rem'),
            'splits': splits or None,
        })
    return rows


class ResultsScraper(BaseScraper):

    async def get_by_race(self, competition_id: str, race_id: str) -> RaceResults:
        params = self.validate(RaceParams, {'competition_id': competition_id, 'race_id': race_id},
                               "Invalid race parameters")
        cache_key = self.get_cache_key('race-results', params.competition_id, params.race_id)

        async def fetch():
            soup = await self.fetch_soup(results_url(self.config, params.competition_id, params.race_id))
            header = soup.select_one('table.tableau td.epreuve')
            race_name, race_date = parse_race_header(header.get_text() if header else '')

            results = []
            for row in extract_result_rows(soup, self.config.live_base_url):
                entry = self.safe_validate(RaceResultEntry, row)
                if entry:
                    results.append(entry)
            logger.info(f"Parsed {len(results)} results for race {params.race_id}")

            return RaceResults(
                race_id=params.race_id,
                competition_id=params.competition_id,
                race_name=race_name,
                race_date=race_date,
                results=results,
            )

        return await self.get_or_fetch(cache_key, fetch)

    async def get_by_swimmer(self, competition_id: str, race_id: str, swimmer_id: str) -> SwimmerRaceResult:
        self.validate(
            SwimmerResultParams,
            {'competition_id': competition_id, 'race_id': race_id, 'swimmer_id': swimmer_id},
            "Invalid result parameters",
        )
        race = await self.get_by_race(competition_id, race_id)
        swimmer = next((r for r in race.results if r.swimmer_id == swimmer_id), None)
        return SwimmerRaceResult(race=race, swimmer=swimmer)
