"""
Engagement scraper - a swimmer's personal schedule for one competition

Races are grouped into synthetic sessions (day + morning/afternoon/evening).
The output is flat: each session marker is followed by its races in time order.
"""

import asyncio
import logging
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from base_scraper import BaseScraper
from models import Engagement, EngagementKind, SwimmerParams
from scraping_config import race_list_url, swimmer_url
from utils import capitalize, make_id, normalize_whitespace, parse_hours

logger = logging.getLogger(__name__)

STROKE_ABBREVIATIONS = [
    ('nage libre', 'nl'),
    ('papillon', 'pap'),
    ('brasse', 'br'),
    ('dos', 'dos'),
    ('4 nages', '4n'),
    ('4n', '4n'),
]

_RACE_LABEL_RE = re.compile(r'^(\d{2,4})\s+(.+?)\s+(dames|messieurs)$', re.IGNORECASE)
_GENDER_SUFFIX_RE = re.compile(r'\b(dames|messieurs)\b', re.IGNORECASE)
_HORAIRE_RE = re.compile(r'\b(\d{1,2})h(\d{2})\b', re.IGNORECASE)
_RACE_ID_RE = re.compile(r'epreuve=(\d+)')

def abbreviate_stroke(stroke: str) -> Optional[str]:
    text = normalize_whitespace(stroke).lower()
    for name, abbreviation in STROKE_ABBREVIATIONS:
        if name in text:
            return abbreviation
    return None


def format_race_label(raw: str) -> str:
    """"50 Papillon Dames" -> "50 pap"; unknown strokes only lose the gender suffix"""
    text = normalize_whitespace(raw)
    match = _RACE_LABEL_RE.match(text)
    if match:
        distance = str(int(match.group(1)))
        stroke = abbreviate_stroke(match.group(2))
        return f"{distance} {stroke or normalize_whitespace(match.group(2))}"
    return normalize_whitespace(_GENDER_SUFFIX_RE.sub('', text, count=1))


def parse_horaire(raw: str) -> Optional[str]:
    """"08h55" -> "08:55" """
    match = _HORAIRE_RE.search(normalize_whitespace(raw))
    if not match:
        return None
    return f"{int(match.group(1)):02d}:{int(match.group(2)):02d}"


PERIOD_ORDER = {'matin': 0, 'après-midi': 1, 'soir': 2, 'session': 3}


def period_of(time: Optional[str]) -> str:
    try:
        minutes = parse_hours(time or '')
    except ValueError:
        return 'session'
    if minutes < 12 * 60:
        return 'matin'
    if minutes < 18 * 60:
        return 'après-midi'
    return 'soir'


def normalize_race_name(raw: str) -> str:
    return normalize_whitespace(raw).lower()


def extract_race_ids(soup: BeautifulSoup) -> Dict[str, str]:
    """Race name -> upstream race id, from the race selector of the results page"""
    mapping = {}
    for option in soup.select('select.epreuve option'):
        label = normalize_whitespace(option.get_text())
        match = _RACE_ID_RE.search(option.get('value') or '')
        if label and match:
            mapping[normalize_race_name(label)] = match.group(1)
    return mapping


def _text(row, selector: str) -> str:
    node = row.select_one(selector)
    return normalize_whitespace(node.get_text()) if node else ''


def extract_engagement_rows(soup: BeautifulSoup) -> List[Dict[str, str]]:
    rows = []
    for tr in soup.select('tr.survol'):
        first = tr.find('td')
        rows.append({
            'race': normalize_whitespace(first.get_text()) if first else '',
            'date': _text(tr, '.startlist_date'),
            'horaire': _text(tr, '.startlist_horaire'),
            'serie': _text(tr, '.startlist_serie'),
            'couloir': _text(tr, '.startlist_couloir'),
            'chrono': _text(tr, '.temps'),
        })
    return rows


class EngagementScraper(BaseScraper):

    async def get_race_ids(self, competition_id: str) -> Dict[str, str]:
        cache_key = self.get_cache_key('race-id-mapping', competition_id)

        async def fetch():
            return extract_race_ids(await self.fetch_soup(race_list_url(self.config, competition_id)))

        return await self.get_or_fetch(cache_key, fetch)

    async def get_all(self, competition_id: str, swimmer_id: str) -> List[Engagement]:
        params = self.validate(SwimmerParams, {'competition_id': competition_id, 'swimmer_id': swimmer_id},
                               "Invalid engagement parameters")
        competition_id, swimmer_id = params.competition_id, params.swimmer_id
        cache_key = self.get_cache_key('engagements', competition_id, swimmer_id)

        async def fetch():
            race_ids, soup = await asyncio.gather(
                self.get_race_ids(competition_id),
                self.fetch_soup(swimmer_url(self.config, competition_id, swimmer_id)),
            )
            self.check_competition_open(soup)

            sessions: Dict[str, dict] = {}
            for row in extract_engagement_rows(soup):
                label = format_race_label(row['race'])
                if not label:
                    continue

                time = parse_horaire(row['horaire'])
                period = period_of(time)
                session = sessions.setdefault(f"{row['date']}|{period}", {
                    'date': row['date'],
                    'day': capitalize(row['date'].split(' ')[0] if row['date'] else 'Jour'),
                    'period': period,
                    'time': time,
                    'races': [],
                })
                if time and (not session['time'] or time < session['time']):
                    session['time'] = time

                meta = ' • '.join(part for part in (row['serie'], row['couloir'], row['chrono']) if part)
                race = self.safe_validate(Engagement, {
                    'id': make_id(['race', competition_id, swimmer_id, row['date'], row['horaire'], label]),
                    'kind': EngagementKind.RACE,
                    'time': time,
                    'label': label,
                    'date': row['date'] or None,
                    'meta': meta or None,
                    'race_id': race_ids.get(normalize_race_name(row['race'])),
                })
                if race:
                    session['races'].append(race)

            # Days keep page order; within a day, periods run in clock order
            day_order = {}
            for session in sessions.values():
                day_order.setdefault(session['date'], len(day_order))
            ordered = sorted(sessions.values(), key=lambda s: (
                day_order[s['date']], PERIOD_ORDER[s['period']], s['time'] or '',
            ))

            engagements = []
            for session in ordered:
                marker = self.safe_validate(Engagement, {
                    'id': make_id(['session', competition_id, swimmer_id, session['date'], session['period']]),
                    'kind': EngagementKind.SESSION,
                    'time': session['time'],
                    'label': f"{session['day']} {session['period']}",
                    'meta': session['date'] or None,
                    'date': session['date'] or None,
                })
                if marker:
                    engagements.append(marker)
                # Untimed races go last
                engagements.extend(sorted(session['races'], key=lambda r: (r.time is None, r.time or '')))
            return engagements

        return await self.get_or_fetch(cache_key, fetch)

    async def get_by_id(self, engagement_id: str) -> Optional[Engagement]:
        """Ids embed "kind:competition:swimmer:..."; returns None for unknown ids"""
        parts = (engagement_id or '').split(':')
        if len(parts) < 3 or not parts[1] or not parts[2]:
            return None
        for engagement in await self.get_all(parts[1], parts[2]):
            if engagement.id == engagement_id:
                return engagement
        return None
