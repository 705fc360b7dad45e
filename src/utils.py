"""
Utility functions for the FFN scrapers
"""

import re
import unicodedata
from typing import Dict, Iterable, Optional
from urllib.parse import parse_qs, urljoin, urlparse

_HOURS_RE = re.compile(r'(\d{1,2})\s*[hH:]\s*(\d{2})')
_WHITESPACE_RE = re.compile(r'\s+')

def normalize_whitespace(value: Optional[str]) -> str:
    return _WHITESPACE_RE.sub(' ', value or '').strip()


def parse_hours(hour_str: str) -> int:
    """Convert "HHhMM" (or "HH:MM") to minutes since midnight"""
    match = _HOURS_RE.search(hour_str or '')
    if not match:
        raise ValueError(f"Invalid time: {hour_str!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def is_after(h1: str, h2: str) -> int:
    """Positive if h1 is later than h2, negative if earlier, 0 if equal"""
    return parse_hours(h1) - parse_hours(h2)


def split_name(full_name: str) -> Dict[str, str]:
    """Split a displayed name into first and last name.

    The site prints family names in capitals ("DUPONT DE LA TOUR Jean-Marc"), so
    leading all-uppercase tokens are the last name. This is a heuristic: a name
    printed entirely in capitals keeps its final token as the first name, and a
    name with no capitals falls back to "last token is the last name".
    """
    parts = (full_name or '').split()
    if not parts:
        return {'first_name': '', 'last_name': ''}
    if len(parts) == 1:
        return {'first_name': parts[0], 'last_name': ''}

    upper_count = 0
    for part in parts:
        if not part.isupper():
            break
        upper_count += 1

    if upper_count == 0:
        return {'first_name': ' '.join(parts[:-1]), 'last_name': parts[-1]}
    if upper_count == len(parts):
        upper_count -= 1
    return {'first_name': ' '.join(parts[upper_count:]), 'last_name': ' '.join(parts[:upper_count])}


def capitalize(value: str) -> str:
    return ' '.join(s[:1].upper() + s[1:].lower() for s in value.split(' '))


def query_param(href: Optional[str], name: str, base_url: str = 'https://www.liveffn.com') -> Optional[str]:
    """Read one query-string parameter from a (possibly relative) link"""
    if not href:
        return None
    try:
        query = urlparse(urljoin(base_url, href)).query
    except ValueError:
        return None
    values = parse_qs(query).get(name)
    return values[0] if values and values[0] else None


def slugify(value: str) -> str:
    text = unicodedata.normalize('NFKD', value or '').encode('ascii', 'ignore').decode('ascii')
    return re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')


def make_id(parts: Iterable[Optional[str]]) -> str:
    return re.sub(r'[^a-zA-Z0-9:_-]+', '_', ':'.join(p for p in parts if p))


def absolute_url(href: str, base_url: str = 'https://www.liveffn.com') -> str:
    """Resolve a link found on a /cgi-bin/ page"""
    return urljoin(f"{base_url.rstrip('/')}/cgi-bin/", href)
