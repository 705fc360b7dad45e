"""
Configuration and upstream URL builders for the FFN scrapers
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlencode

@dataclass
class ScrapingConfig:
    """Configuration shared by every scraper"""
    live_base_url: str = "https://www.liveffn.com"
    archive_base_url: str = "https://ffn.extranat.fr"
    language: str = "fra"
    max_concurrent_requests: int = 10
    detail_batch_size: int = 10  # Swimmer detail pages fetched together
    timeout: Optional[float] = None  # Seconds; no timeout unless set
    user_agent: str = (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
    )
    use_cache: bool = True
    cache_ttl: float = 5 * 60
    qualification_cache_ttl: float = 60 * 60  # Grids change rarely
    default_lane: int = 5  # Selected lane when the engagement meta has none
    gender_section_order: Tuple[str, ...] = ("F", "M")
    default_qualification_event: str = "79"  # France Open (summer)


def _live(config: ScrapingConfig, script: str, **params) -> str:
    query = urlencode({'competition': params.pop('competition'), 'langue': config.language, **params})
    return f"{config.live_base_url}/cgi-bin/{script}?{query}"


def competitions_url(config: ScrapingConfig) -> str:
    return f"{config.live_base_url}/cgi-bin/liste_live.php"


def clubs_url(config: ScrapingConfig, competition_id: str) -> str:
    return _live(config, 'startlist.php', competition=competition_id, go='detail', action='structure')


def participants_url(config: ScrapingConfig, competition_id: str) -> str:
    return _live(config, 'startlist.php', competition=competition_id, go='detail', action='participant')


def swimmer_url(config: ScrapingConfig, competition_id: str, swimmer_id: str) -> str:
    """Personal start list of one swimmer (detail page and engagements)"""
    return _live(config, 'startlist.php', competition=competition_id, go='detail',
                 action='participant', iuf=swimmer_id)


def program_url(config: ScrapingConfig, competition_id: str) -> str:
    return _live(config, 'programme.php', competition=competition_id)


def series_url(config: ScrapingConfig, competition_id: str, params) -> str:
    return _live(
        config,
        'programme.php',
        competition=competition_id,
        alea=params.alea or '',
        cat_id=params.cat_id,
        epr_id=params.epr_id,
        typ_id=params.typ_id,
        num_epreuve=params.num_epreuve,
    )


def results_url(config: ScrapingConfig, competition_id: str, race_id: str) -> str:
    return _live(config, 'resultats.php', competition=competition_id, go='epreuve', epreuve=race_id)


def race_list_url(config: ScrapingConfig, competition_id: str) -> str:
    return _live(config, 'resultats.php', competition=competition_id, go='epreuve')


def qualification_url(config: ScrapingConfig, event_id: str, season: Optional[int] = None) -> str:
    """Qualifying-time grid; without a season the site serves the latest one"""
    params = {'idact': 'nat', 'go': 'clt_tps'}
    if season is not None:
        params['idsai'] = str(season)
    params['idclt'] = event_id
    return f"{config.archive_base_url}/webffn/nat_perfs.php?{urlencode(params)}"
