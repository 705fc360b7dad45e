"""
Scraper facade: builds every entity scraper around one fetcher and one cache
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from club_scraper import ClubScraper
from competition_scraper import CompetitionScraper
from engagement_scraper import EngagementScraper
from memory_cache import MemoryCache
from page_fetcher import PageFetcher
from qualification_scraper import QualificationScraper
from results_scraper import ResultsScraper
from scraping_config import ScrapingConfig
from series_scraper import SeriesScraper
from swimmer_scraper import SwimmerScraper

@dataclass
class Scrapers:
    fetcher: PageFetcher
    cache: MemoryCache
    competition: CompetitionScraper
    club: ClubScraper
    swimmer: SwimmerScraper
    series: SeriesScraper
    results: ResultsScraper
    qualification: QualificationScraper
    engagement: EngagementScraper


def create_scrapers(config: ScrapingConfig = None, cache: Optional[MemoryCache] = None,
                    fetcher: Optional[PageFetcher] = None) -> Scrapers:
    """Wire the scrapers together; the swimmer scraper resolves clubs through the club scraper"""
    config = config or ScrapingConfig()
    cache = cache if cache is not None else MemoryCache(config.cache_ttl)
    fetcher = fetcher or PageFetcher(config)

    club = ClubScraper(fetcher, cache, config)
    return Scrapers(
        fetcher=fetcher,
        cache=cache,
        competition=CompetitionScraper(fetcher, cache, config),
        club=club,
        swimmer=SwimmerScraper(fetcher, cache, club, config=config),
        series=SeriesScraper(fetcher, cache, config),
        results=ResultsScraper(fetcher, cache, config),
        qualification=QualificationScraper(fetcher, cache, config),
        engagement=EngagementScraper(fetcher, cache, config),
    )


@asynccontextmanager
async def open_scrapers(config: ScrapingConfig = None, cache: Optional[MemoryCache] = None) -> AsyncIterator[Scrapers]:
    """Scrapers sharing one HTTP session, closed on exit"""
    scrapers = create_scrapers(config, cache)
    async with scrapers.fetcher:
        yield scrapers
