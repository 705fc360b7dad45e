#!/usr/bin/env python3
"""
CLI entry point for the FFN swim meet scrapers

Every command prints JSON on stdout. Failures print the error payload on stderr.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional

from pydantic import BaseModel

from errors import ErrorKind, ScrapingError, error_response
from scrapers import Scrapers, open_scrapers
from scraping_config import ScrapingConfig

logger = logging.getLogger(__name__)

def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Scrape swim meets from liveffn.com and ffn.extranat.fr",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py competitions --name "France Elite"
  python main.py swimmers 12345 --last-name DUPONT
  python main.py series 12345 --date "Jeudi 18 Décembre" --time 08h55 --meta "Série 3 • Couloir 4"
  python main.py results 12345 52 --swimmer 987654
  python main.py qualification --race "100 NL" --gender F --birth-year 2009
  python main.py engagements 12345 987654
"""
    )
    parser.add_argument('--max-concurrent', type=int, default=10,
                        help='Maximum concurrent requests (default: 10)')
    parser.add_argument('--timeout', type=float,
                        help='Total request timeout in seconds (default: wait indefinitely)')
    parser.add_argument('--default-lane', type=int, default=5,
                        help='Lane selected when the engagement meta has none (default: 5)')
    parser.add_argument('--no-cache', action='store_true', help='Disable the in-process cache')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

    commands = parser.add_subparsers(dest='command', required=True)

    competitions = commands.add_parser('competitions', help='List or search competitions')
    competitions.add_argument('--id', help='Competition id')
    competitions.add_argument('--name', help='Substring of the competition name')
    competitions.add_argument('--location', help='Substring of the host city')

    clubs = commands.add_parser('clubs', help='Clubs of a competition')
    clubs.add_argument('competition')
    clubs.add_argument('--id', help='Club id')
    clubs.add_argument('--name', help='Club name (exact or substring)')

    swimmers = commands.add_parser('swimmers', help='Swimmers of a competition')
    swimmers.add_argument('competition')
    swimmers.add_argument('--id', help='Swimmer id (iuf)')
    swimmers.add_argument('--first-name')
    swimmers.add_argument('--last-name')
    swimmers.add_argument('--club', help='Club id')
    swimmers.add_argument('--detailed', action='store_true',
                          help='Fetch every detail page (gender, club, birth year)')

    series = commands.add_parser('series', help='Heats of the race scheduled at a given time')
    series.add_argument('competition')
    series.add_argument('--date', required=True, help='Program day, e.g. "Jeudi 18 Décembre"')
    series.add_argument('--time', required=True, help='Start time, e.g. 08h55')
    series.add_argument('--race', help='Race label used when the page has none')
    series.add_argument('--meta', help='Engagement meta, e.g. "Série 3 • Couloir 4"')
    series.add_argument('--lane', type=int, help='Lane to flag as selected')
    series.add_argument('--program-only', action='store_true', help='Only resolve the program parameters')

    results = commands.add_parser('results', help='Results of one race')
    results.add_argument('competition')
    results.add_argument('race')
    results.add_argument('--swimmer', help='Only return this swimmer entry')

    qualification = commands.add_parser('qualification', help='Qualifying times')
    qualification.add_argument('--event', help='Grid id or slug (default: France Open summer)')
    qualification.add_argument('--season', type=int, help='Season end year, e.g. 2025')
    qualification.add_argument('--race', help='Race, e.g. "100 NL"')
    qualification.add_argument('--gender', choices=['F', 'M'])
    qualification.add_argument('--birth-year', type=int)
    qualification.add_argument('--races', action='store_true', help='List the races of the grid')

    commands.add_parser('qualification-events', help='Available qualification grids')

    engagements = commands.add_parser('engagements', help="A swimmer's schedule")
    engagements.add_argument('competition')
    engagements.add_argument('swimmer')
    engagements.add_argument('--id', help='Single engagement id')

    return parser.parse_args(argv)


def build_config(args) -> ScrapingConfig:
    return ScrapingConfig(
        max_concurrent_requests=args.max_concurrent,
        timeout=args.timeout,
        default_lane=args.default_lane,
        use_cache=not args.no_cache,
    )


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json', by_alias=True)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


async def run_command(scrapers: Scrapers, args) -> Any:
    if args.command == 'competitions':
        if args.id:
            return await scrapers.competition.get_by_id(args.id)
        if args.name:
            return await scrapers.competition.search_by_name(args.name)
        if args.location:
            return await scrapers.competition.search_by_location(args.location)
        return await scrapers.competition.get_all()

    if args.command == 'clubs':
        if args.id:
            return await scrapers.club.get_by_id(args.competition, args.id)
        if args.name:
            return await scrapers.club.find_by_name(args.competition, args.name)
        return await scrapers.club.get_all(args.competition)

    if args.command == 'swimmers':
        if args.id:
            return await scrapers.swimmer.get_by_id(args.competition, args.id)
        if args.first_name or args.last_name:
            return await scrapers.swimmer.search(args.competition, args.first_name, args.last_name)
        if args.club:
            return await scrapers.swimmer.get_by_club(args.competition, args.club)
        if args.detailed:
            return await scrapers.swimmer.get_all_detailed(args.competition)
        return await scrapers.swimmer.get_all(args.competition)

    if args.command == 'series':
        if args.program_only:
            return await scrapers.series.get_program(args.competition, args.date, args.time)
        return await scrapers.series.get_series(args.competition, args.date, args.time,
                                                race=args.race, meta=args.meta, lane=args.lane)

    if args.command == 'results':
        if args.swimmer:
            return await scrapers.results.get_by_swimmer(args.competition, args.race, args.swimmer)
        return await scrapers.results.get_by_race(args.competition, args.race)

    if args.command == 'qualification':
        if args.races:
            return await scrapers.qualification.get_races(args.event, args.season)
        if args.race:
            return await scrapers.qualification.get_qualification_time(
                args.race, args.gender, args.birth_year, event=args.event, season=args.season)
        if args.gender or args.birth_year:
            return await scrapers.qualification.get_qualifications_for_birth_year(
                args.gender, args.birth_year, event=args.event, season=args.season)
        return await scrapers.qualification.get_grid(args.event, args.season)

    if args.command == 'qualification-events':
        return await scrapers.qualification.get_available_events()

    if args.command == 'engagements':
        if args.id:
            return await scrapers.engagement.get_by_id(args.id)
        return await scrapers.engagement.get_all(args.competition, args.swimmer)

    raise ValueError(f"Unknown command: {args.command}")


async def run(args) -> Any:
    async with open_scrapers(build_config(args)) as scrapers:
        return await run_command(scrapers, args)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one command and return the process exit code"""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        result = asyncio.run(run(args))
    except ScrapingError as e:
        status, payload = error_response(e)
        logger.debug(f"{args.command} failed with status {status}")
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return 2 if e.kind is ErrorKind.VALIDATION else 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected failure: {e}")
        status, payload = error_response(e)
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return 1

    print(json.dumps(to_jsonable(result), ensure_ascii=False, indent=2))
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
