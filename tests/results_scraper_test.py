import asyncio

import pytest

from errors import ScrapingError, ValidationError
from results_scraper import parse_points, parse_race_header, parse_rank
from tests.fixture_utils import COMPETITION, fixture_scrapers


def test_parse_rank():
  assert parse_rank("1.") == 1
  assert parse_rank(" 12 ") == 12
  assert parse_rank("DSQ") is None
  assert parse_rank("") is None
  assert parse_rank(None) is None


def test_parse_points():
  assert parse_points("1120 pts") == 1120
  assert parse_points("-") is None


def test_parse_race_header():
  assert parse_race_header("50 Dos Messieurs - Séries (Lundi 22 Décembre 2025 - 10h52)") == (
    "50 Dos Messieurs - Séries", "Lundi 22 Décembre 2025 - 10h52")
  assert parse_race_header("") == (None, None)


def test_get_by_race():
  race = asyncio.run(fixture_scrapers().results.get_by_race(COMPETITION, "52"))

  assert race.race_id == "52"
  assert race.competition_id == COMPETITION
  assert race.race_name == "50 Papillon Messieurs - Séries"
  assert race.race_date == "Jeudi 18 Décembre 2025 - 08h55"
  assert [r.swimmer_id for r in race.results] == ["987", "111", "222", "333"]
  assert [r.rank for r in race.results] == [1, 2, None, None]


def test_winner_with_splits():
  race = asyncio.run(fixture_scrapers().results.get_by_race(COMPETITION, "52"))
  winner = race.results[0]

  assert winner.name == "DUPONT Jean-Marc"
  assert (winner.birth_year, winner.nationality, winner.club) == ("2008", "FRA", "CN PARIS")
  assert winner.time == "00:26.98"
  assert winner.points == 1120
  assert winner.reaction == "+0.68"
  assert winner.qualification == "Q"
  assert winner.remark is None
  assert [(s.distance, s.split, s.cumulative) for s in winner.splits] == [
    ("25 m", "00:12.80", "00:12.80"),
    ("50 m", "00:14.18", "00:26.98"),
  ]


def test_plain_time_and_unranked_rows():
  results = asyncio.run(fixture_scrapers().results.get_by_race(COMPETITION, "52")).results
  second, disqualified, scratched = results[1], results[2], results[3]

  assert second.time == "00:27.40"
  assert second.splits is None
  assert second.qualification is None

  assert disqualified.time is None
  assert disqualified.points is None
  assert disqualified.remark == "DSQ 4.4"
  assert scratched.remark == "Forfait"


def test_result_json_keys():
  race = asyncio.run(fixture_scrapers().results.get_by_race(COMPETITION, "52"))
  payload = race.to_json()
  assert payload['raceName'] == "50 Papillon Messieurs - Séries"
  assert payload['results'][0]['swimmerId'] == "987"
  assert payload['results'][0]['splits'][1]['cumulative'] == "00:26.98"


def test_get_by_swimmer():
  scrapers = fixture_scrapers()
  found = asyncio.run(scrapers.results.get_by_swimmer(COMPETITION, "52", "222"))
  assert found.swimmer.name == "LEROY Hugo"
  assert len(found.race.results) == 4

  missing = asyncio.run(scrapers.results.get_by_swimmer(COMPETITION, "52", "000"))
  assert missing.swimmer is None
  # Both lookups share the cached race page
  assert len(scrapers.fetcher.requests) == 1


def test_unknown_race_propagates_upstream_error():
  with pytest.raises(ScrapingError) as info:
    asyncio.run(fixture_scrapers().results.get_by_race(COMPETITION, "99"))
  assert (info.value.code, info.value.status) == ("HTTP_ERROR", 404)


def test_blank_race_id_is_rejected():
  with pytest.raises(ValidationError):
    asyncio.run(fixture_scrapers().results.get_by_swimmer(COMPETITION, "", "987"))


def test_parse_rank_ignores_non_ascii_digits():
  assert parse_rank("²") is None
  assert parse_rank("١٢") is None
