import asyncio

import pytest

from errors import CompetitionClosedError, NotFoundError, ValidationError
from tests.fixture_utils import CLOSED_COMPETITION, COMPETITION, fixture_scrapers


def test_get_all_dedupes_by_id_and_drops_rows_without_id():
  clubs = asyncio.run(fixture_scrapers().club.get_all(COMPETITION))
  assert [(c.id, c.name) for c in clubs] == [
    ("104", "cn paris 15"),
    ("101", "cn paris"),
    ("102", "dauphins de rennes"),
  ]


def test_get_by_id():
  scrapers = fixture_scrapers()
  assert asyncio.run(scrapers.club.get_by_id(COMPETITION, "102")).name == "dauphins de rennes"
  with pytest.raises(NotFoundError):
    asyncio.run(scrapers.club.get_by_id(COMPETITION, "999"))


def test_find_by_name_prefers_exact_match():
  scrapers = fixture_scrapers()
  # "cn paris 15" comes first and contains "cn paris", the exact match still wins
  assert asyncio.run(scrapers.club.find_by_name(COMPETITION, "CN Paris")).id == "101"
  assert asyncio.run(scrapers.club.find_by_name(COMPETITION, "paris")).id == "104"
  assert asyncio.run(scrapers.club.find_by_name(COMPETITION, " Dauphins ")).id == "102"
  assert asyncio.run(scrapers.club.find_by_name(COMPETITION, "nantes")) is None
  assert asyncio.run(scrapers.club.find_by_name(COMPETITION, "")) is None


def test_closed_competition():
  with pytest.raises(CompetitionClosedError) as info:
    asyncio.run(fixture_scrapers().club.get_all(CLOSED_COMPETITION))
  assert info.value.code == "COMPETITION_CLOSED"


def test_blank_competition_id_is_rejected():
  scrapers = fixture_scrapers()
  with pytest.raises(ValidationError):
    asyncio.run(scrapers.club.get_all(" "))
  assert scrapers.fetcher.requests == []


def test_get_first_swallows_failures():
  scrapers = fixture_scrapers()
  assert asyncio.run(scrapers.club.get_first(COMPETITION)).id == "104"
  assert asyncio.run(scrapers.club.get_first(CLOSED_COMPETITION)) is None
