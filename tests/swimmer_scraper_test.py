import asyncio

import pytest

from errors import CompetitionClosedError, NotFoundError, ValidationError
from models import Gender
from scraping_config import ScrapingConfig
from tests.fixture_utils import CLOSED_COMPETITION, COMPETITION, fixture_scrapers


def test_index_entries_only_carry_names_and_link():
  swimmers = asyncio.run(fixture_scrapers().swimmer.get_all(COMPETITION))

  assert [(s.id, s.last_name, s.first_name) for s in swimmers] == [
    ("987", "DUPONT", "Jean-Marc"),
    ("654", "MARTIN DE LA TOUR", "Léa"),
    ("321", "BERNARD", "Lucas"),
  ]
  assert not any(s.is_detailed for s in swimmers)
  assert swimmers[0].link == (
    "https://www.liveffn.com/cgi-bin/startlist.php"
    "?competition=1234&langue=fra&go=detail&action=participant&iuf=987"
  )


def test_get_by_id_upgrades_to_the_detail_record():
  swimmer = asyncio.run(fixture_scrapers().swimmer.get_by_id(COMPETITION, "987"))

  assert swimmer.is_detailed
  assert swimmer.gender == Gender.MALE
  assert swimmer.birth_year == 2008
  assert swimmer.club_name == "cn paris"
  assert swimmer.club_id == "101"
  assert (swimmer.first_name, swimmer.last_name) == ("Jean-Marc", "DUPONT")


def test_female_header_and_multi_word_family_name():
  swimmer = asyncio.run(fixture_scrapers().swimmer.get_by_id(COMPETITION, "654"))
  assert swimmer.gender == Gender.FEMALE
  assert swimmer.last_name == "MARTIN DE LA TOUR"
  assert swimmer.club_id == "102"
  assert swimmer.birth_year == 2010


def test_get_by_id_falls_back_to_index_entry_when_detail_fails():
  swimmer = asyncio.run(fixture_scrapers().swimmer.get_by_id(COMPETITION, "321"))
  assert swimmer.id == "321"
  assert swimmer.first_name == "Lucas"
  assert not swimmer.is_detailed


def test_get_by_id_unknown():
  with pytest.raises(NotFoundError):
    asyncio.run(fixture_scrapers().swimmer.get_by_id(COMPETITION, "000"))


def test_search_single_match_is_detailed():
  swimmers = asyncio.run(fixture_scrapers().swimmer.search(COMPETITION, last_name="dupont"))
  assert len(swimmers) == 1
  assert swimmers[0].gender == Gender.MALE


def test_search_several_matches_stay_index_entries():
  scrapers = fixture_scrapers()
  swimmers = asyncio.run(scrapers.swimmer.search(COMPETITION, first_name="L"))
  assert [s.id for s in swimmers] == ["654", "321"]
  assert not any(s.is_detailed for s in swimmers)
  # Only the participant index was fetched
  assert len(scrapers.fetcher.requests) == 1


def test_search_combines_first_and_last_name():
  swimmers = asyncio.run(fixture_scrapers().swimmer.search(COMPETITION, first_name="léa", last_name="tour"))
  assert [s.id for s in swimmers] == ["654"]
  assert asyncio.run(fixture_scrapers().swimmer.search(COMPETITION, last_name="durand")) == []


def test_search_requires_a_name():
  scrapers = fixture_scrapers()
  with pytest.raises(ValidationError):
    asyncio.run(scrapers.swimmer.search(COMPETITION, first_name=" ", last_name=None))
  assert scrapers.fetcher.requests == []


def test_get_all_detailed_skips_failed_pages():
  swimmers = asyncio.run(fixture_scrapers().swimmer.get_all_detailed(COMPETITION))
  assert [s.id for s in swimmers] == ["987", "654"]
  assert all(s.is_detailed for s in swimmers)


def test_get_all_detailed_in_small_batches():
  config = ScrapingConfig(detail_batch_size=1)
  swimmers = asyncio.run(fixture_scrapers(config).swimmer.get_all_detailed(COMPETITION))
  assert [s.id for s in swimmers] == ["987", "654"]


def test_get_by_club():
  scrapers = fixture_scrapers()
  assert [s.id for s in asyncio.run(scrapers.swimmer.get_by_club(COMPETITION, "101"))] == ["987"]
  assert [s.id for s in asyncio.run(scrapers.swimmer.get_by_club(COMPETITION, "102"))] == ["654"]
  assert asyncio.run(scrapers.swimmer.get_by_club(COMPETITION, "104")) == []


def test_detail_pages_are_cached():
  scrapers = fixture_scrapers()

  async def run():
    await scrapers.swimmer.get_by_id(COMPETITION, "987")
    await scrapers.swimmer.get_by_id(COMPETITION, "987")

  asyncio.run(run())
  assert sorted(set(scrapers.fetcher.requests)) == sorted(scrapers.fetcher.requests)


def test_closed_competition():
  with pytest.raises(CompetitionClosedError):
    asyncio.run(fixture_scrapers().swimmer.get_all(CLOSED_COMPETITION))


def test_get_first():
  assert asyncio.run(fixture_scrapers().swimmer.get_first(COMPETITION)).id == "987"
  assert asyncio.run(fixture_scrapers().swimmer.get_first(CLOSED_COMPETITION)) is None
