import asyncio

import pytest

from engagement_scraper import format_race_label, parse_horaire, period_of
from errors import CompetitionClosedError, ValidationError
from models import EngagementKind
from tests.fixture_utils import CLOSED_COMPETITION, COMPETITION, fixture_scrapers


def test_format_race_label():
  assert format_race_label("50 Papillon Dames") == "50 pap"
  assert format_race_label("100  Nage Libre Messieurs") == "100 nl"
  assert format_race_label("200 4 Nages Dames") == "200 4n"
  assert format_race_label("1500 Nage Libre Dames") == "1500 nl"
  assert format_race_label("4x50 Nage Libre Messieurs") == "4x50 Nage Libre"
  assert format_race_label("100 Palmes Dames") == "100 Palmes"


def test_parse_horaire_and_period():
  assert parse_horaire("8h05") == "08:05"
  assert parse_horaire("") is None
  assert period_of("11:59") == 'matin'
  assert period_of("12:00") == 'après-midi'
  assert period_of("18:00") == 'soir'
  assert period_of(None) == 'session'


def test_schedule_is_grouped_by_session():
  engagements = asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, "987"))

  assert [(e.kind, e.label, e.time) for e in engagements] == [
    (EngagementKind.SESSION, "Jeudi matin", "08:55"),
    (EngagementKind.RACE, "50 pap", "08:55"),
    (EngagementKind.RACE, "200 4n", "10:15"),
    (EngagementKind.SESSION, "Jeudi après-midi", "17:40"),
    (EngagementKind.RACE, "100 nl", "17:40"),
    (EngagementKind.SESSION, "Vendredi soir", "18:30"),
    (EngagementKind.RACE, "50 dos", "18:30"),
    (EngagementKind.SESSION, "Vendredi session", None),
    (EngagementKind.RACE, "4x50 Nage Libre", None),
  ]


def test_race_entries_carry_meta_date_and_race_id():
  engagements = asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, "987"))
  butterfly, medley, freestyle = engagements[1], engagements[2], engagements[4]

  assert butterfly.meta == "Série 3/6 • Couloir 4 • 00:27.12"
  assert butterfly.date == "Jeudi 18 Décembre"
  assert butterfly.race_id == "52"
  assert freestyle.race_id == "12"
  assert medley.race_id is None
  assert engagements[6].meta is None

  session = engagements[0]
  assert session.meta == session.date == "Jeudi 18 Décembre"
  assert session.race_id is None


def test_ids_are_stable_and_unique():
  first = asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, "987"))
  second = asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, "987"))

  assert [e.id for e in first] == [e.id for e in second]
  assert len({e.id for e in first}) == len(first)
  assert first[0].id == "session:1234:987:Jeudi_18_D_cembre:matin"
  assert first[1].id == "race:1234:987:Jeudi_18_D_cembre:08h55:50_pap"


def test_get_by_id():
  scrapers = fixture_scrapers()
  engagement = asyncio.run(scrapers.engagement.get_by_id("race:1234:987:Jeudi_18_D_cembre:08h55:50_pap"))
  assert engagement.label == "50 pap"

  assert asyncio.run(scrapers.engagement.get_by_id("race:1234:987:unknown")) is None
  assert asyncio.run(scrapers.engagement.get_by_id("garbage")) is None


def test_other_swimmer():
  engagements = asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, "654"))
  assert [(e.label, e.time) for e in engagements] == [("Jeudi matin", "09:20"), ("100 dos", "09:20")]


def test_race_list_is_fetched_once_per_competition():
  scrapers = fixture_scrapers()

  async def run():
    await scrapers.engagement.get_all(COMPETITION, "987")
    await scrapers.engagement.get_all(COMPETITION, "654")

  asyncio.run(run())
  assert len(scrapers.fetcher.requests) == 3


def test_closed_competition():
  with pytest.raises(CompetitionClosedError):
    asyncio.run(fixture_scrapers().engagement.get_all(CLOSED_COMPETITION, "987"))


def test_parameters_are_validated():
  with pytest.raises(ValidationError):
    asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, ""))


def test_sessions_follow_the_clock_when_rows_are_out_of_order():
  engagements = asyncio.run(fixture_scrapers().engagement.get_all(COMPETITION, "555"))

  assert [(e.label, e.time) for e in engagements] == [
    ("Jeudi matin", "08:55"),
    ("50 pap", "08:55"),
    ("Jeudi après-midi", "17:40"),
    ("100 nl", "17:40"),
    ("Jeudi soir", "19:30"),
    ("50 dos", "19:30"),
    ("Vendredi matin", "09:10"),
    ("200 br", "09:10"),
    ("Vendredi soir", "19:05"),
    ("200 dos", "19:05"),
  ]
