"""
Data models for the FFN scrapers

Entities are frozen pydantic models: attributes are snake_case, JSON output
(``to_json``) uses the camelCase keys callers consume. Parameter models are
validated at each scraper's public boundary before any network call.
"""

from datetime import date
from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
HourStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r'^\d{1,2}\s*[hH:]\s*\d{2}$')]

class Entity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> dict:
        return self.model_dump(mode='json', by_alias=True)


class Level(str, Enum):
    NATIONAL = "NATIONAL"
    REGIONAL = "REGIONAL"
    DEPARTEMENTAL = "DEPARTEMENTAL"
    INTERNATIONAL = "INTERNATIONAL"


class Gender(str, Enum):
    FEMALE = "F"
    MALE = "M"


class EngagementKind(str, Enum):
    SESSION = "session"
    RACE = "race"


# ============================================================================
# Entities
# ============================================================================

class Competition(Entity):
    level: Level
    ffn_id: NonEmptyStr
    name: NonEmptyStr
    poolsize: int
    start_date: Optional[date] = None  # Only missing for rows found by the link fallback
    end_date: Optional[date] = None
    location: Optional[str] = None
    image: Optional[str] = None
    nb_entries: int = 0
    nb_swimmers: int = 0


class Club(Entity):
    id: NonEmptyStr
    name: NonEmptyStr


class Swimmer(Entity):
    """Index entries only carry id, names and link; detail pages add the rest"""
    id: NonEmptyStr
    first_name: NonEmptyStr
    last_name: str = ''
    gender: Optional[Gender] = None
    club_id: Optional[str] = None
    club_name: Optional[str] = None
    birth_year: Optional[int] = None
    link: Optional[str] = None

    @property
    def is_detailed(self) -> bool:
        return self.gender is not None


class Engagement(Entity):
    id: NonEmptyStr
    kind: EngagementKind
    time: Optional[str] = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    label: NonEmptyStr
    meta: Optional[str] = None
    date: Optional[str] = None
    race_id: Optional[str] = None


class SeriesParams(BaseModel):
    """Program coordinates of one race, as embedded in the schedule page"""
    model_config = ConfigDict(frozen=True)

    cat_id: NonEmptyStr
    epr_id: NonEmptyStr
    typ_id: NonEmptyStr
    num_epreuve: NonEmptyStr
    alea: Optional[str] = None
    langue: Optional[str] = None


class LaneEntry(Entity):
    name: str
    year: str
    nationality: str
    club: str
    last_chrono: str


class Series(Entity):
    type: Literal['simple', 'relay'] = 'simple'
    nb: str
    max_nb: str
    race: str
    time: str
    swimmers: List[LaneEntry]


class RaceSeries(Entity):
    """Every heat of one race"""
    race: str
    type: Literal['simple', 'relay']
    series: List[Series]


class FormattedLane(Entity):
    lane: int
    name: str
    club: str
    entry_time: str
    is_selected: bool


class FormattedSeries(Entity):
    series_number: int
    is_swimmer_series: bool
    swimmers: List[FormattedLane]


class SeriesOverview(Entity):
    race: str
    total_series: int
    swimmer_series_index: int
    type: Literal['simple', 'relay']
    series: List[FormattedSeries]


class Split(Entity):
    distance: str
    split: Optional[str] = None
    cumulative: Optional[str] = None


class RaceResultEntry(Entity):
    rank: Optional[int] = None  # None for disqualified / did not start
    swimmer_id: NonEmptyStr
    name: NonEmptyStr
    birth_year: Optional[str] = None
    nationality: Optional[str] = None
    club: Optional[str] = None
    time: Optional[str] = None
    points: Optional[int] = None
    reaction: Optional[str] = None
    qualification: Optional[str] = None
    remark: Optional[str] = None
    splits: Optional[List[Split]] = None


class RaceResults(Entity):
    race_id: NonEmptyStr
    competition_id: NonEmptyStr
    race_name: Optional[str] = None
    race_date: Optional[str] = None
    results: List[RaceResultEntry]


class SwimmerRaceResult(Entity):
    race: RaceResults
    swimmer: Optional[RaceResultEntry] = None


class QualificationTime(Entity):
    event_id: NonEmptyStr
    race: NonEmptyStr
    gender: Gender
    age: Optional[int] = Field(default=None, ge=10, le=99)
    birth_year: Optional[int] = None
    time: NonEmptyStr  # "MM:SS.cc" or "HH:MM:SS.cc"
    qualifier_count: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str, str, str]:
        birth_year = str(self.birth_year) if self.birth_year is not None else 'none'
        return (self.event_id, self.race.lower(), self.gender.value, birth_year)


class QualificationGrid(Entity):
    event_id: NonEmptyStr
    season: str  # "2024 / 2025"
    season_year: Optional[int] = None
    competition: Optional[str] = None
    qualifications: List[QualificationTime]


class QualificationEvent(Entity):
    slug: NonEmptyStr
    id: NonEmptyStr
    name: NonEmptyStr
    url: NonEmptyStr


# ============================================================================
# Parameter schemas
# ============================================================================

class CompetitionParams(BaseModel):
    competition_id: NonEmptyStr


class SearchNameParams(BaseModel):
    name: NonEmptyStr


class SearchLocationParams(BaseModel):
    location: NonEmptyStr


class ClubParams(CompetitionParams):
    club_id: NonEmptyStr


class SwimmerParams(CompetitionParams):
    swimmer_id: NonEmptyStr


class SwimmerSearchParams(CompetitionParams):
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @model_validator(mode='after')
    def require_a_name(self):
        if not (self.first_name or '').strip() and not (self.last_name or '').strip():
            raise ValueError("At least a first name or a last name is required")
        return self


class ProgramParams(CompetitionParams):
    date: NonEmptyStr  # "Jeudi 18 Décembre"
    time: HourStr  # "08h55"


class RaceParams(CompetitionParams):
    race_id: NonEmptyStr


class SwimmerResultParams(RaceParams):
    swimmer_id: NonEmptyStr


class QualificationGridParams(BaseModel):
    event: Optional[NonEmptyStr] = None
    season: Optional[int] = Field(default=None, ge=2000, le=2100)


class QualificationLookupParams(QualificationGridParams):
    race: NonEmptyStr
    gender: Gender
    birth_year: int = Field(ge=1900, le=2100)


class QualificationAgeParams(QualificationGridParams):
    gender: Gender
    birth_year: int = Field(ge=1900, le=2100)
