"""Data models for Vaffaschool."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Region(BaseModel):
    """Region a municipality belongs to."""

    name: str


class LocationRecord(BaseModel):
    """A municipality as returned by the geographic reference service."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str
    nuts3_2010_code: Optional[str] = None
    license_plate_code: Optional[str] = None  # province abbreviation, e.g. FI
    region: Region
    cad_code: Optional[str] = None


class GeoResolution(BaseModel):
    """Outcome of resolving a cadastral code: a location, or why there is none."""

    location: Optional[LocationRecord] = None
    reason: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.location is not None


class ParentSchool(BaseModel):
    """Administrative parent institute of a school."""

    id: str
    name: str = ""


class SchoolEntity(BaseModel):
    """A school normalized from a raw MIUR record."""

    model_config = ConfigDict(frozen=True)

    id: str  # CODICESCUOLA, e.g. FIEE123
    ref_id: str = ""  # linked data @id
    school_year: str = ""
    type: str = ""  # grade level description, e.g. "Scuola Primaria"
    name: str
    email: str
    certified_email: str = ""
    website: str = ""
    address: str = ""
    postcode: str = ""
    cad_code: str = ""

    # Geographic fields: raw city name unless the cadastral code resolved
    city_name: str = ""
    city_id: Optional[str] = None
    nuts3_code: Optional[str] = None
    province_abbr: Optional[str] = None
    region_name: Optional[str] = None

    parent_school: Optional[ParentSchool] = None
    debug_info: Optional[dict[str, Any]] = None


class ScoreBreakdown(BaseModel):
    """Independently computed score components, kept for explainability."""

    school_name_score: float = 0
    city_name_score: float = 0
    fuzzy_search_score: Optional[float] = None  # None in substring-only mode


class ScoredMatch(BaseModel):
    """A school scored against one search query."""

    school: SchoolEntity
    score: float
    breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)


class CandidateBatch(BaseModel):
    """Schools retrieved for a set of tokens.

    ``error`` is set when retrieval failed and the batch degraded to empty.
    """

    schools: list[SchoolEntity] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
