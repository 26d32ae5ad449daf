"""Services for normalizing, enriching and storing school records."""

from .geo import GeoLookupClient, HttpGeoLookup, MunicipalityCatalog
from .ingest import IngestReport, get_schools, ingest_directory, load_schools
from .models import (
    CandidateBatch,
    GeoResolution,
    LocationRecord,
    ParentSchool,
    SchoolEntity,
    ScoreBreakdown,
    ScoredMatch,
)
from .normalizer import NormalizerConfig, RecordNormalizer
from .storage import CandidateSource, InMemorySchoolSource, SchoolStore

__all__ = [
    # Models
    "SchoolEntity",
    "ParentSchool",
    "LocationRecord",
    "GeoResolution",
    "CandidateBatch",
    "ScoreBreakdown",
    "ScoredMatch",
    # Normalization
    "RecordNormalizer",
    "NormalizerConfig",
    # Geographic lookup
    "GeoLookupClient",
    "MunicipalityCatalog",
    "HttpGeoLookup",
    # Storage
    "CandidateSource",
    "SchoolStore",
    "InMemorySchoolSource",
    # Ingestion
    "IngestReport",
    "ingest_directory",
    "load_schools",
    "get_schools",
]
